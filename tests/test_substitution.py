"""Tests for lexicon term substitution."""

from narration.models.lexicon import LexiconTerm
from narration.services.substitution import order_terms, substitute


def _terms(*pairs):
    return [LexiconTerm(term=t, spoken=s) for t, s in pairs]


def test_whole_token_match(nasa_terms):
    assert substitute("This is a NASA mission.", nasa_terms) == "This is a N A S A mission."


def test_case_insensitive_match(nasa_terms):
    assert substitute("nasa and Nasa", nasa_terms) == "N A S A and N A S A"


def test_term_not_matched_inside_word():
    terms = _terms(("AI", "A I"))
    assert substitute("CHAIN of AIDS", terms) == "CHAIN of AIDS"
    assert substitute("the AI system", terms) == "the A I system"


def test_boundaries_at_punctuation_and_string_edges():
    terms = _terms(("AI", "A I"))
    assert substitute("AI, (AI) and AI.", terms) == "A I, (A I) and A I."


def test_longest_term_wins():
    terms = _terms(("New York", "Noo York"), ("New York City", "the Big Apple"))
    assert substitute("I love New York City", terms) == "I love the Big Apple"


def test_shorter_term_still_applies_elsewhere():
    terms = _terms(("New York", "Noo York"), ("New York City", "the Big Apple"))
    out = substitute("New York City is in New York.", terms)
    assert out == "the Big Apple is in Noo York."


def test_hyphen_matches_hyphen_space_or_nothing():
    terms = _terms(("follow-up", "follow up visit"))
    assert substitute("a follow-up", terms) == "a follow up visit"
    assert substitute("a follow up", terms) == "a follow up visit"
    assert substitute("a followup", terms) == "a follow up visit"


def test_space_in_term_matches_hyphen():
    terms = _terms(("x ray", "ex ray"))
    assert substitute("an X-ray and an x ray and an xray", terms) == "an ex ray and an ex ray and an ex ray"


def test_special_characters_are_literal():
    terms = _terms(("C++", "C plus plus"), ("a.m.", "A M"))
    assert substitute("Write C++ at 9 a.m. daily", terms) == "Write C plus plus at 9 A M daily"


def test_inserted_text_is_not_rescanned():
    terms = _terms(("NASA", "N A S A"), ("A", "ay"))
    assert substitute("NASA has A plan", terms) == "N A S A has ay plan"


def test_spoken_form_is_literal():
    terms = _terms(("mg", r"milli\1grams"))
    assert substitute("5 mg", terms) == r"5 milli\1grams"


def test_empty_entries_skipped():
    terms = _terms(("", "nothing"), ("word", ""), ("  ", "blank"), ("-", "dash"))
    assert substitute("word - text", terms) == "word - text"


def test_no_terms_or_no_matches_is_identity():
    assert substitute("plain text", []) == "plain text"
    assert substitute("plain text", _terms(("absent", "x"))) == "plain text"
    assert substitute("", _terms(("absent", "x"))) == ""


def test_idempotent_once_no_terms_remain():
    terms = _terms(("NASA", "National Aeronautics"), ("ECG", "E C G"))
    once = substitute("NASA runs an ECG.", terms)
    assert substitute(once, terms) == once


def test_order_terms_longest_first_stable():
    terms = _terms(("ab", "1"), ("abcd", "2"), ("cd", "3"), ("", "4"))
    assert [t.term for t in order_terms(terms)] == ["abcd", "ab", "cd"]


def test_unicode_letters_are_word_characters():
    terms = _terms(("AI", "A I"))
    assert substitute("éAI AIé AI", terms) == "éAI AIé A I"
