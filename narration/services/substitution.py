"""Lexicon-driven term substitution."""

import re
from typing import Iterable, List, Optional, Pattern, Sequence, Tuple

from narration.models.lexicon import LexiconTerm

# A single alphanumeric character, unicode aware ([^\W_] is \w without underscore)
_ALNUM = r"[^\W_]"
# Hyphen or whitespace inside a term matches a hyphen, a whitespace run, or nothing
_JOINER = r"(?:-|\s+)?"
_TERM_SPLIT_RE = re.compile(r"[-\s]+")

Span = Tuple[int, int]


def _term_pattern(term: str) -> Optional[Pattern]:
    parts = [re.escape(p) for p in _TERM_SPLIT_RE.split(term) if p]
    if not parts:
        return None
    body = _JOINER.join(parts)
    return re.compile(rf"(?<!{_ALNUM}){body}(?!{_ALNUM})", re.IGNORECASE)


def _overlaps(span: Span, protected: Sequence[Span]) -> bool:
    start, end = span
    return any(start < p_end and p_start < end for p_start, p_end in protected)


def _find_matches(pattern: Pattern, text: str, protected: Sequence[Span]) -> List[Span]:
    matches = []
    pos = 0
    while pos <= len(text):
        m = pattern.search(text, pos)
        if m is None:
            break
        if _overlaps(m.span(), protected):
            pos = m.start() + 1
            continue
        matches.append(m.span())
        pos = m.end()
    return matches


def _replace_spans(text: str, spans: Sequence[Span], spoken: str, protected: Sequence[Span]) -> Tuple[str, List[Span]]:
    """Insert ``spoken`` at ``spans`` and return the new text with updated protected spans."""
    pieces = []
    inserted = []
    cursor = 0
    delta = 0
    for start, end in spans:
        pieces.append(text[cursor:start])
        pieces.append(spoken)
        inserted.append((start + delta, start + delta + len(spoken)))
        delta += len(spoken) - (end - start)
        cursor = end
    pieces.append(text[cursor:])

    shifted = []
    for p_start, p_end in protected:
        offset = sum(len(spoken) - (end - start) for start, end in spans if end <= p_start)
        shifted.append((p_start + offset, p_end + offset))
    return "".join(pieces), sorted(shifted + inserted)


def order_terms(terms: Iterable[LexiconTerm]) -> List[LexiconTerm]:
    """Usable terms, longest first; ties keep their original order."""
    usable = [t for t in terms if t.is_usable]
    return sorted(usable, key=lambda t: len(t.term), reverse=True)


def substitute(text: str, terms: Iterable[LexiconTerm]) -> str:
    """Replace every whole-token occurrence of each lexicon term by its spoken form.

    Longer terms are applied before shorter ones so that "New York City" wins
    over "New York". Text inserted for one term is never matched by a later
    term.
    """
    out = str(text or "")
    protected: List[Span] = []

    for entry in order_terms(terms):
        pattern = _term_pattern(entry.term)
        if pattern is None:
            continue
        spans = _find_matches(pattern, out, protected)
        if spans:
            out, protected = _replace_spans(out, spans, entry.spoken, protected)

    return out
