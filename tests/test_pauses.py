"""Tests for pause tag rewriting."""

from narration.models.narration import PauseOptions
from narration.services.pauses import SILENT_PAUSE, apply_pause_tags


def test_short_pause_becomes_comma():
    assert apply_pause_tags("Wait[PAUSE=SHORT] then go") == "Wait, then go"


def test_long_pause_default_six_dots():
    assert apply_pause_tags("End[PAUSE] Next") == "End...... Next"


def test_long_pause_dot_count_configurable():
    assert apply_pause_tags("A[pause]B", PauseOptions(long_pause_dots=3)) == "A...B"


def test_long_pause_dot_count_floor():
    assert apply_pause_tags("A[PAUSE]B", PauseOptions(long_pause_dots=-4)) == "A.B"
    assert apply_pause_tags("A[PAUSE]B", PauseOptions(long_pause_dots=0)) == "A......B"


def test_long_pause_as_silent_cue():
    assert apply_pause_tags("A [PAUSE] B", PauseOptions(use_silent_pause=True)) == f"A {SILENT_PAUSE} B"


def test_silent_pause_tag():
    assert apply_pause_tags("A [Silent_Pause] B") == "A . . . B"


def test_line_endings_normalized():
    assert apply_pause_tags("one\r\ntwo") == "one\ntwo"


def test_untagged_text_unchanged():
    assert apply_pause_tags("No [tags] here.") == "No [tags] here."
    assert apply_pause_tags(None) == ""
