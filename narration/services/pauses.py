"""Rewrite inline pause tags into punctuation the provider reads as silence."""

import re

from narration.models.narration import PauseOptions

SILENT_PAUSE = ". . ."

_SHORT_PAUSE_RE = re.compile(r"\[PAUSE=SHORT\]", re.IGNORECASE)
_PAUSE_RE = re.compile(r"\[PAUSE\]", re.IGNORECASE)
_SILENT_PAUSE_RE = re.compile(r"\[SILENT_PAUSE\]", re.IGNORECASE)


def apply_pause_tags(text: str, options: PauseOptions = None) -> str:
    """Replace [PAUSE=SHORT], [PAUSE] and [SILENT_PAUSE] tags.

    [PAUSE=SHORT] becomes a comma. [PAUSE] becomes a run of dots (at least
    one) or the silent cue when ``use_silent_pause`` is set. [SILENT_PAUSE]
    always becomes the silent cue. Line endings are normalized to ``\\n``.
    """
    options = options or PauseOptions()
    out = str(text or "").replace("\r\n", "\n")

    out = _SHORT_PAUSE_RE.sub(",", out)

    dots = "." * max(1, options.long_pause_dots or 6)
    long_pause = SILENT_PAUSE if options.use_silent_pause else dots
    # lambda keeps the replacement literal
    out = _PAUSE_RE.sub(lambda _: long_pause, out)

    out = _SILENT_PAUSE_RE.sub(lambda _: SILENT_PAUSE, out)
    return out
