"""Split script text into request-sized chunks at natural boundaries.

Deepgram's speak endpoint refuses text longer than 2000 characters, so a
script is cut at paragraph boundaries first, sentence boundaries next and,
only when a single sentence is still too long, at a fixed character offset.
"""

import re
from typing import List

from narration.models.narration import TextChunk

PARAGRAPH_SEPARATOR = "\n\n"
SENTENCE_SEPARATOR = " "

_PARAGRAPH_SPLIT_RE = re.compile(r"\n\s*\n+")
_SENTENCE_SPLIT_RE = re.compile(r"(?<=[.!?])\s+")


def split_paragraphs(text: str) -> List[str]:
    return [p.strip() for p in _PARAGRAPH_SPLIT_RE.split(text) if p.strip()]


def split_sentences(paragraph: str) -> List[str]:
    return [s for s in _SENTENCE_SPLIT_RE.split(paragraph) if s]


def _chunk_long_paragraph(paragraph: str, max_chars: int) -> List[str]:
    """Pack the sentences of an oversize paragraph, hard-wrapping oversize sentences."""
    pieces = []
    buf = ""
    for sentence in split_sentences(paragraph):
        candidate = f"{buf}{SENTENCE_SEPARATOR}{sentence}" if buf else sentence
        if len(candidate) <= max_chars:
            buf = candidate
            continue

        if buf:
            pieces.append(buf.strip())
        buf = sentence

        # Hard wrap; the remainder stays in the buffer and may take more sentences
        while len(buf) > max_chars:
            if buf[:max_chars].strip():
                pieces.append(buf[:max_chars])
            buf = buf[max_chars:]

    if buf.strip():
        pieces.append(buf.strip())
    return pieces


def chunk_text(text: str, max_chars: int = 2000) -> List[TextChunk]:
    """Split ``text`` into ordered chunks of at most ``max_chars`` characters.

    Paragraphs (separated by blank lines) are packed together while they fit.
    A paragraph longer than ``max_chars`` is flushed on its own, split into
    sentences and packed the same way.

    Args:
        text: Script text, already pause-normalized and substituted.
        max_chars: Character budget per chunk, at least 1.

    Returns:
        List[TextChunk]: Chunks indexed from 0 in emission order. Empty input
        yields an empty list.
    """
    if max_chars < 1:
        raise ValueError(f"max_chars must be at least 1, got {max_chars}")

    clean = str(text or "").replace("\r\n", "\n").strip()
    if not clean:
        return []

    pieces: List[str] = []
    buf = ""

    def flush():
        nonlocal buf
        if buf.strip():
            pieces.append(buf.strip())
        buf = ""

    for paragraph in split_paragraphs(clean):
        if len(paragraph) > max_chars:
            flush()
            pieces.extend(_chunk_long_paragraph(paragraph, max_chars))
            continue

        candidate = f"{buf}{PARAGRAPH_SEPARATOR}{paragraph}" if buf else paragraph
        if len(candidate) <= max_chars:
            buf = candidate
        else:
            flush()
            buf = paragraph

    flush()
    return [TextChunk(index=i, text=piece) for i, piece in enumerate(pieces)]
