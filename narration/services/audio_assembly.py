"""Concatenate per-chunk audio into one playable file."""

import struct
from typing import Sequence

from narration.core.errors import ContainerMismatch
from narration.core.logger import logger
from narration.models.narration import AudioSegment, Container

# Canonical PCM WAV header layout (all integers little-endian)
WAV_HEADER_SIZE = 44
RIFF_MARKER = (0, b"RIFF")
WAVE_MARKER = (8, b"WAVE")
RIFF_SIZE_OFFSET = 4    # total file length - 8
DATA_SIZE_OFFSET = 40   # length of the sample payload
_UINT32 = struct.Struct("<I")


def _check_order(segments: Sequence[AudioSegment]) -> None:
    for expected, segment in enumerate(segments):
        if segment.chunk_index != expected:
            raise ValueError(
                f"Segments must be contiguous from 0; position {expected} holds chunk {segment.chunk_index}"
            )


def has_wav_header(data: bytes) -> bool:
    if len(data) < WAV_HEADER_SIZE:
        return False
    return all(data[offset:offset + len(marker)] == marker for offset, marker in (RIFF_MARKER, WAVE_MARKER))


def concat_bytes(segments: Sequence[AudioSegment]) -> bytes:
    return b"".join(segment.data for segment in segments)


def concat_pcm_wav(segments: Sequence[AudioSegment]) -> bytes:
    """Join WAV segments under the first segment's header and fix its size fields.

    Raises:
        ContainerMismatch: The first segment does not start with a RIFF/WAVE header.
    """
    first = segments[0].data
    if not has_wav_header(first):
        raise ContainerMismatch(
            f"First of {len(segments)} WAV segments has no RIFF/WAVE header; cannot rewrite sizes"
        )

    header = first[:WAV_HEADER_SIZE]
    payload = b"".join(segment.data[WAV_HEADER_SIZE:] for segment in segments)

    out = bytearray(header)
    out.extend(payload)
    _UINT32.pack_into(out, RIFF_SIZE_OFFSET, len(out) - 8)
    _UINT32.pack_into(out, DATA_SIZE_OFFSET, len(payload))
    return bytes(out)


def assemble(segments: Sequence[AudioSegment], container: Container, strict: bool = False) -> bytes:
    """Assemble ordered chunk audio into one buffer.

    ``segments`` must already be ordered by chunk index, starting at 0.
    WAV segments are merged under a single header. A WAV whose header cannot be
    recognised is concatenated byte-for-byte with a logged warning, or raises
    ``ContainerMismatch`` when ``strict`` is set. MP3 frames are simply
    concatenated.
    """
    container = Container.parse(container)
    _check_order(segments)

    if not segments:
        return b""
    if len(segments) == 1:
        return segments[0].data

    if container == Container.MP3:
        return concat_bytes(segments)

    try:
        return concat_pcm_wav(segments)
    except ContainerMismatch as e:
        if strict:
            raise
        logger.warning(f"{e}; falling back to naive concatenation")
        return concat_bytes(segments)
