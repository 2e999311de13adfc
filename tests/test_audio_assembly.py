"""Tests for audio concatenation."""

import struct

import pytest

from conftest import make_wav, wav_segments
from narration.core.errors import ContainerMismatch, UnsupportedContainer
from narration.models.narration import AudioSegment, Container
from narration.services.audio_assembly import (
    DATA_SIZE_OFFSET,
    RIFF_SIZE_OFFSET,
    WAV_HEADER_SIZE,
    assemble,
    has_wav_header,
)


def _u32(data: bytes, offset: int) -> int:
    return struct.unpack_from("<I", data, offset)[0]


def test_wav_sizes_rewritten():
    p1, p2 = b"\x01\x02" * 50, b"\x03\x04" * 70
    out = assemble(wav_segments(p1, p2), Container.WAV)
    assert len(out) == WAV_HEADER_SIZE + len(p1) + len(p2)
    assert _u32(out, DATA_SIZE_OFFSET) == len(p1) + len(p2)
    assert _u32(out, RIFF_SIZE_OFFSET) == WAV_HEADER_SIZE + len(p1) + len(p2) - 8
    assert out[WAV_HEADER_SIZE:] == p1 + p2


def test_wav_keeps_first_header_fields():
    segments = wav_segments(b"\x00" * 10, b"\x00" * 10, b"\x00" * 10)
    out = assemble(segments, "wav")
    first = segments[0].data
    # fmt chunk (bytes 12..36) copied verbatim
    assert out[12:36] == first[12:36]
    assert out[:4] == b"RIFF" and out[8:12] == b"WAVE"
    assert _u32(out, DATA_SIZE_OFFSET) == 30


def test_wav_header_only_segment_contributes_nothing():
    segments = wav_segments(b"\xaa" * 4, b"")
    segments.append(AudioSegment(chunk_index=2, data=b"tiny", container=Container.WAV))
    out = assemble(segments, Container.WAV)
    assert out[WAV_HEADER_SIZE:] == b"\xaa" * 4
    assert _u32(out, DATA_SIZE_OFFSET) == 4


def test_single_segment_returned_unchanged():
    segment = AudioSegment(chunk_index=0, data=b"not even a wav", container=Container.WAV)
    assert assemble([segment], Container.WAV) == b"not even a wav"


def test_empty_sequence_yields_empty_bytes():
    assert assemble([], Container.WAV) == b""
    assert assemble([], Container.MP3) == b""


def test_mp3_concatenated_byte_for_byte():
    segments = [
        AudioSegment(chunk_index=0, data=b"\xff\xfbframe1", container=Container.MP3),
        AudioSegment(chunk_index=1, data=b"\xff\xfbframe2", container=Container.MP3),
    ]
    assert assemble(segments, Container.MP3) == b"\xff\xfbframe1\xff\xfbframe2"


def test_wav_without_markers_falls_back_to_naive_concat():
    bogus = b"JUNK" + b"\x00" * 60
    segments = [
        AudioSegment(chunk_index=0, data=bogus, container=Container.WAV),
        AudioSegment(chunk_index=1, data=make_wav(b"\x01\x01"), container=Container.WAV),
    ]
    assert assemble(segments, Container.WAV) == bogus + make_wav(b"\x01\x01")


def test_wav_without_markers_strict_raises():
    segments = [
        AudioSegment(chunk_index=0, data=b"ID3" + b"\x00" * 60, container=Container.WAV),
        AudioSegment(chunk_index=1, data=b"ID3" + b"\x00" * 60, container=Container.WAV),
    ]
    with pytest.raises(ContainerMismatch):
        assemble(segments, Container.WAV, strict=True)


def test_segments_must_be_contiguous_from_zero():
    segments = wav_segments(b"a", b"b")
    with pytest.raises(ValueError):
        assemble(list(reversed(segments)), Container.WAV)


def test_unsupported_container_rejected():
    with pytest.raises(UnsupportedContainer):
        assemble(wav_segments(b"a", b"b"), "ogg")


def test_has_wav_header():
    assert has_wav_header(make_wav(b""))
    assert not has_wav_header(b"RIFF")
    assert not has_wav_header(b"RIFX" + b"\x00" * 50)
