"""Shared fixtures for narration tests."""

import asyncio
import struct

import pytest

from narration.models.lexicon import LexiconTerm
from narration.models.narration import AudioSegment, Container


def make_wav(payload: bytes, sample_rate: int = 48000) -> bytes:
    """Build a canonical 44-byte-header PCM WAV around ``payload``."""
    header = b"RIFF" + struct.pack("<I", 36 + len(payload)) + b"WAVE"
    header += b"fmt " + struct.pack("<IHHIIHH", 16, 1, 1, sample_rate, sample_rate * 2, 2, 16)
    header += b"data" + struct.pack("<I", len(payload))
    assert len(header) == 44
    return header + payload


def wav_segments(*payloads: bytes):
    return [
        AudioSegment(chunk_index=i, data=make_wav(p), container=Container.WAV)
        for i, p in enumerate(payloads)
    ]


class FakeSynthesizer:
    """Records every request and answers with canned audio."""

    def __init__(self, respond=None, fail_on=None, delays=None):
        self.calls = []
        self.respond = respond or (lambda text, options: make_wav(text.encode("utf-8")))
        self.fail_on = fail_on or (lambda text: False)
        self.delays = delays or {}
        self.in_flight = 0
        self.max_in_flight = 0

    async def synthesize(self, text, options):
        from narration.core.errors import SynthesisFailed

        self.calls.append(text)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(self.delays.get(text, 0))
            if self.fail_on(text):
                raise SynthesisFailed(400, "bad request")
            return self.respond(text, options)
        finally:
            self.in_flight -= 1


@pytest.fixture
def fake_synth():
    return FakeSynthesizer()


@pytest.fixture
def nasa_terms():
    return [LexiconTerm(term="NASA", spoken="N A S A")]
