from enum import Enum
from typing import List, Optional

from pydantic import BaseModel, Field

from narration.core.errors import UnsupportedContainer


class Container(str, Enum):
    WAV = "wav"
    MP3 = "mp3"

    @classmethod
    def parse(cls, value) -> "Container":
        """Parse a user supplied container name, case-insensitively."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value or "").strip().lower())
        except ValueError:
            raise UnsupportedContainer(str(value)) from None


class NarrationStage(str, Enum):
    NORMALIZING = "normalizing"
    SUBSTITUTING = "substituting"
    CHUNKING = "chunking"
    SYNTHESIZING = "synthesizing"
    ASSEMBLING = "assembling"
    DONE = "done"
    FAILED = "failed"


class TextChunk(BaseModel):
    """Bounded slice of a script, the unit sent to the provider."""

    index: int = Field(..., ge=0, description="Emission order, starting at 0")
    text: str


class AudioSegment(BaseModel):
    """Audio returned by the provider for one chunk."""

    chunk_index: int = Field(..., ge=0)
    data: bytes
    container: Container


class PauseOptions(BaseModel):
    long_pause_dots: int = Field(6, description="Dots emitted for a [PAUSE] tag")
    use_silent_pause: bool = Field(False, description="Emit '. . .' for [PAUSE] instead of dots")


class SynthesisOptions(BaseModel):
    model: str = Field("aura-2-thalia-en", description="Deepgram voice model")
    container: Container = Container.WAV
    encoding: str = Field("linear16", description="WAV sample encoding")
    sample_rate: int = Field(48000, description="WAV sample rate in Hz")
    bit_rate: Optional[int] = Field(128000, description="MP3 bit rate in bits/s")


class NarrationOptions(BaseModel):
    """Everything one script's pipeline needs besides the lexicon."""

    max_chars: int = Field(2000, ge=1, description="Provider character ceiling per request")
    pause: PauseOptions = Field(default_factory=PauseOptions)
    synthesis: SynthesisOptions = Field(default_factory=SynthesisOptions)


class ScriptInput(BaseModel):
    name: str
    text: str


class NarrationResult(BaseModel):
    """Terminal artifact of one script's pipeline."""

    script_name: str
    output_name: str
    container: Container
    data: bytes
    chunk_count: int = 0
    warnings: List[str] = Field(default_factory=list)


class ScriptOutcome(BaseModel):
    """Per-script entry of a batch report."""

    script_name: str
    stage: NarrationStage = Field(..., description="DONE, or FAILED")
    failed_stage: Optional[NarrationStage] = Field(None, description="Stage the pipeline was in when it failed")
    error: Optional[str] = None
    result: Optional[NarrationResult] = None

    @property
    def ok(self) -> bool:
        return self.stage == NarrationStage.DONE


class BatchReport(BaseModel):
    outcomes: List[ScriptOutcome] = Field(default_factory=list)

    @property
    def succeeded(self) -> List[NarrationResult]:
        return [o.result for o in self.outcomes if o.ok and o.result is not None]

    @property
    def failed(self) -> List[ScriptOutcome]:
        return [o for o in self.outcomes if not o.ok]

    def summary(self) -> dict:
        """JSON-friendly report without audio bytes."""
        return {
            "succeeded": len(self.succeeded),
            "failed": len(self.failed),
            "scripts": [
                {
                    "script": o.script_name,
                    "status": o.stage.value,
                    "output": o.result.output_name if o.result else None,
                    "chunks": o.result.chunk_count if o.result else None,
                    "failed_stage": o.failed_stage.value if o.failed_stage else None,
                    "error": o.error,
                    "warnings": o.result.warnings if o.result else [],
                }
                for o in self.outcomes
            ],
        }
