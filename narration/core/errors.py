"""Exception taxonomy for the narration pipeline."""

from typing import Optional


class NarrationError(Exception):
    """Base class for every error raised by the narration pipeline."""


class SourceUnavailable(NarrationError):
    """Lexicon source could not be reached or is not configured."""


class MalformedSource(NarrationError):
    """Lexicon data could not be parsed into term/spoken pairs."""


class UnsupportedContainer(NarrationError):
    """Requested audio container is not one of the supported set."""

    def __init__(self, container: str):
        self.container = container
        super().__init__(f"Unsupported container '{container}' (expected wav or mp3)")


class ContainerMismatch(NarrationError):
    """Audio bytes do not carry the header markers their container requires."""


class SynthesisFailed(NarrationError):
    """Synthesis provider rejected or errored on a chunk."""

    def __init__(self, status_code: Optional[int], message: str, chunk_index: Optional[int] = None):
        self.status_code = status_code
        self.message = message
        self.chunk_index = chunk_index
        status = status_code if status_code is not None else "network"
        super().__init__(f"Deepgram TTS failed ({status}): {message}")


class BatchAborted(NarrationError):
    """An all-or-nothing batch stopped because one of its scripts failed."""

    def __init__(self, script_name: str, cause: BaseException):
        self.script_name = script_name
        self.cause = cause
        super().__init__(f"Batch aborted by '{script_name}': {cause}")


class ScriptFailed(NarrationError):
    """A script's pipeline failed; carries the stage it was in."""

    def __init__(self, script_name: str, stage, cause: BaseException):
        self.script_name = script_name
        self.stage = stage
        self.cause = cause
        super().__init__(f"{script_name} failed while {stage.value}: {cause}")
