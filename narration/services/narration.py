import asyncio
import re
import time
from typing import List, Optional, Protocol, Sequence, Tuple

from narration.core.errors import BatchAborted, ContainerMismatch, ScriptFailed, SynthesisFailed
from narration.core.logger import logger
from narration.models.lexicon import LexiconTerm
from narration.models.narration import (
    AudioSegment,
    BatchReport,
    Container,
    NarrationOptions,
    NarrationResult,
    NarrationStage,
    ScriptInput,
    ScriptOutcome,
    SynthesisOptions,
    TextChunk,
)
from narration.services.audio_assembly import assemble, concat_bytes
from narration.services.chunking import chunk_text
from narration.services.lexicon_store import LexiconStore
from narration.services.pauses import apply_pause_tags
from narration.services.substitution import substitute

_SCRIPT_SUFFIX_RE = re.compile(r"\.(txt|docx)$", re.IGNORECASE)


class SpeechSynthesizer(Protocol):
    async def synthesize(self, text: str, options: SynthesisOptions) -> bytes:
        ...


def output_name_for(script_name: str, container: Container) -> str:
    base = _SCRIPT_SUFFIX_RE.sub("", script_name or "script.txt") or "script"
    return f"{base}.{Container.parse(container).value}"


def prepare_text(text: str, options: NarrationOptions, terms: Sequence[LexiconTerm]) -> str:
    """Pause tags, then lexicon substitution."""
    return substitute(apply_pause_tags(text, options.pause), terms)


class NarrationOrchestrator:
    """Runs scripts through normalize -> substitute -> chunk -> synthesize -> assemble."""

    def __init__(
        self,
        synthesizer: SpeechSynthesizer,
        lexicon_store: Optional[LexiconStore] = None,
        chunk_concurrency: int = 1,
        script_concurrency: int = 4,
    ):
        self.synthesizer = synthesizer
        self.lexicon_store = lexicon_store
        self.chunk_concurrency = max(1, chunk_concurrency)
        self.script_concurrency = max(1, script_concurrency)

    def preview(self, text: str, options: NarrationOptions, terms: Sequence[LexiconTerm]) -> Tuple[str, List[TextChunk]]:
        """Prepared text and its chunks, without calling the provider."""
        prepared = prepare_text(text, options, terms)
        return prepared, chunk_text(prepared, options.max_chars)

    async def narrate_script(
        self,
        script: ScriptInput,
        options: NarrationOptions,
        terms: Sequence[LexiconTerm],
    ) -> NarrationResult:
        """Narrate one script into a single audio buffer.

        Raises:
            ScriptFailed: Any stage failed; no partial audio is returned.
        """
        stage = NarrationStage.NORMALIZING
        started = time.perf_counter()
        try:
            container = Container.parse(options.synthesis.container)
            text = apply_pause_tags(script.text, options.pause)

            stage = NarrationStage.SUBSTITUTING
            text = substitute(text, terms)

            stage = NarrationStage.CHUNKING
            chunks = chunk_text(text, options.max_chars)
            logger.info(f"{script.name}: {len(chunks)} chunk(s) of at most {options.max_chars} chars")

            stage = NarrationStage.SYNTHESIZING
            segments = await self._synthesize_chunks(chunks, options.synthesis, container)

            stage = NarrationStage.ASSEMBLING
            warnings = []
            try:
                audio = assemble(segments, container, strict=True)
            except ContainerMismatch as e:
                logger.warning(f"{script.name}: {e}; falling back to naive concatenation")
                warnings.append(str(e))
                audio = concat_bytes(segments)
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"{script.name}: failed while {stage.value}: {e}")
            raise ScriptFailed(script.name, stage, e) from e

        elapsed_ms = (time.perf_counter() - started) * 1000
        logger.bind(metrics=True).info(
            f"narrated {script.name}: chunks={len(chunks)} bytes={len(audio)} elapsed_ms={elapsed_ms:.0f}"
        )
        return NarrationResult(
            script_name=script.name,
            output_name=output_name_for(script.name, container),
            container=container,
            data=audio,
            chunk_count=len(chunks),
            warnings=warnings,
        )

    async def _synthesize_chunks(
        self,
        chunks: Sequence[TextChunk],
        options: SynthesisOptions,
        container: Container,
    ) -> List[AudioSegment]:
        """Synthesize every chunk; results come back ordered by chunk index.

        With a concurrency of 1 chunk i+1 is only sent once chunk i has
        returned. Higher concurrency overlaps requests but still assembles by
        index, never by arrival.
        """
        async def synthesize_one(chunk: TextChunk) -> AudioSegment:
            try:
                data = await self.synthesizer.synthesize(chunk.text, options)
            except SynthesisFailed as e:
                if e.chunk_index is None:
                    e.chunk_index = chunk.index
                raise
            return AudioSegment(chunk_index=chunk.index, data=data, container=container)

        if self.chunk_concurrency == 1:
            return [await synthesize_one(chunk) for chunk in chunks]

        semaphore = asyncio.Semaphore(self.chunk_concurrency)

        async def run(chunk: TextChunk) -> AudioSegment:
            async with semaphore:
                return await synthesize_one(chunk)

        tasks = [asyncio.ensure_future(run(chunk)) for chunk in chunks]
        try:
            results = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        by_index = {segment.chunk_index: segment for segment in results}
        return [by_index[i] for i in range(len(chunks))]

    async def narrate_batch(
        self,
        scripts: Sequence[ScriptInput],
        options: NarrationOptions,
        terms: Optional[Sequence[LexiconTerm]] = None,
        all_or_nothing: bool = False,
    ) -> BatchReport:
        """Narrate several scripts concurrently and report each outcome.

        ``terms`` defaults to the lexicon store's current snapshot, taken once
        so every script in the batch uses the same term set. With
        ``all_or_nothing`` the first failure cancels the remaining scripts and
        raises ``BatchAborted``.
        """
        if terms is None:
            if self.lexicon_store is None:
                terms = ()
            else:
                terms = (await self.lexicon_store.get()).terms

        semaphore = asyncio.Semaphore(self.script_concurrency)

        async def run(script: ScriptInput) -> ScriptOutcome:
            async with semaphore:
                try:
                    result = await self.narrate_script(script, options, terms)
                except ScriptFailed as e:
                    if all_or_nothing:
                        raise BatchAborted(script.name, e.cause) from e
                    return ScriptOutcome(
                        script_name=script.name,
                        stage=NarrationStage.FAILED,
                        failed_stage=e.stage,
                        error=str(e.cause),
                    )
            return ScriptOutcome(script_name=script.name, stage=NarrationStage.DONE, result=result)

        logger.info(f"Narrating batch of {len(scripts)} script(s)")
        tasks = [asyncio.ensure_future(run(script)) for script in scripts]
        try:
            outcomes = await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

        report = BatchReport(outcomes=list(outcomes))
        logger.info(f"Batch finished: {len(report.succeeded)} succeeded, {len(report.failed)} failed")
        return report
