from typing import List, Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, UploadFile
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, Response
from pydantic import BaseModel, ConfigDict, Field

from narration.core.config import settings
from narration.core.errors import BatchAborted, MalformedSource, SourceUnavailable, UnsupportedContainer
from narration.core.logger import logger
from narration.models.narration import (
    Container,
    NarrationOptions,
    PauseOptions,
    ScriptInput,
    SynthesisOptions,
)
from narration.services.archive import build_zip
from narration.services.lexicon_source import CsvLexiconSource
from narration.services.lexicon_store import LexiconStore
from narration.services.narration import NarrationOrchestrator
from narration.services.text_to_speech import DeepgramTTSService

router = APIRouter()

# Process-wide services, built on first use
_lexicon_store: Optional[LexiconStore] = None
_tts_service: Optional[DeepgramTTSService] = None
_orchestrator: Optional[NarrationOrchestrator] = None


def get_lexicon_store() -> LexiconStore:
    global _lexicon_store
    if _lexicon_store is None:
        _lexicon_store = LexiconStore(
            CsvLexiconSource(settings.lexicon_csv_url),
            ttl_seconds=settings.lexicon_ttl_seconds,
            retry_seconds=settings.lexicon_retry_seconds,
        )
    return _lexicon_store


def get_tts_service() -> DeepgramTTSService:
    global _tts_service
    if _tts_service is None:
        _tts_service = DeepgramTTSService()
    return _tts_service


def get_orchestrator() -> NarrationOrchestrator:
    global _orchestrator
    if _orchestrator is None:
        _orchestrator = NarrationOrchestrator(
            get_tts_service(),
            get_lexicon_store(),
            chunk_concurrency=settings.chunk_concurrency,
            script_concurrency=settings.script_concurrency,
        )
    return _orchestrator


async def shutdown_services() -> None:
    if _tts_service is not None:
        await _tts_service.aclose()


class PreviewRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str = Field(..., description="Raw script text")
    long_pause_dots: int = Field(settings.long_pause_dots, alias="longPauseDots")
    use_silent_pause: bool = Field(settings.use_silent_pause, alias="useSilentPause")


@router.get("/health")
async def health_check():
    """Health check endpoint."""
    return {"ok": True, "service": "script-narrator"}


@router.get("/lexicon/status")
async def lexicon_status(store: LexiconStore = Depends(get_lexicon_store)):
    """Term count and freshness of the lexicon, loading it if needed."""
    try:
        await store.get()
    except (SourceUnavailable, MalformedSource) as e:
        logger.error(f"Lexicon status failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return store.status()


@router.post("/lexicon/refresh")
async def refresh_lexicon(store: LexiconStore = Depends(get_lexicon_store)):
    """Force a lexicon refresh."""
    try:
        await store.refresh()
    except (SourceUnavailable, MalformedSource) as e:
        logger.error(f"Lexicon refresh failed: {e}")
        raise HTTPException(status_code=503, detail=str(e))
    return store.status()


@router.get("/lexicon/json")
async def lexicon_json(store: LexiconStore = Depends(get_lexicon_store)):
    """All lexicon terms in source order."""
    try:
        snapshot = await store.get()
    except (SourceUnavailable, MalformedSource) as e:
        raise HTTPException(status_code=503, detail=str(e))
    return {"terms": [t.model_dump() for t in snapshot.terms]}


@router.post("/narrate/preview")
async def preview_narration(
    request: PreviewRequest,
    store: LexiconStore = Depends(get_lexicon_store),
    orchestrator: NarrationOrchestrator = Depends(get_orchestrator),
):
    """Show the text that would be sent to the provider, chunk by chunk."""
    try:
        snapshot = await store.get()
    except (SourceUnavailable, MalformedSource) as e:
        raise HTTPException(status_code=503, detail=str(e))

    options = NarrationOptions(
        max_chars=settings.tts_max_chars,
        pause=PauseOptions(long_pause_dots=request.long_pause_dots, use_silent_pause=request.use_silent_pause),
    )
    prepared, chunks = orchestrator.preview(request.text, options, snapshot.terms)
    return {
        "text": prepared,
        "chunks": [{"index": c.index, "text": c.text, "length": len(c.text)} for c in chunks],
    }


@router.post("/narrate/batch")
async def narrate_batch(
    files: List[UploadFile] = File(...),
    model: str = Form(settings.default_model),
    container: str = Form(settings.default_container),
    long_pause_dots: int = Form(settings.long_pause_dots, alias="longPauseDots"),
    use_silent_pause: bool = Form(settings.use_silent_pause, alias="useSilentPause"),
    encoding: str = Form(settings.default_encoding),
    sample_rate: int = Form(settings.default_sample_rate, alias="sampleRate"),
    bit_rate: int = Form(settings.default_bit_rate, alias="bitRate"),
    all_or_nothing: bool = Form(False, alias="allOrNothing"),
    store: LexiconStore = Depends(get_lexicon_store),
    tts: DeepgramTTSService = Depends(get_tts_service),
    orchestrator: NarrationOrchestrator = Depends(get_orchestrator),
):
    """Narrate uploaded scripts and return the audio files as narrations.zip."""
    if not tts.enabled:
        raise HTTPException(status_code=500, detail="Server missing DEEPGRAM_API_KEY")
    if len(files) > settings.max_upload_files:
        raise HTTPException(status_code=400, detail=f"At most {settings.max_upload_files} files per batch")

    try:
        selected = Container.parse(container)
    except UnsupportedContainer as e:
        raise HTTPException(status_code=400, detail=str(e))

    scripts = []
    limit = settings.max_upload_bytes
    for upload in files:
        if upload.size is not None and upload.size > limit:
            raise HTTPException(status_code=413, detail=f"{upload.filename} exceeds {limit} bytes")
        raw = await upload.read(limit + 1)
        if len(raw) > limit:
            raise HTTPException(status_code=413, detail=f"{upload.filename} exceeds {limit} bytes")
        scripts.append(ScriptInput(name=upload.filename or "script.txt", text=raw.decode("utf-8", errors="replace")))

    try:
        snapshot = await store.get()
    except (SourceUnavailable, MalformedSource) as e:
        logger.error(f"Narrate batch without lexicon: {e}")
        raise HTTPException(status_code=503, detail=str(e))

    options = NarrationOptions(
        max_chars=settings.tts_max_chars,
        pause=PauseOptions(long_pause_dots=long_pause_dots, use_silent_pause=use_silent_pause),
        synthesis=SynthesisOptions(
            model=model,
            container=selected,
            encoding=encoding,
            sample_rate=sample_rate,
            bit_rate=bit_rate,
        ),
    )

    try:
        report = await orchestrator.narrate_batch(scripts, options, snapshot.terms, all_or_nothing=all_or_nothing)
    except BatchAborted as e:
        logger.error(f"Narrate batch aborted: {e}")
        return JSONResponse(status_code=502, content={"error": str(e), "script": e.script_name})

    if not report.succeeded:
        return JSONResponse(status_code=502, content={"error": "Every script failed", **report.summary()})

    # deflate level 9 over every script is CPU bound
    archive = await run_in_threadpool(
        build_zip,
        [(r.output_name, r.data) for r in report.succeeded],
        report=report.summary() if report.failed else None,
    )
    return Response(
        content=archive,
        media_type="application/zip",
        headers={
            "Content-Disposition": 'attachment; filename="narrations.zip"',
            "X-Narration-Failures": str(len(report.failed)),
        },
    )
