from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from narration.api.routes import router, shutdown_services
from narration.core.config import settings
from narration.core.logger import logger

# Create FastAPI app
app = FastAPI(
    title="Script Narrator",
    description="Narrate text scripts with Deepgram TTS, lexicon pronunciation and chunking",
    version="1.0.0"
)

# Blank ALLOWED_ORIGIN allows every origin (dev friendly)
app.add_middleware(
    CORSMiddleware,
    allow_origins=[settings.allowed_origin] if settings.allowed_origin else ["*"],
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "X-Narration-Failures"],
)
app.add_middleware(GZipMiddleware, minimum_size=1024)

# Include API routes
app.include_router(router, prefix="/api")


# Error bodies are {"error": message}, the shape the browser client reads
@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(status_code=exc.status_code, content={"error": str(exc.detail)}, headers=exc.headers)


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    messages = [f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in exc.errors()]
    logger.warning(f"Rejected {request.url.path}: {messages}")
    return JSONResponse(status_code=400, content={"error": "; ".join(messages)})


@app.on_event("startup")
async def startup_event():
    """Application startup event."""
    logger.info("Script Narrator starting up...")
    logger.info(f"Environment: {settings.environment}")
    logger.info(f"Host: {settings.host}:{settings.port}")
    if not settings.lexicon_csv_url:
        logger.warning("LEXICON_CSV_URL not set - lexicon endpoints will fail")


@app.on_event("shutdown")
async def shutdown_event():
    """Application shutdown event."""
    logger.info("Script Narrator shutting down...")
    await shutdown_services()


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "narration.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.environment == "development"
    )
