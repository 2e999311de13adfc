import os
import sys
from loguru import logger
from narration.core.config import settings


def _safe_stdout_sink(message: str) -> None:
    """Write to stdout, replacing unencodable characters to avoid Windows cp1252 errors.
    Args:
        message (str): Formatted log line
    """
    try:
        sys.stdout.write(message)
    except UnicodeEncodeError:
        enc = sys.stdout.encoding or "utf-8"
        sys.stdout.write(message.encode(enc, errors="replace").decode(enc, errors="replace"))


def setup_logging():
    """Configure structured logging for the application."""

    # Remove default handler
    logger.remove()

    # Console handler with custom format, using safe sink
    logger.add(
        _safe_stdout_sink,
        format="<green>{time:YYYY-MM-DD HH:mm:ss.SSS}</green> | "
               "<level>{level: <8}</level> | "
               "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
               "<level>{message}</level>",
        level=settings.log_level,
        colorize=True
    )

    # File handler for persistent logs
    logger.add(
        os.path.join(settings.log_dir, "narration.log"),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {level: <8} | {name}:{function}:{line} | {message}",
        level="DEBUG",
        rotation="100 MB",
        retention="30 days",
        compression="zip",
        serialize=True  # JSON format for structured logging
    )

    # Per-script timing, bound with logger.bind(metrics=True)
    logger.add(
        os.path.join(settings.log_dir, "metrics.log"),
        format="{time:YYYY-MM-DD HH:mm:ss.SSS} | {message}",
        level="INFO",
        rotation="50 MB",
        retention="30 days",
        filter=lambda record: "metrics" in record["extra"],
        serialize=True
    )

    return logger


# Initialize logger
setup_logging()

# Export configured logger
__all__ = ["logger"]
