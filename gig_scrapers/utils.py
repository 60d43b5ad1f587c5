import asyncio
import json
import logging
from datetime import datetime
from pathlib import Path
from typing import Any, Awaitable, Callable, Dict, Optional, Sequence, TypeVar

logger = logging.getLogger(__name__)

T = TypeVar("T")

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(module)s.%(funcName)s:%(lineno)d - %(message)s"


# --- Logger Setup ---
_loggers: Dict[str, logging.Logger] = {}

def setup_logger(
    logger_name: str,
    log_file_prefix: str,
    level: int = logging.INFO,
    log_dir: Optional[Path] = None,
) -> logging.Logger:
    """Configures and returns a logger that outputs to console and a timestamped file.

    Module loggers under ``logger_name`` (e.g. ``gig_scrapers.collector``) inherit
    these handlers, so calling this once for the package root is enough.
    """
    if logger_name in _loggers:
        return _loggers[logger_name]

    configured = logging.getLogger(logger_name)
    configured.setLevel(level)
    configured.propagate = False

    if configured.hasHandlers():
        configured.handlers.clear()

    formatter = logging.Formatter(LOG_FORMAT)

    ch = logging.StreamHandler()
    ch.setLevel(level)
    ch.setFormatter(formatter)
    configured.addHandler(ch)

    if log_dir is not None:
        try:
            log_dir.mkdir(parents=True, exist_ok=True)
            timestamp = datetime.now().strftime("%Y%m%d_%H%M%S")
            log_file_path = log_dir / f"{log_file_prefix}_{timestamp}.log"
            fh = logging.FileHandler(log_file_path, encoding="utf-8")
            fh.setLevel(logging.DEBUG)
            fh.setFormatter(formatter)
            configured.addHandler(fh)
        except OSError as e:
            configured.error(f"Failed to create file handler for logger {logger_name} at {log_dir}: {e}", exc_info=True)

    _loggers[logger_name] = configured
    configured.debug(f"Logger '{logger_name}' initialized.")
    return configured


# --- Retry ---
async def retry(
    operation: Callable[[], Awaitable[T]],
    max_attempts: int,
    delay_sec: float,
    description: Optional[str] = None,
) -> T:
    """
    Awaits ``operation()`` up to ``max_attempts`` times, sleeping a fixed
    ``delay_sec`` between attempts. The last failure is re-raised as is.

    The operation must be safe to repeat (navigation is); nothing done by a
    failed attempt is rolled back.
    """
    if max_attempts < 1:
        raise ValueError(f"max_attempts must be at least 1, got {max_attempts}")

    label = description or getattr(operation, "__name__", "operation")
    attempt = 1
    while True:
        try:
            return await operation()
        except Exception as e:
            if attempt >= max_attempts:
                logger.warning(f"Giving up on {label} after {max_attempts} attempts: {e}")
                raise
            logger.warning(f"Attempt {attempt}/{max_attempts} for {label} failed: {e}. Retrying in {delay_sec}s")
        attempt += 1
        await asyncio.sleep(delay_sec)


# --- File Output ---
def save_events_to_json_file(events: Sequence[Any], output_path: Path) -> Optional[Path]:
    """
    Writes the whole run as a pretty-printed JSON array, replacing any previous file.

    Items are anything exposing ``to_document()`` (event models) or plain dicts.
    Returns the written path, or None if the write failed.
    """
    documents = [e.to_document() if hasattr(e, "to_document") else e for e in events]
    try:
        output_path.parent.mkdir(parents=True, exist_ok=True)
        with open(output_path, "w", encoding="utf-8") as f:
            json.dump(documents, f, indent=2, ensure_ascii=False, default=str)
        logger.info(f"Data saved to {output_path} ({len(documents)} events)")
        return output_path
    except OSError as e:
        logger.error(f"Error saving events to JSON file {output_path}: {e}", exc_info=True)
        return None
