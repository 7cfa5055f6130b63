import logging
import logging.handlers
import sys
import time
from pathlib import Path
from types import TracebackType

from pings.config import Settings

LOG_LINE_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
LOG_DATE_FORMAT = "%H:%M:%S"
LOG_FORMATTER = logging.Formatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT)

# Track logging state
_LOG_FILE_PATH: Path | None = None
_LOGGING_INITIALIZED = False


class TruncatedFormatter(logging.Formatter):
  """Formatter that truncates the stack trace to the last few lines."""

  # ruff: noqa: N802
  def formatException(self, ei: tuple[type[BaseException] | None, BaseException | None, TracebackType | None]) -> str:
    import traceback

    lines = traceback.format_exception(*ei)
    # Keep header + last 5 lines of traceback
    if len(lines) > 6:
      return "".join(lines[:1] + ["    ...\n"] + lines[-5:])
    return "".join(lines)


def _rotated_name(default_name: str) -> str:
  """Name backups filename.log-1 instead of filename.log.1."""
  base_filename, _, num = default_name.rpartition(".")
  if num.isdigit() and base_filename.endswith(".log"):
    return f"{base_filename}-{num}"
  return default_name


def _build_file_handler(settings: Settings) -> tuple[logging.Handler, Path]:
  """Create a rotating file handler inside the configured log directory."""
  log_dir = Path(settings.log_dir or "logs")
  try:
    log_dir.mkdir(parents=True, exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log directory at {log_dir}: {exc}") from exc

  log_path = log_dir / f"pings_{time.strftime('%Y%m%d_%H%M%S')}.log"
  try:
    # Touch early so the file exists even if handlers have not flushed yet.
    log_path.touch(exist_ok=True)
  except OSError as exc:
    raise RuntimeError(f"Failed to create log file at {log_path}: {exc}") from exc

  file_handler = logging.handlers.RotatingFileHandler(log_path, encoding="utf-8", maxBytes=settings.log_max_bytes, backupCount=settings.log_backup_count)
  file_handler.namer = _rotated_name
  file_handler.setFormatter(LOG_FORMATTER)
  return file_handler, log_path


def setup_logging(settings: Settings) -> Path | None:
  """Route all loggers through stdout and, when configured, a rotating log file."""
  stream_handler = logging.StreamHandler(sys.stdout)
  stream_handler.setFormatter(TruncatedFormatter(LOG_LINE_FORMAT, datefmt=LOG_DATE_FORMAT))
  handlers: list[logging.Handler] = [stream_handler]

  log_path: Path | None = None
  if settings.log_dir:
    file_handler, log_path = _build_file_handler(settings)
    handlers.append(file_handler)

  for logger_name in ("uvicorn", "uvicorn.error", "uvicorn.access", "fastapi"):
    log = logging.getLogger(logger_name)
    log.handlers = list(handlers)
    log.propagate = False

  level = logging.DEBUG if settings.debug else logging.INFO
  logging.basicConfig(level=level, handlers=handlers, force=True)
  # The Google client stack is chatty at DEBUG.
  for noisy in ("httpx", "httpcore", "google.auth", "urllib3"):
    logging.getLogger(noisy).setLevel(logging.WARNING)
  return log_path


def initialize_logging(settings: Settings) -> None:
  """Initialize logging once per process and log where it goes."""
  global _LOG_FILE_PATH, _LOGGING_INITIALIZED
  logger = logging.getLogger("pings.core.logging")
  if _LOGGING_INITIALIZED:
    return
  _LOG_FILE_PATH = setup_logging(settings)
  _LOGGING_INITIALIZED = True
  if _LOG_FILE_PATH is not None:
    logger.info("Logging initialized. Writing to %s", _LOG_FILE_PATH)
  else:
    logger.info("Logging initialized (stdout only).")
