"""
Logging setup for the matching service.

Everything logs under the ``matcher.`` namespace to stdout and, outside of
tests, to daily rotating files in LOG_DIR.
"""
import functools
import inspect
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict

FORMATS = {
    "simple": "%(levelname)s - %(name)s - %(message)s",
    "detailed": "%(asctime)s | %(levelname)-8s | %(name)-30s | %(funcName)-20s:%(lineno)-4d | %(message)s",
}

# level per environment, None means LOG_LEVEL
ENVIRONMENTS = {
    "production": (None, True, "detailed"),
    "development": ("DEBUG", True, "detailed"),
    "testing": ("WARNING", False, "simple"),
}


def _rotating_file(path: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(path),
        "maxBytes": 10 * 1024 * 1024,
        "backupCount": 5,
        "encoding": "utf8",
    }


def setup_logging(level: str = "INFO", enable_file: bool = True, format_style: str = "detailed") -> None:
    """
    Configure root, uvicorn and library loggers.

    Args:
        level: Logging level for the service loggers
        enable_file: Also write matcher_<date>.log and matcher_errors_<date>.log
        format_style: 'simple' or 'detailed' console output
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": format_style if format_style in FORMATS else "detailed",
            "stream": "ext://sys.stdout",
        }
    }
    root_handlers = ["console"]
    uvicorn_handlers = ["console"]

    if enable_file:
        log_dir = Path(os.getenv("LOG_DIR", "logs"))
        log_dir.mkdir(exist_ok=True)
        day = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating_file(log_dir / f"matcher_{day}.log", level)
        handlers["error_file"] = _rotating_file(log_dir / f"matcher_errors_{day}.log", "ERROR")
        root_handlers += ["file", "error_file"]
        uvicorn_handlers.append("file")

    logging.config.dictConfig({
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            name: {"format": fmt, "datefmt": "%Y-%m-%d %H:%M:%S"} for name, fmt in FORMATS.items()
        },
        "handlers": handlers,
        "loggers": {
            "": {"level": level, "handlers": root_handlers, "propagate": False},
            "uvicorn": {"level": "INFO", "handlers": uvicorn_handlers, "propagate": False},
            "uvicorn.access": {"level": "INFO", "handlers": ["console"], "propagate": False},
            # pdfminer is very chatty on malformed PDFs
            "pdfminer": {"level": "ERROR", "propagate": True},
            "sentence_transformers": {"level": "WARNING", "propagate": True},
        },
    })
    get_logger("logging").info(f"Logging configured - Level: {level}, File: {enable_file}")


def get_logger(name: str) -> logging.Logger:
    """Logger under the service namespace, usually get_logger(__name__)."""
    return logging.getLogger(f"matcher.{name}")


def log_function_call(func):
    """Debug-log entry, exit and duration of a sync or async function."""

    def _enter(logger):
        logger.debug(f"Entering {func.__name__}")
        return time.time()

    def _failed(logger, started, exc):
        logger.error(f"Error in {func.__name__} after {time.time() - started:.3f}s: {exc}")

    @functools.wraps(func)
    async def async_wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        started = _enter(logger)
        try:
            result = await func(*args, **kwargs)
        except Exception as e:
            _failed(logger, started, e)
            raise
        logger.debug(f"Completed {func.__name__} in {time.time() - started:.3f}s")
        return result

    @functools.wraps(func)
    def sync_wrapper(*args, **kwargs):
        logger = get_logger(func.__module__)
        started = _enter(logger)
        try:
            result = func(*args, **kwargs)
        except Exception as e:
            _failed(logger, started, e)
            raise
        logger.debug(f"Completed {func.__name__} in {time.time() - started:.3f}s")
        return result

    return async_wrapper if inspect.iscoroutinefunction(func) else sync_wrapper


def configure_for_environment():
    """Configure logging from ENVIRONMENT and LOG_LEVEL"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()
    level, enable_file, format_style = ENVIRONMENTS.get(environment, (None, True, "detailed"))
    setup_logging(level=level or log_level, enable_file=enable_file, format_style=format_style)


class PerformanceMonitor:
    """Times a block; warns when it runs past threshold_ms"""

    def __init__(self, operation_name: str, logger: logging.Logger = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.start_time = None
        self.elapsed_ms = None

    def __enter__(self):
        self.start_time = time.time()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.time() - self.start_time) * 1000
        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
