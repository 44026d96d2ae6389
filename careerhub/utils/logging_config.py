"""
Centralized Logging Configuration for the CareerHub API
"""
import logging
import logging.config
import os
import time
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

DETAILED_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)-34s | %(funcName)-20s:%(lineno)-4d | %(message)s"
SIMPLE_FORMAT = "%(levelname)s - %(name)s - %(message)s"
MAX_LOG_BYTES = 10 * 1024 * 1024
LOG_BACKUPS = 5

# ENVIRONMENT -> (level, write log files, console format); None level means LOG_LEVEL
PROFILES = {
    "production": (None, True, "detailed"),
    "development": ("DEBUG", True, "detailed"),
    "testing": ("WARNING", False, "simple"),
}


def _rotating(filename: Path, level: str) -> Dict[str, Any]:
    return {
        "class": "logging.handlers.RotatingFileHandler",
        "level": level,
        "formatter": "detailed",
        "filename": str(filename),
        "maxBytes": MAX_LOG_BYTES,
        "backupCount": LOG_BACKUPS,
        "encoding": "utf8",
    }


def setup_logging(level: str = "INFO", log_dir: Optional[str] = None,
                  enable_file: bool = True, console_format: str = "detailed") -> Dict[str, Any]:
    """
    Configure the root and uvicorn loggers with dictConfig

    Console output always goes to stdout. With ``enable_file`` a daily rotating
    log under ``log_dir`` (``LOG_DIR``, default ``logs``) receives everything at
    ``level`` and a second file receives errors only.

    Returns the dictConfig mapping that was applied.
    """
    handlers: Dict[str, Any] = {
        "console": {
            "class": "logging.StreamHandler",
            "level": level,
            "formatter": console_format,
            "stream": "ext://sys.stdout",
        }
    }
    if enable_file:
        directory = Path(log_dir or os.getenv("LOG_DIR", "logs"))
        directory.mkdir(parents=True, exist_ok=True)
        stamp = datetime.now().strftime("%Y%m%d")
        handlers["file"] = _rotating(directory / f"careerhub_{stamp}.log", level)
        handlers["error_file"] = _rotating(directory / f"careerhub_errors_{stamp}.log", "ERROR")

    config: Dict[str, Any] = {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "detailed": {"format": DETAILED_FORMAT, "datefmt": "%Y-%m-%d %H:%M:%S"},
            "simple": {"format": SIMPLE_FORMAT},
        },
        "handlers": handlers,
        "root": {"level": level, "handlers": list(handlers)},
        "loggers": {
            "uvicorn": {"level": "INFO", "handlers": [], "propagate": True},
            # pdfminer logs every malformed object at WARNING
            "pdfminer": {"level": "ERROR"},
        },
    }
    logging.config.dictConfig(config)

    get_logger("logging").info(f"Logging configured - Level: {level}, files: {'on' if enable_file else 'off'}")
    return config


def get_logger(name: str) -> logging.Logger:
    """Logger under the ``careerhub`` namespace"""
    if name.startswith("careerhub"):
        return logging.getLogger(name)
    return logging.getLogger(f"careerhub.{name}")


def configure_for_environment() -> Dict[str, Any]:
    """Apply the logging profile named by ENVIRONMENT"""
    environment = os.getenv("ENVIRONMENT", "development").lower()
    log_level = os.getenv("LOG_LEVEL", "INFO").upper()

    level, enable_file, console_format = PROFILES.get(environment, (None, True, "detailed"))
    return setup_logging(level=level or log_level, enable_file=enable_file, console_format=console_format)


class PerformanceMonitor:
    """Times a block and logs it, warning when it runs past ``threshold_ms``"""

    def __init__(self, operation_name: str, logger: Optional[logging.Logger] = None, threshold_ms: float = 1000):
        self.operation_name = operation_name
        self.logger = logger or get_logger("performance")
        self.threshold_ms = threshold_ms
        self.elapsed_ms: Optional[float] = None
        self._started = 0.0

    def __enter__(self):
        self._started = time.perf_counter()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.elapsed_ms = (time.perf_counter() - self._started) * 1000

        if exc_type is not None:
            self.logger.error(f"{self.operation_name} failed after {self.elapsed_ms:.2f}ms: {exc_val}")
        elif self.elapsed_ms > self.threshold_ms:
            self.logger.warning(
                f"{self.operation_name} took {self.elapsed_ms:.2f}ms (threshold {self.threshold_ms}ms)"
            )
        else:
            self.logger.info(f"{self.operation_name} completed in {self.elapsed_ms:.2f}ms")
