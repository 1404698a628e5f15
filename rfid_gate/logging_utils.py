# =======================================================================================
# rfid_gate/logging_utils.py - Logging Setup
# =======================================================================================
import logging
from pathlib import Path
from typing import Optional
from .config import config

LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"


def configure_logging(level: Optional[str] = None, log_file: Optional[str] = None) -> None:
    """Configure root logging once; later calls are no-ops if handlers exist."""
    root = logging.getLogger()
    if root.handlers:
        return

    if level is None:
        level = "DEBUG" if config.API_DEBUG else config.LOG_LEVEL
    log_file = log_file if log_file is not None else config.LOG_FILE

    handlers: list[logging.Handler] = [logging.StreamHandler()]
    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        handlers.append(logging.FileHandler(path, encoding="utf-8"))

    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        datefmt="%Y-%m-%d %H:%M:%S",
        handlers=handlers,
    )
