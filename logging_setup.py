from __future__ import annotations

import logging
import sys
from pathlib import Path
from typing import Optional

APP_LOGGERS = ("app", "automation", "database", "insights", "pages", "security")


class _ThirdPartyNoiseFilter(logging.Filter):
    """Keep our own loggers; only let third-party loggers through at WARNING+."""

    def filter(self, record: logging.LogRecord) -> bool:
        root_name = record.name.split(".", 1)[0]
        if root_name in APP_LOGGERS:
            return True
        if root_name == "uvicorn":
            return record.levelno >= logging.INFO
        return record.levelno >= logging.WARNING


def setup_logging(level: str = "INFO", log_file: Optional[str] = None) -> None:
    """
    Configure the root logger once, at start-up.

    Console always; a file handler too when ``log_file`` is given.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for h in list(root.handlers):
        root.removeHandler(h)

    fmt = logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)s %(name)s: %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    ch = logging.StreamHandler(sys.stderr)
    ch.setFormatter(fmt)
    ch.addFilter(_ThirdPartyNoiseFilter())
    root.addHandler(ch)

    if log_file:
        path = Path(log_file)
        path.parent.mkdir(parents=True, exist_ok=True)
        fh = logging.FileHandler(str(path), encoding="utf-8")
        fh.setFormatter(fmt)
        fh.addFilter(_ThirdPartyNoiseFilter())
        root.addHandler(fh)

    logging.captureWarnings(True)
