"""Logging setup for the editor.

The Textual UI owns the terminal, so records go to a file and to the Textual
devtools console instead of stderr.
"""

from __future__ import annotations

import logging
from pathlib import Path

from textual.logging import TextualHandler


LOG_FORMAT = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


def configure_logging(verbose: bool, log_path: Path | None = None) -> None:
    level = logging.DEBUG if verbose else logging.INFO
    root = logging.getLogger()
    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    root.setLevel(level)
    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_path, encoding="utf-8")
        file_handler.setFormatter(formatter)
        file_handler.setLevel(level)
        root.addHandler(file_handler)

    devtools = TextualHandler()
    devtools.setFormatter(formatter)
    devtools.setLevel(level)
    root.addHandler(devtools)

    logging.captureWarnings(True)
