import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from sync import DEFAULT_SYNC_KEY


DEFAULT_MINDMAP_FILE = "mindmap.mmd"
DEFAULT_LOG_FILE = "mmdmap.log"
_TRUTHY = {"1", "true", "yes", "on"}


@dataclass(frozen=True)
class Settings:
    mindmap_path: Path = Path(DEFAULT_MINDMAP_FILE)
    log_path: Path = Path(DEFAULT_LOG_FILE)
    sync_key: str = DEFAULT_SYNC_KEY
    verbose: bool = False


def load_settings(environ: Optional[Mapping[str, str]] = None) -> Settings:
    """Build settings from ``MMDMAP_*`` environment variables."""
    env = os.environ if environ is None else environ
    return Settings(
        mindmap_path=Path(env.get("MMDMAP_FILE") or DEFAULT_MINDMAP_FILE).expanduser(),
        log_path=Path(env.get("MMDMAP_LOG_FILE") or DEFAULT_LOG_FILE).expanduser(),
        sync_key=env.get("MMDMAP_SYNC_KEY") or DEFAULT_SYNC_KEY,
        verbose=(env.get("MMDMAP_VERBOSE", "").strip().lower() in _TRUTHY),
    )
