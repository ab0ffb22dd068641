"""
Runtime settings read from the environment.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from . import __version__

DEFAULT_LOCAL_PORT = 8888
DEFAULT_EXEC_COMMAND = "/bin/bash"
TOOL_NAME = "ecs-pf"


@dataclass(frozen=True)
class Settings:
    version: str
    cache_dir: Path
    default_local_port: int
    exec_command: str
    default_region: Optional[str]


def get_cache_dir() -> Path:
    """
    Get the directory holding pre-computed analysis results.

    Returns:
        Path: Cache directory (not required to exist)
    """
    cache_dir = os.environ.get("ECSPF_CACHE_DIR", "temp")
    return Path(cache_dir).resolve()


def load_settings() -> Settings:
    """Build settings from environment variables."""
    raw_port = os.environ.get("ECSPF_DEFAULT_LOCAL_PORT", "")
    local_port = int(raw_port) if raw_port.isdigit() and 0 < int(raw_port) < 65536 else DEFAULT_LOCAL_PORT

    return Settings(
        version=__version__,
        cache_dir=get_cache_dir(),
        default_local_port=local_port,
        exec_command=os.environ.get("ECSPF_EXEC_COMMAND", DEFAULT_EXEC_COMMAND),
        default_region=os.environ.get("AWS_REGION") or os.environ.get("AWS_DEFAULT_REGION"),
    )
