"""
Loader for pre-computed analysis results.

An offline analysis run may leave JSON files with arrays of match records.
They are optional: a missing, unreadable or malformed file counts as empty.
"""

import json
import logging
from pathlib import Path
from typing import List, Optional

from ..config import get_cache_dir
from .models import AnalysisHint, AnalysisHints

logger = logging.getLogger(__name__)

ENVIRONMENT_FILE = "environment_match_results.json"
NAMING_FILE = "naming_similarity_results.json"
NETWORK_FILE = "network_match_results.json"


def _load_hint_file(path: Path) -> List[AnalysisHint]:
    if not path.exists():
        return []

    try:
        with open(path, "r", encoding="utf-8") as f:
            records = json.load(f)
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
        logger.warning(f"Could not load analysis results from {path}: {e}")
        return []

    if not isinstance(records, list):
        logger.warning(f"Ignoring {path}: expected a JSON array")
        return []

    hints: List[AnalysisHint] = []
    for record in records:
        try:
            hints.append(AnalysisHint.from_dict(record))
        except (KeyError, ValueError, TypeError) as e:
            logger.debug(f"Skipping malformed record in {path}: {e}")
    return hints


def load_analysis_hints(directory: Optional[Path] = None) -> AnalysisHints:
    """
    Load cached hints for every strategy.

    Args:
        directory: Directory holding the result files; defaults to the
            configured cache directory

    Returns:
        AnalysisHints with one list per strategy
    """
    directory = Path(directory) if directory is not None else get_cache_dir()
    return AnalysisHints(
        environment=_load_hint_file(directory / ENVIRONMENT_FILE),
        naming=_load_hint_file(directory / NAMING_FILE),
        network=_load_hint_file(directory / NETWORK_FILE),
    )
