"""
Target inference: rank ECS tasks that can reach an RDS instance.
"""

from .models import AnalysisHint, AnalysisHints, Confidence, MatchMethod, ScoredMatch, bucket_confidence
from .scoring import (
    score_tasks,
    score_tasks_async,
    score_tasks_by_environment,
    score_tasks_by_naming,
    score_tasks_by_network,
)
from .filtering import filter_matches, format_match
from .clusters import infer_clusters_from_database
from .cache import load_analysis_hints
from .engine import infer_targets, infer_targets_async
from .tracker import PerformanceTracker

__all__ = [
    "AnalysisHint",
    "AnalysisHints",
    "Confidence",
    "MatchMethod",
    "ScoredMatch",
    "bucket_confidence",
    "score_tasks",
    "score_tasks_async",
    "score_tasks_by_environment",
    "score_tasks_by_naming",
    "score_tasks_by_network",
    "filter_matches",
    "format_match",
    "infer_clusters_from_database",
    "load_analysis_hints",
    "infer_targets",
    "infer_targets_async",
    "PerformanceTracker",
]
