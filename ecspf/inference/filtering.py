"""
Keyword narrowing and display formatting for scored matches.
"""

from typing import List, Sequence

from .models import Confidence, MatchMethod, ScoredMatch

CONFIDENCE_ICONS = {
    Confidence.HIGH: "🎯",
    Confidence.MEDIUM: "⭐",
    Confidence.LOW: "🔧",
}

# searchable synonyms, e.g. "medium 中" finds medium matches
CONFIDENCE_SYNONYMS = {
    Confidence.HIGH: "high 高",
    Confidence.MEDIUM: "medium 中",
    Confidence.LOW: "low 低",
}

METHOD_LABELS = {
    MatchMethod.ENVIRONMENT: "environment",
    MatchMethod.NAMING: "name similarity",
    MatchMethod.NETWORK: "network",
}


def format_match(match: ScoredMatch) -> str:
    """One-line summary: icon, cluster → task, method and score."""
    icon = CONFIDENCE_ICONS[match.confidence]
    label = METHOD_LABELS[match.method]
    return f"{icon} {match.cluster.name} → {match.task.display_name} ({label}: {match.score}%)"


def searchable_text(match: ScoredMatch) -> str:
    parts = [
        match.cluster.name,
        match.task.display_name,
        match.task.service_name,
        match.task.status,
        match.task.runtime_id,
        match.confidence.value,
        match.method.value,
        match.reason,
        format_match(match),
        CONFIDENCE_SYNONYMS[match.confidence],
    ]
    return " ".join(p for p in parts if p).lower()


def filter_matches(matches: Sequence[ScoredMatch], text: str) -> List[ScoredMatch]:
    """
    Keep matches containing every whitespace-separated keyword.

    Examples:
        "prod web" finds web services in production clusters;
        "high" finds high-confidence matches.
    """
    keywords = (text or "").lower().split()
    if not keywords:
        return list(matches)
    return [m for m in matches if all(k in searchable_text(m) for k in keywords)]
