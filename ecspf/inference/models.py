"""
Match records produced by the task scorer and read back from the analysis cache.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple

from ..models import Cluster, Task


class Confidence(Enum):
    """How likely a task is to be the right tunnel host."""
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return {"high": 3, "medium": 2, "low": 1}[self.value]


class MatchMethod(Enum):
    """Scoring strategy that produced a match."""
    NAMING = "naming"
    ENVIRONMENT = "environment"
    NETWORK = "network"


# (high, medium) lower bounds per method
CONFIDENCE_THRESHOLDS: Dict[MatchMethod, Tuple[int, int]] = {
    MatchMethod.NAMING: (75, 50),
    MatchMethod.ENVIRONMENT: (80, 50),
    MatchMethod.NETWORK: (80, 50),
}


def bucket_confidence(method: MatchMethod, score: int) -> Confidence:
    high, medium = CONFIDENCE_THRESHOLDS[method]
    if score >= high:
        return Confidence.HIGH
    if score >= medium:
        return Confidence.MEDIUM
    return Confidence.LOW


@dataclass(frozen=True)
class ScoredMatch:
    """A candidate task for a database, with the evidence behind it.

    ``confidence`` is derived from ``score`` and ``method`` and cannot be set
    on its own.
    """
    cluster: Cluster
    task: Task
    method: MatchMethod
    score: int
    reason: str

    @property
    def confidence(self) -> Confidence:
        return bucket_confidence(self.method, self.score)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "cluster": self.cluster.name,
            "task_id": self.task.task_id,
            "service": self.task.service_name,
            "status": self.task.status,
            "method": self.method.value,
            "score": self.score,
            "confidence": self.confidence.value,
            "reason": self.reason,
        }


def _optional_str(data: Mapping[str, Any], key: str) -> Optional[str]:
    value = data.get(key)
    if value is not None and not isinstance(value, str):
        raise TypeError(f"{key} must be a string, got {type(value).__name__}")
    return value


@dataclass(frozen=True)
class AnalysisHint:
    """One pre-computed match record from an offline analysis run."""
    rds_identifier: str
    confidence: Confidence
    task_family: Optional[str] = None
    cluster: Optional[str] = None
    task_arn: Optional[str] = None
    service: Optional[str] = None
    task_definition: Optional[str] = None
    rds_engine: Optional[str] = None
    method: Optional[str] = None
    match_score: Optional[float] = None
    similarity_score: Optional[float] = None
    match_reasons: Tuple[str, ...] = field(default_factory=tuple)

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "AnalysisHint":
        """
        Build a hint from a JSON record.

        Raises:
            KeyError: If ``rds_identifier`` or ``confidence`` is missing
            ValueError: If ``confidence`` is not high/medium/low
            TypeError: If a name field is not a string
        """
        return cls(
            rds_identifier=str(data["rds_identifier"]),
            confidence=Confidence(data["confidence"]),
            task_family=_optional_str(data, "task_family"),
            cluster=_optional_str(data, "cluster"),
            task_arn=_optional_str(data, "task_arn"),
            service=_optional_str(data, "service"),
            task_definition=_optional_str(data, "task_definition"),
            rds_engine=_optional_str(data, "rds_engine"),
            method=_optional_str(data, "method"),
            match_score=data.get("match_score"),
            similarity_score=data.get("similarity_score"),
            match_reasons=tuple(data.get("match_reasons") or ()),
        )


@dataclass
class AnalysisHints:
    """Cached hints grouped by the strategy that produced them."""
    environment: List[AnalysisHint] = field(default_factory=list)
    naming: List[AnalysisHint] = field(default_factory=list)
    network: List[AnalysisHint] = field(default_factory=list)

    def is_empty(self) -> bool:
        return not (self.environment or self.naming or self.network)
