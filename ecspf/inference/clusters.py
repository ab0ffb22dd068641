"""
Rank ECS clusters by how likely they are to host tasks for a database.
"""

import re
from typing import List, Sequence, Tuple

from ..models import Cluster

ENV_INDICATORS = ["dev", "development", "staging", "stage", "stg", "prod", "production", "test"]
COMMON_PATTERNS = ["app", "web", "api", "service", "backend", "frontend"]

_SEGMENT_SPLIT = re.compile(r"[-_]")
_WORD_SPLIT = re.compile(r"[-_\s]")


def score_cluster(database_identifier: str, cluster_name: str) -> int:
    db_name = database_identifier.lower()
    name = cluster_name.lower()

    score = 0
    if name == db_name:
        score += 100
    if name.startswith(db_name) or db_name.startswith(name):
        score += 80
    if db_name in name:
        score += 70
    if name in db_name and len(name) > 3:
        score += 60

    segments = [s for s in _SEGMENT_SPLIT.split(db_name) if len(s) > 2]
    words = [w for w in _WORD_SPLIT.split(db_name) if len(w) > 2]
    score += 30 * sum(1 for s in segments if s in name)
    score += 15 * sum(1 for w in words if w in name)
    score += 25 * sum(1 for env in ENV_INDICATORS if env in db_name and env in name)
    score += 20 * sum(1 for p in COMMON_PATTERNS if p in db_name and p in name)
    return score


def infer_clusters_from_database(database_identifier: str, clusters: Sequence[Cluster]) -> List[Cluster]:
    """
    Order clusters by name similarity to a database identifier.

    Clusters with no similarity at all are dropped. Ties keep their listing
    order.
    """
    scored: List[Tuple[Cluster, int]] = [
        (cluster, score_cluster(database_identifier, cluster.name)) for cluster in clusters
    ]
    scored = [item for item in scored if item[1] > 0]
    scored.sort(key=lambda item: item[1], reverse=True)
    return [cluster for cluster, _ in scored]
