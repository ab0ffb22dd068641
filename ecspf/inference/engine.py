"""
End-to-end target inference for a database across the clusters of a region.
"""

import asyncio
import logging
from dataclasses import replace
from typing import List, Optional

from ..errors import EcsPfError, NotFoundError
from ..models import Cluster, DatabaseInstance
from .clusters import infer_clusters_from_database
from .models import AnalysisHints, ScoredMatch
from .scoring import score_tasks_async, score_tasks_by_naming
from .tracker import PerformanceTracker

logger = logging.getLogger(__name__)

PRIMARY_CLUSTERS = 2
FALLBACK_CLUSTERS = 2
MIN_PRIMARY_RESULTS = 2
STOPPED_SUFFIX = " (task stopped - cannot connect)"


async def _score_cluster(lister, cluster: Cluster, database: DatabaseInstance,
                         hints: AnalysisHints, naming_only: bool) -> List[ScoredMatch]:
    try:
        tasks = await asyncio.to_thread(lister.list_tasks, cluster)
    except EcsPfError as e:
        logger.warning(f"Skipping cluster {cluster.name}: {e}")
        return []
    if not tasks:
        logger.debug(f"No running tasks in cluster {cluster.name}")
        return []
    if naming_only:
        return score_tasks_by_naming(tasks, cluster, database)
    return await score_tasks_async(tasks, cluster, database, hints)


def order_matches(matches: List[ScoredMatch]) -> List[ScoredMatch]:
    """
    Put connectable tasks first, best confidence and score leading.

    Matches for tasks that are not RUNNING or PENDING go last with a zero
    score and a note in the reason.
    """
    valid = [m for m in matches if m.task.is_connectable]
    invalid = [m for m in matches if not m.task.is_connectable]
    valid.sort(key=lambda m: (m.confidence.rank, m.score), reverse=True)
    stopped = [replace(m, score=0, reason=m.reason + STOPPED_SUFFIX) for m in invalid]
    return valid + stopped


async def infer_targets_async(lister, database: DatabaseInstance,
                              hints: Optional[AnalysisHints] = None,
                              tracker: Optional[PerformanceTracker] = None) -> List[ScoredMatch]:
    """
    Find and rank ECS tasks that are likely to reach ``database``.

    Args:
        lister: Object with ``list_exec_clusters()`` and ``list_tasks(cluster)``
        database: Chosen RDS instance
        hints: Cached analysis hints
        tracker: Optional step timer

    Returns:
        Ordered matches (see :func:`order_matches`)

    Raises:
        NotFoundError: If the region has no exec-capable clusters
    """
    tracker = tracker or PerformanceTracker()
    hints = hints or AnalysisHints()

    tracker.start_step("List exec-capable clusters")
    clusters = await asyncio.to_thread(lister.list_exec_clusters)
    if not clusters:
        raise NotFoundError(
            "No ECS clusters with exec capability found",
            suggestion="Try another region or enable ECS Exec with 'ecs-pf enable-exec'",
        )

    tracker.start_step("Infer clusters from database name")
    likely = infer_clusters_from_database(database.identifier, clusters)
    if not likely:
        logger.debug("No cluster resembles the database name; scanning clusters in listing order")
        likely = list(clusters)

    tracker.start_step("Score tasks in inferred clusters")
    primary = likely[:PRIMARY_CLUSTERS]
    batches = await asyncio.gather(
        *(_score_cluster(lister, c, database, hints, naming_only=False) for c in primary)
    )
    results = [m for batch in batches for m in batch]

    tracker.start_step("Fallback search")
    if len(results) < MIN_PRIMARY_RESULTS:
        fallback = likely[PRIMARY_CLUSTERS:PRIMARY_CLUSTERS + FALLBACK_CLUSTERS]
        batches = await asyncio.gather(
            *(_score_cluster(lister, c, database, hints, naming_only=True) for c in fallback)
        )
        results.extend(m for batch in batches for m in batch)
    tracker.end_step()

    ordered = order_matches(results)
    logger.debug(
        f"Inference for {database.identifier}: {len(likely)} candidate clusters, "
        f"{len(results)} matches, {sum(1 for m in results if m.task.is_connectable)} connectable"
    )
    return ordered


def infer_targets(lister, database: DatabaseInstance,
                  hints: Optional[AnalysisHints] = None,
                  tracker: Optional[PerformanceTracker] = None) -> List[ScoredMatch]:
    return asyncio.run(infer_targets_async(lister, database, hints, tracker))
