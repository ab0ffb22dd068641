"""
Task scoring strategies.

Each strategy ranks the tasks of one cluster against one database instance.
Naming returns one entry per task. Environment returns only tasks with
positive evidence. Network is a placeholder that returns nothing yet.
"""

import asyncio
import logging
from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from ..errors import NotFoundError
from ..models import Cluster, DatabaseInstance, Task
from .models import AnalysisHint, AnalysisHints, Confidence, MatchMethod, ScoredMatch

logger = logging.getLogger(__name__)

NAMING_BASELINE = 25
NAMING_TASK_MATCH = 35
NAMING_SERVICE_MATCH = 30
NAMING_TASK_SEGMENT = 20
NAMING_SERVICE_SEGMENT = 15

ENV_TASK_MATCH = 40
ENV_SERVICE_MATCH = 40
ENV_TASK_SEGMENT = 15
ENV_SERVICE_SEGMENT = 15
ENV_MIN_SCORE = 20

HINT_SCORES = {
    Confidence.HIGH: 95,
    Confidence.MEDIUM: 75,
    Confidence.LOW: 45,
}

MIN_SEGMENT_LENGTH = 3


@dataclass
class EnvironmentCheck:
    """Outcome of inspecting one task for database connection signals."""
    score: int
    details: List[str] = field(default_factory=list)

    @property
    def has_match(self) -> bool:
        return self.score > ENV_MIN_SCORE


def identifier_segments(identifier: str) -> List[str]:
    """Split a lowercased identifier on hyphens, keeping segments longer than 2."""
    return [s for s in identifier.lower().split("-") if len(s) >= MIN_SEGMENT_LENGTH]


def _check_cluster(tasks: Sequence[Task], cluster: Cluster) -> None:
    for task in tasks:
        if task.cluster_name != cluster.name:
            raise ValueError(
                f"Task {task.task_id} belongs to cluster '{task.cluster_name}', not '{cluster.name}'"
            )


def _name_contributions(task: Task, identifier: str, weights: Tuple[int, int, int, int]) -> Tuple[int, List[str]]:
    task_match, service_match, task_segment, service_segment = weights
    task_name = task.display_name.lower()
    service_name = task.service_name.lower()
    identifier = identifier.lower()

    score = 0
    details: List[str] = []
    if identifier in task_name:
        score += task_match
        details.append("task name contains identifier")
    if identifier in service_name:
        score += service_match
        details.append("service name contains identifier")
    for segment in identifier_segments(identifier):
        if segment in task_name:
            score += task_segment
            details.append(f"task segment '{segment}'")
        if segment in service_name:
            score += service_segment
            details.append(f"service segment '{segment}'")
    return score, details


def _reason(label: str, details: List[str]) -> str:
    if not details:
        return label
    return f"{label}: {', '.join(details)}"


def score_tasks_by_naming(tasks: Sequence[Task], cluster: Cluster,
                          database: DatabaseInstance) -> List[ScoredMatch]:
    """
    Score every task by how closely its names resemble the database identifier.

    Args:
        tasks: Tasks of ``cluster``
        cluster: Cluster being scored
        database: Target database

    Returns:
        One match per task, in input order
    """
    _check_cluster(tasks, cluster)
    weights = (NAMING_TASK_MATCH, NAMING_SERVICE_MATCH, NAMING_TASK_SEGMENT, NAMING_SERVICE_SEGMENT)

    results: List[ScoredMatch] = []
    for task in tasks:
        score, details = _name_contributions(task, database.identifier, weights)
        results.append(ScoredMatch(
            cluster=cluster,
            task=task,
            method=MatchMethod.NAMING,
            score=NAMING_BASELINE + score,
            reason=_reason("Name similarity", details),
        ))
    return results


async def check_task_environment(task: Task, database: DatabaseInstance) -> EnvironmentCheck:
    """
    Look for signs that a task is configured to talk to ``database``.

    Task definitions are not fetched; the task and service names stand in
    for the container environment.
    """
    weights = (ENV_TASK_MATCH, ENV_SERVICE_MATCH, ENV_TASK_SEGMENT, ENV_SERVICE_SEGMENT)
    score, details = _name_contributions(task, database.identifier, weights)
    return EnvironmentCheck(score=score, details=details)


def _hint_applies(hint: AnalysisHint, task: Task, database: DatabaseInstance) -> bool:
    if hint.rds_identifier != database.identifier or not hint.task_family:
        return False
    return hint.task_family in task.task_id or hint.task_family in task.service_name


async def score_tasks_by_environment(tasks: Sequence[Task], cluster: Cluster,
                                     database: DatabaseInstance,
                                     hints: Optional[List[AnalysisHint]] = None) -> List[ScoredMatch]:
    """
    Score tasks on database connection evidence.

    Per-task checks run concurrently and are all awaited before any result is
    built. Cached environment hints add one match per applicable hint.
    """
    _check_cluster(tasks, cluster)
    checks = await asyncio.gather(*(check_task_environment(task, database) for task in tasks))

    results: List[ScoredMatch] = []
    for task, check in zip(tasks, checks):
        if not check.has_match:
            continue
        results.append(ScoredMatch(
            cluster=cluster,
            task=task,
            method=MatchMethod.ENVIRONMENT,
            score=check.score,
            reason=_reason("Database connection signals", check.details),
        ))

    for task in tasks:
        for hint in hints or []:
            if not _hint_applies(hint, task, database):
                continue
            results.append(ScoredMatch(
                cluster=cluster,
                task=task,
                method=MatchMethod.ENVIRONMENT,
                score=HINT_SCORES[hint.confidence],
                reason=_reason("Cached analysis", list(hint.match_reasons) or [f"task family '{hint.task_family}'"]),
            ))
    return results


async def score_tasks_by_network(tasks: Sequence[Task], cluster: Cluster,
                                 database: DatabaseInstance,
                                 hints: Optional[List[AnalysisHint]] = None) -> List[ScoredMatch]:
    """Topology matching (shared VPC, subnets, security groups). Not implemented yet."""
    _check_cluster(tasks, cluster)
    return []


async def score_tasks_async(tasks: Sequence[Task], cluster: Cluster,
                            database: DatabaseInstance,
                            hints: Optional[AnalysisHints] = None) -> List[ScoredMatch]:
    """
    Run every strategy for one cluster and concatenate the results.

    Returns:
        Naming matches in task order, then environment, then network matches

    Raises:
        NotFoundError: If ``tasks`` is empty
    """
    if not tasks:
        raise NotFoundError(
            f"No tasks found in cluster '{cluster.name}'",
            suggestion="Choose another cluster or check that its services have running tasks",
        )
    hints = hints or AnalysisHints()

    naming = score_tasks_by_naming(tasks, cluster, database)
    environment, network = await asyncio.gather(
        score_tasks_by_environment(tasks, cluster, database, hints.environment),
        score_tasks_by_network(tasks, cluster, database, hints.network),
    )
    logger.debug(
        f"Scored {len(tasks)} tasks in {cluster.name}: "
        f"{len(naming)} naming, {len(environment)} environment, {len(network)} network"
    )
    return naming + environment + network


def score_tasks(tasks: Sequence[Task], cluster: Cluster, database: DatabaseInstance,
                hints: Optional[AnalysisHints] = None) -> List[ScoredMatch]:
    """Synchronous entry point for :func:`score_tasks_async`."""
    return asyncio.run(score_tasks_async(tasks, cluster, database, hints))
