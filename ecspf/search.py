"""
Keyword search over resources shown in selection lists.
"""

from typing import Callable, Iterable, List, Sequence, TypeVar

from .models import Cluster, DatabaseInstance, Region, Service, Task

T = TypeVar("T")


def keyword_search(items: Sequence[T], text: str, fields: Callable[[T], Iterable[str]]) -> List[T]:
    """
    Keep items whose fields contain every whitespace-separated keyword.

    Matching is case-insensitive. Empty input returns every item.
    """
    keywords = (text or "").lower().split()
    if not keywords:
        return list(items)

    results: List[T] = []
    for item in items:
        haystack = " ".join(f for f in fields(item) if f).lower()
        if all(k in haystack for k in keywords):
            results.append(item)
    return results


def search_regions(regions: Sequence[Region], text: str) -> List[Region]:
    return keyword_search(regions, text, lambda r: [r.name, r.opt_in_status])


def search_clusters(clusters: Sequence[Cluster], text: str) -> List[Cluster]:
    return keyword_search(clusters, text, lambda c: [c.name, c.arn])


def search_tasks(tasks: Sequence[Task], text: str) -> List[Task]:
    return keyword_search(tasks, text, lambda t: [t.service_name, t.task_id, t.display_name, t.status])


def search_databases(databases: Sequence[DatabaseInstance], text: str) -> List[DatabaseInstance]:
    return keyword_search(databases, text, lambda d: [d.identifier, d.engine, d.endpoint])


def search_services(services: Sequence[Service], text: str) -> List[Service]:
    return keyword_search(services, text, lambda s: [s.name, s.status])


def search_containers(containers: Sequence[str], text: str) -> List[str]:
    return keyword_search(containers, text, lambda c: [c])


def format_region(region: Region) -> str:
    return f"{region.name} ({region.opt_in_status})"


def format_cluster(cluster: Cluster) -> str:
    return f"{cluster.name} ({cluster.arn.rsplit('/', 1)[-1]})"


def format_task(task: Task) -> str:
    return f"{task.display_name} [{task.task_id}] {task.status}"


def format_database(database: DatabaseInstance) -> str:
    return f"({database.engine}): {database.identifier}:{database.port} - {database.endpoint}"


def format_service(service: Service) -> str:
    exec_state = "exec on" if service.enable_execute_command else "exec off"
    return f"{service.name} ({service.running_count}/{service.desired_count} running, {exec_state})"
