"""
Interactive flows behind the connect, exec-task and enable-exec commands.

Each flow walks a SessionState from UNRESOLVED to RESOLVED. Values passed
on the command line skip the matching prompt.
"""

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Callable, List, Optional

import click

from .aws_services import AwsLister
from .commands import (
    ExecRequest,
    GeneratedCommand,
    TunnelRequest,
    generate,
    generate_enable_exec_command,
)
from .config import Settings
from .dry_run import display_dry_run
from .errors import EcsPfError, NotFoundError, ValidationError
from .inference import (
    PerformanceTracker,
    filter_matches,
    format_match,
    infer_targets,
    load_analysis_hints,
    score_tasks,
)
from .inference.engine import order_matches
from .inference.models import ScoredMatch
from .models import Cluster, DatabaseInstance, Service, Task
from .search import (
    format_cluster,
    format_database,
    format_region,
    format_service,
    format_task,
    search_clusters,
    search_containers,
    search_databases,
    search_regions,
    search_services,
    search_tasks,
)
from .selection import ask_retry, prompt_port, select_item
from .session import start_exec, start_tunnel
from .validation import (
    ConnectOptions,
    EnableExecOptions,
    ExecOptions,
    default_port_for_engine,
    find_available_port,
)

logger = logging.getLogger(__name__)

MAX_ATTEMPTS = 3
FALLBACK_REGION = "us-east-1"


class FlowState(Enum):
    UNRESOLVED = 0
    REGION_CHOSEN = 1
    CLUSTER_CHOSEN = 2
    TARGET_CHOSEN = 3
    PORTS_CHOSEN = 4
    RESOLVED = 5


@dataclass
class SessionState:
    """Choices made so far in one run of a flow."""
    state: FlowState = FlowState.UNRESOLVED
    region: Optional[str] = None
    cluster: Optional[str] = None
    task_id: Optional[str] = None
    runtime_id: Optional[str] = None
    database: Optional[DatabaseInstance] = None
    remote_port: Optional[int] = None
    local_port: Optional[int] = None
    container: Optional[str] = None
    command: Optional[str] = None

    def advance(self, state: FlowState) -> None:
        if state.value <= self.state.value:
            raise RuntimeError(f"Cannot move from {self.state.name} to {state.name}")
        logger.debug(f"Flow state {self.state.name} -> {state.name}")
        self.state = state


ListerFactory = Callable[[str], AwsLister]


def _choose_region(state: SessionState, region: Optional[str], settings: Settings,
                   lister_factory: ListerFactory) -> None:
    if not region:
        regions = lister_factory(settings.default_region or FALLBACK_REGION).list_regions()
        region = select_item(regions, "Select AWS region", search_regions, format_region).name
    state.region = region
    state.advance(FlowState.REGION_CHOSEN)


def _choose_database(lister: AwsLister, identifier: Optional[str]) -> DatabaseInstance:
    databases = lister.list_databases()
    if identifier:
        for database in databases:
            if database.identifier == identifier:
                return database
        raise NotFoundError(
            f"RDS instance '{identifier}' not found in {lister.region}",
            suggestion="Check the identifier and that the instance is available",
        )
    if not databases:
        raise NotFoundError(f"No available RDS instances in {lister.region}", suggestion="Try another region")
    return select_item(databases, "Select RDS instance", search_databases, format_database)


def _stopped_reason(match: ScoredMatch) -> Optional[str]:
    return None if match.task.is_connectable else "task stopped"


def _choose_match(lister: AwsLister, database: DatabaseInstance, cluster: Optional[str],
                  settings: Settings) -> ScoredMatch:
    tracker = PerformanceTracker()
    hints = load_analysis_hints(settings.cache_dir)
    click.echo(click.style(f"🔍 Looking for ECS tasks that can reach {database.identifier}...", fg="blue"))
    if cluster:
        chosen = Cluster(name=cluster, arn=cluster)
        matches = order_matches(score_tasks(lister.list_tasks(chosen), chosen, database, hints))
    else:
        matches = infer_targets(lister, database, hints, tracker)
        logger.debug(tracker.report())
    if not any(m.task.is_connectable for m in matches):
        raise NotFoundError(
            f"No running ECS tasks found for {database.identifier}",
            suggestion="Pass --cluster and --task explicitly",
        )
    return select_item(
        matches, "Select ECS task (keywords: cluster, service, high/medium/low)",
        filter_matches, format_match, disabled=_stopped_reason,
    )


def resolve_connect(options: ConnectOptions, settings: Settings,
                    lister_factory: ListerFactory = AwsLister) -> TunnelRequest:
    """
    Resolve every piece of a port-forwarding session.

    Returns:
        TunnelRequest ready for command generation

    Raises:
        NotFoundError: If there is nothing to choose from
        ExternalError: If an AWS call fails
    """
    state = SessionState()
    _choose_region(state, options.region, settings, lister_factory)
    lister = lister_factory(state.region)

    state.database = _choose_database(lister, options.rds)
    if options.cluster and options.task:
        state.cluster = options.cluster
        state.advance(FlowState.CLUSTER_CHOSEN)
        state.task_id = options.task
        state.runtime_id = None
    else:
        match = _choose_match(lister, state.database, options.cluster, settings)
        state.cluster = match.cluster.name
        state.advance(FlowState.CLUSTER_CHOSEN)
        state.task_id = match.task.task_id
        state.runtime_id = match.task.runtime_id
    state.advance(FlowState.TARGET_CHOSEN)

    state.remote_port = options.rds_port or state.database.port or default_port_for_engine(state.database.engine)
    if options.local_port:
        state.local_port = options.local_port
    else:
        state.local_port = prompt_port("Local port", find_available_port(settings.default_local_port))
    state.advance(FlowState.PORTS_CHOSEN)

    request = TunnelRequest(
        region=state.region,
        cluster=state.cluster,
        task_id=state.task_id,
        runtime_id=state.runtime_id,
        database=state.database,
        remote_port=state.remote_port,
        local_port=state.local_port,
    )
    state.advance(FlowState.RESOLVED)
    return request


def _choose_exec_cluster(lister: AwsLister, cluster: Optional[str]) -> str:
    if cluster:
        return cluster
    clusters = lister.list_exec_clusters()
    if not clusters:
        raise NotFoundError(
            f"No ECS clusters with exec capability in {lister.region}",
            suggestion="Enable ECS Exec with 'ecs-pf enable-exec'",
        )
    return select_item(clusters, "Select ECS cluster", search_clusters, format_cluster).name


def _choose_task(lister: AwsLister, cluster: str) -> Task:
    tasks = lister.list_tasks(Cluster(name=cluster, arn=cluster))
    if not tasks:
        raise NotFoundError(f"No running tasks in cluster {cluster}", suggestion="Choose another cluster")
    return select_item(tasks, "Select ECS task", search_tasks, format_task)


def _choose_container(lister: AwsLister, cluster: str, task: str) -> str:
    containers = lister.list_task_containers(cluster, task)
    if len(containers) == 1:
        return containers[0]
    return select_item(containers, "Select container", search_containers)


def resolve_exec(options: ExecOptions, settings: Settings,
                 lister_factory: ListerFactory = AwsLister) -> ExecRequest:
    state = SessionState()
    _choose_region(state, options.region, settings, lister_factory)
    lister = lister_factory(state.region)

    state.cluster = _choose_exec_cluster(lister, options.cluster)
    state.advance(FlowState.CLUSTER_CHOSEN)

    state.task_id = options.task or _choose_task(lister, state.cluster).task_id
    state.container = options.container or _choose_container(lister, state.cluster, state.task_id)
    state.advance(FlowState.TARGET_CHOSEN)

    state.command = options.command or settings.exec_command
    request = ExecRequest(
        region=state.region,
        cluster=state.cluster,
        task=state.task_id,
        container=state.container,
        command=state.command,
    )
    state.advance(FlowState.RESOLVED)
    return request


def _finish(result: GeneratedCommand, dry_run: bool, runner: Callable[[GeneratedCommand], int]) -> int:
    if dry_run:
        display_dry_run(result)
        return 0
    return runner(result)


def connect_flow(options: ConnectOptions, settings: Settings,
                 lister_factory: ListerFactory = AwsLister,
                 output_json: bool = False) -> GeneratedCommand:
    """
    Resolve, generate and either display or run a port-forwarding session.

    With ``output_json`` the caller prints the result instead.
    """
    result = generate(resolve_connect(options, settings, lister_factory), settings.version)
    if not output_json:
        _finish(result, options.dry_run, start_tunnel)
    return result


def exec_flow(options: ExecOptions, settings: Settings,
              lister_factory: ListerFactory = AwsLister,
              output_json: bool = False) -> GeneratedCommand:
    result = generate(resolve_exec(options, settings, lister_factory), settings.version)
    if not output_json:
        _finish(result, options.dry_run, start_exec)
    return result


def enable_exec_flow(options: EnableExecOptions, settings: Settings,
                     lister_factory: ListerFactory = AwsLister,
                     all_services: bool = False) -> List[str]:
    """
    Turn on ECS Exec for services in a cluster.

    Returns:
        List[str]: Names of the services that were (or, in dry-run, would be) updated
    """
    state = SessionState()
    _choose_region(state, options.region, settings, lister_factory)
    lister = lister_factory(state.region)

    if options.cluster:
        cluster = Cluster(name=options.cluster, arn=options.cluster)
    else:
        clusters = lister.list_clusters()
        if not clusters:
            raise NotFoundError(f"No ECS clusters in {state.region}", suggestion="Try another region")
        cluster = select_item(clusters, "Select ECS cluster", search_clusters, format_cluster)
    state.cluster = cluster.name
    state.advance(FlowState.CLUSTER_CHOSEN)

    services = lister.list_services(cluster)
    pending = [s for s in services if not s.enable_execute_command]
    if options.service:
        named = [s for s in services if s.name == options.service]
        if not named:
            raise NotFoundError(f"Service '{options.service}' not found in {cluster.name}")
        if named[0].enable_execute_command:
            click.echo(click.style(f"✅ ECS Exec already enabled for {options.service}", fg="green"))
            return []
        chosen: List[Service] = named
    else:
        if not pending:
            raise NotFoundError(
                f"Every service in {cluster.name} already has ECS Exec enabled",
                suggestion="Use 'ecs-pf exec-task' to open a shell",
            )
        if all_services:
            chosen = pending
        else:
            chosen = [select_item(pending, "Select ECS service", search_services, format_service)]
    state.advance(FlowState.TARGET_CHOSEN)

    for service in chosen:
        if options.dry_run:
            click.echo(generate_enable_exec_command(state.region, cluster.name, service.name))
        else:
            lister.enable_exec(cluster.name, service.name)
            click.echo(click.style(f"✅ Enabled ECS Exec for {service.name} (new deployment started)", fg="green"))
    state.advance(FlowState.RESOLVED)
    return [s.name for s in chosen]


def run_with_retry(flow: Callable[[], object], on_error: Callable[[EcsPfError], None],
                   max_attempts: int = MAX_ATTEMPTS, confirm: Callable[[], bool] = ask_retry):
    """
    Run a whole flow, offering a retry after each domain error.

    Validation errors are not retried since the same input would fail again.
    The last error propagates once attempts run out or the operator declines.
    """
    attempt = 1
    while True:
        try:
            return flow()
        except ValidationError:
            raise
        except EcsPfError as e:
            on_error(e)
            if attempt >= max_attempts or not confirm():
                raise
            attempt += 1
            logger.debug(f"Retrying flow (attempt {attempt}/{max_attempts})")
