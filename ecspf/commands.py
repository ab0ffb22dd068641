"""
Command generation for SSM port-forwarding and ECS Exec sessions.

Everything here is a pure function of its arguments: no AWS calls, no
filesystem access. The tool version used in reproducible commands is passed
in explicitly.
"""

import json
import re
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from . import __version__
from .config import DEFAULT_EXEC_COMMAND, TOOL_NAME
from .errors import FormatError
from .models import DatabaseInstance
from .validation import DB_ENDPOINT, EXEC_COMMAND

PORT_FORWARD_DOCUMENT = "AWS-StartPortForwardingSessionToRemoteHost"
TUNNEL_TARGET = re.compile(r"^ecs:[a-z0-9-]+_[a-z0-9-]+_[A-Za-z0-9-]+$")


@dataclass(frozen=True)
class TunnelRequest:
    """A fully resolved port-forwarding session."""
    region: str
    cluster: str
    task_id: str
    runtime_id: str
    database: DatabaseInstance
    remote_port: int
    local_port: int


@dataclass(frozen=True)
class ExecRequest:
    """A fully resolved ECS Exec session."""
    region: str
    cluster: str
    task: str
    container: str
    command: str


SessionRequest = Union[TunnelRequest, ExecRequest]


@dataclass(frozen=True)
class SessionSummary:
    region: str
    cluster: str
    task: str
    database: Optional[str] = None
    remote_port: Optional[int] = None
    local_port: Optional[int] = None
    container: Optional[str] = None
    command: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "region": self.region,
            "cluster": self.cluster,
            "task": self.task,
            "rds": self.database,
            "rds_port": self.remote_port,
            "local_port": self.local_port,
            "container": self.container,
            "command": self.command,
        }
        return {k: v for k, v in data.items() if v is not None}


@dataclass(frozen=True)
class GeneratedCommand:
    raw_command: str
    reproducible_command: str
    summary: SessionSummary

    def to_dict(self) -> Dict[str, Any]:
        return {
            "aws_command": self.raw_command,
            "reproducible_command": self.reproducible_command,
            "session": self.summary.to_dict(),
        }


def synthesize_tunnel_target(cluster: str, task_id: str, runtime_id: Optional[str] = None) -> str:
    """
    Build the SSM target for a task: ``ecs:<cluster>_<task_id>_<runtime_id>``.

    When the runtime id is not known the task id takes its place.

    Raises:
        FormatError: If the result does not have the expected shape
    """
    target = f"ecs:{cluster}_{task_id}_{runtime_id or task_id}"
    if not TUNNEL_TARGET.fullmatch(target):
        raise FormatError(f"Synthesized session target '{target}' is malformed")
    return target


def _tool(version: str) -> str:
    return f"uvx {TOOL_NAME}@{version}"


def generate_reproducible_command(region: str, cluster: str, task_id: str, database_identifier: str,
                                  remote_port: int, local_port: int, version: str = __version__) -> str:
    return (
        f"{_tool(version)} connect --region {region} --cluster {cluster} --task {task_id} "
        f"--rds {database_identifier} --rds-port {remote_port} --local-port {local_port}"
    )


def generate_tunnel_command(region: str, cluster: str, task_id: str, database: DatabaseInstance,
                            remote_port: int, local_port: int, version: str = __version__,
                            runtime_id: Optional[str] = None) -> GeneratedCommand:
    """
    Build the SSM port-forwarding command for a database.

    Args:
        region: AWS region
        cluster: ECS cluster name
        task_id: ECS task id
        database: Target RDS instance
        remote_port: Database port
        local_port: Local listening port
        version: Tool version pinned in the reproducible command
        runtime_id: Container runtime id, when known

    Returns:
        GeneratedCommand with the raw AWS CLI command, the reproducible
        ecs-pf invocation and a session summary

    Raises:
        FormatError: If the session target or endpoint is malformed
    """
    target = synthesize_tunnel_target(cluster, task_id, runtime_id)
    if not DB_ENDPOINT.fullmatch(database.endpoint or ""):
        raise FormatError(f"Database endpoint '{database.endpoint}' is malformed")

    parameters = {
        "host": [database.endpoint],
        "portNumber": [str(remote_port)],
        "localPortNumber": [str(local_port)],
    }
    parameters_json = json.dumps(parameters, separators=(",", ":"))
    raw_command = (
        f"aws ssm start-session --region {region} --target {target} "
        f"--parameters '{parameters_json}' --document-name {PORT_FORWARD_DOCUMENT}"
    )

    return GeneratedCommand(
        raw_command=raw_command,
        reproducible_command=generate_reproducible_command(
            region, cluster, task_id, database.identifier, remote_port, local_port, version
        ),
        summary=SessionSummary(
            region=region,
            cluster=cluster,
            task=target,
            database=database.identifier,
            remote_port=remote_port,
            local_port=local_port,
        ),
    )


def generate_exec_command(region: str, cluster: str, task: str, container: str,
                          command: Optional[str] = None, version: str = __version__) -> GeneratedCommand:
    """Build the ECS Exec command for a container; ``command`` defaults to /bin/bash."""
    command = command or DEFAULT_EXEC_COMMAND
    if not EXEC_COMMAND.fullmatch(command):
        raise FormatError(f"Command '{command}' cannot be embedded in an exec session")

    raw_command = (
        f"aws ecs execute-command --region {region} --cluster {cluster} --task {task} "
        f"--container {container} --command \"{command}\" --interactive"
    )
    reproducible_command = (
        f"{_tool(version)} exec-task --region {region} --cluster {cluster} --task {task} "
        f"--container {container} --command \"{command}\""
    )
    return GeneratedCommand(
        raw_command=raw_command,
        reproducible_command=reproducible_command,
        summary=SessionSummary(
            region=region, cluster=cluster, task=task, container=container, command=command,
        ),
    )


def generate_enable_exec_command(region: str, cluster: str, service: str) -> str:
    return (
        f"aws ecs update-service --region {region} --cluster {cluster} --service {service} "
        f"--enable-execute-command --force-new-deployment"
    )


def _generate_tunnel(request: TunnelRequest, version: str) -> GeneratedCommand:
    return generate_tunnel_command(
        request.region, request.cluster, request.task_id, request.database,
        request.remote_port, request.local_port, version=version, runtime_id=request.runtime_id,
    )


def _generate_exec(request: ExecRequest, version: str) -> GeneratedCommand:
    return generate_exec_command(
        request.region, request.cluster, request.task, request.container, request.command, version=version,
    )


_HANDLERS: Dict[type, Callable[[Any, str], GeneratedCommand]] = {
    TunnelRequest: _generate_tunnel,
    ExecRequest: _generate_exec,
}


def generate(request: SessionRequest, version: str = __version__) -> GeneratedCommand:
    """
    Generate commands for a resolved session request.

    Raises:
        TypeError: If ``request`` is not a TunnelRequest or ExecRequest
    """
    handler = _HANDLERS.get(type(request))
    if handler is None:
        raise TypeError(f"Unsupported session request: {type(request).__name__}")
    return handler(request, version)
