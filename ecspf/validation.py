"""
Validation of raw CLI and prompt input.

Every identifier that ends up inside a generated command string passes
through here first. Values with characters outside the allowed sets are
rejected rather than escaped, so generated commands stay readable.
"""

import re
import socket
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple, Union

from .errors import NotFoundError, ValidationError

PORT_MIN = 1
PORT_MAX = 65535

DIGITS_ONLY = re.compile(r"^\d+$")
REGION_NAME = re.compile(r"^[a-z0-9-]+$")
IDENTIFIER = re.compile(r"^[a-z0-9][a-z0-9-]*$")
RUNTIME_ID = re.compile(r"^[A-Za-z0-9][A-Za-z0-9-]*$")
CONTAINER_NAME = re.compile(r"^[A-Za-z0-9][A-Za-z0-9_-]*$")
DB_ENDPOINT = re.compile(r"^[A-Za-z0-9.-]+$")
TASK_ARN = re.compile(r"^arn:aws:ecs:[a-z0-9-]+:\d{12}:task/[A-Za-z0-9_-]+/[A-Za-z0-9]+$")
# printable, no quoting or shell control characters
EXEC_COMMAND = re.compile("^[^\"'`$\\\\;&|<>\r\n\t]+$")


def parse_port(raw: Union[str, int], field: str = "port") -> int:
    """
    Parse a port number.

    Args:
        raw: Port as typed by the user or passed on the command line
        field: Field name reported on failure

    Returns:
        int: Port in [1, 65535]

    Raises:
        ValidationError: If the value is not numeric or out of range
    """
    if isinstance(raw, bool):
        raise ValidationError(field, "Port must be a number")
    text = str(raw).strip()
    if not DIGITS_ONLY.fullmatch(text):
        raise ValidationError(field, f"Port must be a number, got '{raw}'")

    port = int(text)
    if port < PORT_MIN or port > PORT_MAX:
        raise ValidationError(field, f"Port {port} is out of range ({PORT_MIN}-{PORT_MAX})")
    return port


def _match(pattern: re.Pattern, raw: Optional[str], field: str, label: str) -> str:
    if raw is None or str(raw) == "":
        raise ValidationError(field, f"{label} cannot be empty")
    value = str(raw)
    if value.strip() != value:
        raise ValidationError(field, f"{label} cannot have leading or trailing whitespace")
    if not pattern.fullmatch(value):
        raise ValidationError(field, f"Invalid {label.lower()} format: '{value}'")
    return value


def parse_region(raw: Optional[str]) -> str:
    return _match(REGION_NAME, raw, "region", "Region name")


def parse_identifier(raw: Optional[str], field: str) -> str:
    """Validate a cluster name, task id or DB instance identifier."""
    return _match(IDENTIFIER, raw, field, "Identifier")


def parse_cluster_name(raw: Optional[str]) -> str:
    return parse_identifier(raw, "cluster")


def parse_task_id(raw: Optional[str]) -> str:
    return parse_identifier(raw, "task")


def parse_db_identifier(raw: Optional[str]) -> str:
    return parse_identifier(raw, "rds")


def parse_runtime_id(raw: Optional[str]) -> str:
    return _match(RUNTIME_ID, raw, "runtime_id", "Runtime ID")


def parse_container_name(raw: Optional[str], field: str = "container") -> str:
    return _match(CONTAINER_NAME, raw, field, "Container name")


def parse_service_name(raw: Optional[str]) -> str:
    return _match(CONTAINER_NAME, raw, "service", "Service name")


def parse_endpoint(raw: Optional[str]) -> str:
    return _match(DB_ENDPOINT, raw, "endpoint", "DB endpoint")


def parse_task_reference(raw: Optional[str], field: str = "task") -> str:
    """Accept either a task id or a full ECS task ARN."""
    if raw and TASK_ARN.fullmatch(str(raw)):
        return str(raw)
    return parse_identifier(raw, field)


def parse_exec_command(raw: Optional[str]) -> str:
    return _match(EXEC_COMMAND, raw, "command", "Command")


def task_id_from_arn(task_arn: str) -> str:
    return task_arn.rsplit("/", 1)[-1]


@dataclass(frozen=True)
class ConnectOptions:
    region: Optional[str] = None
    cluster: Optional[str] = None
    task: Optional[str] = None
    rds: Optional[str] = None
    rds_port: Optional[int] = None
    local_port: Optional[int] = None
    dry_run: bool = False


@dataclass(frozen=True)
class ExecOptions:
    region: Optional[str] = None
    cluster: Optional[str] = None
    task: Optional[str] = None
    container: Optional[str] = None
    command: Optional[str] = None
    dry_run: bool = False


@dataclass(frozen=True)
class EnableExecOptions:
    region: Optional[str] = None
    cluster: Optional[str] = None
    service: Optional[str] = None
    dry_run: bool = False


def _collect(raw: Dict[str, Any], parsers: Dict[str, Any]) -> Dict[str, Any]:
    parsed: Dict[str, Any] = {}
    issues: List[Tuple[str, str]] = []
    for key, parser in parsers.items():
        value = raw.get(key)
        if value is None or value == "":
            parsed[key] = None
            continue
        try:
            parsed[key] = parser(value)
        except ValidationError as e:
            issues.extend(e.issues)
    if issues:
        field, reason = issues[0]
        raise ValidationError(field, reason, issues=issues)
    parsed["dry_run"] = bool(raw.get("dry_run", False))
    return parsed


def parse_connect_options(raw: Dict[str, Any]) -> ConnectOptions:
    """
    Validate all connect options at once.

    Raises:
        ValidationError: Listing every invalid field in ``issues``
    """
    parsed = _collect(raw, {
        "region": parse_region,
        "cluster": parse_cluster_name,
        "task": parse_task_id,
        "rds": parse_db_identifier,
        "rds_port": lambda v: parse_port(v, "rds_port"),
        "local_port": lambda v: parse_port(v, "local_port"),
    })
    return ConnectOptions(**parsed)


def parse_exec_options(raw: Dict[str, Any]) -> ExecOptions:
    parsed = _collect(raw, {
        "region": parse_region,
        "cluster": parse_cluster_name,
        "task": parse_task_reference,
        "container": parse_container_name,
        "command": parse_exec_command,
    })
    return ExecOptions(**parsed)


def parse_enable_exec_options(raw: Dict[str, Any]) -> EnableExecOptions:
    parsed = _collect(raw, {
        "region": parse_region,
        "cluster": parse_cluster_name,
        "service": parse_service_name,
    })
    return EnableExecOptions(**parsed)


def default_port_for_engine(engine: str) -> int:
    """Default listener port for an RDS engine name."""
    engine_lower = (engine or "").lower()
    if "mysql" in engine_lower or "mariadb" in engine_lower:
        return 3306
    if "postgres" in engine_lower:
        return 5432
    if "oracle" in engine_lower:
        return 1521
    if "sqlserver" in engine_lower or "mssql" in engine_lower:
        return 1433
    return 5432


def is_port_available(port: int) -> bool:
    """Check whether a local TCP port can be bound on localhost."""
    with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as sock:
        try:
            sock.bind(("localhost", port))
        except OSError:
            return False
    return True


def find_available_port(start: int = 8888) -> int:
    """
    Find the first free local port at or above ``start``.

    Raises:
        NotFoundError: If every port up to 65535 is taken
    """
    port = parse_port(start, "local_port")
    while port <= PORT_MAX:
        if is_port_available(port):
            return port
        port += 1
    raise NotFoundError(
        f"No available ports found starting from {start}",
        suggestion="Pass --local-port explicitly",
    )
