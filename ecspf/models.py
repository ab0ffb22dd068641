"""
Data models for AWS resources the tool selects between.
"""

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional, Tuple


@dataclass(frozen=True)
class Region:
    """An AWS region as returned by EC2 DescribeRegions."""
    name: str
    opt_in_status: str = "opt-in-not-required"


@dataclass(frozen=True)
class Cluster:
    """An ECS cluster. Identity is the name within a region."""
    name: str
    arn: str


@dataclass(frozen=True)
class Task:
    """A running ECS task that can host an SSM session."""
    arn: str                # real task ARN
    display_name: str
    runtime_id: str         # runtime id of the first container
    task_id: str
    cluster_name: str
    service_name: str
    status: str             # "RUNNING", "PENDING", "STOPPED", ...
    created_at: Optional[datetime] = None

    @property
    def is_connectable(self) -> bool:
        return self.status in ("RUNNING", "PENDING")


@dataclass(frozen=True)
class DatabaseInstance:
    """An available RDS instance."""
    identifier: str
    endpoint: str
    port: int
    engine: str
    instance_class: str = "unknown"
    status: str = "available"
    allocated_storage: int = 0
    availability_zone: str = "unknown"
    security_groups: Tuple[str, ...] = field(default_factory=tuple)
    subnet_group: Optional[str] = None
    created_time: Optional[datetime] = None


@dataclass(frozen=True)
class Service:
    """An ECS service, used when enabling ECS Exec."""
    name: str
    arn: str
    cluster_name: str
    status: str = "UNKNOWN"
    task_definition: str = ""
    enable_execute_command: bool = False
    desired_count: int = 0
    running_count: int = 0
    pending_count: int = 0
