"""
boto3-backed listers for regions, ECS clusters/tasks/services and RDS instances.
"""

import logging
from typing import Iterable, List, Optional, Sequence

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from .errors import ExternalError, NotFoundError, ValidationError
from .models import Cluster, DatabaseInstance, Region, Service, Task
from .validation import (
    parse_cluster_name,
    parse_container_name,
    parse_db_identifier,
    parse_endpoint,
    parse_region,
    parse_runtime_id,
    parse_task_id,
    task_id_from_arn,
)

logger = logging.getLogger(__name__)

PRIORITY_REGIONS = ["ap-northeast-1", "ap-northeast-2", "us-east-1", "us-west-2", "eu-west-1"]
ACCESS_DENIED_CODES = {"AccessDenied", "AccessDeniedException", "UnauthorizedOperation"}


def _external_error(e: Exception, what: str) -> ExternalError:
    if isinstance(e, ClientError):
        code = e.response.get("Error", {}).get("Code", "")
        if code in ACCESS_DENIED_CODES:
            return ExternalError(f"Access denied to {what}. Please check your IAM policies.", cause=e)
        if code == "ClusterNotFoundException":
            return ExternalError(f"ECS cluster not found while listing {what}.", cause=e)
    return ExternalError(f"Failed to get {what}: {e}", cause=e)


def _chunks(items: Sequence[str], size: int) -> Iterable[Sequence[str]]:
    for i in range(0, len(items), size):
        yield items[i:i + size]


def list_regions(ec2_client) -> List[Region]:
    """List enabled regions, commonly used ones first."""
    try:
        response = ec2_client.describe_regions()
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, "AWS regions")

    regions: List[Region] = []
    for item in response.get("Regions", []):
        try:
            name = parse_region(item.get("RegionName"))
        except ValidationError:
            continue
        regions.append(Region(name=name, opt_in_status=item.get("OptInStatus", "opt-in-not-required")))

    def sort_key(region: Region):
        if region.name in PRIORITY_REGIONS:
            return (0, PRIORITY_REGIONS.index(region.name), region.name)
        return (1, 0, region.name)

    return sorted(regions, key=sort_key)


def list_clusters(ecs_client) -> List[Cluster]:
    try:
        arns: List[str] = []
        for page in ecs_client.get_paginator("list_clusters").paginate():
            arns.extend(page.get("clusterArns", []))
        if not arns:
            return []

        clusters: List[Cluster] = []
        for batch in _chunks(arns, 100):
            response = ecs_client.describe_clusters(clusters=list(batch))
            for item in response.get("clusters", []):
                try:
                    name = parse_cluster_name(item.get("clusterName"))
                except ValidationError as e:
                    logger.debug(f"Skipping cluster with unsupported name: {e}")
                    continue
                clusters.append(Cluster(name=name, arn=item["clusterArn"]))
        return clusters
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, "ECS clusters")


def check_exec_capability(ecs_client, cluster: Cluster) -> bool:
    """
    Check whether a cluster can host ECS Exec sessions.

    Clusters without an explicit execute-command configuration are assumed
    capable; the session itself reports the error if they are not.
    """
    try:
        response = ecs_client.describe_clusters(clusters=[cluster.arn], include=["CONFIGURATIONS"])
    except (ClientError, BotoCoreError) as e:
        logger.warning(f"Could not check exec capability of {cluster.name}: {e}")
        return False

    items = response.get("clusters", [])
    if not items:
        return False
    return items[0].get("status", "ACTIVE") == "ACTIVE"


def list_exec_clusters(ecs_client) -> List[Cluster]:
    return [c for c in list_clusters(ecs_client) if check_exec_capability(ecs_client, c)]


def _task_from_description(item: dict, cluster: Cluster, service_name: str) -> Optional[Task]:
    containers = item.get("containers") or []
    if not item.get("taskArn") or not containers or item.get("lastStatus") != "RUNNING":
        return None
    try:
        task_id = parse_task_id(task_id_from_arn(item["taskArn"]))
        runtime_id = parse_runtime_id(containers[0].get("runtimeId"))
    except ValidationError as e:
        logger.debug(f"Skipping task {item['taskArn']}: {e}")
        return None

    return Task(
        arn=item["taskArn"],
        display_name=service_name,
        runtime_id=runtime_id,
        task_id=task_id,
        cluster_name=cluster.name,
        service_name=service_name,
        status=item["lastStatus"],
        created_at=item.get("createdAt"),
    )


def list_tasks(ecs_client, cluster: Cluster) -> List[Task]:
    """List running tasks of every service in a cluster."""
    tasks: List[Task] = []
    try:
        for page in ecs_client.get_paginator("list_services").paginate(cluster=cluster.name):
            for service_arn in page.get("serviceArns", []):
                service_name = service_arn.rsplit("/", 1)[-1]
                task_arns = ecs_client.list_tasks(
                    cluster=cluster.name, serviceName=service_name, desiredStatus="RUNNING"
                ).get("taskArns", [])
                for batch in _chunks(task_arns, 100):
                    response = ecs_client.describe_tasks(cluster=cluster.name, tasks=list(batch))
                    for item in response.get("tasks", []):
                        task = _task_from_description(item, cluster, service_name)
                        if task:
                            tasks.append(task)
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, f"ECS tasks in {cluster.name}")
    return tasks


def list_task_containers(ecs_client, cluster: str, task: str) -> List[str]:
    """
    List running containers of a task.

    Raises:
        NotFoundError: If the task does not exist
    """
    try:
        response = ecs_client.describe_tasks(cluster=cluster, tasks=[task])
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, "task containers")

    items = response.get("tasks", [])
    if not items:
        raise NotFoundError(
            f"ECS task '{task}' not found in cluster '{cluster}'",
            suggestion="Verify the task exists and is running",
        )

    names: List[str] = []
    for container in items[0].get("containers", []):
        if container.get("lastStatus") != "RUNNING":
            continue
        try:
            names.append(parse_container_name(container.get("name")))
        except ValidationError as e:
            logger.debug(f"Skipping container: {e}")
    return names


def list_databases(rds_client) -> List[DatabaseInstance]:
    """List available RDS instances sorted by identifier."""
    instances: List[DatabaseInstance] = []
    try:
        for page in rds_client.get_paginator("describe_db_instances").paginate():
            for db in page.get("DBInstances", []):
                endpoint = db.get("Endpoint") or {}
                if db.get("DBInstanceStatus") != "available" or not endpoint.get("Address") or not db.get("Engine"):
                    continue
                try:
                    identifier = parse_db_identifier(db.get("DBInstanceIdentifier"))
                    address = parse_endpoint(endpoint["Address"])
                except ValidationError as e:
                    logger.debug(f"Skipping RDS instance: {e}")
                    continue
                instances.append(DatabaseInstance(
                    identifier=identifier,
                    endpoint=address,
                    port=int(endpoint.get("Port") or 5432),
                    engine=db["Engine"],
                    instance_class=db.get("DBInstanceClass", "unknown"),
                    status="available",
                    allocated_storage=db.get("AllocatedStorage", 0),
                    availability_zone=db.get("AvailabilityZone", "unknown"),
                    security_groups=tuple(
                        sg.get("VpcSecurityGroupId", "") for sg in db.get("VpcSecurityGroups", [])
                    ),
                    subnet_group=(db.get("DBSubnetGroup") or {}).get("DBSubnetGroupName"),
                    created_time=db.get("InstanceCreateTime"),
                ))
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, "RDS instances")
    return sorted(instances, key=lambda d: d.identifier)


def list_services(ecs_client, cluster: Cluster) -> List[Service]:
    try:
        arns: List[str] = []
        for page in ecs_client.get_paginator("list_services").paginate(cluster=cluster.name):
            arns.extend(page.get("serviceArns", []))

        services: List[Service] = []
        for batch in _chunks(arns, 10):
            response = ecs_client.describe_services(cluster=cluster.name, services=list(batch))
            for item in response.get("services", []):
                services.append(Service(
                    name=item["serviceName"],
                    arn=item["serviceArn"],
                    cluster_name=cluster.name,
                    status=item.get("status", "UNKNOWN"),
                    task_definition=item.get("taskDefinition", ""),
                    enable_execute_command=bool(item.get("enableExecuteCommand", False)),
                    desired_count=item.get("desiredCount", 0),
                    running_count=item.get("runningCount", 0),
                    pending_count=item.get("pendingCount", 0),
                ))
        return services
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, f"ECS services in {cluster.name}")


def enable_exec_for_service(ecs_client, cluster: str, service: str) -> None:
    """Turn on ECS Exec for a service and roll its tasks."""
    try:
        ecs_client.update_service(
            cluster=cluster, service=service, enableExecuteCommand=True, forceNewDeployment=True
        )
    except (ClientError, BotoCoreError) as e:
        raise _external_error(e, f"ECS service {service}")
    logger.info(f"Enabled ECS Exec for {cluster}/{service}")


class AwsLister:
    """Region-bound access to the listers above."""

    def __init__(self, region: str, session: Optional[boto3.session.Session] = None):
        self.region = region
        self._session = session or boto3.session.Session()
        self._clients = {}

    def client(self, service: str):
        if service not in self._clients:
            self._clients[service] = self._session.client(service, region_name=self.region)
        return self._clients[service]

    def list_regions(self) -> List[Region]:
        return list_regions(self.client("ec2"))

    def list_clusters(self) -> List[Cluster]:
        return list_clusters(self.client("ecs"))

    def list_exec_clusters(self) -> List[Cluster]:
        return list_exec_clusters(self.client("ecs"))

    def list_tasks(self, cluster: Cluster) -> List[Task]:
        return list_tasks(self.client("ecs"), cluster)

    def list_task_containers(self, cluster: str, task: str) -> List[str]:
        return list_task_containers(self.client("ecs"), cluster, task)

    def list_databases(self) -> List[DatabaseInstance]:
        return list_databases(self.client("rds"))

    def list_services(self, cluster: Cluster) -> List[Service]:
        return list_services(self.client("ecs"), cluster)

    def enable_exec(self, cluster: str, service: str) -> None:
        enable_exec_for_service(self.client("ecs"), cluster, service)
