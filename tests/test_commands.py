"""
Tests for session command generation.
"""

import json

import pytest

from ecspf.commands import (
    ExecRequest,
    TunnelRequest,
    generate,
    generate_enable_exec_command,
    generate_exec_command,
    generate_tunnel_command,
    synthesize_tunnel_target,
)
from ecspf.errors import FormatError
from ecspf.models import DatabaseInstance

from factories import make_database


DB = DatabaseInstance(identifier="orders-db", endpoint="db.example.com", port=5432, engine="postgres")


class TestTunnelTarget:
    """Test SSM target synthesis."""

    def test_task_id_fills_runtime_id(self):
        target = synthesize_tunnel_target("my-cluster", "simple-task-id")
        assert target == "ecs:my-cluster_simple-task-id_simple-task-id"

    def test_runtime_id(self):
        target = synthesize_tunnel_target("my-cluster", "abc123", "abc123-2531612879")
        assert target == "ecs:my-cluster_abc123_abc123-2531612879"

    def test_malformed_target(self):
        with pytest.raises(FormatError):
            synthesize_tunnel_target("My_Cluster", "abc123")

    def test_trailing_newline_in_target(self):
        with pytest.raises(FormatError):
            synthesize_tunnel_target("my-cluster", "abc123", "abc123-99\n")


class TestTunnelCommand:
    """Test port-forwarding command generation."""

    def test_raw_command(self):
        result = generate_tunnel_command("us-east-1", "my-cluster", "simple-task-id", DB, 5432, 8888, version="0.1.0")
        assert result.raw_command == (
            "aws ssm start-session --region us-east-1 "
            "--target ecs:my-cluster_simple-task-id_simple-task-id "
            "--parameters '{\"host\":[\"db.example.com\"],\"portNumber\":[\"5432\"],\"localPortNumber\":[\"8888\"]}' "
            "--document-name AWS-StartPortForwardingSessionToRemoteHost"
        )

    def test_parameters_are_valid_json(self):
        result = generate_tunnel_command("us-east-1", "my-cluster", "abc123", DB, 3306, 9000)
        parameters = result.raw_command.split("--parameters '")[1].split("'")[0]
        assert json.loads(parameters) == {
            "host": ["db.example.com"],
            "portNumber": ["3306"],
            "localPortNumber": ["9000"],
        }

    def test_reproducible_command(self):
        result = generate_tunnel_command("us-east-1", "my-cluster", "abc123", DB, 5432, 8888, version="1.2.3")
        assert result.reproducible_command == (
            "uvx ecs-pf@1.2.3 connect --region us-east-1 --cluster my-cluster --task abc123 "
            "--rds orders-db --rds-port 5432 --local-port 8888"
        )

    def test_summary(self):
        result = generate_tunnel_command("us-east-1", "my-cluster", "abc123", DB, 5432, 8888, runtime_id="abc123-99")
        assert result.summary.task == "ecs:my-cluster_abc123_abc123-99"
        assert result.to_dict()["session"] == {
            "region": "us-east-1",
            "cluster": "my-cluster",
            "task": "ecs:my-cluster_abc123_abc123-99",
            "rds": "orders-db",
            "rds_port": 5432,
            "local_port": 8888,
        }

    def test_deterministic(self):
        db = make_database()
        first = generate_tunnel_command("us-east-1", "prod-orders", "abc123", db, 5432, 8888, version="0.1.0")
        second = generate_tunnel_command("us-east-1", "prod-orders", "abc123", db, 5432, 8888, version="0.1.0")
        assert first == second

    def test_malformed_endpoint(self):
        db = DatabaseInstance(identifier="orders-db", endpoint="db.example.com;ls", port=5432, engine="postgres")
        with pytest.raises(FormatError):
            generate_tunnel_command("us-east-1", "my-cluster", "abc123", db, 5432, 8888)

    def test_endpoint_with_trailing_newline(self):
        db = DatabaseInstance(identifier="orders-db", endpoint="db.example.com\n", port=5432, engine="postgres")
        with pytest.raises(FormatError):
            generate_tunnel_command("us-east-1", "my-cluster", "abc123", db, 5432, 8888)


class TestExecCommand:
    """Test ECS Exec command generation."""

    def test_default_command(self):
        result = generate_exec_command("us-east-1", "my-cluster", "abc123", "web", version="0.1.0")
        assert result.raw_command == (
            "aws ecs execute-command --region us-east-1 --cluster my-cluster --task abc123 "
            "--container web --command \"/bin/bash\" --interactive"
        )
        assert result.reproducible_command == (
            "uvx ecs-pf@0.1.0 exec-task --region us-east-1 --cluster my-cluster --task abc123 "
            "--container web --command \"/bin/bash\""
        )
        assert result.summary.command == "/bin/bash"

    def test_custom_command(self):
        result = generate_exec_command("us-east-1", "my-cluster", "abc123", "web", "/bin/sh")
        assert "--command \"/bin/sh\"" in result.raw_command
        assert result.to_dict()["session"]["container"] == "web"

    def test_unsafe_command(self):
        with pytest.raises(FormatError):
            generate_exec_command("us-east-1", "my-cluster", "abc123", "web", "sh -c \"rm -rf /\"")

    def test_enable_exec_command(self):
        assert generate_enable_exec_command("us-east-1", "prod", "web") == (
            "aws ecs update-service --region us-east-1 --cluster prod --service web "
            "--enable-execute-command --force-new-deployment"
        )


class TestDispatch:
    """Test dispatch on request type."""

    def test_tunnel_request(self):
        request = TunnelRequest(
            region="us-east-1", cluster="my-cluster", task_id="abc123", runtime_id=None,
            database=DB, remote_port=5432, local_port=8888,
        )
        expected = generate_tunnel_command("us-east-1", "my-cluster", "abc123", DB, 5432, 8888, version="0.1.0")
        assert generate(request, "0.1.0") == expected

    def test_exec_request(self):
        request = ExecRequest(region="us-east-1", cluster="my-cluster", task="abc123", container="web", command="/bin/sh")
        assert generate(request, "0.1.0") == generate_exec_command(
            "us-east-1", "my-cluster", "abc123", "web", "/bin/sh", version="0.1.0"
        )

    def test_unknown_request(self):
        with pytest.raises(TypeError):
            generate(object(), "0.1.0")
