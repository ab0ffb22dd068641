"""
Tests for input validation.
"""

import pytest
from unittest.mock import patch

from ecspf.errors import NotFoundError, ValidationError
from ecspf.validation import (
    default_port_for_engine,
    find_available_port,
    parse_cluster_name,
    parse_connect_options,
    parse_exec_command,
    parse_exec_options,
    parse_port,
    parse_region,
    parse_task_reference,
)


class TestPorts:
    """Test port parsing."""

    def test_valid_ports(self):
        assert parse_port("8080") == 8080
        assert parse_port(1) == 1
        assert parse_port("65535") == 65535

    def test_out_of_range_port(self):
        """Port 70000 is rejected with an out-of-range reason."""
        with pytest.raises(ValidationError, match="out of range") as exc:
            parse_port("70000", "local_port")
        assert exc.value.field == "local_port"

    def test_zero_port(self):
        with pytest.raises(ValidationError, match="out of range"):
            parse_port(0)

    def test_non_numeric_port(self):
        for raw in ["abc", "-1", "80.5", "", True]:
            with pytest.raises(ValidationError):
                parse_port(raw)


class TestIdentifiers:
    """Test identifier and name parsing."""

    def test_valid_names(self):
        assert parse_region("ap-northeast-1") == "ap-northeast-1"
        assert parse_cluster_name("prod-cluster-1") == "prod-cluster-1"

    def test_empty_name(self):
        with pytest.raises(ValidationError, match="cannot be empty"):
            parse_cluster_name("")

    def test_whitespace_name(self):
        with pytest.raises(ValidationError, match="whitespace"):
            parse_cluster_name(" prod")

    def test_invalid_characters(self):
        for raw in ["Prod", "prod_cluster", "prod cluster", "-prod", "prod;ls"]:
            with pytest.raises(ValidationError):
                parse_cluster_name(raw)

    def test_task_reference_accepts_arn(self):
        arn = "arn:aws:ecs:us-east-1:123456789012:task/prod-app/0123abcd"
        assert parse_task_reference(arn) == arn
        assert parse_task_reference("0123abcd") == "0123abcd"

    def test_trailing_newline_rejected(self):
        arn = "arn:aws:ecs:us-east-1:123456789012:task/prod-app/abc123"
        for raw in [arn + "\n", "abc123\n"]:
            with pytest.raises(ValidationError):
                parse_task_reference(raw)
        with pytest.raises(ValidationError):
            parse_exec_options({"task": arn + "\n"})
        with pytest.raises(ValidationError):
            parse_cluster_name("prod\n")
        with pytest.raises(ValidationError):
            parse_port("8080\n\n1")

    def test_exec_command(self):
        assert parse_exec_command("/bin/sh") == "/bin/sh"
        assert parse_exec_command("ls -la /app") == "ls -la /app"
        for raw in ["ls; rm -rf /", "echo $HOME", "cat 'x'", "a | b", "a && b"]:
            with pytest.raises(ValidationError):
                parse_exec_command(raw)


class TestOptions:
    """Test validation of whole option sets."""

    def test_connect_options(self):
        options = parse_connect_options({
            "region": "us-east-1",
            "cluster": "my-cluster",
            "task": "simple-task-id",
            "rds": "orders-db",
            "rds_port": "5432",
            "local_port": "9000",
            "dry_run": True,
        })
        assert options.region == "us-east-1"
        assert options.rds_port == 5432
        assert options.local_port == 9000
        assert options.dry_run is True

    def test_missing_options_are_none(self):
        options = parse_connect_options({"region": "us-east-1", "rds": ""})
        assert options.cluster is None
        assert options.rds is None
        assert options.dry_run is False

    def test_local_port_out_of_range(self):
        with pytest.raises(ValidationError, match="out of range") as exc:
            parse_connect_options({"local_port": "70000"})
        assert exc.value.field == "local_port"

    def test_all_issues_reported(self):
        with pytest.raises(ValidationError) as exc:
            parse_connect_options({"region": "US East", "cluster": "ok-cluster", "local_port": "x"})
        fields = [field for field, _ in exc.value.issues]
        assert fields == ["region", "local_port"]

    def test_exec_options(self):
        options = parse_exec_options({"cluster": "prod", "container": "web_app", "command": "/bin/sh"})
        assert options.container == "web_app"
        assert options.command == "/bin/sh"
        assert options.task is None


class TestPortHelpers:
    """Test engine defaults and free port search."""

    def test_default_port_for_engine(self):
        assert default_port_for_engine("mysql") == 3306
        assert default_port_for_engine("aurora-mysql") == 3306
        assert default_port_for_engine("aurora-postgresql") == 5432
        assert default_port_for_engine("oracle-ee") == 1521
        assert default_port_for_engine("sqlserver-se") == 1433
        assert default_port_for_engine("") == 5432

    @patch("ecspf.validation.is_port_available")
    def test_find_available_port_skips_taken(self, mock_available):
        mock_available.side_effect = [False, False, True]
        assert find_available_port(8888) == 8890

    @patch("ecspf.validation.is_port_available", return_value=False)
    def test_find_available_port_exhausted(self, mock_available):
        with pytest.raises(NotFoundError):
            find_available_port(65530)
