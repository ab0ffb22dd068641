"""
Tests for end-to-end target inference.
"""

import pytest

from ecspf.errors import ExternalError, NotFoundError
from ecspf.inference import Confidence, MatchMethod, PerformanceTracker, infer_targets
from ecspf.inference.engine import STOPPED_SUFFIX, order_matches
from ecspf.inference.models import ScoredMatch

from factories import make_cluster, make_task


class FakeLister:
    """In-memory stand-in for AwsLister."""

    def __init__(self, tasks_by_cluster, failing=()):
        self.clusters = [make_cluster(name) for name in tasks_by_cluster]
        self.tasks_by_cluster = tasks_by_cluster
        self.failing = set(failing)
        self.listed = []

    def list_exec_clusters(self):
        return self.clusters

    def list_tasks(self, cluster):
        self.listed.append(cluster.name)
        if cluster.name in self.failing:
            raise ExternalError(f"Access denied to {cluster.name}")
        return self.tasks_by_cluster[cluster.name]


class TestInferTargets:
    """Test target inference across clusters."""

    def test_best_match_first(self, database):
        lister = FakeLister({
            "prod-orders": [
                make_task("abc123", cluster="prod-orders", service="billing"),
                make_task("def456", cluster="prod-orders", service="prod-orders-worker"),
            ],
            "dev-payments": [make_task("ghi789", cluster="dev-payments", service="payments")],
        })
        matches = infer_targets(lister, database)

        assert matches[0].task.task_id == "def456"
        assert matches[0].confidence == Confidence.HIGH
        # dev-payments has no similarity to the database name
        assert lister.listed == ["prod-orders"]

    def test_stopped_tasks_last(self, database):
        lister = FakeLister({
            "prod-orders": [
                make_task("abc123", cluster="prod-orders", service="prod-orders-worker", status="STOPPED"),
                make_task("def456", cluster="prod-orders", service="billing"),
            ],
        })
        matches = infer_targets(lister, database)

        stopped = [m for m in matches if m.task.task_id == "abc123"]
        assert stopped and all(m.score == 0 for m in stopped)
        assert all(m.reason.endswith(STOPPED_SUFFIX) for m in stopped)
        assert matches[0].task.task_id == "def456"
        assert matches[-len(stopped):] == stopped

    def test_fallback_clusters(self, database):
        """Fewer than two primary results pull in the next clusters by naming only."""
        lister = FakeLister({
            "prod-orders": [make_task("abc123", cluster="prod-orders", service="billing")],
            "prod-api": [],
            "prod-web": [make_task("def456", cluster="prod-web", service="prod-web-app")],
        })
        matches = infer_targets(lister, database)

        assert sorted(lister.listed) == ["prod-api", "prod-orders", "prod-web"]
        web = [m for m in matches if m.cluster.name == "prod-web"]
        assert [m.method for m in web] == [MatchMethod.NAMING]

    def test_failing_cluster_skipped(self, database):
        lister = FakeLister(
            {
                "prod-orders": [make_task("abc123", cluster="prod-orders", service="prod-orders-worker")],
                "prod-api": [make_task("def456", cluster="prod-api", service="api")],
            },
            failing=["prod-api"],
        )
        matches = infer_targets(lister, database)
        assert {m.cluster.name for m in matches} == {"prod-orders"}

    def test_unrelated_clusters_still_scanned(self, database):
        lister = FakeLister({"billing": [make_task("abc123", cluster="billing", service="orders-writer")]})
        matches = infer_targets(lister, database)
        assert matches and matches[0].cluster.name == "billing"

    def test_no_exec_clusters(self, database):
        with pytest.raises(NotFoundError):
            infer_targets(FakeLister({}), database)

    def test_tracker_records_steps(self, database):
        tracker = PerformanceTracker()
        lister = FakeLister({"prod-orders": [make_task("abc123", cluster="prod-orders")]})
        infer_targets(lister, database, tracker=tracker)

        steps = [m.step for m in tracker.metrics]
        assert steps[0] == "List exec-capable clusters"
        assert "Total" in tracker.report()


class TestOrderMatches:
    """Test result ordering."""

    def test_confidence_before_score(self):
        cluster = make_cluster("prod-orders")
        task = make_task("abc123")
        naming_high = ScoredMatch(cluster, task, MatchMethod.NAMING, 75, "a")
        env_medium = ScoredMatch(cluster, task, MatchMethod.ENVIRONMENT, 79, "b")
        naming_low = ScoredMatch(cluster, task, MatchMethod.NAMING, 25, "c")

        ordered = order_matches([naming_low, env_medium, naming_high])
        assert ordered == [naming_high, env_medium, naming_low]
