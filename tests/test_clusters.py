"""
Tests for cluster inference from database names.
"""

from ecspf.inference import infer_clusters_from_database
from ecspf.inference.clusters import score_cluster

from factories import make_cluster


class TestScoreCluster:
    """Test cluster name similarity."""

    def test_exact_name_scores_highest(self):
        assert score_cluster("orders", "orders") > score_cluster("orders", "orders-prod")

    def test_unrelated_cluster(self):
        assert score_cluster("prod-orders-db", "dev-payments") == 0

    def test_environment_and_segment(self):
        # segment 'prod' (30), word 'prod' (15), environment 'prod' (25)
        assert score_cluster("prod-orders-db", "prod-api") == 70


class TestInferClusters:
    """Test cluster ordering."""

    def test_ordering_and_dropping(self):
        clusters = [make_cluster(n) for n in ["dev-payments", "prod-api", "prod-orders"]]
        result = infer_clusters_from_database("prod-orders-db", clusters)
        assert [c.name for c in result] == ["prod-orders", "prod-api"]

    def test_ties_keep_listing_order(self):
        clusters = [make_cluster(n) for n in ["prod-web", "prod-api"]]
        result = infer_clusters_from_database("prod-orders-db", clusters)
        assert [c.name for c in result] == ["prod-web", "prod-api"]

    def test_no_clusters(self):
        assert infer_clusters_from_database("prod-orders-db", []) == []
