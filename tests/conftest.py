"""
Shared fixtures for ecs-pf tests.
"""

import pytest

from ecspf.config import Settings

from factories import make_cluster, make_database


@pytest.fixture
def database():
    return make_database()


@pytest.fixture
def cluster():
    return make_cluster("prod-orders")


@pytest.fixture
def settings(tmp_path):
    return Settings(
        version="0.1.0",
        cache_dir=tmp_path,
        default_local_port=8888,
        exec_command="/bin/bash",
        default_region="us-east-1",
    )
