"""
Tests for settings and logging setup.
"""

import logging
from pathlib import Path

from ecspf import __version__
from ecspf.config import DEFAULT_LOCAL_PORT, get_cache_dir, load_settings
from ecspf.log import setup_logging


class TestSettings:
    """Test environment-driven settings."""

    def test_defaults(self, monkeypatch):
        for name in ["ECSPF_CACHE_DIR", "ECSPF_DEFAULT_LOCAL_PORT", "ECSPF_EXEC_COMMAND", "AWS_REGION", "AWS_DEFAULT_REGION"]:
            monkeypatch.delenv(name, raising=False)
        settings = load_settings()

        assert settings.version == __version__
        assert settings.cache_dir == Path("temp").resolve()
        assert settings.default_local_port == DEFAULT_LOCAL_PORT
        assert settings.exec_command == "/bin/bash"
        assert settings.default_region is None

    def test_overrides(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ECSPF_CACHE_DIR", str(tmp_path))
        monkeypatch.setenv("ECSPF_DEFAULT_LOCAL_PORT", "15432")
        monkeypatch.setenv("ECSPF_EXEC_COMMAND", "/bin/sh")
        monkeypatch.delenv("AWS_REGION", raising=False)
        monkeypatch.setenv("AWS_DEFAULT_REGION", "eu-west-1")
        settings = load_settings()

        assert settings.cache_dir == tmp_path.resolve()
        assert settings.default_local_port == 15432
        assert settings.exec_command == "/bin/sh"
        assert settings.default_region == "eu-west-1"

    def test_bad_port_falls_back(self, monkeypatch):
        monkeypatch.setenv("ECSPF_DEFAULT_LOCAL_PORT", "http")
        assert load_settings().default_local_port == DEFAULT_LOCAL_PORT

    def test_cache_dir(self, monkeypatch, tmp_path):
        monkeypatch.setenv("ECSPF_CACHE_DIR", str(tmp_path))
        assert get_cache_dir() == tmp_path.resolve()


class TestLogging:
    """Test logging setup."""

    def test_boto_loggers_stay_quiet(self):
        setup_logging(verbose=True)
        assert logging.getLogger("botocore").level == logging.WARNING
        assert logging.getLogger("boto3").level == logging.WARNING
