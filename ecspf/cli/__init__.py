"""Command line interface for ecs-pf."""

from .main import main

__all__ = ["main"]
