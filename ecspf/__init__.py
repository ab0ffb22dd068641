"""
ecs-pf - Port-forward to RDS and exec into ECS tasks through SSM.

This package provides a CLI that finds the ECS task most likely to reach a
chosen RDS instance and opens an SSM port-forwarding session through it.
"""

__version__ = "0.1.0"
__author__ = "ecs-pf contributors"
