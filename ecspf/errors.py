"""
Error types shared across ecs-pf.
"""

from typing import Optional


class EcsPfError(Exception):
    """Base class for all ecs-pf errors."""


class ValidationError(EcsPfError):
    """A raw value failed validation before any AWS call."""

    def __init__(self, field: str, reason: str, issues: Optional[list] = None):
        self.field = field
        self.reason = reason
        # (field, reason) pairs when several options failed at once
        self.issues = issues or [(field, reason)]
        super().__init__(f"{field}: {reason}")


class FormatError(EcsPfError):
    """A synthesized identifier does not have its expected shape."""


class NotFoundError(EcsPfError):
    """A collaborator returned nothing to choose from."""

    def __init__(self, message: str, suggestion: Optional[str] = None):
        self.suggestion = suggestion
        super().__init__(message)


class ExternalError(EcsPfError):
    """An AWS or subprocess call failed."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        self.cause = cause
        super().__init__(message)
