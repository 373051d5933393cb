"""
Error taxonomy for the matching core.

Every error raised across a public operation is one of these. Store
failures are wrapped in DependencyError with the original exception chained.
"""

from typing import List, Optional


class AutomatchError(Exception):
    """Base class for all matching-core errors."""
    pass


class ValidationError(AutomatchError):
    """Missing or malformed input at an operation boundary."""

    def __init__(self, message: str, errors: Optional[List[str]] = None):
        super().__init__(message)
        self.errors = errors or []


class NotFoundError(AutomatchError):
    """Referenced applicant, job request or auto-application does not exist."""
    pass


class ConflictError(AutomatchError):
    """Transition attempted on a proposal that was already processed."""
    pass


class DependencyError(AutomatchError):
    """The persistent store is unavailable or failed."""
    pass
