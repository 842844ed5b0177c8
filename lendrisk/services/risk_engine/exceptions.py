"""Risk engine error taxonomy.

None of these are retried.  Each error names the field and constraint that
failed.
"""

from __future__ import annotations


class RiskEngineError(Exception):
    """Base exception for risk engine errors."""


class ConfigurationError(RiskEngineError):
    """A risk configuration violates a structural constraint."""

    def __init__(self, message: str, *, field: str | None = None, constraint: str | None = None):
        super().__init__(message)
        self.field = field
        self.constraint = constraint


class ConfigurationLockedError(ConfigurationError):
    """Attempted to edit, delete or re-activate an active configuration."""


class IncompleteInputError(RiskEngineError):
    """A required applicant field is missing or unusable for a factor."""

    def __init__(self, factor: str, field: str, reason: str = "is required"):
        super().__init__(f"{factor}: '{field}' {reason}")
        self.factor = factor
        self.field = field
        self.reason = reason


class MissingConfigurationError(RiskEngineError, LookupError):
    """No active configuration exists, or the requested version is unusable."""

    def __init__(self, version: str | None = None, reason: str = "not found"):
        if version is None:
            message = "No active risk configuration found"
        else:
            message = f"Risk configuration version '{version}' {reason}"
        super().__init__(message)
        self.version = version
        self.reason = reason
