"""Typed failures raised by the ingestion pipeline.

Every error carries a human-readable message suitable for a user-facing
notification.
"""

from __future__ import annotations


class AuditPackError(Exception):
    pass


class ConfigurationMissing(AuditPackError):
    """No (or a rejected) credential for an external service."""


class TransportFailure(AuditPackError):
    """Network or remote service unreachable / answered with an error."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class ExtractionError(AuditPackError):
    pass


class ExtractionEmpty(ExtractionError):
    """The vision oracle returned no text."""


class ExtractionParseError(ExtractionError):
    """The vision oracle returned text that is not a JSON object."""


class PersistenceConflict(AuditPackError):
    """A conditional list update lost against a concurrent writer."""


class ValidationFailure(AuditPackError):
    """Required list/user context is absent or invalid."""


class AuthenticationFailed(ValidationFailure):
    pass


class IngestionInProgress(ValidationFailure):
    """Another ingestion is already running against the same list."""
