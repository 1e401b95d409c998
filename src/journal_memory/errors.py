"""
Error taxonomy for memory consolidation.

Each class maps to one way a single candidate can fail. None of them is
allowed to abort a consolidation run; the service converts them into
per-candidate outcomes and audit entries.
"""


class ConsolidationError(Exception):
    """Base class for consolidation failures."""


class CollaboratorUnavailable(ConsolidationError):
    """An embedding, extraction or decision collaborator failed or timed out."""

    def __init__(self, collaborator: str, message: str = "unavailable"):
        super().__init__(f"{collaborator}: {message}")
        self.collaborator = collaborator


class MalformedCandidate(ConsolidationError, ValueError):
    """Extraction produced an incomplete or garbled candidate fact."""


class InvalidDecision(ConsolidationError, ValueError):
    """The decision collaborator returned a decision that cannot be executed."""


class WriteConflict(ConsolidationError):
    """A conditional write found a different version than the one it read."""

    def __init__(self, record_id: str, expected_version: int, actual_version: int | None):
        super().__init__(
            f"Version conflict on {record_id}: expected {expected_version}, found {actual_version}"
        )
        self.record_id = record_id
        self.expected_version = expected_version
        self.actual_version = actual_version


class StoreFailure(ConsolidationError):
    """The memory store or audit log failed to complete a write."""


class RecordNotFound(StoreFailure):
    """A record referenced by id does not exist."""

    def __init__(self, record_id: str):
        super().__init__(f"Memory record not found: {record_id}")
        self.record_id = record_id
