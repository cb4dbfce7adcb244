"""
Error taxonomy for the progress engine.

- ValidationError: the candidate answer is empty or malformed. Raised before
  scoring, nothing is written.
- PersistenceError: a store read/write failed. Non-fatal at the practice
  boundary: the verdict is still returned, durable state may lag.
- NotFoundError: an unknown lesson, item or badge id. Aborts only the
  operation that asked for it.
- LimitReachedError: plan enforcement is on and the quota is used up.
"""

from __future__ import annotations


class FluencyError(Exception):
    """Base class for engine errors."""


class ValidationError(FluencyError):
    """Candidate answer rejected before scoring."""


class NotFoundError(FluencyError):
    """Referenced lesson, item or badge does not exist."""

    def __init__(self, kind: str, identifier: str):
        self.kind = kind
        self.identifier = identifier
        super().__init__(f"Unknown {kind}: {identifier}")


class PersistenceError(FluencyError):
    """Store operation failed; in-memory results are still valid."""

    def __init__(self, operation: str, cause: Exception | None = None):
        self.operation = operation
        self.cause = cause
        message = f"Persistence failure during {operation}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)


class LimitReachedError(FluencyError):
    """The learner's plan does not allow more of a feature today."""

    def __init__(self, feature: str, tier: str):
        self.feature = feature
        self.tier = tier
        super().__init__(f"{tier} plan limit reached for {feature}")
