"""Error taxonomy shared by every planning component."""

from typing import Any


class PlannerError(Exception):
    """Base exception for studentplanner errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}


class ValidationError(PlannerError):
    """Malformed constraints or items, rejected before any side effect."""


class InvalidQuantityError(ValidationError):
    """Raised when a quantity is negative or otherwise unusable."""


class NotFoundError(PlannerError):
    """A referenced recipe, store, plan or inventory item does not exist."""

    def __init__(self, kind: str, identifier: str):
        super().__init__(f"{kind} not found: {identifier}", {"kind": kind, "id": identifier})
        self.kind = kind
        self.identifier = identifier


class InsufficientDataError(PlannerError):
    """No feasible option exists for a slot or item.

    Never escapes the top-level operations: the planner and the optimizer
    convert it into a warning plus an empty slot / unallocated item.
    """


class StorageError(PlannerError):
    """Persistence is unavailable. Safe for the caller to retry."""

    retryable = True


class ExternalServiceError(PlannerError):
    """Routing or weather provider failure.

    Always caught inside the travel package and replaced by the static model.
    """

    def __init__(self, message: str, status_code: int | None = None, response: Any = None):
        super().__init__(message, {"status_code": status_code})
        self.status_code = status_code
        self.response = response
