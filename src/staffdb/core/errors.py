#!/usr/bin/env python3
"""
Error taxonomy for the staff store.

Every failure raised by the store layer derives from StoreError so callers
can catch the whole family, while each subclass tells apart a missing
entity, a malformed stored value and a transport failure.
"""


class StoreError(Exception):
    """Base class for all store layer failures."""
    pass


class ValidationError(StoreError):
    """
    A key value is unsafe to embed in query text.

    Raised before any query is issued.
    """

    def __init__(self, message: str, value: str | None = None):
        super().__init__(message)
        self.value = value


class NotFoundError(StoreError):
    """A mandatory field query returned empty: the entity does not exist."""

    def __init__(self, entity: str, code: str, message: str | None = None):
        super().__init__(message or f"{entity} '{code}' does not exist")
        self.entity = entity
        self.code = code


class AlreadyExistsError(StoreError):
    """An insert targeted a key that already resolves in the store."""

    def __init__(self, entity: str, code: str):
        super().__init__(f"{entity} '{code}' already exists")
        self.entity = entity
        self.code = code


class ReferentialViolationError(StoreError):
    """A referenced foreign key does not resolve to an existing entity."""

    def __init__(self, entity: str, code: str, message: str | None = None):
        super().__init__(message or f"Referenced {entity} '{code}' does not exist")
        self.entity = entity
        self.code = code


class CodecError(StoreError):
    """
    A stored value could not be decoded into its semantic type.

    Used for:
    - Non-numeric salary or commission
    - Malformed XML fragments
    """

    def __init__(self, message: str, field: str | None = None, raw: str | None = None):
        super().__init__(message)
        self.field = field
        self.raw = raw


class TransportError(StoreError):
    """
    Connection or query execution failure unrelated to data content.

    Used for:
    - Server unreachable / socket errors
    - Authentication failures
    - Server-side XQuery errors
    """

    def __init__(self, message: str, query: str | None = None):
        super().__init__(message)
        self.query = query


class PartialFailureError(StoreError):
    """
    A multi-step operation failed after at least one mutation was applied.

    The store is left in the state produced by ``completed_steps``; nothing is
    rolled back. ``cause`` holds the typed error of the failing step.
    """

    def __init__(self, operation: str, step: str, completed_steps: list[str], cause: StoreError):
        completed = ", ".join(completed_steps) or "none"
        super().__init__(
            f"{operation} failed at step '{step}' after completing [{completed}]: {cause}"
        )
        self.operation = operation
        self.step = step
        self.completed_steps = list(completed_steps)
        self.cause = cause
