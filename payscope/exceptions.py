"""
Module: exceptions

Purpose: Domain-specific exception hierarchy for the narrative story engine.

All exceptions include context information and should be raised instead of returning None.
"""

from typing import Any


class PayscopeError(Exception):
    """Base exception for all payscope errors."""

    def __init__(self, message: str, *, context: dict[str, Any] | None = None) -> None:
        self.message = message
        self.context = context or {}
        super().__init__(self.message)

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(message={self.message!r}, context={self.context!r})"


class DataValidationError(PayscopeError):
    """Raised when a row or configuration fails schema validation."""

    def __init__(
        self,
        message: str,
        *,
        field: str | None = None,
        value: Any = None,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        if field is not None:
            ctx["field"] = field
        if value is not None:
            ctx["value"] = value
        super().__init__(message, context=ctx)
        self.field = field
        self.value = value


class ReferenceRecordNotFoundError(PayscopeError):
    """Raised when the named reference individual is absent from the filtered records."""

    def __init__(
        self,
        message: str,
        *,
        name: str,
        record_count: int,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["name"] = name
        ctx["record_count"] = record_count
        super().__init__(message, context=ctx)
        self.name = name
        self.record_count = record_count


class UnknownStepError(PayscopeError):
    """Raised when navigation targets a step name that does not exist."""

    def __init__(
        self,
        message: str,
        *,
        step: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["step"] = step
        super().__init__(message, context=ctx)
        self.step = step


class SceneClosedError(PayscopeError):
    """Raised when a torn-down scene is mutated."""


class PipelineError(PayscopeError):
    """Raised when story generation cannot proceed."""

    def __init__(
        self,
        message: str,
        *,
        stage: str,
        context: dict[str, Any] | None = None,
    ) -> None:
        ctx = context or {}
        ctx["stage"] = stage
        super().__init__(message, context=ctx)
        self.stage = stage
