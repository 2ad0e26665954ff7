"""Structured error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers reported to callers."""

    NO_PROVIDER = "E_NO_PROVIDER"
    INVALID_PROJECT = "E_INVALID_PROJECT"
    NO_START_COMMAND = "E_NO_START_COMMAND"
    SYNTHESIS = "E_SYNTHESIS"
    SOURCE_TREE = "E_SOURCE_TREE"
    VALIDATION = "E_VALIDATION"
    BACKEND_EXECUTION = "E_BACKEND_EXECUTION"


class StackplanError(Exception):
    """Base error carrying a code, an optional hint, and string context."""

    code: str
    hint: str | None
    context: Mapping[str, object]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    @property
    def message(self) -> str:
        return str(self.args[0]) if self.args else ""

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        for k, v in self.context.items():
            if v:
                parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": self.message,
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class NoProviderDetectedError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.NO_PROVIDER, hint=hint, context=context)


class InvalidProjectStructureError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.INVALID_PROJECT, hint=hint, context=context)


class NoStartCommandError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.NO_START_COMMAND, hint=hint, context=context)


class SynthesisError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SYNTHESIS, hint=hint, context=context)


class SourceTreeError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.SOURCE_TREE, hint=hint, context=context)


class ValidationError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.VALIDATION, hint=hint, context=context)


class BackendExecutionError(StackplanError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, object] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.BACKEND_EXECUTION, hint=hint, context=context)


__all__ = [
    "BackendExecutionError",
    "ErrorCode",
    "InvalidProjectStructureError",
    "NoProviderDetectedError",
    "NoStartCommandError",
    "SourceTreeError",
    "StackplanError",
    "SynthesisError",
    "ValidationError",
]
