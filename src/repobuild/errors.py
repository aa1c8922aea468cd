"""Typed compiler error model with stable, machine-readable error codes."""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from enum import StrEnum


class ErrorCode(StrEnum):
    """Stable error identifiers used across API surfaces."""

    CONFIG = "E_CONFIG"
    UNRESOLVED_DEPENDENCY = "E_UNRESOLVED"
    CYCLE = "E_CYCLE"
    EMISSION_CONFLICT = "E_EMISSION_CONFLICT"


class RepobuildError(Exception):
    """Base error class that carries code, optional hint, and context."""

    code: str
    hint: str | None
    context: Mapping[str, str]

    def __init__(
        self,
        message: str,
        *,
        code: ErrorCode,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message)
        self.code = code.value
        self.hint = hint
        self.context = dict(context or {})

    def __str__(self) -> str:
        parts = [super().__str__()]
        if self.hint:
            parts.append(f"Hint: {self.hint}")
        if self.context:
            for k, v in self.context.items():
                if v:
                    parts.append(f"  {k}: {v}")
        return "\n".join(parts)

    def to_dict(self) -> dict[str, object]:
        payload: dict[str, object] = {
            "code": self.code,
            "message": str(self),
            "context": dict(self.context),
        }
        if self.hint is not None:
            payload["hint"] = self.hint
        return payload


class ConfigError(RepobuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.CONFIG, hint=hint, context=context)


class UnresolvedDependencyError(RepobuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(
            message,
            code=ErrorCode.UNRESOLVED_DEPENDENCY,
            hint=hint,
            context=context,
        )


class CycleError(RepobuildError):
    """Dependency cycle; ``members`` lists the cycle in traversal order."""

    members: tuple[str, ...]

    def __init__(
        self,
        message: str,
        *,
        members: Sequence[str],
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        merged = {"cycle": " -> ".join(members)}
        merged.update(context or {})
        super().__init__(message, code=ErrorCode.CYCLE, hint=hint, context=merged)
        self.members = tuple(members)


class EmissionConflictError(RepobuildError):
    def __init__(
        self,
        message: str,
        *,
        hint: str | None = None,
        context: Mapping[str, str] | None = None,
    ) -> None:
        super().__init__(message, code=ErrorCode.EMISSION_CONFLICT, hint=hint, context=context)


__all__ = [
    "ConfigError",
    "CycleError",
    "EmissionConflictError",
    "ErrorCode",
    "RepobuildError",
    "UnresolvedDependencyError",
]
