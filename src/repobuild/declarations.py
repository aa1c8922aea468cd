"""Parsed target declarations and typed field accessors."""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any

from repobuild.errors import ConfigError
from repobuild.targets import TargetInfo


@dataclass(frozen=True, slots=True)
class BuildDeclaration:
    """One declared target as produced by the BUILD file parser."""

    kind: str
    target: TargetInfo
    fields: Mapping[str, Any] = field(default_factory=dict)

    def required_str(self, name: str) -> str:
        if name not in self.fields:
            raise ConfigError(
                f"Missing required field `{name}`.",
                context=self._context(name),
            )
        return self._as_str(name, self.fields[name])

    def optional_str(self, name: str) -> str | None:
        value = self.fields.get(name)
        if value is None:
            return None
        return self._as_str(name, value)

    def string_list(self, name: str) -> tuple[str, ...]:
        value = self.fields.get(name)
        if value is None:
            return ()
        if isinstance(value, str) or not isinstance(value, list):
            raise ConfigError(
                f"Field `{name}` must be a list of strings.",
                context=self._context(name),
            )
        return tuple(self._as_str(name, item) for item in value)

    def mapping(self, name: str) -> Mapping[str, Any]:
        value = self.fields.get(name)
        if value is None:
            return {}
        if not isinstance(value, dict):
            raise ConfigError(
                f"Field `{name}` must be an object.",
                context=self._context(name),
            )
        return value

    def dependencies(self) -> tuple[TargetInfo, ...]:
        deps: list[TargetInfo] = []
        for raw in self.string_list("dependencies"):
            try:
                dep = TargetInfo.parse(raw, self.target.directory)
            except ConfigError as exc:
                raise ConfigError(
                    str(exc.args[0]),
                    hint=exc.hint,
                    context={**self._context("dependencies"), "reference": raw},
                ) from exc
            if dep not in deps:
                deps.append(dep)
        return tuple(deps)

    def reject_unknown(self, allowed: Iterable[str]) -> None:
        allowed_set = {"name", "dependencies", *allowed}
        for name in sorted(self.fields):
            if name not in allowed_set:
                raise ConfigError(
                    f"Unknown field `{name}` for {self.kind}.",
                    hint=f"Valid fields: {', '.join(sorted(allowed_set))}.",
                    context=self._context(name),
                )

    def _as_str(self, name: str, value: Any) -> str:
        if not isinstance(value, str):
            raise ConfigError(
                f"Field `{name}` must be a string.",
                context=self._context(name),
            )
        return value

    def _context(self, name: str) -> dict[str, str]:
        return {"target": str(self.target), "kind": self.kind, "field": name}
