"""Structured logging and observability helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

LEVELS = ("debug", "info", "warning", "error")


@dataclass(slots=True)
class StructuredLogger:
    """Compilation log; each record names the operation and the target it concerns.

    Parse and resolve steps are logged at ``info``; per-node fragments and
    duplicate-rule skips at ``debug``.
    """

    records: list[dict[str, Any]] = field(default_factory=list)

    def log(
        self,
        *,
        operation: str,
        target: str | None,
        kind: str | None,
        message: str,
        level: str = "info",
        extra: dict[str, Any] | None = None,
    ) -> None:
        if level not in LEVELS:
            raise ValueError(f"unknown log level: {level}")
        record: dict[str, Any] = {
            "level": level,
            "operation": operation,
            "target": target,
            "kind": kind,
            "message": message,
        }
        if extra is not None:
            record["extra"] = extra
        self.records.append(record)

    def records_for_target(self, target: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("target") == target]

    def records_for_operation(self, operation: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("operation") == operation]

    def records_for_kind(self, kind: str) -> list[dict[str, Any]]:
        return [record for record in self.records if record.get("kind") == kind]

    def records_at_least(self, level: str) -> list[dict[str, Any]]:
        threshold = LEVELS.index(level)
        return [record for record in self.records if LEVELS.index(record["level"]) >= threshold]

    def to_json_lines(self, path: str | Path, *, min_level: str = "debug") -> Path:
        output_path = Path(path)
        output_path.parent.mkdir(parents=True, exist_ok=True)
        lines = [json.dumps(record, sort_keys=True) for record in self.records_at_least(min_level)]
        output_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
        return output_path
