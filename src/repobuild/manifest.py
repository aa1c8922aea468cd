"""Build manifest model and export helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

import cbor2


@dataclass(frozen=True, slots=True)
class BuildManifest:
    """Rule targets owned by each node plus the files ``make install`` writes."""

    targets: dict[str, list[str]] = field(default_factory=dict)
    install_files: list[str] = field(default_factory=list)
    makefile_sha256: str = ""
    install_sha256: str = ""
    schema_version: int = 1

    def to_json(self, path: str | Path | None = None) -> str:
        payload = self._payload()
        encoded = json.dumps(payload, indent=2, sort_keys=True) + "\n"
        if path is not None:
            Path(path).write_text(encoded, encoding="utf-8")
        return encoded

    def to_cbor(self, path: str | Path | None = None) -> bytes:
        payload = self._payload()
        encoded = cbor2.dumps(payload, canonical=True)
        if path is not None:
            Path(path).write_bytes(encoded)
        return encoded

    def owner_of(self, rule_target: str) -> str | None:
        for target, rule_targets in self.targets.items():
            if rule_target in rule_targets:
                return target
        return None

    def _payload(self) -> dict[str, object]:
        return {
            "schema_version": self.schema_version,
            "targets": {key: list(value) for key, value in sorted(self.targets.items())},
            "install_files": list(self.install_files),
            "makefile_sha256": self.makefile_sha256,
            "install_sha256": self.install_sha256,
        }
