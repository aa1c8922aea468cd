"""JSON BUILD file reader.

A BUILD file holds a list of single-key objects, the key naming the target
kind and the value holding its fields::

    [
      {"cc_library": {"name": "util", "sources": ["util.cc"]}},
      {"cc_shared_library": {"name": "core", "version": "2.1.0",
                             "dependencies": [":util"]}}
    ]
"""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterable
from pathlib import Path
from typing import Any

from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError, UnresolvedDependencyError
from repobuild.targets import TargetInfo

BUILD_FILENAME = "BUILD"


def parse_build_file(
    raw: str,
    directory: str = "",
    *,
    source: str | None = None,
) -> list[BuildDeclaration]:
    label = source or f"{directory or '.'}/{BUILD_FILENAME}"
    try:
        payload = json.loads(raw)
    except json.JSONDecodeError as exc:
        raise ConfigError(
            "Invalid BUILD file JSON.",
            hint=str(exc),
            context={"path": label},
        ) from exc

    if not isinstance(payload, list):
        raise ConfigError("BUILD file must contain a list of targets.", context={"path": label})
    return [_parse_entry(entry, directory, label) for entry in payload]


def read_build_file(root: str | Path, directory: str) -> list[BuildDeclaration]:
    path = Path(root) / directory / BUILD_FILENAME
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise UnresolvedDependencyError(
            "BUILD file does not exist.",
            hint="Create the BUILD file or fix the target reference.",
            context={"path": str(path), "directory": directory or "."},
        ) from exc
    return parse_build_file(raw, directory, source=str(path))


def load_workspace(root: str | Path, requested: Iterable[TargetInfo]) -> list[BuildDeclaration]:
    """Read the BUILD files of *requested* targets and of everything they depend on."""
    pending: deque[str] = deque()
    loaded: set[str] = set()
    declarations: list[BuildDeclaration] = []

    def enqueue(directory: str) -> None:
        if directory not in loaded:
            loaded.add(directory)
            pending.append(directory)

    for target in requested:
        enqueue(target.directory)
    while pending:
        directory = pending.popleft()
        for declaration in read_build_file(root, directory):
            declarations.append(declaration)
            for dep in declaration.dependencies():
                enqueue(dep.directory)
    return declarations


def _parse_entry(entry: Any, directory: str, label: str) -> BuildDeclaration:
    if not isinstance(entry, dict) or len(entry) != 1:
        raise ConfigError(
            "Each BUILD entry must be an object with exactly one kind key.",
            context={"path": label},
        )
    kind, body = next(iter(entry.items()))
    if not isinstance(body, dict):
        raise ConfigError(
            "Target body must be an object.",
            context={"path": label, "kind": kind},
        )
    name = body.get("name")
    if not isinstance(name, str):
        raise ConfigError(
            "Missing required field `name`.",
            context={"path": label, "kind": kind, "field": "name"},
        )
    target = TargetInfo.create(directory, name)
    return BuildDeclaration(kind=kind, target=target, fields=dict(body))
