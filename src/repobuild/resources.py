"""Logical build outputs and their deterministic on-disk paths.

Every path the compiler writes into a Makefile is derived here from a
``TargetInfo`` and a role tag, so the same output referenced from several
nodes always renders to the same string.
"""

from __future__ import annotations

import posixpath
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Literal

from repobuild.config import BuildConfig
from repobuild.targets import TargetInfo

Role = Literal[
    "source",
    "object",
    "archive",
    "shared_object",
    "versioned_shared_object",
    "stamp",
]


@dataclass(frozen=True, slots=True, order=True)
class Resource:
    """A build file: ``logical`` is relative to the ``root`` output tree."""

    root: str
    logical: str

    @property
    def path(self) -> str:
        if not self.root:
            return self.logical
        return f"{self.root}/{self.logical}"

    @property
    def dirname(self) -> str:
        return posixpath.dirname(self.path)

    @property
    def logical_dir(self) -> str:
        return posixpath.dirname(self.logical)

    @property
    def basename(self) -> str:
        return posixpath.basename(self.logical)

    def sibling(self, basename: str) -> Resource:
        """Resource in the same directory with a different file name."""
        return Resource(self.root, posixpath.join(self.logical_dir, basename))

    def __str__(self) -> str:
        return self.path


@dataclass(slots=True)
class ResourceSet:
    """Insertion-ordered, deduplicated collection of resources."""

    _items: dict[Resource, None] = field(default_factory=dict)

    @classmethod
    def of(cls, resources: Iterable[Resource]) -> ResourceSet:
        result = cls()
        result.update(resources)
        return result

    def add(self, resource: Resource) -> None:
        self._items.setdefault(resource, None)

    def update(self, resources: Iterable[Resource]) -> None:
        for resource in resources:
            self.add(resource)

    def paths(self) -> tuple[str, ...]:
        return tuple(resource.path for resource in self._items)

    def __iter__(self) -> Iterator[Resource]:
        return iter(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def __contains__(self, resource: object) -> bool:
        return resource in self._items


def source_resource(target: TargetInfo, relpath: str) -> Resource:
    return Resource("", posixpath.normpath(posixpath.join(target.directory, relpath)))


def package_relpath(target: TargetInfo, resource: Resource) -> str | None:
    """Path of a source *resource* below the target directory, or None outside it."""
    logical = resource.logical
    if posixpath.isabs(logical) or logical == ".." or logical.startswith("../"):
        return None
    if not target.directory:
        return logical
    if logical.startswith(target.directory + "/"):
        return logical[len(target.directory) + 1 :]
    return None


def resource_path(
    config: BuildConfig,
    target: TargetInfo,
    role: Role,
    *,
    source: str | None = None,
    suffix: str = "",
) -> Resource:
    """Map ``(target, role)`` to its canonical resource.

    ``source`` names the input file for object resources; ``suffix`` carries
    the version suffix for shared objects and the tool name for stamps.
    """
    directory = target.directory
    if role == "source":
        if source is None:
            raise ValueError("source role requires a source path")
        return source_resource(target, source)
    if role == "object":
        if source is None:
            raise ValueError("object role requires a source path")
        relative = package_relpath(target, source_resource(target, source))
        if relative is None:
            raise ValueError(f"source {source!r} lies outside {target}")
        stem, _ = posixpath.splitext(relative)
        return Resource(config.object_dir, _join(directory, f"{target.name}.objs", f"{stem}.o"))
    if role == "archive":
        return Resource(config.object_dir, _join(directory, f"lib{target.name}.a"))
    if role in ("shared_object", "versioned_shared_object"):
        name = f"lib{target.name}.so{suffix}"
        return Resource(config.output_dir, _join(directory, name))
    if role == "stamp":
        tool = suffix or "tool"
        return Resource(config.object_dir, _join(directory, f"{target.name}.{tool}.stamp"))
    raise ValueError(f"unknown resource role: {role}")


def _join(*parts: str) -> str:
    return posixpath.join(*(part for part in parts if part))
