"""Target identity keys."""

from __future__ import annotations

from dataclasses import dataclass

from repobuild.errors import ConfigError


@dataclass(frozen=True, slots=True, order=True)
class TargetInfo:
    """Immutable ``(directory, name)`` identity of a declared target."""

    directory: str
    name: str

    @classmethod
    def parse(cls, raw: str, current_dir: str = "") -> TargetInfo:
        """Parse ``//dir:name``, ``dir:name`` or ``:name`` relative to *current_dir*."""
        text = raw.strip()
        if text.startswith("//"):
            text = text[2:]
        elif text.startswith(":"):
            text = f"{current_dir}{text}"
        directory, sep, name = text.rpartition(":")
        if not sep:
            raise ConfigError(
                "Target reference is missing a ':name' component.",
                hint="Write targets as //dir:name or :name.",
                context={"reference": raw},
            )
        return cls.create(directory, name, reference=raw)

    @classmethod
    def create(cls, directory: str, name: str, *, reference: str | None = None) -> TargetInfo:
        directory = directory.strip("/")
        context = {"reference": reference or f"//{directory}:{name}"}
        if not name or "/" in name or ":" in name or any(ch.isspace() for ch in name):
            raise ConfigError("Invalid target name.", context=context)
        segments = directory.split("/") if directory else []
        if any(segment in ("", ".", "..") for segment in segments) or ":" in directory:
            raise ConfigError("Invalid target directory.", context=context)
        return cls(directory=directory, name=name)

    @property
    def make_name(self) -> str:
        """Phony user-facing Makefile target for this node."""
        if not self.directory:
            return self.name
        return f"{self.directory}/{self.name}"

    def __str__(self) -> str:
        return f"//{self.directory}:{self.name}"
