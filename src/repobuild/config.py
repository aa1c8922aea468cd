"""Compiler configuration."""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, fields, replace
from typing import Any

from repobuild.errors import ConfigError


@dataclass(frozen=True, slots=True)
class BuildConfig:
    object_dir: str = ".gen-obj"
    output_dir: str = ".gen-out"
    cc: str = "cc"
    cxx: str = "c++"
    ar: str = "ar"
    cflags: tuple[str, ...] = ("-O2",)
    cxxflags: tuple[str, ...] = ("-O2",)
    ldflags: tuple[str, ...] = ()
    prefix: str = "/usr/local"
    libdir: str = "lib"
    install_makefile: str = "install.mk"

    @classmethod
    def from_mapping(cls, values: Mapping[str, Any]) -> BuildConfig:
        known = {item.name: item for item in fields(cls)}
        kwargs: dict[str, Any] = {}
        for key, value in sorted(values.items()):
            if key not in known:
                raise ConfigError(
                    "Unknown configuration key.",
                    hint=f"Valid keys: {', '.join(sorted(known))}.",
                    context={"field": key},
                )
            default = known[key].default
            if isinstance(default, tuple):
                items = value if isinstance(value, list | tuple) else None
                if items is None or not all(isinstance(item, str) for item in items):
                    raise ConfigError(
                        "Configuration value must be a list of strings.",
                        context={"field": key},
                    )
                kwargs[key] = tuple(value)
            elif isinstance(value, str):
                kwargs[key] = value
            else:
                raise ConfigError("Configuration value must be a string.", context={"field": key})
        return cls(**kwargs)

    def with_overrides(self, **overrides: Any) -> BuildConfig:
        return replace(self, **overrides)

    def make_variables(self) -> tuple[tuple[str, str], ...]:
        """Makefile head variables, overridable from the make command line."""
        return (
            ("CC", self.cc),
            ("CXX", self.cxx),
            ("AR", self.ar),
            ("CFLAGS", " ".join(self.cflags)),
            ("CXXFLAGS", " ".join(self.cxxflags)),
            ("LDFLAGS", " ".join(self.ldflags)),
            ("PREFIX", self.prefix),
            ("LIBDIR", self.libdir),
            ("DESTDIR", ""),
        )
