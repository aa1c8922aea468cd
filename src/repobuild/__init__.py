"""Public package entrypoint for the BUILD-to-Makefile compiler."""

from .buildfile import load_workspace, parse_build_file
from .compiler import Compiler, MakefileEmission
from .config import BuildConfig
from .declarations import BuildDeclaration
from .errors import (
    ConfigError,
    CycleError,
    EmissionConflictError,
    ErrorCode,
    RepobuildError,
    UnresolvedDependencyError,
)
from .graph import DependencyGraph
from .manifest import BuildManifest
from .targets import TargetInfo

__all__ = [
    "BuildConfig",
    "BuildDeclaration",
    "BuildManifest",
    "Compiler",
    "ConfigError",
    "CycleError",
    "DependencyGraph",
    "EmissionConflictError",
    "ErrorCode",
    "MakefileEmission",
    "RepobuildError",
    "TargetInfo",
    "UnresolvedDependencyError",
    "load_workspace",
    "parse_build_file",
]
