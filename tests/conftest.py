"""Shared test fixtures."""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

import pytest

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.targets import TargetInfo

Declare = Callable[..., BuildDeclaration]


@pytest.fixture
def config() -> BuildConfig:
    return BuildConfig()


@pytest.fixture
def declare() -> Declare:
    """Build a declaration from ``kind``, a ``//dir:name`` reference and fields."""

    def _declare(kind: str, target: str, **fields: Any) -> BuildDeclaration:
        info = TargetInfo.parse(target)
        return BuildDeclaration(kind=kind, target=info, fields={"name": info.name, **fields})

    return _declare
