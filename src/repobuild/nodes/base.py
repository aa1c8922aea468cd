"""Build-node contract shared by every target kind."""

from __future__ import annotations

from collections.abc import Sequence
from typing import ClassVar, Literal

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError, UnresolvedDependencyError
from repobuild.makefile import InstallRule, RuleSet
from repobuild.resources import ResourceSet
from repobuild.targets import TargetInfo

Language = Literal["c", "cpp"]
LANGUAGES: tuple[Language, ...] = ("c", "cpp")


class Node:
    """A declared target.

    Lifecycle: constructed by the registry, configured by exactly one
    ``parse`` call, then queried any number of times. Nodes reference each
    other only through ``TargetInfo`` keys; the graph owns the instances.
    """

    kind: ClassVar[str] = "node"
    allowed_fields: ClassVar[tuple[str, ...]] = ()

    def __init__(self, target: TargetInfo, config: BuildConfig) -> None:
        self.target = target
        self.config = config
        self.dependencies: tuple[TargetInfo, ...] = ()
        self._parsed = False

    def parse(self, declaration: BuildDeclaration) -> None:
        if self._parsed:
            raise ConfigError(
                "Node was already parsed.",
                context={"target": str(self.target), "kind": self.kind},
            )
        if declaration.target != self.target:
            raise ConfigError(
                "Declaration does not belong to this node.",
                context={"target": str(self.target), "declaration": str(declaration.target)},
            )
        self._parsed = True
        declaration.reject_unknown(self.allowed_fields)
        if declaration.required_str("name") != self.target.name:
            raise ConfigError(
                "Declared name does not match the target.",
                context={"target": str(self.target), "kind": self.kind, "field": "name"},
            )
        self.dependencies = declaration.dependencies()

    @property
    def parsed(self) -> bool:
        return self._parsed

    def object_files(self, language: Language) -> ResourceSet:
        """Compiled objects a dependent may link directly. Pure query."""
        return ResourceSet()

    def primary_outputs(self) -> tuple[str, ...]:
        """Paths the user-facing target builds."""
        return ()

    def write_makefile(self, all_deps: Sequence[Node], out: RuleSet) -> None:
        self.write_base_user_target(out)

    def write_make_install(self, install: InstallRule) -> None:
        """Contribute install actions; nothing to install by default."""

    def direct_dependencies(self, all_deps: Sequence[Node]) -> list[Node]:
        """Resolve declared dependency keys against the resolved node list."""
        by_target = {node.target: node for node in all_deps}
        resolved: list[Node] = []
        for dep in self.dependencies:
            node = by_target.get(dep)
            if node is None:
                raise UnresolvedDependencyError(
                    "Dependency does not resolve to a declared target.",
                    context={"target": str(self.target), "dependency": str(dep)},
                )
            resolved.append(node)
        return resolved

    def write_base_user_target(self, out: RuleSet) -> None:
        prerequisites = [*self.primary_outputs()]
        prerequisites.extend(dep.make_name for dep in self.dependencies)
        out.add_rule(self.target.make_name, prerequisites, phony=True)

    @classmethod
    def write_make_head(cls, config: BuildConfig, out: RuleSet) -> None:
        """Per-kind Makefile head variables; called once per kind present."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.target})"


class GenericNode(Node):
    """Dependency-only node: a named group of other targets."""

    kind = "generic"
