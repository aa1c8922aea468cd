"""Dependency graph over parsed nodes."""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass, field

from repobuild.errors import ConfigError, CycleError, UnresolvedDependencyError
from repobuild.nodes import Node
from repobuild.targets import TargetInfo


@dataclass(slots=True)
class DependencyGraph:
    """Owns every node of one compilation, keyed by ``TargetInfo``."""

    nodes: dict[TargetInfo, Node] = field(default_factory=dict)

    def add(self, node: Node) -> None:
        if node.target in self.nodes:
            raise ConfigError(
                "Target is declared more than once.",
                context={"target": str(node.target), "kind": node.kind},
            )
        if not node.parsed:
            raise ConfigError(
                "Node must be parsed before it joins the graph.",
                context={"target": str(node.target), "kind": node.kind},
            )
        self.nodes[node.target] = node

    def get(self, target: TargetInfo, *, referrer: TargetInfo | None = None) -> Node:
        node = self.nodes.get(target)
        if node is None:
            context = {"target": str(referrer or target), "dependency": str(target)}
            raise UnresolvedDependencyError(
                "Dependency does not resolve to a declared target.",
                hint="Declare the target in its BUILD file or fix the reference.",
                context=context,
            )
        return node

    def resolve(self, requested: Iterable[TargetInfo]) -> list[Node]:
        """Return every reachable node, dependencies before dependents.

        Depth-first post-order: requested targets in the given order,
        dependencies in declared order. Deterministic for a given input.
        """
        order: list[Node] = []
        done: set[TargetInfo] = set()
        for target in requested:
            self._visit(target, None, [], done, order)
        return order

    def transitive_dependencies(self, target: TargetInfo) -> list[Node]:
        """Resolved dependencies of *target* in dependency order, excluding itself."""
        return self.resolve(self.get(target).dependencies)

    def _visit(
        self,
        target: TargetInfo,
        referrer: TargetInfo | None,
        stack: list[TargetInfo],
        done: set[TargetInfo],
        order: list[Node],
    ) -> None:
        if target in done:
            return
        if target in stack:
            members = [str(item) for item in stack[stack.index(target) :]]
            members.append(str(target))
            raise CycleError(
                "Dependency cycle detected.",
                members=members,
                hint="Remove one of the dependency edges listed in the cycle.",
                context={"target": str(target)},
            )
        node = self.get(target, referrer=referrer)
        stack.append(target)
        for dep in node.dependencies:
            self._visit(dep, target, stack, done, order)
        stack.pop()
        done.add(target)
        order.append(node)
