"""Declarations-to-Makefile compilation pipeline.

Phases, each completing before the next starts:

1. parse: every declaration becomes a parsed node in the graph;
2. resolve: reachable nodes are ordered, dependencies first;
3. fragment: each node writes its rules into its own ``RuleSet``;
4. reduce: ``MakefileWriter`` merges fragments into the final text.

Any error aborts the whole compilation; nothing is written to disk until a
complete ``MakefileEmission`` exists.
"""

from __future__ import annotations

import hashlib
from collections.abc import Iterable
from dataclasses import dataclass, field
from pathlib import Path

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError
from repobuild.graph import DependencyGraph
from repobuild.makefile import InstallRule, MakefileWriter, RuleSet
from repobuild.manifest import BuildManifest
from repobuild.nodes import Node, create_node
from repobuild.observability import StructuredLogger
from repobuild.targets import TargetInfo


@dataclass(frozen=True, slots=True)
class NodeFragment:
    node: Node
    rules: RuleSet
    install: InstallRule


@dataclass(frozen=True, slots=True)
class MakefileEmission:
    makefile: str
    install: str
    manifest: BuildManifest
    install_makefile: str = "install.mk"

    def write(self, out_dir: str | Path) -> Path:
        output_dir = Path(out_dir)
        output_dir.mkdir(parents=True, exist_ok=True)
        (output_dir / "Makefile").write_text(self.makefile, encoding="utf-8")
        (output_dir / self.install_makefile).write_text(self.install, encoding="utf-8")
        return output_dir / "Makefile"


@dataclass(slots=True)
class Compiler:
    config: BuildConfig = field(default_factory=BuildConfig)
    logger: StructuredLogger = field(default_factory=StructuredLogger)

    def compile(
        self,
        declarations: Iterable[BuildDeclaration],
        requested: Iterable[TargetInfo],
    ) -> MakefileEmission:
        graph = self.parse(declarations)
        return self.emit(graph, requested)

    def parse(self, declarations: Iterable[BuildDeclaration]) -> DependencyGraph:
        graph = DependencyGraph()
        for declaration in declarations:
            node = create_node(declaration, self.config)
            graph.add(node)
            self.logger.log(
                operation="parse",
                target=str(node.target),
                kind=node.kind,
                message="Parsed target declaration.",
            )
        return graph

    def emit(self, graph: DependencyGraph, requested: Iterable[TargetInfo]) -> MakefileEmission:
        roots = tuple(requested)
        if not roots:
            raise ConfigError(
                "No targets requested.",
                hint="Pass at least one target such as //dir:name.",
                context={"operation": "emit"},
            )
        order = graph.resolve(roots)
        self.logger.log(
            operation="resolve",
            target=None,
            kind=None,
            message="Resolved dependency order.",
            extra={"order": [str(node.target) for node in order]},
        )

        fragments = [self._fragment(graph, node) for node in order]

        writer = MakefileWriter(install_makefile=self.config.install_makefile, logger=self.logger)
        writer.merge(self._head(order))
        owned: dict[str, list[str]] = {}
        for fragment in fragments:
            owned[str(fragment.node.target)] = writer.merge(fragment.rules)
            writer.merge_install(fragment.install)

        makefile = writer.render([target.make_name for target in roots])
        install = writer.render_install()
        manifest = BuildManifest(
            targets=owned,
            install_files=list(writer.install.installed),
            makefile_sha256=hashlib.sha256(makefile.encode("utf-8")).hexdigest(),
            install_sha256=hashlib.sha256(install.encode("utf-8")).hexdigest(),
        )
        return MakefileEmission(
            makefile=makefile,
            install=install,
            manifest=manifest,
            install_makefile=self.config.install_makefile,
        )

    def _fragment(self, graph: DependencyGraph, node: Node) -> NodeFragment:
        all_deps = graph.transitive_dependencies(node.target)
        rules = RuleSet(owner=node.target)
        node.write_makefile(all_deps, rules)
        install = InstallRule(owner=node.target)
        node.write_make_install(install)
        self.logger.log(
            operation="emit",
            target=str(node.target),
            kind=node.kind,
            message="Computed Makefile fragment.",
            level="debug",
            extra={"rules": len(rules.rules), "install_commands": len(install.commands)},
        )
        return NodeFragment(node=node, rules=rules, install=install)

    def _head(self, order: list[Node]) -> RuleSet:
        head = RuleSet()
        for name, value in self.config.make_variables():
            head.add_variable(name, value)
        seen: list[type[Node]] = []
        for node in order:
            node_cls = type(node)
            if node_cls not in seen:
                seen.append(node_cls)
                node_cls.write_make_head(self.config, head)
        return head
