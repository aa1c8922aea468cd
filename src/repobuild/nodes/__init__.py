"""Node kinds and the declaration-kind registry."""

from __future__ import annotations

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError

from .autoconf import AutoconfNode
from .base import LANGUAGES, GenericNode, Language, Node
from .cc_library import CCLibraryNode, CompileUnit
from .cc_shared_library import ChainLink, CCSharedLibraryNode, Version, parse_version, version_chain

NODE_KINDS: dict[str, type[Node]] = {
    GenericNode.kind: GenericNode,
    CCLibraryNode.kind: CCLibraryNode,
    CCSharedLibraryNode.kind: CCSharedLibraryNode,
    AutoconfNode.kind: AutoconfNode,
}


def create_node(declaration: BuildDeclaration, config: BuildConfig) -> Node:
    node_cls = NODE_KINDS.get(declaration.kind)
    if node_cls is None:
        raise ConfigError(
            "Unsupported target kind.",
            hint=f"Supported kinds: {', '.join(sorted(NODE_KINDS))}.",
            context={"target": str(declaration.target), "kind": declaration.kind},
        )
    node = node_cls(declaration.target, config)
    node.parse(declaration)
    return node


__all__ = [
    "AutoconfNode",
    "CCLibraryNode",
    "CCSharedLibraryNode",
    "ChainLink",
    "CompileUnit",
    "GenericNode",
    "LANGUAGES",
    "Language",
    "NODE_KINDS",
    "Node",
    "Version",
    "create_node",
    "parse_version",
    "version_chain",
]
