"""Versioned C/C++ shared library node.

A shared library compiles its own sources like a ``cc_library`` and links
them, together with the raw objects of every directly depended-on plain
library, into ``lib<name>.so``. When a version is configured the real file
carries the most specific suffix and each less specific name, down to the
plain ``.so``, is a symlink to the next one in the chain. Build and install
rules are both derived from ``version_chain``.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError
from repobuild.makefile import InstallRule, RuleSet
from repobuild.nodes.base import LANGUAGES, Language, Node
from repobuild.nodes.cc_library import CCLibraryNode
from repobuild.resources import Resource, ResourceSet, resource_path, source_resource
from repobuild.targets import TargetInfo

VERSION_FIELDS = ("major_version", "minor_version", "release_version")
INSTALL_ROOT = "$(DESTDIR)$(PREFIX)/$(LIBDIR)"


@dataclass(frozen=True, slots=True)
class Version:
    major: str | None = None
    minor: str | None = None
    release: str | None = None

    def components(self) -> tuple[str, ...]:
        return tuple(part for part in (self.major, self.minor, self.release) if part is not None)

    @property
    def is_set(self) -> bool:
        return self.major is not None

    @property
    def suffix(self) -> str:
        return "".join(f".{part}" for part in self.components())

    def __str__(self) -> str:
        return ".".join(self.components())


@dataclass(frozen=True, slots=True)
class ChainLink:
    """One file of the soname chain; ``prerequisite`` is None for the real file."""

    filename: str
    prerequisite: str | None = None


def version_chain(basename: str, version: Version) -> tuple[ChainLink, ...]:
    """Return the chain from the real (most specific) file down to *basename*."""
    components = version.components()
    names = [
        basename + "".join(f".{part}" for part in components[:count])
        for count in range(len(components), -1, -1)
    ]
    links = [ChainLink(names[0])]
    for previous, name in zip(names, names[1:]):
        links.append(ChainLink(name, previous))
    return tuple(links)


def parse_version(declaration: BuildDeclaration) -> Version:
    raw = declaration.optional_str("version")
    separate = {name: declaration.optional_str(name) for name in VERSION_FIELDS}
    if raw is not None and any(value is not None for value in separate.values()):
        raise ConfigError(
            "Use either `version` or the separate version fields, not both.",
            context={"target": str(declaration.target), "field": "version"},
        )

    if raw is not None:
        parts = raw.split(".")
        if len(parts) > 3:
            raise ConfigError(
                "Version has more than three components.",
                hint="Use MAJOR[.MINOR[.RELEASE]].",
                context={"target": str(declaration.target), "field": "version", "value": raw},
            )
        for part in parts:
            _check_component(declaration, "version", part)
        padded = [*parts, None, None, None][:3]
        return Version(major=padded[0], minor=padded[1], release=padded[2])

    major, minor, release = (separate[name] for name in VERSION_FIELDS)
    if minor is not None and major is None:
        raise ConfigError(
            "`minor_version` requires `major_version`.",
            context={"target": str(declaration.target), "field": "minor_version"},
        )
    if release is not None and minor is None:
        raise ConfigError(
            "`release_version` requires `minor_version`.",
            context={"target": str(declaration.target), "field": "release_version"},
        )
    for name in VERSION_FIELDS:
        value = separate[name]
        if value is not None:
            _check_component(declaration, name, value)
    return Version(major=major, minor=minor, release=release)


def _check_component(declaration: BuildDeclaration, field: str, value: str) -> None:
    if not value.isdigit():
        raise ConfigError(
            "Version components must be non-empty decimal numbers.",
            context={"target": str(declaration.target), "field": field, "value": value},
        )


class CCSharedLibraryNode(CCLibraryNode):
    kind = "cc_shared_library"
    allowed_fields = (
        *CCLibraryNode.allowed_fields,
        "version",
        *VERSION_FIELDS,
        "install_strip_prefix",
        "exported_symbols",
    )

    def __init__(self, target: TargetInfo, config: BuildConfig) -> None:
        super().__init__(target, config)
        self.version = Version()
        self.install_strip_prefix: str | None = None
        self.exported_symbols: Resource | None = None

    def parse(self, declaration: BuildDeclaration) -> None:
        super().parse(declaration)
        self.version = parse_version(declaration)
        exported = declaration.optional_str("exported_symbols")
        if exported is not None:
            self.exported_symbols = source_resource(self.target, exported)
        prefix = declaration.optional_str("install_strip_prefix")
        if prefix is not None:
            self.install_strip_prefix = prefix.strip("/")
        # Raises ConfigError when the prefix does not lead the output path.
        self.dest_install_dir(self.out_linked_obj())

    def object_files(self, language: Language) -> ResourceSet:
        # Dependents link against the shared object, never absorb its objects.
        return ResourceSet()

    def chain(self) -> tuple[ChainLink, ...]:
        return version_chain(f"lib{self.target.name}.so", self.version)

    def soname(self) -> str | None:
        if not self.version.is_set:
            return None
        return f"lib{self.target.name}.so.{self.version.major}"

    def out_linked_obj(self) -> Resource:
        if self.version.is_set:
            return resource_path(
                self.config,
                self.target,
                "versioned_shared_object",
                suffix=self.version.suffix,
            )
        return resource_path(self.config, self.target, "shared_object")

    def chain_resources(self) -> tuple[tuple[ChainLink, Resource], ...]:
        real = self.out_linked_obj()
        return tuple((link, real.sibling(link.filename)) for link in self.chain())

    def primary_outputs(self) -> tuple[str, ...]:
        return tuple(resource.path for _link, resource in self.chain_resources())

    def linked_objects(self, all_deps: Sequence[Node]) -> ResourceSet:
        """Own objects plus the raw objects of direct plain-library dependencies."""
        result = self.all_objects()
        for dep in self.direct_dependencies(all_deps):
            if isinstance(dep, CCLibraryNode):
                for language in LANGUAGES:
                    result.update(dep.object_files(language))
        return result

    def linked_shared_libraries(self, all_deps: Sequence[Node]) -> ResourceSet:
        return ResourceSet.of(
            dep.out_linked_obj()
            for dep in self.direct_dependencies(all_deps)
            if isinstance(dep, CCSharedLibraryNode)
        )

    def write_makefile(self, all_deps: Sequence[Node], out: RuleSet) -> None:
        self.write_compile_rules(out)
        self.write_link(all_deps, out)
        self.write_base_user_target(out)

    def write_link(self, all_deps: Sequence[Node], out: RuleSet) -> None:
        objects = self.linked_objects(all_deps).paths()
        shared = self.linked_shared_libraries(all_deps).paths()
        uses_cpp = bool(self.compiled_objects("cpp")) or any(
            dep.object_files("cpp")
            for dep in self.direct_dependencies(all_deps)
            if isinstance(dep, CCLibraryNode)
        )
        linker = "$(CXX)" if uses_cpp else "$(CC)"

        flags = ["$(SHARED_LDFLAGS)", "$(LDFLAGS)"]
        soname = self.soname()
        if soname is not None:
            flags.append(f"-Wl,-soname,{soname}")
        prerequisites = [*objects, *shared]
        if self.exported_symbols is not None:
            flags.append(f"-Wl,--version-script={self.exported_symbols.path}")
            prerequisites.append(self.exported_symbols.path)

        real = self.out_linked_obj()
        command = " ".join([linker, *flags, "-o $@", *objects, *shared])
        out.add_rule(real.path, prerequisites, (f"@mkdir -p {real.dirname}", command))

        chain = self.chain_resources()
        for (previous, previous_file), (_link, resource) in zip(chain, chain[1:]):
            out.add_rule(
                resource.path,
                (previous_file.path,),
                (f"ln -sf {previous.filename} $@",),
            )

    def dest_install_dir(self, source: Resource) -> str:
        directory = source.logical_dir
        prefix = self.install_strip_prefix
        if prefix:
            if directory == prefix:
                directory = ""
            elif directory.startswith(prefix + "/"):
                directory = directory[len(prefix) + 1 :]
            else:
                raise ConfigError(
                    "Install strip prefix is not a prefix of the library path.",
                    hint=f"Choose a leading directory of `{source.logical_dir}`.",
                    context={
                        "target": str(self.target),
                        "field": "install_strip_prefix",
                        "prefix": prefix,
                        "path": source.logical,
                    },
                )
        if not directory:
            return INSTALL_ROOT
        return f"{INSTALL_ROOT}/{directory}"

    def write_make_install(self, install: InstallRule) -> None:
        chain = self.chain_resources()
        real_link, real = chain[0]
        dest = self.dest_install_dir(real)
        for _link, resource in chain:
            install.add_prerequisite(resource.path)
        install.add_command(f"mkdir -p {dest}")
        install.install_to(
            f"{dest}/{real_link.filename}",
            f"install -m 0755 {real.path} {dest}/{real_link.filename}",
        )
        for (previous, _previous_file), (link, _resource) in zip(chain, chain[1:]):
            install.install_to(
                f"{dest}/{link.filename}",
                f"ln -sf {previous.filename} {dest}/{link.filename}",
            )

    @classmethod
    def write_make_head(cls, config: BuildConfig, out: RuleSet) -> None:
        out.add_variable("SHARED_LDFLAGS", "-shared")

