"""C/C++ library node: compile sources, archive the objects."""

from __future__ import annotations

import posixpath
from collections.abc import Sequence
from dataclasses import dataclass

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError
from repobuild.makefile import RuleSet
from repobuild.nodes.base import LANGUAGES, Language, Node
from repobuild.resources import (
    Resource,
    ResourceSet,
    package_relpath,
    resource_path,
    source_resource,
)
from repobuild.targets import TargetInfo

SOURCE_LANGUAGES: dict[str, Language] = {
    ".c": "c",
    ".cc": "cpp",
    ".cpp": "cpp",
    ".cxx": "cpp",
    ".C": "cpp",
}
HEADER_EXTENSIONS = frozenset({".h", ".hh", ".hpp", ".hxx", ".inc"})

COMPILERS: dict[Language, tuple[str, str]] = {
    "c": ("$(CC)", "$(CFLAGS)"),
    "cpp": ("$(CXX)", "$(CXXFLAGS)"),
}


@dataclass(frozen=True, slots=True)
class CompileUnit:
    language: Language
    source: Resource
    obj: Resource


class CCLibraryNode(Node):
    kind = "cc_library"
    allowed_fields = ("sources", "headers", "copts")

    def __init__(self, target: TargetInfo, config: BuildConfig) -> None:
        super().__init__(target, config)
        self.units: list[CompileUnit] = []
        self.headers = ResourceSet()
        self.copts: tuple[str, ...] = ()

    def parse(self, declaration: BuildDeclaration) -> None:
        super().parse(declaration)
        self.copts = declaration.string_list("copts")
        for relpath in declaration.string_list("headers"):
            self.headers.add(source_resource(self.target, relpath))

        seen: dict[Resource, str] = {}
        for relpath in declaration.string_list("sources"):
            extension = posixpath.splitext(relpath)[1]
            if extension in HEADER_EXTENSIONS:
                self.headers.add(source_resource(self.target, relpath))
                continue
            language = SOURCE_LANGUAGES.get(extension)
            if language is None:
                raise ConfigError(
                    "Unsupported source file extension.",
                    hint=f"Supported: {', '.join(sorted(SOURCE_LANGUAGES))}.",
                    context={"target": str(self.target), "field": "sources", "source": relpath},
                )
            source = source_resource(self.target, relpath)
            if package_relpath(self.target, source) is None:
                raise ConfigError(
                    "Source file lies outside the target directory.",
                    hint="Declare a library in the source's own directory and depend on it.",
                    context={"target": str(self.target), "field": "sources", "source": relpath},
                )
            obj = resource_path(self.config, self.target, "object", source=relpath)
            if obj in seen:
                raise ConfigError(
                    "Two sources compile to the same object file.",
                    context={
                        "target": str(self.target),
                        "field": "sources",
                        "source": relpath,
                        "conflicts_with": seen[obj],
                    },
                )
            seen[obj] = relpath
            self.units.append(CompileUnit(language=language, source=source, obj=obj))

    def compiled_objects(self, language: Language) -> ResourceSet:
        return ResourceSet.of(unit.obj for unit in self.units if unit.language == language)

    def object_files(self, language: Language) -> ResourceSet:
        return self.compiled_objects(language)

    def all_objects(self) -> ResourceSet:
        result = ResourceSet()
        for language in LANGUAGES:
            result.update(self.compiled_objects(language))
        return result

    def out_archive(self) -> Resource:
        return resource_path(self.config, self.target, "archive")

    def primary_outputs(self) -> tuple[str, ...]:
        if not self.units:
            return ()
        return (self.out_archive().path,)

    def write_makefile(self, all_deps: Sequence[Node], out: RuleSet) -> None:
        self.direct_dependencies(all_deps)
        self.write_compile_rules(out)
        self.write_archive(out)
        self.write_base_user_target(out)

    def write_compile_rules(self, out: RuleSet) -> None:
        header_paths = self.headers.paths()
        copts = " ".join(self.copts)
        for unit in self.units:
            compiler, flags = COMPILERS[unit.language]
            command = f"{compiler} {flags} -fPIC {copts} -I. -c {unit.source.path} -o $@"
            out.add_rule(
                unit.obj.path,
                (unit.source.path, *header_paths),
                (f"@mkdir -p {unit.obj.dirname}", " ".join(command.split())),
            )

    def write_archive(self, out: RuleSet) -> None:
        objects = self.all_objects().paths()
        if not objects:
            return
        archive = self.out_archive()
        out.add_rule(
            archive.path,
            objects,
            (
                f"@mkdir -p {archive.dirname}",
                "rm -f $@",
                f"$(AR) rcs $@ {' '.join(objects)}",
            ),
        )
