"""Autoconf-style subproject wrapped as a single graph node."""

from __future__ import annotations

import posixpath
import shlex
from collections.abc import Sequence

from repobuild.config import BuildConfig
from repobuild.declarations import BuildDeclaration
from repobuild.makefile import InstallRule, RuleSet
from repobuild.nodes.base import Node
from repobuild.resources import Resource, ResourceSet, resource_path, source_resource
from repobuild.targets import TargetInfo


class AutoconfNode(Node):
    kind = "autoconf"
    allowed_fields = ("source_dir", "configure_args", "make_args", "outputs", "install_target")

    def __init__(self, target: TargetInfo, config: BuildConfig) -> None:
        super().__init__(target, config)
        self.source_dir = target.directory or "."
        self.configure_args: tuple[str, ...] = ()
        self.make_args: tuple[str, ...] = ()
        self.outputs = ResourceSet()
        self.install_target: str | None = None

    def parse(self, declaration: BuildDeclaration) -> None:
        super().parse(declaration)
        source_dir = declaration.optional_str("source_dir")
        if source_dir is not None:
            self.source_dir = source_resource(self.target, source_dir).path
        self.configure_args = declaration.string_list("configure_args")
        self.make_args = declaration.string_list("make_args")
        for output in declaration.string_list("outputs"):
            logical = posixpath.normpath(posixpath.join(self.source_dir, output))
            self.outputs.add(Resource("", logical))
        self.install_target = declaration.optional_str("install_target")

    def out_stamp(self) -> Resource:
        return resource_path(self.config, self.target, "stamp", suffix="autoconf")

    def output_files(self) -> ResourceSet:
        """Files the external build produces; recorded, never inspected."""
        return ResourceSet.of(self.outputs)

    def primary_outputs(self) -> tuple[str, ...]:
        return (self.out_stamp().path,)

    def write_makefile(self, all_deps: Sequence[Node], out: RuleSet) -> None:
        stamp = self.out_stamp()
        prerequisites = [
            path for dep in self.direct_dependencies(all_deps) for path in dep.primary_outputs()
        ]
        configure = " ".join(["./configure", *(shlex.quote(arg) for arg in self.configure_args)])
        make = " ".join(["$(MAKE)", *(shlex.quote(arg) for arg in self.make_args)])
        out.add_rule(
            stamp.path,
            prerequisites,
            (
                f"@mkdir -p {stamp.dirname}",
                f"cd {self.source_dir} && {configure} && {make}",
                "touch $@",
            ),
        )
        self.write_base_user_target(out)

    def write_make_install(self, install: InstallRule) -> None:
        if self.install_target is None:
            return
        install.add_prerequisite(self.out_stamp().path)
        install.add_command(
            f"$(MAKE) -C {self.source_dir} {shlex.quote(self.install_target)} DESTDIR=$(DESTDIR)"
        )
