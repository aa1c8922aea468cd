"""Makefile rule fragments and the deduplicating reducer that renders them.

Nodes never write into the final document directly. Each node fills its own
``RuleSet`` (a pure function of parsed node state); ``MakefileWriter`` then
merges the fragments one at a time, skipping byte-identical rules that were
already emitted and refusing two different recipes for the same target.
"""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass, field

from repobuild.errors import EmissionConflictError
from repobuild.observability import StructuredLogger
from repobuild.targets import TargetInfo

HEADER = "# Generated by repobuild. Do not edit."
RESERVED_TARGETS = frozenset({"all", "install"})


@dataclass(frozen=True, slots=True)
class Rule:
    target: str
    prerequisites: tuple[str, ...] = ()
    recipe: tuple[str, ...] = ()
    phony: bool = False

    def render(self) -> str:
        head = f"{self.target}:"
        if self.prerequisites:
            head += " " + " ".join(self.prerequisites)
        lines = [head]
        lines.extend(f"\t{line}" for line in self.recipe)
        return "\n".join(lines)


@dataclass(slots=True)
class RuleSet:
    """Per-node Makefile fragment."""

    owner: TargetInfo | None = None
    variables: list[tuple[str, str]] = field(default_factory=list)
    rules: list[Rule] = field(default_factory=list)

    def add_variable(self, name: str, value: str) -> None:
        self.variables.append((name, value))

    def add_rule(
        self,
        target: str,
        prerequisites: Iterable[str] = (),
        recipe: Iterable[str] = (),
        *,
        phony: bool = False,
    ) -> Rule:
        rule = Rule(
            target=target,
            prerequisites=tuple(prerequisites),
            recipe=tuple(recipe),
            phony=phony,
        )
        self.rules.append(rule)
        return rule

    def targets(self) -> tuple[str, ...]:
        return tuple(rule.target for rule in self.rules)


@dataclass(slots=True)
class InstallRule:
    """Install actions of one node, or the aggregate ``install`` recipe.

    ``installed`` maps each destination path to the command that writes it.
    """

    owner: TargetInfo | None = None
    prerequisites: dict[str, None] = field(default_factory=dict)
    commands: dict[str, None] = field(default_factory=dict)
    installed: dict[str, str] = field(default_factory=dict)

    def add_prerequisite(self, path: str) -> None:
        self.prerequisites.setdefault(path, None)

    def add_command(self, line: str) -> None:
        self.commands.setdefault(line, None)

    def install_to(self, destination: str, command: str) -> None:
        """Add *command*, which writes *destination*."""
        self.add_command(command)
        self.installed.setdefault(destination, command)


@dataclass(slots=True)
class MakefileWriter:
    """Single-writer reducer over node fragments."""

    install_makefile: str = "install.mk"
    logger: StructuredLogger = field(default_factory=StructuredLogger)
    _variables: dict[str, tuple[str, str]] = field(default_factory=dict)
    _rules: dict[str, tuple[Rule, str]] = field(default_factory=dict)
    _install: InstallRule = field(default_factory=InstallRule)
    _destinations: dict[str, tuple[str, str]] = field(default_factory=dict)

    @property
    def install(self) -> InstallRule:
        return self._install

    def merge(self, fragment: RuleSet) -> list[str]:
        """Merge *fragment*; return the rule targets it contributed for the first time."""
        owner = str(fragment.owner) if fragment.owner is not None else "<head>"
        for name, value in fragment.variables:
            existing = self._variables.get(name)
            if existing is None:
                self._variables[name] = (value, owner)
            elif existing[0] != value:
                raise EmissionConflictError(
                    "Makefile variable defined twice with different values.",
                    context={
                        "variable": name,
                        "target": owner,
                        "previous_owner": existing[1],
                    },
                )

        added: list[str] = []
        for rule in fragment.rules:
            if rule.target in RESERVED_TARGETS:
                raise EmissionConflictError(
                    "Rule target collides with a reserved Makefile target.",
                    context={"rule_target": rule.target, "target": owner},
                )
            existing_rule = self._rules.get(rule.target)
            if existing_rule is None:
                self._rules[rule.target] = (rule, owner)
                added.append(rule.target)
                continue
            previous, previous_owner = existing_rule
            if previous != rule:
                raise EmissionConflictError(
                    "Two rules produce the same Makefile target with different recipes.",
                    hint="Two nodes derived the same output path; rename one of the targets.",
                    context={
                        "rule_target": rule.target,
                        "target": owner,
                        "previous_owner": previous_owner,
                    },
                )
            self.logger.log(
                operation="merge",
                target=owner,
                kind=None,
                message="Skipped already emitted rule.",
                level="debug",
                extra={"rule_target": rule.target},
            )
        return added

    def merge_install(self, install: InstallRule) -> None:
        owner = str(install.owner) if install.owner is not None else "<head>"
        for destination, command in install.installed.items():
            existing = self._destinations.get(destination)
            if existing is not None and existing[0] != command:
                raise EmissionConflictError(
                    "Two nodes install different files to the same destination.",
                    hint="Change the install strip prefix or the name of one target.",
                    context={
                        "destination": destination,
                        "target": owner,
                        "previous_owner": existing[1],
                    },
                )

        for path in install.prerequisites:
            self._install.add_prerequisite(path)
        for line in install.commands:
            self._install.add_command(line)
        for destination, command in install.installed.items():
            self._destinations.setdefault(destination, (command, owner))
            self._install.installed.setdefault(destination, command)

    def rule_for(self, target: str) -> Rule | None:
        entry = self._rules.get(target)
        return entry[0] if entry is not None else None

    def render(self, default_targets: Sequence[str]) -> str:
        lines = [HEADER, ""]
        for name, (value, _owner) in self._variables.items():
            lines.append(f"{name} = {value}".rstrip())
        lines.append("")

        phony = ["all", "install"]
        phony.extend(rule.target for rule, _owner in self._rules.values() if rule.phony)
        lines.append(f".PHONY: {' '.join(phony)}")
        lines.append("")
        lines.append(Rule(target="all", prerequisites=tuple(default_targets)).render())
        for rule, _owner in self._rules.values():
            lines.append("")
            lines.append(rule.render())
        lines.append("")
        lines.append(f"include {self.install_makefile}")
        return "\n".join(lines) + "\n"

    def render_install(self) -> str:
        rule = Rule(
            target="install",
            prerequisites=tuple(self._install.prerequisites),
            recipe=tuple(self._install.commands),
        )
        return "\n".join([HEADER, "", rule.render()]) + "\n"
