import pytest

from repobuild.errors import EmissionConflictError
from repobuild.makefile import InstallRule, MakefileWriter, Rule, RuleSet
from repobuild.targets import TargetInfo


def _fragment(owner: str, *rules: Rule) -> RuleSet:
    fragment = RuleSet(owner=TargetInfo.parse(owner))
    fragment.rules.extend(rules)
    return fragment


def test_rule_render() -> None:
    rule = Rule(target="out.o", prerequisites=("a.c", "a.h"), recipe=("cc -c a.c",))

    assert rule.render() == "out.o: a.c a.h\n\tcc -c a.c"
    assert Rule(target="lib/a", phony=True).render() == "lib/a:"


def test_identical_rules_are_emitted_once() -> None:
    writer = MakefileWriter()
    shared = Rule(target="common.o", prerequisites=("common.c",), recipe=("cc",))

    first = writer.merge(_fragment("//a:a", shared, Rule(target="a.o")))
    second = writer.merge(_fragment("//b:b", shared, Rule(target="b.o")))
    text = writer.render(["a"])

    assert first == ["common.o", "a.o"]
    assert second == ["b.o"]
    assert text.count("common.o:") == 1
    skipped = writer.logger.records_for_operation("merge")
    assert [(record["target"], record["level"]) for record in skipped] == [("//b:b", "debug")]


def test_conflicting_rules_for_one_target_are_fatal() -> None:
    writer = MakefileWriter()
    writer.merge(_fragment("//a:a", Rule(target="x.o", recipe=("cc -O2",))))

    with pytest.raises(EmissionConflictError) as excinfo:
        writer.merge(_fragment("//b:b", Rule(target="x.o", recipe=("cc -O0",))))

    assert excinfo.value.code == "E_EMISSION_CONFLICT"
    assert excinfo.value.context["previous_owner"] == "//a:a"
    assert excinfo.value.context["target"] == "//b:b"
    assert writer.rule_for("x.o") == Rule(target="x.o", recipe=("cc -O2",))


def test_conflicting_variables_are_fatal() -> None:
    writer = MakefileWriter()
    head = RuleSet()
    head.add_variable("CC", "cc")
    writer.merge(head)
    writer.merge(head)
    other = RuleSet()
    other.add_variable("CC", "clang")

    with pytest.raises(EmissionConflictError):
        writer.merge(other)


@pytest.mark.parametrize("target", ["all", "install"])
def test_reserved_targets_cannot_be_redefined(target: str) -> None:
    with pytest.raises(EmissionConflictError):
        MakefileWriter().merge(_fragment("//:x", Rule(target=target, phony=True)))


def test_render_layout() -> None:
    writer = MakefileWriter(install_makefile="inst.mk")
    head = RuleSet()
    head.add_variable("CC", "cc")
    head.add_variable("DESTDIR", "")
    writer.merge(head)
    writer.merge(
        _fragment(
            "//lib:a",
            Rule(target="a.o", prerequisites=("a.c",), recipe=("$(CC) -c a.c -o $@",)),
            Rule(target="lib/a", prerequisites=("a.o",), phony=True),
        )
    )

    assert writer.render(["lib/a"]) == (
        "# Generated by repobuild. Do not edit.\n"
        "\n"
        "CC = cc\n"
        "DESTDIR =\n"
        "\n"
        ".PHONY: all install lib/a\n"
        "\n"
        "all: lib/a\n"
        "\n"
        "a.o: a.c\n"
        "\t$(CC) -c a.c -o $@\n"
        "\n"
        "lib/a: a.o\n"
        "\n"
        "include inst.mk\n"
    )


def test_install_rules_merge_without_duplicates() -> None:
    writer = MakefileWriter()
    for owner, name in (("//a:a", "liba.so"), ("//b:b", "libb.so")):
        install = InstallRule(owner=TargetInfo.parse(owner))
        install.add_prerequisite(name)
        install.add_command("mkdir -p $(DESTDIR)/lib")
        install.install_to(
            f"$(DESTDIR)/lib/{name}",
            f"install -m 0755 {name} $(DESTDIR)/lib/{name}",
        )
        writer.merge_install(install)

    assert writer.render_install() == (
        "# Generated by repobuild. Do not edit.\n"
        "\n"
        "install: liba.so libb.so\n"
        "\tmkdir -p $(DESTDIR)/lib\n"
        "\tinstall -m 0755 liba.so $(DESTDIR)/lib/liba.so\n"
        "\tinstall -m 0755 libb.so $(DESTDIR)/lib/libb.so\n"
    )
    assert list(writer.install.installed) == ["$(DESTDIR)/lib/liba.so", "$(DESTDIR)/lib/libb.so"]


def _linking(owner: str, link_target: str) -> InstallRule:
    install = InstallRule(owner=TargetInfo.parse(owner))
    install.install_to("$(DESTDIR)/lib/libx.so", f"ln -sf {link_target} $(DESTDIR)/lib/libx.so")
    return install


def test_identical_install_of_one_destination_is_merged() -> None:
    writer = MakefileWriter()
    writer.merge_install(_linking("//a:x", "libx.so.1"))
    writer.merge_install(_linking("//b:x", "libx.so.1"))

    assert writer.render_install().count("libx.so\n") == 1


def test_two_nodes_installing_one_destination_differently_is_fatal() -> None:
    writer = MakefileWriter()
    writer.merge_install(_linking("//a:x", "libx.so.1"))

    with pytest.raises(EmissionConflictError) as excinfo:
        writer.merge_install(_linking("//b:x", "libx.so.2"))

    assert excinfo.value.context == {
        "destination": "$(DESTDIR)/lib/libx.so",
        "target": "//b:x",
        "previous_owner": "//a:x",
    }
    assert "libx.so.2" not in writer.render_install()
