import pytest

from conftest import Declare
from repobuild.config import BuildConfig
from repobuild.errors import ConfigError, UnresolvedDependencyError
from repobuild.makefile import InstallRule, RuleSet
from repobuild.nodes import CCLibraryNode, create_node


def _library(declare: Declare, config: BuildConfig, **fields: object) -> CCLibraryNode:
    node = create_node(declare("cc_library", "//lib/util:util", **fields), config)
    assert isinstance(node, CCLibraryNode)
    return node


def test_compile_rules_per_source(declare: Declare, config: BuildConfig) -> None:
    node = _library(
        declare,
        config,
        sources=["b.cc", "a.c", "util.h"],
        headers=["api.h"],
        copts=["-DNDEBUG"],
    )
    out = RuleSet(owner=node.target)
    node.write_makefile([], out)

    rules = {rule.target: rule for rule in out.rules}
    c_rule = rules[".gen-obj/lib/util/util.objs/a.o"]
    cc_rule = rules[".gen-obj/lib/util/util.objs/b.o"]

    assert c_rule.prerequisites == ("lib/util/a.c", "lib/util/api.h", "lib/util/util.h")
    assert c_rule.recipe == (
        "@mkdir -p .gen-obj/lib/util/util.objs",
        "$(CC) $(CFLAGS) -fPIC -DNDEBUG -I. -c lib/util/a.c -o $@",
    )
    assert cc_rule.recipe[1] == "$(CXX) $(CXXFLAGS) -fPIC -DNDEBUG -I. -c lib/util/b.cc -o $@"


def test_archive_groups_objects_by_language_in_stable_order(
    declare: Declare,
    config: BuildConfig,
) -> None:
    node = _library(declare, config, sources=["z.cc", "y.c", "x.cc", "w.c"])
    out = RuleSet(owner=node.target)
    node.write_makefile([], out)

    archive = out.rules[-2]
    assert archive.target == ".gen-obj/lib/util/libutil.a"
    assert archive.prerequisites == (
        ".gen-obj/lib/util/util.objs/y.o",
        ".gen-obj/lib/util/util.objs/w.o",
        ".gen-obj/lib/util/util.objs/z.o",
        ".gen-obj/lib/util/util.objs/x.o",
    )
    assert archive.recipe[-1] == "$(AR) rcs $@ " + " ".join(archive.prerequisites)

    user = out.rules[-1]
    assert user.target == "lib/util/util"
    assert user.prerequisites == (".gen-obj/lib/util/libutil.a",)
    assert user.phony


def test_object_files_are_per_language_and_pure(declare: Declare, config: BuildConfig) -> None:
    node = _library(declare, config, sources=["a.c", "b.cc"])

    assert node.object_files("c").paths() == (".gen-obj/lib/util/util.objs/a.o",)
    assert node.object_files("cpp").paths() == (".gen-obj/lib/util/util.objs/b.o",)
    assert node.object_files("c").paths() == node.object_files("c").paths()


def test_header_only_library_emits_no_archive(declare: Declare, config: BuildConfig) -> None:
    node = _library(declare, config, headers=["only.h"])
    out = RuleSet(owner=node.target)
    node.write_makefile([], out)
    install = InstallRule()
    node.write_make_install(install)

    assert out.targets() == ("lib/util/util",)
    assert not install.commands


def test_unsupported_source_extension_is_config_error(
    declare: Declare,
    config: BuildConfig,
) -> None:
    with pytest.raises(ConfigError) as excinfo:
        _library(declare, config, sources=["main.rs"])

    assert excinfo.value.context["field"] == "sources"
    assert excinfo.value.context["source"] == "main.rs"


def test_sources_mapping_to_one_object_are_rejected(declare: Declare, config: BuildConfig) -> None:
    with pytest.raises(ConfigError) as excinfo:
        _library(declare, config, sources=["a.c", "a.cc"])

    assert excinfo.value.context["conflicts_with"] == "a.c"


@pytest.mark.parametrize("source", ["../common/x.cc", "sub/../../x.c", "/abs/x.c"])
def test_sources_outside_the_target_directory_are_rejected(
    declare: Declare,
    config: BuildConfig,
    source: str,
) -> None:
    with pytest.raises(ConfigError) as excinfo:
        _library(declare, config, sources=[source])

    assert excinfo.value.context["field"] == "sources"
    assert excinfo.value.context["source"] == source


def test_object_paths_use_the_normalized_source(declare: Declare, config: BuildConfig) -> None:
    node = _library(declare, config, sources=["./src/../src/a.c", "gen/b.cc"])

    assert node.all_objects().paths() == (
        ".gen-obj/lib/util/util.objs/src/a.o",
        ".gen-obj/lib/util/util.objs/gen/b.o",
    )


def test_spellings_of_one_source_are_one_object(declare: Declare, config: BuildConfig) -> None:
    with pytest.raises(ConfigError) as excinfo:
        _library(declare, config, sources=["a.c", "sub/../a.c"])

    assert excinfo.value.context["conflicts_with"] == "a.c"


def test_unknown_field_is_rejected(declare: Declare, config: BuildConfig) -> None:
    with pytest.raises(ConfigError) as excinfo:
        _library(declare, config, srcs=["a.c"])

    assert excinfo.value.context["field"] == "srcs"


def test_unresolved_dependency_names_the_missing_target(
    declare: Declare,
    config: BuildConfig,
) -> None:
    node = _library(declare, config, sources=["a.c"], dependencies=["//lib/base:base"])

    with pytest.raises(UnresolvedDependencyError) as excinfo:
        node.write_makefile([], RuleSet(owner=node.target))

    assert excinfo.value.context["dependency"] == "//lib/base:base"
    assert excinfo.value.context["target"] == "//lib/util:util"


def test_parse_runs_once(declare: Declare, config: BuildConfig) -> None:
    declaration = declare("cc_library", "//lib/util:util", sources=["a.c"])
    node = create_node(declaration, config)

    with pytest.raises(ConfigError):
        node.parse(declaration)


def test_declared_name_must_match_target(declare: Declare, config: BuildConfig) -> None:
    declaration = declare("cc_library", "//lib/util:util", name="other", sources=["a.c"])

    with pytest.raises(ConfigError) as excinfo:
        create_node(declaration, config)

    assert excinfo.value.context["field"] == "name"
