import pytest

from repobuild.declarations import BuildDeclaration
from repobuild.errors import ConfigError
from repobuild.nodes import ChainLink, Version, parse_version, version_chain
from repobuild.targets import TargetInfo


def _decl(**fields: object) -> BuildDeclaration:
    return BuildDeclaration(
        kind="cc_shared_library",
        target=TargetInfo("lib", "core"),
        fields={"name": "core", **fields},
    )


def test_full_version_chain_links_each_name_to_the_next_more_specific() -> None:
    chain = version_chain("libcore.so", Version("2", "1", "0"))

    assert chain == (
        ChainLink("libcore.so.2.1.0"),
        ChainLink("libcore.so.2.1", "libcore.so.2.1.0"),
        ChainLink("libcore.so.2", "libcore.so.2.1"),
        ChainLink("libcore.so", "libcore.so.2"),
    )


def test_major_only_chain_has_one_symlink() -> None:
    chain = version_chain("libcore.so", Version("3"))

    assert chain == (ChainLink("libcore.so.3"), ChainLink("libcore.so", "libcore.so.3"))


def test_unversioned_chain_is_the_plain_file() -> None:
    assert version_chain("libcore.so", Version()) == (ChainLink("libcore.so"),)


@pytest.mark.parametrize(
    ("fields", "expected"),
    [
        ({}, Version()),
        ({"version": "2"}, Version("2")),
        ({"version": "2.1"}, Version("2", "1")),
        ({"version": "2.1.0"}, Version("2", "1", "0")),
        ({"major_version": "4"}, Version("4")),
        (
            {"major_version": "4", "minor_version": "0", "release_version": "7"},
            Version("4", "0", "7"),
        ),
    ],
)
def test_parse_version_forms(fields: dict[str, str], expected: Version) -> None:
    assert parse_version(_decl(**fields)) == expected


@pytest.mark.parametrize(
    ("fields", "field"),
    [
        ({"minor_version": "1"}, "minor_version"),
        ({"major_version": "1", "release_version": "2"}, "release_version"),
        ({"version": "1.2.3.4"}, "version"),
        ({"version": "1..2"}, "version"),
        ({"version": "1.x"}, "version"),
        ({"version": "1", "major_version": "1"}, "version"),
        ({"major_version": "one"}, "major_version"),
    ],
)
def test_parse_version_rejects_invalid_declarations(fields: dict[str, str], field: str) -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_version(_decl(**fields))

    assert excinfo.value.code == "E_CONFIG"
    assert excinfo.value.context["field"] == field
    assert excinfo.value.context["target"] == "//lib:core"


def test_version_suffix_and_display() -> None:
    version = Version("2", "1")

    assert version.suffix == ".2.1"
    assert str(version) == "2.1"
    assert version.is_set
    assert not Version().is_set
