import pytest

from repobuild.errors import (
    ConfigError,
    CycleError,
    EmissionConflictError,
    ErrorCode,
    RepobuildError,
    UnresolvedDependencyError,
)


@pytest.mark.parametrize(
    ("error_cls", "code"),
    [
        (ConfigError, ErrorCode.CONFIG),
        (UnresolvedDependencyError, ErrorCode.UNRESOLVED_DEPENDENCY),
        (EmissionConflictError, ErrorCode.EMISSION_CONFLICT),
    ],
)
def test_error_codes(error_cls: type[RepobuildError], code: ErrorCode) -> None:
    error = error_cls("boom", context={"target": "//a:b"})

    assert isinstance(error, RepobuildError)
    assert error.code == code.value
    assert error.context == {"target": "//a:b"}


def test_str_includes_hint_and_nonempty_context() -> None:
    error = ConfigError("Bad field.", hint="Fix it.", context={"field": "sources", "extra": ""})

    assert str(error) == "Bad field.\nHint: Fix it.\n  field: sources"


def test_to_dict() -> None:
    error = UnresolvedDependencyError("Missing.", context={"dependency": "//x:y"})

    assert error.to_dict() == {
        "code": "E_UNRESOLVED",
        "message": "Missing.\n  dependency: //x:y",
        "context": {"dependency": "//x:y"},
    }


def test_cycle_error_members_and_context() -> None:
    error = CycleError("Cycle.", members=["//a:a", "//b:b", "//a:a"], context={"target": "//a:a"})

    assert error.code == "E_CYCLE"
    assert error.members == ("//a:a", "//b:b", "//a:a")
    assert error.context == {"cycle": "//a:a -> //b:b -> //a:a", "target": "//a:a"}
