from __future__ import annotations

import pytest

from pockets import (
    PocketsError,
    PocketsInvalidNameError,
    PocketsInvalidRegistrationError,
    PocketsNameConflictError,
    PocketsNoProviderError,
    PocketsUnknownTargetError,
    PocketsUnsatisfiedDependencyError,
)


@pytest.mark.parametrize(
    "error_type",
    [
        PocketsInvalidNameError,
        PocketsInvalidRegistrationError,
        PocketsNameConflictError,
        PocketsNoProviderError,
        PocketsUnknownTargetError,
        PocketsUnsatisfiedDependencyError,
    ],
)
def test_all_errors_derive_from_pockets_error(error_type: type[Exception]) -> None:
    assert issubclass(error_type, PocketsError)


def test_no_provider_error_carries_the_name() -> None:
    error = PocketsNoProviderError("database")

    assert error.name == "database"
    assert str(error) == 'No provider for "database"'


def test_unsatisfied_dependency_error_carries_all_names() -> None:
    error = PocketsUnsatisfiedDependencyError(name for name in ["a", "b"])

    assert error.names == ("a", "b")
    assert str(error) == 'Unsatisfied dependencies: "a", "b"'
