from __future__ import annotations

import functools
import inspect
from typing import Any

import pytest

from pockets import Constant, Factory
from pockets._internal.providers import FactoryDependenciesExtractor, is_factory
from pockets.exceptions import PocketsInvalidRegistrationError


def test_extracts_positional_parameter_names_in_order(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    def build(first: int, second: int, /, third: int) -> int:
        return first + second + third

    assert dependencies_extractor.extract(build) == ("first", "second", "third")


def test_ignores_variadic_parameters(dependencies_extractor: FactoryDependenciesExtractor) -> None:
    def build(first: int, *args: Any, **kwargs: Any) -> int:
        return first

    assert dependencies_extractor.extract(build) == ("first",)


def test_ignores_keyword_only_parameters_with_defaults(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    def build(first: int, *, verbose: bool = False) -> int:
        return first

    assert dependencies_extractor.extract(build) == ("first",)


def test_rejects_required_keyword_only_parameters(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    def build(first: int, *, second: int) -> int:
        return first + second

    with pytest.raises(PocketsInvalidRegistrationError, match="second"):
        dependencies_extractor.extract(build)


def test_unwraps_underscore_wrapped_parameter_names(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    def build(_id_: int, _type_: str, _private: int) -> None:
        return None

    assert dependencies_extractor.extract(build) == ("id", "type", "_private")


def test_extracts_dependencies_from_bound_methods(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    class Builder:
        def build(self, first: int) -> int:
            return first

    assert dependencies_extractor.extract(Builder().build) == ("first",)


def test_extracts_dependencies_from_classes(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    class Service:
        def __init__(self, repository: object, clock: object) -> None:
            self.repository = repository
            self.clock = clock

    spec = dependencies_extractor.to_factory(Service)

    assert spec.dependencies == ("repository", "clock")
    assert spec.name == "Service"


def test_extracts_remaining_parameters_from_partials(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    def build(first: int, second: int) -> int:
        return first + second

    spec = dependencies_extractor.to_factory(functools.partial(build, 1))

    assert spec.dependencies == ("second",)
    assert spec.name is None


def test_to_factory_returns_factory_instances_unchanged(
    dependencies_extractor: FactoryDependenciesExtractor,
) -> None:
    spec = Factory(lambda: 1, name="one")

    assert dependencies_extractor.to_factory(spec) is spec


@pytest.mark.parametrize("candidate", [1, "text", None, Constant(len)])
def test_to_factory_rejects_non_factories(
    dependencies_extractor: FactoryDependenciesExtractor,
    candidate: object,
) -> None:
    with pytest.raises(PocketsInvalidRegistrationError):
        dependencies_extractor.to_factory(candidate)


def test_to_factory_rejects_callables_without_a_signature(
    dependencies_extractor: FactoryDependenciesExtractor,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    def _raise_value_error(_function: object) -> inspect.Signature:
        msg = "no signature found"
        raise ValueError(msg)

    monkeypatch.setattr(inspect, "signature", _raise_value_error)

    with pytest.raises(PocketsInvalidRegistrationError, match="Unable to read the signature"):
        dependencies_extractor.to_factory(len)


def test_function_name_skips_lambdas(dependencies_extractor: FactoryDependenciesExtractor) -> None:
    def get_five() -> int:
        return 5

    assert dependencies_extractor.function_name(get_five) == "get_five"
    assert dependencies_extractor.function_name(lambda: 5) is None
    assert dependencies_extractor.function_name(object()) is None


def test_factory_canonicalizes_dependency_keys() -> None:
    spec = Factory(lambda a, b: a + b, ["getFirst", "second_value"])

    assert spec.dependencies == ("getFirst", "second_value")
    assert spec.keys == ("first", "secondvalue")
    assert spec(1, 2) == 3


def test_is_factory_distinguishes_constants() -> None:
    assert is_factory(len)
    assert is_factory(Factory(len))
    assert not is_factory(Constant(len))
    assert not is_factory(5)
