from __future__ import annotations

import inspect
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass, field
from enum import Enum, auto
from inspect import Parameter
from typing import Any, TypeAlias, overload

from pockets._internal.integrations.pydantic_settings import is_pydantic_settings_subclass
from pockets._internal.names import canonicalize
from pockets.exceptions import PocketsInvalidRegistrationError

UserFunction: TypeAlias = Callable[..., Any]
"""A sync or async callable supplied by the user to produce a value."""

_ANONYMOUS_FUNCTION_NAMES = {"<lambda>"}
_POSITIONAL_KINDS = (Parameter.POSITIONAL_ONLY, Parameter.POSITIONAL_OR_KEYWORD)


@dataclass(frozen=True, slots=True)
class Factory:
    """Pair a producer function with the ordered names of the entries it needs.

    The function is called with one positional argument per dependency, in
    ``dependencies`` order. It may return a plain value or an awaitable.
    ``name`` is used when the factory is registered without an explicit name.

    Examples:
        .. code-block:: python

            twenty = Factory(lambda a, b: a * b, ("four", "five"), name="twenty")
            pocket.value(twenty)

    """

    function: UserFunction
    dependencies: tuple[str, ...] = ()
    name: str | None = None
    keys: tuple[str, ...] = field(init=False, repr=False, compare=False)
    """Canonical form of ``dependencies``."""

    def __post_init__(self) -> None:
        if not callable(self.function):
            msg = f"Factory function must be callable, got {self.function!r}."
            raise PocketsInvalidRegistrationError(msg)
        dependencies = tuple(self.dependencies)
        object.__setattr__(self, "dependencies", dependencies)
        object.__setattr__(self, "keys", tuple(canonicalize(name) for name in dependencies))

    def __call__(self, *args: Any) -> Any:
        return self.function(*args)


@dataclass(frozen=True, slots=True)
class Constant:
    """Mark a value to be stored as-is, even when it is callable."""

    value: Any


@overload
def factory(
    function: UserFunction,
    *,
    name: str | None = None,
    dependencies: Iterable[str] | None = None,
) -> Factory: ...


@overload
def factory(
    function: None = None,
    *,
    name: str | None = None,
    dependencies: Iterable[str] | None = None,
) -> Callable[[UserFunction], Factory]: ...


def factory(
    function: UserFunction | None = None,
    *,
    name: str | None = None,
    dependencies: Iterable[str] | None = None,
) -> Factory | Callable[[UserFunction], Factory]:
    """Build a ``Factory`` with an explicit name and/or dependency list.

    Works both as a call and as a decorator. Omitted ``dependencies`` are
    taken from the function signature; an omitted ``name`` falls back to the
    function's ``__name__``.

    Args:
        function: Producer function. Omit it to get a decorator.
        name: Registration name used when the factory is registered bare.
        dependencies: Ordered dependency names passed positionally to ``function``.

    Examples:
        .. code-block:: python

            @factory(name="x")
            def _build():
                return 1

            pocket.lazy(_build)
            pocket.lazy(factory(lambda: 1, name="x"))

    """

    def decorator(function_: UserFunction) -> Factory:
        extractor = FactoryDependenciesExtractor()
        resolved_dependencies = (
            tuple(dependencies) if dependencies is not None else extractor.extract(function_)
        )
        return Factory(
            function_,
            resolved_dependencies,
            name=name if name is not None else extractor.function_name(function_),
        )

    if function is None:
        return decorator
    return decorator(function)


def is_factory(candidate: object) -> bool:
    """Return whether a registration argument should be stored as a factory."""
    if isinstance(candidate, Constant):
        return False
    return isinstance(candidate, Factory) or callable(candidate)


@dataclass(slots=True)
class FactoryDependenciesExtractor:
    """Extract ordered dependency names from user-defined producer functions."""

    def to_factory(self, candidate: object) -> Factory:
        """Normalize a registration argument into a ``Factory``.

        ``Factory`` instances are returned unchanged. Pydantic settings classes
        become zero-argument factories since their fields are loaded from the
        environment rather than from other entries. Any other callable is
        reflected on.

        Args:
            candidate: Registration argument to normalize.

        Raises:
            PocketsInvalidRegistrationError: If ``candidate`` is not callable or
                its signature cannot be mapped to dependency names.

        """
        if isinstance(candidate, Factory):
            return candidate
        if not callable(candidate) or isinstance(candidate, Constant):
            msg = f"Expected a factory function, got {candidate!r}."
            raise PocketsInvalidRegistrationError(msg)
        if is_pydantic_settings_subclass(candidate):
            return Factory(candidate, (), name=self.function_name(candidate))
        return Factory(
            candidate,
            self.extract(candidate),
            name=self.function_name(candidate),
        )

    def extract(self, function: UserFunction) -> tuple[str, ...]:
        """Return the dependency names declared by a function's positional parameters.

        ``*args``/``**kwargs`` and keyword-only parameters with defaults are
        ignored. A name wrapped in one pair of underscores (``_five_``) is
        unwrapped so that parameters can avoid shadowing builtins.

        Args:
            function: Callable to inspect.

        Raises:
            PocketsInvalidRegistrationError: If the signature cannot be read or
                declares a required keyword-only parameter.

        """
        try:
            parameters = inspect.signature(function).parameters.values()
        except (TypeError, ValueError) as error:
            msg = f"Unable to read the signature of {self._display_name(function)}: {error}"
            raise PocketsInvalidRegistrationError(msg) from error

        names: list[str] = []
        for parameter in parameters:
            if parameter.kind in _POSITIONAL_KINDS:
                names.append(self._unwrap_parameter_name(parameter.name))
            elif parameter.kind is Parameter.KEYWORD_ONLY and parameter.default is Parameter.empty:
                msg = (
                    f"Required keyword-only parameter '{parameter.name}' in "
                    f"{self._display_name(function)} cannot be injected; dependencies are "
                    "passed positionally."
                )
                raise PocketsInvalidRegistrationError(msg)
        return tuple(names)

    def function_name(self, function: object) -> str | None:
        """Return the name a bare factory registers under, if it has a usable one."""
        name = getattr(function, "__name__", None)
        if not isinstance(name, str) or name in _ANONYMOUS_FUNCTION_NAMES:
            return None
        return name

    def _unwrap_parameter_name(self, name: str) -> str:
        if len(name) > 2 and name.startswith("_") and name.endswith("_"):  # noqa: PLR2004
            return name[1:-1]
        return name

    def _display_name(self, function: object) -> str:
        return getattr(function, "__qualname__", repr(function))


class EntryKind(Enum):
    """Tag a registration entry with its precedence table."""

    VALUE = auto()
    """An already-known value."""

    LAZY = auto()
    """A factory evaluated on first request."""

    DEFAULT = auto()
    """A value or factory used only when nothing else claims the name."""

    PROVIDER = auto()
    """A factory visible only to descendants, evaluated in the requester's scope."""


@dataclass(kw_only=True, slots=True)
class EntrySpec:
    """Describe a single registration owned by one pocket."""

    name: str
    """Canonical name the entry is stored under."""
    kind: EntryKind
    """Precedence table holding the entry."""
    factory: Factory | None = None
    """Producer, for lazy, provider, and factory-backed default entries."""
    value: Any = None
    """Stored value, when ``factory`` is ``None``."""

    @property
    def dependencies(self) -> tuple[str, ...]:
        """Canonical dependency names of the entry's factory."""
        if self.factory is None:
            return ()
        return self.factory.keys


class EntriesRegistrations:
    """Store entry specs indexed by kind and canonical name.

    This store does not check for conflicts: precedence and overwrite rules
    live in the pocket. It also keeps the dependency graph of the pocket's
    own registrations.
    """

    def __init__(self) -> None:
        self._entries_by_kind: dict[EntryKind, dict[str, EntrySpec]] = {
            kind: {} for kind in EntryKind
        }
        self._dependency_graph: dict[str, tuple[str, ...]] = {}

    def add(self, spec: EntrySpec) -> None:
        """Store a spec, replacing any spec of the same kind and name.

        Args:
            spec: Entry specification to store.

        """
        self._entries_by_kind[spec.kind][spec.name] = spec

    def remove(self, name: str, kind: EntryKind) -> EntrySpec | None:
        """Drop the spec of the given kind for a name, if present."""
        return self._entries_by_kind[kind].pop(name, None)

    def find(self, name: str, *kinds: EntryKind) -> EntrySpec | None:
        """Return the first spec found for ``name``, checking ``kinds`` in order.

        Args:
            name: Canonical entry name.
            kinds: Tables to look in, highest precedence first.

        """
        for kind in kinds:
            spec = self._entries_by_kind[kind].get(name)
            if spec is not None:
                return spec
        return None

    def contains(self, name: str, *kinds: EntryKind) -> bool:
        """Return whether any of ``kinds`` holds ``name``."""
        return any(name in self._entries_by_kind[kind] for kind in kinds)

    def record_dependencies(self, name: str, dependencies: Iterable[str]) -> None:
        """Set the dependency-graph edges for a locally registered name."""
        self._dependency_graph[name] = tuple(dependencies)

    def recorded_dependencies(self, name: str) -> tuple[str, ...] | None:
        """Return the dependency-graph edges recorded for ``name``, if any."""
        return self._dependency_graph.get(name)

    def dependency_graph(self) -> dict[str, tuple[str, ...]]:
        """Return a copy of the local dependency graph."""
        return dict(self._dependency_graph)

    def declared_dependencies(self) -> Iterator[str]:
        """Yield every dependency name declared in the local graph."""
        for dependencies in self._dependency_graph.values():
            yield from dependencies


__all__ = [
    "Constant",
    "EntriesRegistrations",
    "EntryKind",
    "EntrySpec",
    "Factory",
    "FactoryDependenciesExtractor",
    "UserFunction",
    "factory",
    "is_factory",
]
