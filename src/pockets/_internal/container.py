from __future__ import annotations

import asyncio
import inspect
import logging
from collections.abc import Callable, Iterator, Mapping
from typing import TYPE_CHECKING, Any, TypeAlias

from pockets._internal.adapters import from_callback
from pockets._internal.names import canonicalize
from pockets._internal.providers import (
    Constant,
    EntriesRegistrations,
    EntryKind,
    EntrySpec,
    Factory,
    FactoryDependenciesExtractor,
    is_factory,
)
from pockets.config import PocketsSettings
from pockets.exceptions import (
    PocketsInvalidNameError,
    PocketsInvalidRegistrationError,
    PocketsNameConflictError,
    PocketsNoProviderError,
    PocketsUnknownTargetError,
    PocketsUnsatisfiedDependencyError,
)

if TYPE_CHECKING:
    from typing_extensions import Self

logger = logging.getLogger(__name__)

_MISSING: Any = object()
_OWNED_KINDS = (EntryKind.VALUE, EntryKind.LAZY, EntryKind.DEFAULT)
_VISIBLE_TO_DESCENDANTS_KINDS = (*_OWNED_KINDS, EntryKind.PROVIDER)

Thunk: TypeAlias = Callable[[], asyncio.Future[Any]]
"""A zero-argument accessor returning a future for a wrapped entry."""

_RegisterOne: TypeAlias = Callable[[str, Any], None]


class Pocket:
    """Register named producers and resolve them asynchronously, once per scope.

    Names are canonicalized (see ``canonicalize``) on every registration and
    lookup, so ``"getFive"``, ``"five"`` and ``"get five"`` all refer to the
    same entry. Each entry is one of:

    * value: a known value (``value("four", 4)``),
    * lazy: a factory run on first request (``value(get_five)``),
    * default: the lowest-precedence fallback (``default("port", 8080)``),
    * provider: a factory only descendants can see, evaluated in the
      requesting descendant's scope (``provider(get_session)``).

    Factories declare dependencies through their positional parameter names,
    or explicitly with ``Factory``/``factory``. ``get`` and ``run`` return
    ``asyncio`` futures; the future for a name is cached as soon as resolution
    starts, so every factory runs at most once per pocket no matter how many
    concurrent requests arrive.

    Child pockets created with ``pocket()`` see everything their ancestors
    registered; ancestors never see their children's entries.

    Examples:
        .. code-block:: python

            root = create_pocket()
            root.value("four", 4)


            def get_five() -> int:
                return 5


            root.value(get_five)
            child = root.pocket()
            child.value("twenty", lambda four, five: four * five)
            assert await child.get("twenty") == 20

    """

    def __init__(self, *, strict: bool = False, parent: Pocket | None = None) -> None:
        """Initialize an empty pocket.

        Prefer ``create_pocket()`` for roots and ``Pocket.pocket()`` for
        children.

        Args:
            strict: Validate factory dependencies at registration time and
                raise on unknown names in ``get`` instead of returning a failed
                future. A child of a strict pocket is always strict.
            parent: Enclosing pocket, or ``None`` for a root.

        """
        self._parent = parent
        self._strict = strict or (parent is not None and parent.strict)
        self._depth: int = 0 if parent is None else parent._depth + 1
        self._registrations = EntriesRegistrations()
        self._futures: dict[str, asyncio.Future[Any]] = {}
        self._dependencies_extractor = FactoryDependenciesExtractor()

    def __repr__(self) -> str:
        return f"Pocket(depth={self._depth}, strict={self._strict})"

    @property
    def parent(self) -> Pocket | None:
        """Enclosing pocket, ``None`` for a root."""
        return self._parent

    @property
    def strict(self) -> bool:
        """Whether registration and lookup failures are raised eagerly."""
        return self._strict

    def pocket(self, *, strict: bool = False) -> Pocket:
        """Create a child pocket that falls back to this one.

        Args:
            strict: Turn strict mode on for the child and its descendants.
                Strictness inherited from this pocket cannot be turned off.

        """
        return Pocket(strict=strict, parent=self)

    # region Registration Methods
    def value(self, name: Any, value: Any = _MISSING) -> Self:
        """Register a value or a lazily evaluated factory.

        Callables (and ``Factory`` instances) are stored as lazy entries and
        run on first request; anything else is stored as a value. Wrap a
        callable in ``Constant`` to store the callable itself.

        Args:
            name: Entry name, a mapping of names to values for bulk
                registration, or a named factory registered under its own name.
            value: Value or factory. Omit when ``name`` is a mapping or a
                bare factory.

        Raises:
            PocketsNameConflictError: If the name already holds a value or
                lazy entry in this pocket.
            PocketsUnsatisfiedDependencyError: In strict mode, if a declared
                dependency is not resolvable yet.

        Examples:
            .. code-block:: python

                pocket.value("four", 4)
                pocket.value({"one": 1, "two": 2})


                def get_five() -> int:
                    return 5


                pocket.value(get_five)

        """
        return self._register("value", self._register_value, name, value)

    def lazy(self, name: Any, factory: Any = _MISSING) -> Self:
        """Register a factory evaluated on first request.

        Same as ``value`` but the argument must be a factory.

        Raises:
            PocketsInvalidRegistrationError: If the argument is not a factory.

        """
        return self._register("lazy", self._register_lazy, name, factory)

    def default(self, name: Any, value: Any = _MISSING) -> Self:
        """Register a lowest-precedence value or factory for a name.

        A default is used when this pocket holds no value or lazy entry for
        the name; it still takes precedence over ancestor entries. A later
        ``value``/``lazy`` registration shadows it.

        Raises:
            PocketsNameConflictError: If a default already exists for the name.

        """
        return self._register("default", self._register_default, name, value)

    def provider(self, name: Any, factory: Any = _MISSING) -> Self:
        """Register a factory resolved by descendants in their own scope.

        This pocket does not see the entry itself. Each descendant that
        requests the name runs the factory once, resolving its dependencies
        against the descendant, and caches the result locally. Strict mode does
        not validate provider dependencies.

        Raises:
            PocketsInvalidRegistrationError: If the argument is not a factory.
            PocketsNameConflictError: If a provider already exists for the name.

        """
        return self._register("provider", self._register_provider, name, factory)

    def wrap(self, name: Any, decorator: Any = _MISSING) -> Self:
        """Replace a local entry with a decorator around it.

        Every decorator parameter named like the wrapped entry receives a
        zero-argument thunk returning a future for the original entry; the
        original is only computed if the thunk is called. All other parameters
        are resolved as usual. Wraps stack, each one wrapping the previous.

        Raises:
            PocketsInvalidRegistrationError: If ``decorator`` is not a factory.
            PocketsUnknownTargetError: If the name has no local value, lazy, or
                default entry.

        Examples:
            .. code-block:: python

                pocket.value("count", 0)


                async def count(count):
                    return await count() + 1


                pocket.wrap(count)

        """
        return self._register("wrap", self._register_wrap, name, decorator)

    def alias(self, alias: Any, source: Any = _MISSING) -> Self:
        """Register ``alias`` as a lazy entry that resolves ``source``."""
        return self._register("alias", self._register_alias, alias, source)

    def callback_value(self, name: Any, function: Any = _MISSING) -> Self:
        """Register a callback-style producer as a lazy entry.

        The function's last parameter receives a ``callback(error, result)``
        callable; the others are dependencies.
        """
        return self._register("callback_value", self._register_callback_value, name, function)

    def callback_provider(self, name: Any, function: Any = _MISSING) -> Self:
        """Register a callback-style producer as a provider."""
        return self._register(
            "callback_provider",
            self._register_callback_provider,
            name,
            function,
        )

    def values(self, entries: Mapping[str, Any]) -> Self:
        """Register every item of ``entries`` with ``value``."""
        return self.value(self._require_mapping("values", entries))

    def lazies(self, entries: Mapping[str, Any]) -> Self:
        """Register every item of ``entries`` with ``lazy``."""
        return self.lazy(self._require_mapping("lazies", entries))

    def defaults(self, entries: Mapping[str, Any]) -> Self:
        """Register every item of ``entries`` with ``default``."""
        return self.default(self._require_mapping("defaults", entries))

    def providers(self, entries: Mapping[str, Any]) -> Self:
        """Register every item of ``entries`` with ``provider``."""
        return self.provider(self._require_mapping("providers", entries))

    def _register(
        self,
        method_name: str,
        register_one: _RegisterOne,
        name: Any,
        argument: Any,
    ) -> Self:
        if isinstance(name, Mapping):
            if argument is not _MISSING:
                msg = f"{method_name}() takes no second argument when given a mapping."
                raise PocketsInvalidRegistrationError(msg)
            for item_name, item in name.items():
                register_one(canonicalize(item_name), item)
            return self

        if isinstance(name, str):
            if argument is _MISSING:
                msg = f"{method_name}() requires a second argument for {name!r}."
                raise PocketsInvalidRegistrationError(msg)
            register_one(canonicalize(name), argument)
            return self

        if argument is _MISSING and is_factory(name):
            register_one(canonicalize(self._bare_factory_name(method_name, name)), name)
            return self

        msg = (
            f"{method_name}() name should be a string, a named factory, or a mapping; "
            f"got {name!r}."
        )
        raise PocketsInvalidNameError(msg)

    def _register_value(self, key: str, argument: Any) -> None:
        if self._registrations.contains(key, EntryKind.VALUE, EntryKind.LAZY):
            msg = f'Cannot overwrite "{key}"'
            raise PocketsNameConflictError(msg)

        if is_factory(argument):
            factory = self._dependencies_extractor.to_factory(argument)
            self._validate_satisfiable(factory)
            spec = EntrySpec(name=key, kind=EntryKind.LAZY, factory=factory)
        else:
            value = argument.value if isinstance(argument, Constant) else argument
            spec = EntrySpec(name=key, kind=EntryKind.VALUE, value=value)

        # Shadows a default or a provider result resolved earlier.
        self._futures.pop(key, None)
        self._add(spec)
        self._registrations.record_dependencies(key, spec.dependencies)

    def _register_lazy(self, key: str, argument: Any) -> None:
        self._require_factory("lazy", key, argument)
        self._register_value(key, argument)

    def _register_default(self, key: str, argument: Any) -> None:
        if self._registrations.contains(key, EntryKind.DEFAULT):
            msg = f'Cannot overwrite default for "{key}"'
            raise PocketsNameConflictError(msg)

        if is_factory(argument):
            factory = self._dependencies_extractor.to_factory(argument)
            spec = EntrySpec(name=key, kind=EntryKind.DEFAULT, factory=factory)
        else:
            value = argument.value if isinstance(argument, Constant) else argument
            spec = EntrySpec(name=key, kind=EntryKind.DEFAULT, value=value)

        self._add(spec)
        if not self._registrations.contains(key, EntryKind.VALUE, EntryKind.LAZY):
            self._registrations.record_dependencies(key, spec.dependencies)

    def _register_provider(self, key: str, argument: Any) -> None:
        self._require_factory("provider", key, argument)
        if self._registrations.contains(key, EntryKind.PROVIDER):
            msg = f'Cannot overwrite provider for "{key}"'
            raise PocketsNameConflictError(msg)
        factory = self._dependencies_extractor.to_factory(argument)
        self._add(EntrySpec(name=key, kind=EntryKind.PROVIDER, factory=factory))

    def _register_wrap(self, key: str, argument: Any) -> None:
        if not is_factory(argument):
            msg = f'Cannot wrap "{key}", wrapper is not a function'
            raise PocketsInvalidRegistrationError(msg)

        original = self._registrations.find(key, *_OWNED_KINDS)
        if original is None:
            msg = f'Cannot wrap undefined value "{key}"'
            raise PocketsUnknownTargetError(msg)

        decorator = self._dependencies_extractor.to_factory(argument)
        thunk_positions = [
            index for index, dependency in enumerate(decorator.keys) if dependency == key
        ]
        resolved_dependencies = tuple(
            dependency
            for index, dependency in enumerate(decorator.dependencies)
            if index not in thunk_positions
        )
        thunk = self._thunk(original)

        def wrapper(*arguments: Any) -> Any:
            call_arguments = list(arguments)
            for position in thunk_positions:
                call_arguments.insert(position, thunk)
            return decorator.function(*call_arguments)

        wrapped = Factory(wrapper, resolved_dependencies, name=key)
        self._registrations.remove(key, EntryKind.VALUE)
        self._futures.pop(key, None)
        # Earlier wraps only declare their own keys; the graph holds the whole chain.
        recorded = self._registrations.recorded_dependencies(key)
        previous = original.dependencies if recorded is None else recorded
        self._add(EntrySpec(name=key, kind=EntryKind.LAZY, factory=wrapped))
        self._registrations.record_dependencies(
            key,
            dict.fromkeys((*previous, *wrapped.keys)),
        )

    def _register_alias(self, key: str, source: Any) -> None:
        source_key = canonicalize(source)
        self._register_value(key, Factory(lambda: self._resolve(source_key), (), name=key))

    def _register_callback_value(self, key: str, function: Any) -> None:
        self._register_value(
            key,
            from_callback(self._require_factory("callback_value", key, function)),
        )

    def _register_callback_provider(self, key: str, function: Any) -> None:
        self._register_provider(
            key,
            from_callback(self._require_factory("callback_provider", key, function)),
        )

    def _add(self, spec: EntrySpec) -> None:
        self._registrations.add(spec)
        logger.debug(
            "Registered %s entry '%s' in %r with dependencies %s",
            spec.kind.name.lower(),
            spec.name,
            self,
            spec.dependencies,
        )

    def _validate_satisfiable(self, factory: Factory) -> None:
        if not self._strict:
            return
        missing = [key for key in dict.fromkeys(factory.keys) if not self._has_key(key)]
        if missing:
            raise PocketsUnsatisfiedDependencyError(missing)

    def _require_factory(self, method_name: str, key: str, argument: Any) -> Any:
        if not is_factory(argument):
            msg = f"{method_name}() for '{key}' requires a factory, got {argument!r}."
            raise PocketsInvalidRegistrationError(msg)
        return argument

    def _require_mapping(self, method_name: str, entries: Any) -> Mapping[str, Any]:
        if not isinstance(entries, Mapping):
            msg = f"{method_name}() requires a mapping of names, got {entries!r}."
            raise PocketsInvalidRegistrationError(msg)
        return entries

    def _bare_factory_name(self, method_name: str, function: Any) -> str:
        if isinstance(function, Factory):
            name = function.name
        else:
            name = self._dependencies_extractor.function_name(function)
        if name is None:
            msg = f"{method_name}() requires a name for {function!r}."
            raise PocketsInvalidNameError(msg)
        return name

    # endregion Registration Methods

    # region Resolution Methods
    def get(self, name: str) -> asyncio.Future[Any]:
        """Return a future for the named entry, starting its resolution if needed.

        Resolution order: the cached future, a local value, a local lazy
        entry, a local default, the nearest ancestor holding a value/lazy/
        default (resolved and cached there), the nearest ancestor provider
        (run and cached here). Must be called with a running event loop.

        Args:
            name: Entry name in any canonicalizable spelling.

        Returns:
            The same future on every call for a resolvable name. For an
            unknown name, a new already-failed future holding
            ``PocketsNoProviderError``; nothing is cached so a later
            registration can still satisfy it.

        Raises:
            PocketsNoProviderError: In strict mode, if the name is unknown.

        """
        return self._resolve(canonicalize(name))

    def run(self, factory: Any) -> asyncio.Future[Any]:
        """Resolve a factory's dependencies and call it.

        All dependencies are requested up front and joined; the first failure
        rejects the returned future. A factory that raises, or returns an
        awaitable that fails, also rejects it.

        Args:
            factory: Callable or ``Factory`` to run.

        Raises:
            PocketsNoProviderError: In strict mode, if a dependency is unknown.

        Examples:
            .. code-block:: python

                total = await pocket.run(lambda four, five: four + five)

        """
        loop = asyncio.get_running_loop()
        spec = self._dependencies_extractor.to_factory(factory)
        arguments = [self._resolve(key) for key in spec.keys]
        return loop.create_task(self._invoke(spec, arguments))

    def _resolve(self, key: str) -> asyncio.Future[Any]:
        future = self._futures.get(key)
        if future is not None:
            return future

        spec = self._registrations.find(key, *_OWNED_KINDS)
        if spec is not None:
            future = self._futures[key] = self._start(spec)
            return future

        owner = self._find_ancestor(key, *_OWNED_KINDS)
        if owner is not None:
            return owner._resolve(key)

        provider = self._find_provider(key)
        if provider is not None:
            logger.debug("Running provider '%s' in %r", key, self)
            future = self._futures[key] = self.run(provider.factory)
            return future

        logger.debug("No provider for '%s' in %r", key, self)
        error = PocketsNoProviderError(key)
        if self._strict:
            raise error
        future = asyncio.get_running_loop().create_future()
        future.set_exception(error)
        return future

    def _start(self, spec: EntrySpec) -> asyncio.Future[Any]:
        if spec.factory is None:
            return self._resolved_future(spec.value)
        logger.debug("Resolving %s entry '%s' in %r", spec.kind.name.lower(), spec.name, self)
        return self.run(spec.factory)

    async def _invoke(self, spec: Factory, arguments: list[asyncio.Future[Any]]) -> Any:
        # Shared cached futures must outlive a cancelled caller.
        values = await asyncio.gather(*(asyncio.shield(argument) for argument in arguments))
        result = spec.function(*values)
        if isinstance(result, asyncio.Future):
            return await asyncio.shield(result)
        if inspect.isawaitable(result):
            return await result
        return result

    def _thunk(self, original: EntrySpec) -> Thunk:
        if original.factory is None:
            value = original.value
            return lambda: self._resolved_future(value)
        factory = original.factory
        return lambda: self.run(factory)

    def _resolved_future(self, value: Any) -> asyncio.Future[Any]:
        future = asyncio.get_running_loop().create_future()
        future.set_result(value)
        return future

    def _find_ancestor(self, key: str, *kinds: EntryKind) -> Pocket | None:
        for ancestor in self._ancestors():
            if ancestor._registrations.contains(key, *kinds):
                return ancestor
        return None

    def _find_provider(self, key: str) -> EntrySpec | None:
        for ancestor in self._ancestors():
            provider = ancestor._registrations.find(key, EntryKind.PROVIDER)
            if provider is not None:
                return provider
        return None

    # endregion Resolution Methods

    # region Introspection Methods
    def has(self, name: str) -> bool:
        """Return whether ``get(name)`` would find an entry, without running anything."""
        return self._has_key(canonicalize(name))

    def missing_names(self) -> set[str]:
        """Return declared dependency names that nothing in the scope chain can resolve.

        Dependencies declared by this pocket's and every ancestor's factories
        are checked against ``has``. No factory is executed.
        """
        declared: set[str] = set()
        for pocket in self._scope_chain():
            declared.update(pocket._registrations.declared_dependencies())
        return {key for key in declared if not self._has_key(key)}

    def dependencies(self) -> dict[str, tuple[str, ...]]:
        """Return the canonical dependency names declared by each local registration."""
        return self._registrations.dependency_graph()

    def _has_key(self, key: str) -> bool:
        if key in self._futures or self._registrations.contains(key, *_OWNED_KINDS):
            return True
        return self._find_ancestor(key, *_VISIBLE_TO_DESCENDANTS_KINDS) is not None

    def _scope_chain(self) -> Iterator[Pocket]:
        yield self
        yield from self._ancestors()

    def _ancestors(self) -> Iterator[Pocket]:
        ancestor = self._parent
        while ancestor is not None:
            yield ancestor
            ancestor = ancestor._parent

    # endregion Introspection Methods


def create_pocket(
    *,
    strict: bool | None = None,
    settings: PocketsSettings | None = None,
) -> Pocket:
    """Create a root pocket.

    Args:
        strict: Strict mode for the root and all its descendants. When
            omitted, ``settings.strict`` is used.
        settings: Configuration to read defaults from. Loaded from the
            environment (``POCKETS_*`` variables) when omitted.

    Examples:
        .. code-block:: python

            pocket = create_pocket()
            strict_pocket = create_pocket(strict=True)

    """
    if strict is None:
        strict = (settings if settings is not None else PocketsSettings()).strict
    return Pocket(strict=strict)


__all__ = ["Pocket", "Thunk", "create_pocket"]
