from __future__ import annotations

from collections.abc import Iterable


class PocketsError(Exception):
    """Represent a base class for all pockets-specific failures.

    Catch this type when you want to handle any pockets error path without
    matching each concrete exception class individually.
    """


class PocketsInvalidNameError(PocketsError):
    """Signal a registration or request key that cannot be canonicalized.

    Raised by every registration method and by ``get``/``has`` when the name
    is empty, is not a string, or collapses to nothing once the
    ``create``/``get``/``load`` prefix and separators are stripped. Also raised
    when a bare factory without a usable ``__name__`` (a lambda, a partial) is
    registered without an explicit name.

    Underscores count as separators, so a factory parameter named ``_``
    (``lambda _: ...``) has no usable dependency name. Use ``*_`` to accept
    and ignore arguments, or give the parameter a real name.
    """


class PocketsNameConflictError(PocketsError):
    """Signal an attempt to overwrite an existing registration.

    Raised by ``Pocket.value``/``Pocket.lazy`` when the canonical name already
    holds a value or lazy entry in the same pocket, and by ``Pocket.default``
    when a default already exists for the name.

    Typical fixes include registering the override in a child pocket, or
    registering the original as a default so that it can be shadowed.
    """


class PocketsInvalidRegistrationError(PocketsError):
    """Signal a registration argument of the wrong shape.

    Raised when a factory is required but something else was passed
    (``lazy``, ``provider``, ``wrap``, the callback registrations), and when a
    factory signature cannot be turned into a dependency list, for example a
    required keyword-only parameter.
    """


class PocketsUnknownTargetError(PocketsError):
    """Signal ``wrap`` of a name that has no local value, lazy, or default entry.

    Wrapping only applies to entries of the same pocket. Register the entry
    first, or wrap it in the pocket that owns it.
    """


class PocketsNoProviderError(PocketsError):
    """Signal that a requested name cannot be resolved anywhere in the scope chain.

    Delivered as the rejection of the future returned by ``Pocket.get`` and
    ``Pocket.run``; raised synchronously instead when the pocket is strict.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f'No provider for "{name}"')


class PocketsUnsatisfiedDependencyError(PocketsError):
    """Signal a strict-mode registration whose dependencies are not registered yet.

    Raised at registration time by strict pockets. ``names`` lists every
    dependency that no pocket in the scope chain can resolve.
    """

    def __init__(self, names: Iterable[str]) -> None:
        self.names = tuple(names)
        quoted = ", ".join(f'"{name}"' for name in self.names)
        super().__init__(f"Unsatisfied dependencies: {quoted}")
