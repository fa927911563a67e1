from __future__ import annotations

import asyncio
from collections.abc import Callable
from typing import Any

from pockets._internal.providers import Factory, FactoryDependenciesExtractor
from pockets.exceptions import PocketsInvalidRegistrationError


def from_callback(function: Callable[..., Any] | Factory) -> Factory:
    """Adapt a callback-style producer into a future-returning ``Factory``.

    The producer receives its dependencies followed by a
    ``callback(error, result)`` callable and must call it exactly once. A
    non-``None`` ``error`` rejects the future; later calls are ignored. The
    callback may be invoked from another thread.

    Args:
        function: Producer whose last positional parameter is the callback.

    Raises:
        PocketsInvalidRegistrationError: If the producer declares no parameter
            to receive the callback.

    Examples:
        .. code-block:: python

            def get_greeting(name, callback):
                callback(None, f"hello {name}")


            pocket.lazy(from_callback(get_greeting))

    """
    spec = (
        function
        if isinstance(function, Factory)
        else FactoryDependenciesExtractor().to_factory(function)
    )
    if not spec.dependencies:
        msg = f"Callback-style producer {spec.function!r} must accept a callback parameter."
        raise PocketsInvalidRegistrationError(msg)

    def call_with_callback(*arguments: Any) -> asyncio.Future[Any]:
        loop = asyncio.get_running_loop()
        future = loop.create_future()

        def callback(error: object = None, result: Any = None) -> None:
            loop.call_soon_threadsafe(_settle, future, error, result)

        spec.function(*arguments, callback)
        return future

    return Factory(call_with_callback, spec.dependencies[:-1], name=spec.name)


def _settle(future: asyncio.Future[Any], error: object, result: Any) -> None:
    if future.done():
        return
    if error is None:
        future.set_result(result)
    elif isinstance(error, BaseException):
        future.set_exception(error)
    else:
        future.set_exception(RuntimeError(error))


__all__ = ["from_callback"]
