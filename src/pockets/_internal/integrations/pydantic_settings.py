from __future__ import annotations

import types
from typing import TypeGuard

from pydantic_settings import BaseSettings


def is_pydantic_settings_subclass(candidate: object) -> TypeGuard[type[BaseSettings]]:
    """Return whether a registration argument is a Pydantic settings model class.

    Pockets registers such classes through a zero-argument factory: their
    fields come from the environment and ``.env`` files, so the constructor
    parameters must not be read as dependency names.

    Args:
        candidate: Registration argument to test.

    Returns:
        ``True`` when ``candidate`` is a runtime class deriving from
        ``pydantic_settings.BaseSettings``; otherwise ``False``.

    """
    if not isinstance(candidate, type) or isinstance(candidate, types.GenericAlias):
        return False
    try:
        return issubclass(candidate, BaseSettings)
    except TypeError:
        return False


__all__ = [
    "is_pydantic_settings_subclass",
]
