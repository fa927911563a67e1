from pockets.adapters import from_callback
from pockets.config import PocketsSettings
from pockets.container import Pocket, Thunk, create_pocket
from pockets.exceptions import (
    PocketsError,
    PocketsInvalidNameError,
    PocketsInvalidRegistrationError,
    PocketsNameConflictError,
    PocketsNoProviderError,
    PocketsUnknownTargetError,
    PocketsUnsatisfiedDependencyError,
)
from pockets.names import canonicalize
from pockets.providers import Constant, Factory, factory

__all__ = [
    "Constant",
    "Factory",
    "Pocket",
    "PocketsError",
    "PocketsInvalidNameError",
    "PocketsInvalidRegistrationError",
    "PocketsNameConflictError",
    "PocketsNoProviderError",
    "PocketsSettings",
    "PocketsUnknownTargetError",
    "PocketsUnsatisfiedDependencyError",
    "Thunk",
    "canonicalize",
    "create_pocket",
    "factory",
    "from_callback",
]
