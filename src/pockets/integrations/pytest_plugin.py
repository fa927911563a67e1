from __future__ import annotations

import pytest

from pockets._internal.container import Pocket, create_pocket
from pockets.config import PocketsSettings

_STRICT_MARKER = "pockets_strict"


def pytest_configure(config: pytest.Config) -> None:
    """Register the ``pockets_strict`` marker.

    Args:
        config: Pytest configuration object.

    """
    config.addinivalue_line(
        "markers",
        f"{_STRICT_MARKER}: build the test's root pocket in strict mode.",
    )


@pytest.fixture()
def pockets_settings() -> PocketsSettings:
    """Settings used to build the per-test root pocket.

    Override this fixture to pin configuration regardless of ``POCKETS_*``
    environment variables.

    Returns:
        Settings loaded from the environment.

    """
    return PocketsSettings()


@pytest.fixture()
def pockets_root(
    request: pytest.FixtureRequest,
    pockets_settings: PocketsSettings,
) -> Pocket:
    """Create a per-test root pocket.

    Tests marked with ``@pytest.mark.pockets_strict`` get a strict root.
    Override this fixture to share registrations across a test module.

    Returns:
        A new root ``Pocket``.

    """
    if request.node.get_closest_marker(_STRICT_MARKER) is not None:
        return create_pocket(strict=True)
    return create_pocket(settings=pockets_settings)


@pytest.fixture()
def pocket(pockets_root: Pocket) -> Pocket:
    """Create a child of ``pockets_root`` so tests never mutate the root directly.

    Returns:
        A new child ``Pocket``.

    """
    return pockets_root.pocket()
