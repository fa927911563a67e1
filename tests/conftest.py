"""Shared pytest fixtures for pockets tests."""

import pytest

from pockets import Pocket, create_pocket
from pockets._internal.providers import FactoryDependenciesExtractor


@pytest.fixture()
def root() -> Pocket:
    """Non-strict root pocket."""
    return create_pocket(strict=False)


@pytest.fixture()
def strict_root() -> Pocket:
    """Strict root pocket."""
    return create_pocket(strict=True)


@pytest.fixture()
def dependencies_extractor() -> FactoryDependenciesExtractor:
    """FactoryDependenciesExtractor instance."""
    return FactoryDependenciesExtractor()
