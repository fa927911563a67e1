from __future__ import annotations

import pytest

from pockets import PocketsInvalidNameError, canonicalize


@pytest.mark.parametrize(
    ("raw", "expected"),
    [
        ("five", "five"),
        ("Five", "five"),
        ("getFive", "five"),
        ("get five", "five"),
        ("createWidgetFactory", "widgetfactory"),
        ("get_widget_factory", "widgetfactory"),
        ("loadConfig", "config"),
        ("provided-value", "providedvalue"),
    ],
)
def test_canonicalize_normalizes_case_prefix_and_separators(raw: str, expected: str) -> None:
    assert canonicalize(raw) == expected


def test_canonicalize_strips_only_one_leading_prefix() -> None:
    assert canonicalize("getLoadThing") == "loadthing"


def test_canonicalize_keeps_prefix_words_that_are_not_leading() -> None:
    assert canonicalize("widgetGetter") == "widgetgetter"


def test_canonicalize_is_idempotent_for_plain_names() -> None:
    assert canonicalize(canonicalize("getWidget")) == canonicalize("getWidget") == "widget"


@pytest.mark.parametrize("raw", ["", None, 5, b"five", "get", "__"])
def test_canonicalize_rejects_invalid_names(raw: object) -> None:
    with pytest.raises(PocketsInvalidNameError):
        canonicalize(raw)
