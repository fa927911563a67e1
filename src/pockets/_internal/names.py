from __future__ import annotations

import re

from pockets.exceptions import PocketsInvalidNameError

_PREFIX_PATTERN = re.compile(r"^(?:create|get|load)")
_SEPARATOR_PATTERN = re.compile(r"[\W_]+")


def canonicalize(raw: object) -> str:
    """Normalize a registration or request name into its registry key.

    The name is lowercased, a single leading ``create``/``get``/``load`` token
    is dropped, and every non-alphanumeric character (underscores included) is
    removed. ``"getWidgetFactory"``, ``"get_widget_factory"`` and
    ``"Widget Factory"`` all become ``"widgetfactory"``.

    Args:
        raw: Name supplied by the caller.

    Raises:
        PocketsInvalidNameError: If ``raw`` is not a non-empty string, or
            nothing is left after normalization.

    """
    if not isinstance(raw, str) or not raw:
        msg = f"Cannot canonicalize {raw!r}"
        raise PocketsInvalidNameError(msg)

    name = _SEPARATOR_PATTERN.sub("", _PREFIX_PATTERN.sub("", raw.lower(), count=1))
    if not name:
        msg = f"Cannot canonicalize {raw!r}: nothing left after normalization"
        raise PocketsInvalidNameError(msg)
    return name


__all__ = ["canonicalize"]
