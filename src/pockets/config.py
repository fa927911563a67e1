from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class PocketsSettings(BaseSettings):
    """Environment-driven defaults for ``create_pocket``.

    Values are read from ``POCKETS_*`` environment variables. Explicit
    keyword arguments to ``create_pocket`` always win over these settings.

    Examples:
        .. code-block:: console

            $ POCKETS_STRICT=1 python app.py

    """

    model_config = SettingsConfigDict(
        env_prefix="POCKETS_",
        extra="ignore",
    )

    strict: bool = False
    """Create strict root pockets: validate dependencies at registration time."""


__all__ = ["PocketsSettings"]
