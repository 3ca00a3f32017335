"""
Runtime configuration for the beacon decoder.

Centralises all environment variable names and default values.

Uses ``pydantic_settings.BaseSettings`` for automatic environment
variable binding, type coercion, and validation.  A ``.env`` file
in the working directory is honoured via python-dotenv.
"""

from __future__ import annotations

import functools
from typing import Literal

import dotenv
import pydantic
import pydantic_settings

LogLevel = Literal["debug", "info"]


class Settings(pydantic_settings.BaseSettings):
    """Decoder settings loaded from environment variables.

    Attributes:
        log_level: ``debug`` enables debug and timing lines.
        disabled_providers: Comma-separated provider ids excluded
            from the effective capture pattern.
    """

    log_level: LogLevel = pydantic.Field(
        default="info", validation_alias="BEACON_LOG_LEVEL"
    )
    disabled_providers: str = pydantic.Field(
        default="", validation_alias="BEACON_DISABLED_PROVIDERS"
    )

    @pydantic.field_validator("log_level", mode="before")
    @classmethod
    def _normalise_level(cls, value: object) -> object:
        """Accept any casing for the level name."""
        if isinstance(value, str):
            return value.strip().lower()
        return value

    @property
    def disabled_provider_ids(self) -> tuple[str, ...]:
        """Disabled provider ids, upper-cased and de-blanked."""
        return tuple(
            part.strip().upper()
            for part in self.disabled_providers.split(",")
            if part.strip()
        )

    def provider_states(self) -> dict[str, bool]:
        """Build the enabled map accepted by ``ProviderRegistry.effective_pattern``.

        Providers not listed are absent from the map and so stay
        enabled by default.
        """
        return {provider_id: False for provider_id in self.disabled_provider_ids}


@functools.lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get the process-wide settings (loaded once)."""
    dotenv.load_dotenv()
    return Settings()
