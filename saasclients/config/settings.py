"""
Provider settings loaded from the environment.

Every provider reads the same family of variables, prefixed with its name:

    GITHUB_TOKEN            (or GITHUB_API_KEY)
    ZOOM_CLIENT_ID
    ZOOM_CLIENT_SECRET
    ZOOM_REDIRECT_URI
    SENDGRID_HOST           overrides the default base URL
    SHOPIFY_SHOP            anything else lands in `extra` as "shop"

Security:
    Secrets use SecretStr to prevent accidental logging.
    Access the value with `.get_secret_value()`.
"""

from __future__ import annotations

import os
from functools import lru_cache

from pydantic import BaseModel, Field, SecretStr

_KNOWN_SUFFIXES = ("TOKEN", "API_KEY", "CLIENT_ID", "CLIENT_SECRET", "REDIRECT_URI", "HOST")


class ProviderSettings(BaseModel):
    """Credentials and connection settings for one provider."""

    provider: str = Field(..., description="Provider name, e.g. 'github'")
    token: SecretStr = Field(default=SecretStr(""), description="API key or access token")
    client_id: str = Field(default="", description="OAuth client id")
    client_secret: SecretStr = Field(default=SecretStr(""), description="OAuth client secret")
    redirect_uri: str = Field(default="", description="OAuth redirect URI")
    host: str | None = Field(None, description="Base URL override")
    extra: dict[str, str] = Field(default_factory=dict, description="Other <PROVIDER>_* values")

    @property
    def prefix(self) -> str:
        return self.provider.upper()

    def require(self, field_name: str) -> str:
        """
        Return a setting, raising if it is empty.

        Args:
            field_name: "token", "client_id", ... or a key of `extra`

        Raises:
            ValueError: Naming the environment variable to set
        """
        if field_name in self.extra:
            value = self.extra[field_name]
        else:
            value = getattr(self, field_name, "")
            if isinstance(value, SecretStr):
                value = value.get_secret_value()

        if not value:
            raise ValueError(f"{self.prefix}_{field_name.upper()} is not set")
        return value

    def secret(self, field_name: str) -> str:
        """Plain value of a SecretStr field ("" when unset)."""
        return getattr(self, field_name).get_secret_value()


@lru_cache()
def load_provider_settings(provider: str) -> ProviderSettings:
    """
    Read <PROVIDER>_* variables from the environment.

    Uses lru_cache for singleton pattern. Call
    `load_provider_settings.cache_clear()` after changing the environment.
    """
    prefix = f"{provider.upper()}_"

    def env(suffix: str) -> str:
        return os.getenv(f"{prefix}{suffix}", "")

    extra = {
        key[len(prefix):].lower(): value
        for key, value in os.environ.items()
        if key.startswith(prefix) and key[len(prefix):] not in _KNOWN_SUFFIXES
    }

    return ProviderSettings(
        provider=provider.lower(),
        token=env("TOKEN") or env("API_KEY"),
        client_id=env("CLIENT_ID"),
        client_secret=env("CLIENT_SECRET"),
        redirect_uri=env("REDIRECT_URI"),
        host=env("HOST") or None,
        extra=extra,
    )
