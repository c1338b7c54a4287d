"""Environment-driven provider settings."""

from saasclients.config.settings import ProviderSettings, load_provider_settings

__all__ = ["ProviderSettings", "load_provider_settings"]
