"""Configuração do coletor: settings, provedores e logging."""

from config.logging_config import bind_cycle, get_logger, setup_logging
from config.providers import PROVIDERS_CONFIG, ProviderConfig, get_active_providers
from config.settings import Settings, get_settings

__all__ = [
    "Settings",
    "get_settings",
    "ProviderConfig",
    "PROVIDERS_CONFIG",
    "get_active_providers",
    "setup_logging",
    "get_logger",
    "bind_cycle",
]
