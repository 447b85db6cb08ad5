"""Configuration loading for webpdf-wsclient.

Settings are read from a YAML file (with ${VAR} and ${VAR:-default}
interpolation) and ``WSCLIENT_*`` environment variables.

Example:
    >>> from webpdf_wsclient.config import load_settings
    >>> settings = load_settings()
    >>> settings.server.url
    'http://localhost:8080/webPDF/'
"""

from __future__ import annotations

from webpdf_wsclient.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from webpdf_wsclient.config.schema import (
    ConfigBaseModel,
    CredentialsConfig,
    LoggingConfig,
    ObservabilityConfig,
    ProxyConfig,
    ServerConfig,
    TLSConfig,
)
from webpdf_wsclient.config.settings import (
    Settings,
    clear_settings_cache,
    find_config_file,
    get_settings,
    load_settings,
)


__all__ = [
    "ConfigBaseModel",
    "ConfigurationError",
    "ConfigurationFileNotFoundError",
    "ConfigurationValidationError",
    "CredentialsConfig",
    "LoggingConfig",
    "ObservabilityConfig",
    "ProxyConfig",
    "ServerConfig",
    "Settings",
    "TLSConfig",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "load_settings",
]
