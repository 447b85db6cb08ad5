"""Settings management for webpdf-wsclient.

Settings come from a YAML file and ``WSCLIENT_*`` environment variables and
translate into the values a session needs.

Example:
    >>> from webpdf_wsclient.config import load_settings
    >>> settings = load_settings("wsclient.yaml")
    >>> context = settings.to_session_context()
    >>> provider = settings.to_credential_provider()
"""

from __future__ import annotations

import os
import re
from pathlib import Path
from typing import TYPE_CHECKING, Any, ClassVar

from pydantic import SecretStr, ValidationError, model_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from webpdf_wsclient.config.exceptions import (
    ConfigurationError,
    ConfigurationFileNotFoundError,
    ConfigurationValidationError,
)
from webpdf_wsclient.config.schema import (
    CredentialsConfig,
    ObservabilityConfig,
    ProxyConfig,
    ServerConfig,
    TLSConfig,
)
from webpdf_wsclient.session.auth import (
    AnonymousProvider,
    BearerTokenProvider,
    CertificateProvider,
    CredentialProvider,
    UserProvider,
)
from webpdf_wsclient.session.context import ProxyOptions, SessionContext, TLSOptions


if TYPE_CHECKING:
    from collections.abc import Sequence


__all__ = [
    "Settings",
    "clear_settings_cache",
    "find_config_file",
    "get_settings",
    "load_settings",
]


# ---------------------------------------------------------------------------
# Environment Variable Interpolation
# ---------------------------------------------------------------------------

_ENV_VAR_PATTERN = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")


def _interpolate_env_vars(value: object) -> object:
    """Recursively interpolate ${VAR} and ${VAR:-default} in strings.

    Unset variables without a default become the empty string.

    Example:
        >>> os.environ["WEBPDF_USER"] = "admin"
        >>> _interpolate_env_vars("${WEBPDF_USER}")
        'admin'
        >>> _interpolate_env_vars("${MISSING:-fallback}")
        'fallback'
    """
    if isinstance(value, str):

        def replace(match: re.Match[str]) -> str:
            env_value = os.environ.get(match.group(1))
            if env_value is not None:
                return env_value
            return match.group(2) or ""

        return _ENV_VAR_PATTERN.sub(replace, value)

    if isinstance(value, dict):
        return {k: _interpolate_env_vars(v) for k, v in value.items()}

    if isinstance(value, list):
        return [_interpolate_env_vars(item) for item in value]

    return value


class _InterpolatingYamlConfigSettingsSource(YamlConfigSettingsSource):
    """YAML settings source that interpolates environment variables."""

    def __init__(
        self,
        settings_cls: type[BaseSettings],
        yaml_file: Path | str | None = None,
    ) -> None:
        if yaml_file is not None:
            super().__init__(settings_cls, yaml_file=yaml_file)
        else:
            super().__init__(settings_cls)

    def _read_files(
        self,
        files: Path | str | Sequence[Path | str] | None,
    ) -> dict[str, Any]:
        raw_data = super()._read_files(files)
        interpolated = _interpolate_env_vars(raw_data)
        if not isinstance(interpolated, dict):  # pragma: no cover
            return {}
        return interpolated


# ---------------------------------------------------------------------------
# Settings Class
# ---------------------------------------------------------------------------


class Settings(BaseSettings):
    """Client settings loaded from a YAML file and environment variables.

    Priority order (highest to lowest):

    1. Constructor arguments
    2. Environment variables (``WSCLIENT_*``, ``__`` separates sections,
       e.g. ``WSCLIENT_SERVER__URL``)
    3. YAML configuration file
    4. Default values

    Attributes:
        server: webPDF server connection settings.
        tls: TLS settings for ``https`` servers.
        proxy: HTTP proxy settings.
        credentials: Credentials used to open sessions.
        observability: Logging settings.
    """

    model_config = SettingsConfigDict(
        yaml_file=None,
        yaml_file_encoding="utf-8",
        env_prefix="WSCLIENT_",
        env_nested_delimiter="__",
        extra="ignore",
        validate_default=True,
    )

    CONFIG_SEARCH_PATHS: ClassVar[list[Path]] = [
        Path("wsclient.yaml"),
        Path("wsclient.yml"),
        Path.home() / ".config" / "webpdf-wsclient" / "config.yaml",
        Path("/etc/webpdf-wsclient/config.yaml"),
    ]

    # Set by load_settings() for the duration of one instantiation.
    _yaml_file_override: ClassVar[Path | str | None] = None

    server: ServerConfig = ServerConfig()
    tls: TLSConfig = TLSConfig()
    proxy: ProxyConfig = ProxyConfig()
    credentials: CredentialsConfig = CredentialsConfig()
    observability: ObservabilityConfig = ObservabilityConfig()

    @model_validator(mode="after")
    def resolve_password(self) -> Settings:
        """Resolve the password from ``password_file`` or ``WEBPDF_PASSWORD``.

        An explicit ``password`` wins. Otherwise ``password_file`` is read,
        and as a last resort the ``WEBPDF_PASSWORD`` environment variable.

        Raises:
            ValueError: If ``password_file`` is set but does not exist.
        """
        credentials = self.credentials
        if credentials.password is not None or credentials.username is None:
            return self

        if credentials.password_file is not None:
            password_path = credentials.password_file
            if not password_path.is_file():
                msg = f"Password file not found: {password_path}"
                raise ValueError(msg)
            credentials.password = SecretStr(password_path.read_text().strip())
            return self

        env_password = os.environ.get("WEBPDF_PASSWORD")
        if env_password:
            credentials.password = SecretStr(env_password)

        return self

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,  # noqa: ARG003
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Order sources: init, environment, YAML, file secrets."""
        return (
            init_settings,
            env_settings,
            _InterpolatingYamlConfigSettingsSource(
                settings_cls,
                yaml_file=cls._yaml_file_override,
            ),
            file_secret_settings,
        )

    # -- conversions --------------------------------------------------------

    def to_session_context(self) -> SessionContext:
        """Build the :class:`SessionContext` described by these settings.

        Raises:
            ClientResultException: INVALID_URL if ``server.url`` is not a
                usable http(s) URL.
        """
        tls = TLSOptions(**self.tls.model_dump())
        proxy = None
        if self.proxy.host:
            proxy = ProxyOptions(**self.proxy.model_dump())
        return SessionContext(
            url=self.server.url,
            transport=self.server.transport,
            tls=tls,
            proxy=proxy,
            timeout=self.server.timeout,
            skew_time=self.server.skew_time,
        )

    def to_credential_provider(self) -> CredentialProvider:
        """Select the credential provider for these settings.

        A bearer token wins over user credentials. A TLS client certificate
        without any other credentials selects certificate authentication.
        Everything else is anonymous.
        """
        credentials = self.credentials
        if credentials.token is not None:
            return BearerTokenProvider(credentials.token.get_secret_value())
        if credentials.username:
            password = credentials.password
            return UserProvider(
                credentials.username,
                password.get_secret_value() if password else "",
            )
        if self.tls.client_certificate is not None:
            return CertificateProvider(
                self.tls.client_certificate,
                self.tls.client_key,
            )
        return AnonymousProvider()


# ---------------------------------------------------------------------------
# Settings Loading Functions
# ---------------------------------------------------------------------------

_cached_settings: Settings | None = None


def find_config_file(config_path: Path | str | None = None) -> Path | None:
    """Find the configuration file.

    Args:
        config_path: Explicit path, or None to search the default locations.

    Returns:
        The file path if it exists, None otherwise.
    """
    if config_path is not None:
        path = Path(config_path)
        return path if path.is_file() else None

    for search_path in Settings.CONFIG_SEARCH_PATHS:
        if search_path.is_file():
            return search_path

    return None


def load_settings(
    config_path: Path | str | None = None,
    *,
    require_config_file: bool = False,
) -> Settings:
    """Load, validate and cache settings.

    Args:
        config_path: Path to a YAML config file. If None, the locations in
            ``Settings.CONFIG_SEARCH_PATHS`` are searched.
        require_config_file: Raise instead of falling back to environment
            variables and defaults when no file is found.

    Returns:
        The validated settings, also returned by later ``get_settings()``
        calls.

    Raises:
        ConfigurationFileNotFoundError: No config file was found although one
            was required or explicitly named.
        ConfigurationValidationError: The configuration is invalid.
    """
    global _cached_settings  # noqa: PLW0603

    config_file = find_config_file(config_path)

    if config_file is None and (require_config_file or config_path is not None):
        raise ConfigurationFileNotFoundError(
            path=str(config_path) if config_path else None,
            searched_paths=[str(p) for p in Settings.CONFIG_SEARCH_PATHS],
        )

    try:
        Settings._yaml_file_override = config_file  # noqa: SLF001
        try:
            settings = Settings()
        finally:
            Settings._yaml_file_override = None  # noqa: SLF001
    except ConfigurationError:
        raise
    except ValidationError as exc:
        msg = f"Invalid configuration: {exc.error_count()} error(s)"
        raise ConfigurationValidationError(
            msg,
            errors=[dict(error) for error in exc.errors()],
        ) from exc
    except Exception as exc:
        msg = f"Failed to load configuration: {exc}"
        raise ConfigurationValidationError(msg) from exc
    else:
        _cached_settings = settings
        return settings


def get_settings() -> Settings:
    """Return the cached settings, loading them on first use."""
    global _cached_settings  # noqa: PLW0603

    if _cached_settings is None:
        _cached_settings = load_settings()

    return _cached_settings


def clear_settings_cache() -> None:
    """Forget the cached settings so the next ``get_settings()`` reloads."""
    global _cached_settings  # noqa: PLW0603
    _cached_settings = None
