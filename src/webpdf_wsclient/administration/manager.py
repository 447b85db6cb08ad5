"""Administration manager: server log, status, configuration and data stores.

Every call first checks that the session's user is an administrator and
fails with ``ClientResultException(ADMIN_PERMISSION_ERROR)`` otherwise.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

import structlog
from pydantic import BaseModel, ValidationError

from webpdf_wsclient.administration.models import (
    KEYSTORE_FIELDS,
    ConfigurationMode,
    ConfigurationResult,
    ConfigurationType,
    FileDataStore,
    ServerStatus,
    SessionTable,
)
from webpdf_wsclient.errors import ClientResultException, WsclientError


if TYPE_CHECKING:
    from collections.abc import Iterable
    from datetime import datetime

    import httpx

    from webpdf_wsclient.session.session import Session


__all__ = ["AdministrationManager"]


def _parse[M: BaseModel](model: type[M], response: httpx.Response) -> M:
    try:
        return model.model_validate_json(response.content)
    except (ValidationError, ValueError) as exc:
        raise ClientResultException(
            WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
            cause=exc,
        ).append_message(str(exc)) from exc


def _json(response: httpx.Response) -> Any:  # noqa: ANN401
    try:
        return response.json()
    except ValueError as exc:
        raise ClientResultException(
            WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
            cause=exc,
        ) from exc


class AdministrationManager:
    """Administrative operations of one session.

    Configuration sections and their keystores are cached after the first
    fetch. A cached section is only replaced by an update once the server
    reported success.
    """

    CONFIGURATION_PATH = "admin/configuration/"

    def __init__(self, session: Session) -> None:
        """Initialize the manager for ``session``."""
        self.session = session
        self._configurations: dict[ConfigurationType, dict[str, Any]] = {}
        self._keystores: dict[ConfigurationType, dict[str, Any]] = {}
        self._logger = structlog.get_logger(__name__).bind(
            session_id=session.session_id,
        )

    def invalidate(self) -> None:
        """Drop all cached configuration. Called when the session closes."""
        self._configurations.clear()
        self._keystores.clear()

    async def _validate_user(self) -> None:
        user = await self.session.get_user()
        if not user.is_admin:
            raise ClientResultException(WsclientError.ADMIN_PERMISSION_ERROR)

    # -------------------------------------------------------------------------
    # Server
    # -------------------------------------------------------------------------

    async def fetch_log_length(self, date: str | None = None) -> int:
        """Return the size in bytes of the server log of ``date`` (default: today)."""
        await self._validate_user()
        response = await self.session.transport.request(
            "HEAD",
            "admin/server/log",
            params={"date": date} if date else None,
            headers={"Accept": "*/*"},
        )
        try:
            return int(response.headers.get("Content-Length", 0))
        except ValueError as exc:
            raise ClientResultException(
                WsclientError.INVALID_HTTP_MESSAGE_CONTENT,
                cause=exc,
            ).append_message("Malformed Content-Length header") from exc

    async def fetch_log(self, range_: str = "0-", date: str | None = None) -> str:
        """Return (a byte range of) the server log.

        Args:
            range_: Byte range, e.g. ``"0-"`` for the whole log or
                ``"1024-2047"``.
            date: Log date (``YYYY-MM-DD``), today's log if omitted.
        """
        await self._validate_user()
        response = await self.session.transport.request(
            "GET",
            "admin/server/log",
            params={"date": date} if date else None,
            headers={"Accept": "text/plain", "Range": f"bytes={range_}"},
        )
        return response.text

    async def fetch_server_status(self) -> ServerStatus:
        """Return the status of the server and its web services."""
        await self._validate_user()
        response = await self.session.transport.request("GET", "admin/server/status")
        return _parse(ServerStatus, response)

    async def build_support_package(
        self,
        groups: Iterable[str] | None = None,
        start: str | None = None,
        end: str | None = None,
    ) -> bytes:
        """Build and download a support package (ZIP archive).

        Args:
            groups: Entry groups to include, all if omitted.
            start: Include log data from this date on.
            end: Include log data up to this date.
        """
        await self._validate_user()
        params: dict[str, Any] = {}
        if groups:
            params["group"] = list(groups)
        if start:
            params["start"] = start
        if end:
            params["end"] = end
        response = await self.session.transport.request(
            "GET",
            "admin/server/support",
            params=params,
            headers={"Accept": "application/octet-stream"},
        )
        return response.content

    async def restart_server(self) -> None:
        """Restart the server. Open sessions, including this one, end."""
        await self._validate_user()
        await self.session.transport.request("GET", "admin/server/restart")
        self._logger.warning("server_restart_requested")

    # -------------------------------------------------------------------------
    # Configuration
    # -------------------------------------------------------------------------

    async def fetch_configuration(
        self,
        configuration_type: ConfigurationType,
    ) -> dict[str, Any]:
        """Fetch a configuration section from the server and cache it."""
        await self._validate_user()
        response = await self.session.transport.request(
            "GET",
            f"{self.CONFIGURATION_PATH}{configuration_type}",
        )
        payload = _json(response)
        if not isinstance(payload, dict):
            raise ClientResultException(WsclientError.INVALID_HTTP_MESSAGE_CONTENT)
        configuration = payload.get("configuration") or {}
        self._configurations[configuration_type] = configuration
        self._keystores[configuration_type] = {
            name: payload[name]
            for name in KEYSTORE_FIELDS[configuration_type]
            if name in payload
        }
        return configuration

    async def get_configuration(
        self,
        configuration_type: ConfigurationType,
    ) -> dict[str, Any]:
        """Return the cached configuration section, fetching it if needed."""
        await self._validate_user()
        cached = self._configurations.get(configuration_type)
        if cached is None:
            return await self.fetch_configuration(configuration_type)
        return cached

    async def get_keystores(
        self,
        configuration_type: ConfigurationType,
    ) -> dict[str, Any]:
        """Return the keystores belonging to a configuration section."""
        if configuration_type not in self._keystores:
            await self.fetch_configuration(configuration_type)
        return self._keystores.get(configuration_type, {})

    def set_keystore(
        self,
        configuration_type: ConfigurationType,
        name: str,
        keystore: Any,  # noqa: ANN401
    ) -> None:
        """Replace a keystore sent along with the next update."""
        if name not in KEYSTORE_FIELDS[configuration_type]:
            raise ClientResultException(WsclientError.INVALID_AUTH_MATERIAL).append_message(
                f"'{configuration_type}' has no keystore '{name}'"
            )
        self._keystores.setdefault(configuration_type, {})[name] = keystore

    async def _post_configuration(
        self,
        configuration_type: ConfigurationType,
        configuration: dict[str, Any],
        checks: list[Any] | None,
        mode: ConfigurationMode,
    ) -> ConfigurationResult:
        await self._validate_user()
        body: dict[str, Any] = {
            "configuration": configuration,
            "configurationMode": mode.value,
            "configurationType": configuration_type.value,
        }
        if checks is not None:
            body["configurationChecks"] = checks
        body.update(await self.get_keystores(configuration_type))
        response = await self.session.transport.request(
            "POST",
            self.CONFIGURATION_PATH,
            json=body,
        )
        return _parse(ConfigurationResult, response)

    async def update_configuration(
        self,
        configuration_type: ConfigurationType,
        configuration: dict[str, Any],
        checks: list[Any] | None = None,
    ) -> ConfigurationResult:
        """Write a configuration section.

        The local cache is only updated if the server reports success.
        """
        result = await self._post_configuration(
            configuration_type,
            configuration,
            checks,
            ConfigurationMode.WRITE,
        )
        if result.succeeded:
            self._configurations[configuration_type] = configuration
            self._logger.info("configuration_updated", type=configuration_type.value)
        else:
            self._logger.warning(
                "configuration_update_rejected",
                type=configuration_type.value,
                error=result.error.message if result.error else None,
            )
        return result

    async def validate_configuration(
        self,
        configuration_type: ConfigurationType,
        configuration: dict[str, Any],
        checks: list[Any] | None = None,
    ) -> ConfigurationResult:
        """Let the server validate a configuration section without applying it."""
        return await self._post_configuration(
            configuration_type,
            configuration,
            checks,
            ConfigurationMode.VALIDATE,
        )

    # -------------------------------------------------------------------------
    # Data stores
    # -------------------------------------------------------------------------

    async def fetch_datastore(self, group: str, name: str | None = None) -> FileDataStore:
        """Return a file of a data store group."""
        await self._validate_user()
        response = await self.session.transport.request(
            "GET",
            f"admin/datastore/{group}",
            params={"name": name} if name else None,
        )
        return _parse(FileDataStore, response)

    async def update_datastore(self, store: FileDataStore) -> None:
        """Replace a data store file."""
        await self._validate_user()
        await self.session.transport.request(
            "POST",
            "admin/datastore/",
            json=store.to_payload(),
        )

    async def delete_datastore(self, group: str, name: str | None = None) -> None:
        """Delete a data store file, or the whole group if ``name`` is omitted."""
        await self._validate_user()
        await self.session.transport.request(
            "DELETE",
            f"admin/datastore/{group}",
            params={"name": name} if name else None,
        )

    # -------------------------------------------------------------------------
    # Statistics and sessions
    # -------------------------------------------------------------------------

    async def fetch_server_statistic(  # noqa: PLR0913
        self,
        data_source: str,
        aggregation: str,
        start: datetime,
        end: datetime,
        webservices: Iterable[str] | None = None,
    ) -> Any:  # noqa: ANN401
        """Return usage statistics of the web services.

        Args:
            data_source: Statistic source, e.g. ``"webservice"``.
            aggregation: Time bucket, e.g. ``"day"``.
            start: Start of the period.
            end: End of the period.
            webservices: Limit the statistic to these services.
        """
        await self._validate_user()
        params: dict[str, Any] = {"start": start.isoformat(), "end": end.isoformat()}
        if webservices:
            params["webservice"] = list(webservices)
        response = await self.session.transport.request(
            "GET",
            f"admin/statistic/{data_source}/{aggregation}",
            params=params,
        )
        return _json(response)

    async def fetch_session_table(self) -> SessionTable:
        """Return the sessions currently open on the server."""
        await self._validate_user()
        response = await self.session.transport.request("GET", "admin/session/table")
        return _parse(SessionTable, response)

    async def close_session(self, session_id: str) -> None:
        """Close a session on the server."""
        await self._validate_user()
        await self.session.transport.request("POST", f"admin/session/{session_id}/close")
        self._logger.info("remote_session_closed", closed_session_id=session_id)
