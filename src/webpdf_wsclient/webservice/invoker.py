"""Invoker executing one web service call against a session's documents."""

from __future__ import annotations

import json
from collections.abc import Mapping
from typing import TYPE_CHECKING, Any

import structlog
from pydantic import ValidationError

from webpdf_wsclient.documents.models import DocumentFile, PdfPassword
from webpdf_wsclient.errors import ClientResultException, WsclientError
from webpdf_wsclient.webservice.parameters import (
    PARAMETER_MODELS,
    Billing,
    ParameterModel,
    Settings,
    ToolboxParameters,
)
from webpdf_wsclient.webservice.results import (
    BytesResult,
    DocumentResult,
    OperationResult,
)
from webpdf_wsclient.webservice.types import WebServiceType


if TYPE_CHECKING:
    from webpdf_wsclient.documents.document import RemoteDocument
    from webpdf_wsclient.session.session import Session


__all__ = ["WebServiceInvoker", "create_web_service_from_parameters"]

type Parameters = ParameterModel | ToolboxParameters

_ENVELOPE_SECTIONS = ("password", "billing", "settings")


def _conversion_failure(exc: Exception) -> ClientResultException:
    return ClientResultException(
        WsclientError.XML_OR_JSON_CONVERSION_FAILURE,
        cause=exc,
    ).append_message(str(exc))


def _service_type(value: WebServiceType | str) -> WebServiceType:
    try:
        return WebServiceType(value)
    except ValueError as exc:
        raise ClientResultException(
            WsclientError.UNKNOWN_WEBSERVICE_TYPE,
            cause=exc,
        ).append_message(f"Unknown web service '{value}'") from exc


class WebServiceInvoker:
    """Builds and executes calls of one web service.

    The parameter tree returned by ``get_operation_parameters`` is mutable;
    changing it before ``process`` is the normal way to configure a call.
    The tree is validated again on every ``process``, before anything is
    sent.

    Example:
        ```python
        converter = session.create_web_service(WebServiceType.CONVERTER)
        converter.get_operation_parameters().pages = "1-5"
        result = await converter.process(document)
        match result:
            case DocumentResult(document=pdf):
                data = await pdf.download()
            case BytesResult(content=content):
                ...
        ```

    Attributes:
        session: The session calls are executed on.
        service_type: The web service this invoker calls.
        password: Optional ``password`` section of the request envelope.
        billing: Optional ``billing`` section of the request envelope.
        settings: Optional ``settings`` section of the request envelope.
        additional_parameters: Extra query parameters sent with each call.
    """

    def __init__(self, session: Session, service_type: WebServiceType | str) -> None:
        """Initialize the invoker with default parameters.

        Raises:
            ClientResultException: UNKNOWN_WEBSERVICE_TYPE for unknown services.
        """
        self.session = session
        self.service_type = _service_type(service_type)
        self._parameters: Parameters = PARAMETER_MODELS[self.service_type]()
        self.password: PdfPassword | None = None
        self.billing: Billing | None = None
        self.settings: Settings | None = None
        self.additional_parameters: dict[str, str] = {}
        self._logger = structlog.get_logger(__name__).bind(
            session_id=session.session_id,
            service=self.service_type.value,
        )

    # -------------------------------------------------------------------------
    # Parameters
    # -------------------------------------------------------------------------

    def get_operation_parameters(self) -> Any:  # noqa: ANN401
        """Return the mutable parameter tree of the next call."""
        return self._parameters

    def _validate(self, tree: object) -> Parameters:
        model = PARAMETER_MODELS[self.service_type]
        try:
            if isinstance(tree, str | bytes):
                return model.model_validate_json(tree)
            if isinstance(tree, ParameterModel | ToolboxParameters):
                if not isinstance(tree, model):
                    msg = (
                        f"{type(tree).__name__} is not a parameter tree of "
                        f"'{self.service_type}'"
                    )
                    raise TypeError(msg)  # noqa: TRY301
                tree = tree.model_dump(by_alias=True)
            return model.model_validate(tree)
        except (ValidationError, ValueError, TypeError) as exc:
            raise _conversion_failure(exc) from exc

    def set_operation_parameters(self, tree: object) -> None:
        """Replace the whole parameter tree.

        Args:
            tree: A parameter model of this service, a mapping (a list for
                the toolbox) or its JSON text.

        Raises:
            ClientResultException: XML_OR_JSON_CONVERSION_FAILURE if the tree
                does not match the service's schema.
        """
        self._parameters = self._validate(tree)

    def build_envelope(self) -> dict[str, Any]:
        """Validate the parameters and return the request body.

        Raises:
            ClientResultException: XML_OR_JSON_CONVERSION_FAILURE if the
                parameters are invalid or a required field is unset.
        """
        parameters = self._validate(self._parameters)
        missing = parameters.missing_required()
        if missing:
            raise ClientResultException(
                WsclientError.XML_OR_JSON_CONVERSION_FAILURE,
            ).append_message(f"Missing required parameter(s): {', '.join(missing)}")
        envelope: dict[str, Any] = {self.service_type.value: parameters.to_payload()}
        for section in _ENVELOPE_SECTIONS:
            value = getattr(self, section)
            if value is not None:
                envelope[section] = value.to_payload()
        return envelope

    # -------------------------------------------------------------------------
    # Execution
    # -------------------------------------------------------------------------

    def _check_document(self, document: RemoteDocument | None) -> None:
        if self.session.is_closed:
            raise ClientResultException(WsclientError.INVALID_WEBSERVICE_SESSION)
        if document is None:
            if self.service_type.requires_document:
                raise ClientResultException(
                    WsclientError.INVALID_SOURCE_DOCUMENT,
                ).append_message(f"'{self.service_type}' requires an input document")
            return
        if document.session is not self.session:
            raise ClientResultException(
                WsclientError.INVALID_WEBSERVICE_SESSION,
            ).append_message("The document belongs to another session")
        self.session.document_manager.get_document(document.document_id)

    async def process(self, document: RemoteDocument | None = None) -> OperationResult:
        """Execute the web service.

        All local checks run before any network call: session state, input
        document, parameter validation and required fields.

        Args:
            document: The input document. Required for every service but
                the URL converter.

        Returns:
            ``DocumentResult`` with the new tracked document if the server
            answered with a document description, otherwise ``BytesResult``.

        Raises:
            ClientResultException: INVALID_SOURCE_DOCUMENT if a required input
                document is missing, INVALID_WEBSERVICE_SESSION for closed or
                foreign sessions, INVALID_DOCUMENT for stale documents,
                XML_OR_JSON_CONVERSION_FAILURE for invalid parameters and
                INVALID_RESULT_DOCUMENT if the answer names no document.
            ServerResultException: If the server fails the call.
            AuthResultException: If the server rejects the credentials.
        """
        self._check_document(document)
        envelope = self.build_envelope()
        document_id = document.document_id if document is not None else None
        manager = self.session.document_manager

        params: dict[str, str] = {}
        if document is None:
            params["history"] = str(manager.history_active).lower()
        params.update(self.additional_parameters)

        log = self._logger.bind(document_id=document_id)
        log.debug("web_service_call")
        response = await self.session.transport.request(
            "POST",
            self.service_type.endpoint_for(document_id),
            params=params,
            json=envelope,
        )

        media_type = response.headers.get("Content-Type", "application/octet-stream")
        if "json" not in media_type.lower():
            log.debug("web_service_bytes_result", size=len(response.content))
            return BytesResult(response.content, media_type)

        try:
            document_file = DocumentFile.model_validate_json(response.content)
        except (ValidationError, ValueError) as exc:
            raise ClientResultException(
                WsclientError.INVALID_RESULT_DOCUMENT,
                cause=exc,
            ).append_message(str(exc)) from exc
        if not document_file.document_id:
            raise ClientResultException(WsclientError.INVALID_RESULT_DOCUMENT)

        result = await manager.synchronize_document(document_file)
        log.info("web_service_document_result", result_id=result.document_id)
        return DocumentResult(result)

    def __repr__(self) -> str:
        return f"WebServiceInvoker(service_type={self.service_type.value!r})"


def create_web_service_from_parameters(
    session: Session,
    envelope: Mapping[str, Any] | str,
) -> WebServiceInvoker:
    """Create an invoker from a complete request envelope.

    The service is inferred from the envelope's parameter key, e.g.
    ``{"converter": {"pages": "1-5"}, "billing": {...}}``.

    Raises:
        ClientResultException: XML_OR_JSON_CONVERSION_FAILURE if the envelope
            cannot be parsed, UNKNOWN_WEBSERVICE_TYPE if it does not name
            exactly one known service.
    """
    if isinstance(envelope, str):
        try:
            envelope = json.loads(envelope)
        except ValueError as exc:
            raise _conversion_failure(exc) from exc
    if not isinstance(envelope, Mapping):
        raise ClientResultException(
            WsclientError.XML_OR_JSON_CONVERSION_FAILURE,
        ).append_message("The envelope must be a JSON object")

    keys = [service for service in WebServiceType if service.value in envelope]
    if len(keys) != 1:
        raise ClientResultException(WsclientError.UNKNOWN_WEBSERVICE_TYPE).append_message(
            "The envelope must contain exactly one web service section"
        )

    invoker = session.create_web_service(keys[0])
    invoker.set_operation_parameters(envelope[keys[0].value])
    try:
        if "password" in envelope:
            invoker.password = PdfPassword.model_validate(envelope["password"])
        if "billing" in envelope:
            invoker.billing = Billing.model_validate(envelope["billing"])
        if "settings" in envelope:
            invoker.settings = Settings.model_validate(envelope["settings"])
    except ValidationError as exc:
        raise _conversion_failure(exc) from exc
    return invoker
