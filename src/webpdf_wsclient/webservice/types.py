"""The web services known to this client."""

from __future__ import annotations

from enum import StrEnum


__all__ = ["DOCUMENT_ID_PLACEHOLDER", "WebServiceType"]

DOCUMENT_ID_PLACEHOLDER = "{documentId}"


class WebServiceType(StrEnum):
    """One document-transformation web service of the server.

    The value is the key of the service's parameters in the request
    envelope; it is also the first segment of the REST endpoint.
    """

    CONVERTER = "converter"
    TOOLBOX = "toolbox"
    PDFA = "pdfa"
    OCR = "ocr"
    SIGNATURE = "signature"
    URLCONVERTER = "urlconverter"
    BARCODE = "barcode"

    @property
    def requires_document(self) -> bool:
        """Return True if the service operates on an uploaded document."""
        return self is not WebServiceType.URLCONVERTER

    @property
    def rest_endpoint(self) -> str:
        """Return the endpoint template, relative to ``<server>/rest/``."""
        if self.requires_document:
            return f"{self.value}/{DOCUMENT_ID_PLACEHOLDER}"
        return self.value

    def endpoint_for(self, document_id: str | None) -> str:
        """Return the endpoint for a call on ``document_id``."""
        return self.rest_endpoint.replace(DOCUMENT_ID_PLACEHOLDER, document_id or "new")
