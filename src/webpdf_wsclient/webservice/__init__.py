"""Web service invocation: service types, parameter trees, results."""

from __future__ import annotations

from webpdf_wsclient.webservice.invoker import (
    WebServiceInvoker,
    create_web_service_from_parameters,
)
from webpdf_wsclient.webservice.parameters import (
    PARAMETER_MODELS,
    BarcodeParameters,
    Billing,
    ConverterParameters,
    Metrics,
    OcrLanguage,
    OcrOutput,
    OcrParameters,
    PageParameters,
    ParameterModel,
    PdfaConvert,
    PdfaErrorReport,
    PdfaLevel,
    PdfaParameters,
    PdfaSuccessReport,
    Settings,
    SignatureParameters,
    ToolboxParameters,
    UrlConverterParameters,
)
from webpdf_wsclient.webservice.results import (
    BytesResult,
    DocumentResult,
    OperationResult,
)
from webpdf_wsclient.webservice.types import WebServiceType


__all__ = [
    "PARAMETER_MODELS",
    "BarcodeParameters",
    "Billing",
    "BytesResult",
    "ConverterParameters",
    "DocumentResult",
    "Metrics",
    "OcrLanguage",
    "OcrOutput",
    "OcrParameters",
    "OperationResult",
    "PageParameters",
    "ParameterModel",
    "PdfaConvert",
    "PdfaErrorReport",
    "PdfaLevel",
    "PdfaParameters",
    "PdfaSuccessReport",
    "Settings",
    "SignatureParameters",
    "ToolboxParameters",
    "UrlConverterParameters",
    "WebServiceInvoker",
    "WebServiceType",
    "create_web_service_from_parameters",
]
