"""Parameter trees of the web services.

Only what local validation needs is modelled: required fields, value ranges
and enumerations. Every model accepts unknown keys and passes them through
to the server unchanged, so options this client does not know about can
still be used.
"""

from __future__ import annotations

from enum import StrEnum
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, Field, RootModel, field_validator

from webpdf_wsclient.webservice.types import WebServiceType


__all__ = [
    "PARAMETER_MODELS",
    "BarcodeParameters",
    "Billing",
    "ConverterParameters",
    "Metrics",
    "OcrLanguage",
    "OcrOutput",
    "OcrParameters",
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
]


class Metrics(StrEnum):
    """Units of page dimensions."""

    MM = "mm"
    PX = "px"
    PT = "pt"
    TWIP = "twip"


class OcrLanguage(StrEnum):
    """Languages the OCR engine can recognize."""

    ENG = "eng"
    DEU = "deu"
    FRA = "fra"
    SPA = "spa"
    ITA = "ita"
    NLD = "nld"
    POR = "por"


class OcrOutput(StrEnum):
    """Output formats of the OCR service."""

    PDF = "pdf"
    HOCR = "hocr"
    TEXT = "text"


class PdfaLevel(StrEnum):
    """PDF/A conformance levels."""

    PDFA_1A = "1a"
    PDFA_1B = "1b"
    PDFA_2A = "2a"
    PDFA_2B = "2b"
    PDFA_2U = "2u"
    PDFA_3A = "3a"
    PDFA_3B = "3b"
    PDFA_3U = "3u"


class PdfaSuccessReport(StrEnum):
    """How a successful PDF/A conversion is reported."""

    NONE = "none"
    MESSAGE = "message"
    ZIP = "zip"


class PdfaErrorReport(StrEnum):
    """How a failed PDF/A conversion is reported."""

    NONE = "none"
    MESSAGE = "message"
    FILE = "file"


class ParameterModel(BaseModel):
    """Base class of all parameter trees.

    Attributes set after construction are not validated immediately; the
    whole tree is validated again when the web service is processed.
    """

    model_config = ConfigDict(populate_by_name=True, extra="allow")

    REQUIRED: ClassVar[tuple[str, ...]] = ()

    def missing_required(self) -> list[str]:
        """Return the names of required fields that are unset."""
        return [name for name in self.REQUIRED if getattr(self, name, None) in (None, "")]

    def to_payload(self) -> Any:  # noqa: ANN401
        """Serialize to the JSON value expected by the server."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class PageParameters(ParameterModel):
    """Page format shared by several services."""

    width: float | None = Field(default=None, gt=0)
    height: float | None = Field(default=None, gt=0)
    metrics: Metrics | None = None
    top: float | None = Field(default=None, ge=0)
    right: float | None = Field(default=None, ge=0)
    bottom: float | None = Field(default=None, ge=0)
    left: float | None = Field(default=None, ge=0)


class ConverterParameters(ParameterModel):
    """Parameters of the converter service (any format to PDF)."""

    pages: str | None = None
    embed_fonts: bool | None = Field(default=None, alias="embedFonts")
    compression: bool | None = None
    jpeg_quality: int | None = Field(default=None, ge=0, le=100, alias="jpegQuality")
    dpi: int | None = Field(default=None, gt=0)
    page: PageParameters | None = None


class OcrParameters(ParameterModel):
    """Parameters of the OCR service."""

    language: OcrLanguage | None = None
    output_format: OcrOutput | None = Field(default=None, alias="outputFormat")
    check_resolution: bool | None = Field(default=None, alias="checkResolution")
    force_each_page: bool | None = Field(default=None, alias="forceEachPage")
    image_dpi: int | None = Field(default=None, gt=0, alias="imageDpi")
    page: PageParameters | None = None


class PdfaConvert(ParameterModel):
    """PDF/A conversion options."""

    level: PdfaLevel | None = None
    image_quality: int | None = Field(default=None, ge=0, le=100, alias="imageQuality")
    success_report: PdfaSuccessReport | None = Field(
        default=None,
        alias="successReport",
    )
    error_report: PdfaErrorReport | None = Field(default=None, alias="errorReport")


class PdfaParameters(ParameterModel):
    """Parameters of the PDF/A service."""

    convert: PdfaConvert | None = None
    analyze: dict[str, Any] | None = None


class UrlConverterParameters(ParameterModel):
    """Parameters of the URL converter service. ``url`` is required."""

    REQUIRED: ClassVar[tuple[str, ...]] = ("url",)

    url: str | None = None
    page: PageParameters | None = None


class SignatureParameters(ParameterModel):
    """Parameters of the signature service."""

    add: dict[str, Any] | None = None
    verify: dict[str, Any] | None = None


class BarcodeParameters(ParameterModel):
    """Parameters of the barcode service."""

    add: dict[str, Any] | None = None
    detect: dict[str, Any] | None = None


class ToolboxParameters(RootModel[list[dict[str, Any]]]):
    """Ordered list of toolbox operations.

    Every operation is a mapping with exactly one key naming the operation,
    e.g. ``{"description": {"title": "Title"}}``.
    """

    root: list[dict[str, Any]] = Field(default_factory=list)

    REQUIRED: ClassVar[tuple[str, ...]] = ()

    @field_validator("root")
    @classmethod
    def single_operation_per_entry(
        cls,
        value: list[dict[str, Any]],
    ) -> list[dict[str, Any]]:
        """Reject entries that do not name exactly one operation."""
        for index, operation in enumerate(value):
            if len(operation) != 1:
                msg = f"Toolbox entry {index} must name exactly one operation"
                raise ValueError(msg)
        return value

    def append(self, name: str, options: dict[str, Any] | None = None) -> None:
        """Append an operation."""
        self.root.append({name: options or {}})

    def missing_required(self) -> list[str]:
        """Return an empty list; toolbox operations have no required fields."""
        return []

    def to_payload(self) -> Any:  # noqa: ANN401
        """Serialize to the JSON value expected by the server."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)

    def __len__(self) -> int:
        return len(self.root)


class Billing(ParameterModel):
    """Billing information attached to a call."""

    user_name: str | None = Field(default=None, alias="userName")
    application_name: str | None = Field(default=None, alias="applicationName")
    customer_code: str | None = Field(default=None, alias="customerCode")


class Settings(ParameterModel):
    """Per-call server settings."""

    locale: str | None = None


PARAMETER_MODELS: dict[WebServiceType, type[ParameterModel] | type[ToolboxParameters]] = {
    WebServiceType.CONVERTER: ConverterParameters,
    WebServiceType.TOOLBOX: ToolboxParameters,
    WebServiceType.PDFA: PdfaParameters,
    WebServiceType.OCR: OcrParameters,
    WebServiceType.SIGNATURE: SignatureParameters,
    WebServiceType.URLCONVERTER: UrlConverterParameters,
    WebServiceType.BARCODE: BarcodeParameters,
}
