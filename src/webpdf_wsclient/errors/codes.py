"""Client-side error codes shared by every exception the client raises."""

from __future__ import annotations

from enum import Enum


__all__ = ["WsclientError"]


class WsclientError(Enum):
    """Known client fail states.

    Each member carries a negative numeric code and a default message. These
    codes describe failures of the client and must not be confused with the
    error codes reported by the server, which ``ServerResultException``
    carries verbatim.
    """

    UNKNOWN_EXCEPTION = (-1, "Unknown exception.")
    UNKNOWN_WEBSERVICE_PROTOCOL = (-2, "The selected webservice protocol is unknown.")
    UNKNOWN_WEBSERVICE_TYPE = (-3, "The selected webservice type is not available.")
    INVALID_SOURCE_DOCUMENT = (-5, "Invalid file source.")
    INVALID_HTTP_MESSAGE_CONTENT = (
        -6,
        "Failed to deserialize XML/JSON HTTP message content.",
    )
    INVALID_DOCUMENT = (-7, "The found document is invalid.")
    INVALID_HISTORY_DATA = (-10, "Invalid history parameter.")
    INVALID_WEBSERVICE_SESSION = (
        -11,
        "Creating a webservice instance failed for the selected session.",
    )
    INVALID_RESULT_DOCUMENT = (-12, "The resulting document is invalid")
    INVALID_URL = (-30, "Invalid URL.")
    HTTP_IO_ERROR = (-31, "HTTP/HTTPS IO error.")
    TLS_INITIALIZATION_FAILURE = (-32, "TLS agent initialization failed.")
    HTTP_EMPTY_ENTITY = (-33, "HTTP entity is empty")
    HTTP_CUSTOM_ERROR = (-34, "HTTP custom error")
    UNKNOWN_HTTP_METHOD = (-35, "Unknown HTTP method")
    UNKNOWN_SESSION_TYPE = (-36, "Unknown session type")
    XML_OR_JSON_CONVERSION_FAILURE = (-37, "Unable to convert to XML/JSON")
    INVALID_AUTH_MATERIAL = (-40, "Authentication/authorization material is invalid")
    AUTHENTICATION_FAILURE = (-41, "The session authentication failed")
    SESSION_REFRESH_FAILURE = (-42, "Refreshing the session token failed")
    REST_EXECUTION = (-53, "REST web service execution error")
    AUTH_ERROR = (-54, "Authentication/Authorization failure.")
    ADMIN_PERMISSION_ERROR = (-55, "Admin permission required.")

    def __init__(self, code: int, message: str) -> None:
        self.code = code
        self.message = message

    @classmethod
    def from_code(cls, code: object) -> WsclientError:
        """Return the member for ``code``, or ``UNKNOWN_EXCEPTION``.

        Args:
            code: Any value; non-matching or non-numeric input is tolerated.

        Returns:
            The matching error, never raising.
        """
        for error in cls:
            if error.code == code:
                return error
        return cls.UNKNOWN_EXCEPTION
