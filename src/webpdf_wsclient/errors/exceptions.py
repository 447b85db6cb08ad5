"""Exception hierarchy raised by every public client operation."""

from __future__ import annotations

from webpdf_wsclient.errors.codes import WsclientError


__all__ = [
    "AuthResultException",
    "ClientResultException",
    "ResultException",
    "ServerResultException",
]


class ResultException(Exception):  # noqa: N818
    """Common base type for all client failures.

    Attributes:
        message: Human-readable error description.
        client_error: The client fail state this exception represents.
        error_code: Numeric code. For server failures this is the code the
            server reported; otherwise the code of ``client_error``.
        cause: The underlying exception, if any.
        stack_trace_message: Server-side stack trace text, if reported. It is
            diagnostic only and never parsed.
        http_status: HTTP status of the failing response, if any.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        *,
        client_error: WsclientError = WsclientError.UNKNOWN_EXCEPTION,
        error_code: int | None = None,
        cause: BaseException | None = None,
        stack_trace_message: str | None = None,
        http_status: int | None = None,
    ) -> None:
        """Initialize the exception.

        Args:
            message: Human-readable error description.
            client_error: The client fail state.
            error_code: Numeric code, defaults to ``client_error.code``.
            cause: The underlying exception.
            stack_trace_message: Server-side stack trace text.
            http_status: HTTP status of the failing response.
        """
        super().__init__(message)
        self.message = message
        self.client_error = client_error
        self.error_code = client_error.code if error_code is None else error_code
        self.cause = cause
        self.stack_trace_message = stack_trace_message
        self.http_status = http_status
        if cause is not None:
            self.__cause__ = cause

    def __str__(self) -> str:
        """Return string representation with the error code."""
        return f"{self.message} (code={self.error_code})"


class ClientResultException(ResultException):
    """Raised when an operation fails on the client side.

    Covers malformed local requests, invalid parameters, unknown document
    ids and operations on closed sessions. Never used for fail states
    reported by the server.
    """

    def __init__(
        self,
        client_error: WsclientError,
        *,
        cause: BaseException | None = None,
        http_status: int | None = None,
    ) -> None:
        """Initialize the client error.

        Args:
            client_error: The client fail state to wrap.
            cause: The underlying exception.
            http_status: HTTP status, if a response was involved.
        """
        super().__init__(
            client_error.message,
            client_error=client_error,
            cause=cause,
            http_status=http_status,
        )
        self._details: list[str] = []

    def append_message(self, message: str | None) -> ClientResultException:
        """Append a detail line to the message and return ``self``."""
        if message:
            self._details.append(message[0].upper() + message[1:])
            self.message = "\n".join([self.client_error.message, *self._details])
            self.args = (self.message,)
        return self

    def matches(self, error: WsclientError) -> bool:
        """Return True if this exception represents ``error``."""
        return self.client_error is error


class ServerResultException(ResultException):
    """Raised when the server reports a failure or cannot be reached.

    Structured server errors keep the server's own error code. Transport
    failures (DNS, refused connection, TLS handshake, timeout) use
    ``WsclientError.HTTP_IO_ERROR``.
    """

    def __init__(  # noqa: PLR0913
        self,
        message: str,
        *,
        error_code: int | None = None,
        client_error: WsclientError = WsclientError.REST_EXECUTION,
        stack_trace_message: str | None = None,
        http_status: int | None = None,
        cause: BaseException | None = None,
    ) -> None:
        """Initialize the server error.

        Args:
            message: The server's error message.
            error_code: The server's error code.
            client_error: The client fail state, REST_EXECUTION by default.
            stack_trace_message: The server's stack trace text.
            http_status: HTTP status of the failing response.
            cause: The underlying exception.
        """
        super().__init__(
            message,
            client_error=client_error,
            error_code=error_code,
            cause=cause,
            stack_trace_message=stack_trace_message,
            http_status=http_status,
        )

    @classmethod
    def unreachable(cls, cause: BaseException) -> ServerResultException:
        """Wrap a transport failure as an unreachable-server error."""
        detail = str(cause) or type(cause).__name__
        return cls(
            f"{WsclientError.HTTP_IO_ERROR.message} {detail}",
            client_error=WsclientError.HTTP_IO_ERROR,
            cause=cause,
        )

    def __str__(self) -> str:
        """Return string representation including the server stack trace."""
        text = f"Server error: {self.message} (code={self.error_code})"
        if self.stack_trace_message:
            text += f"\nServer stack trace: {self.stack_trace_message}"
        return text


class AuthResultException(ResultException):
    """Raised when credentials are rejected or a token cannot be obtained."""

    def __init__(
        self,
        client_error: WsclientError = WsclientError.AUTH_ERROR,
        *,
        message: str | None = None,
        cause: BaseException | None = None,
        http_status: int | None = None,
    ) -> None:
        """Initialize the authentication error.

        Args:
            client_error: AUTH_ERROR, AUTHENTICATION_FAILURE or
                SESSION_REFRESH_FAILURE.
            message: Detail message, defaults to the cause's message.
            cause: The underlying exception.
            http_status: HTTP status of the rejecting response.
        """
        if message is None:
            message = str(cause) if cause is not None else client_error.message
        super().__init__(
            message,
            client_error=client_error,
            cause=cause,
            http_status=http_status,
        )
