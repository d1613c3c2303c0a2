from __future__ import annotations

import json
import textwrap
from enum import Enum
from http import HTTPStatus
from typing import TYPE_CHECKING, ClassVar

if TYPE_CHECKING:
    from .ratelimit import RateLimitSignal
    from .request import OutboundRequest, RawResponse


class ErrorKind(str, Enum):
    TRANSPORT = "transport"
    SERVER = "server"
    CLIENT = "client"
    RATE_LIMITED = "rate_limited"
    DECODE = "decode"


class GitHubError(Exception):
    """Base exception for all client errors."""

    kind: ClassVar[ErrorKind]
    retryable: ClassVar[bool] = False

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        cause: BaseException | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.method = method
        self.url = url
        self.cause = cause

    @property
    def body(self) -> str | None:
        return None

    def _display_body(self) -> str | None:
        return self.body

    def display(self, verbose: bool = False) -> str:
        """Terse one-line form, or with the captured response body appended."""
        text = str(self)
        body = self._display_body() if verbose else None
        if body and body.strip():
            text += "\n\n" + textwrap.indent(body.rstrip("\n"), "    ") + "\n"
        return text


class GitHubTransportError(GitHubError):
    """Network/timeout/TLS failure before a response was received."""

    kind = ErrorKind.TRANSPORT
    retryable = True

    def __str__(self) -> str:
        if self.method and self.url:
            return f"failed to make {self.method} request to {self.url}: {self.message}"
        return self.message


class GitHubHTTPError(GitHubError):
    """The server replied with a 4xx or 5xx status."""

    def __init__(
        self,
        status_code: int,
        message: str | None = None,
        *,
        method: str | None = None,
        url: str | None = None,
        body: str | None = None,
        content_type: str | None = None,
    ):
        super().__init__(message or _status_line(status_code), method=method, url=url)
        self.status_code = status_code
        self._body = body
        self.content_type = content_type

    @property
    def body(self) -> str | None:
        return self._body

    def _display_body(self) -> str | None:
        return _pretty_body(self._body, self.content_type)

    def __str__(self) -> str:
        if self.method and self.url:
            return f"{self.method} request to {self.url} returned {_status_line(self.status_code)}"
        return f"HTTP {_status_line(self.status_code)}: {self.message}"

    @classmethod
    def from_response(cls, request: OutboundRequest, response: RawResponse, **kwargs) -> GitHubHTTPError:
        return cls(
            status_code=response.status,
            method=str(request.method),
            url=request.url,
            body=response.text,
            content_type=response.content_type,
            **kwargs,
        )


class GitHubServerError(GitHubHTTPError):
    """5xx responses."""

    kind = ErrorKind.SERVER
    retryable = True


class GitHubClientError(GitHubHTTPError):
    """4xx responses that are not rate limits."""

    kind = ErrorKind.CLIENT


class GitHubAuthError(GitHubClientError):
    """Authentication/authorization errors (401/403)."""


class GitHubRateLimitError(GitHubHTTPError):
    """Primary or secondary rate limit exceeded."""

    kind = ErrorKind.RATE_LIMITED
    retryable = True

    def __init__(self, status_code: int = 429, message: str | None = None, *, retry_after: float | None = None, **kwargs):
        super().__init__(status_code, message, **kwargs)
        self.retry_after = retry_after

    def __str__(self) -> str:
        text = super().__str__() + " (rate limited"
        if self.retry_after is not None:
            text += f", retry after {self.retry_after:.0f}s"
        return text + ")"


class GitHubDecodeError(GitHubError):
    """A successful response whose body is not the expected JSON shape."""

    kind = ErrorKind.DECODE

    def __init__(
        self,
        message: str,
        *,
        method: str | None = None,
        url: str | None = None,
        cause: BaseException | None = None,
        status_code: int | None = None,
        body: str | None = None,
    ):
        super().__init__(message, method=method, url=url, cause=cause)
        self.status_code = status_code
        self._body = body

    @property
    def body(self) -> str | None:
        return self._body

    def __str__(self) -> str:
        if self.method and self.url:
            return f"failed to deserialize response body from {self.method} request to {self.url}: {self.message}"
        return self.message


def classify_response(
    request: OutboundRequest,
    response: RawResponse,
    signal: RateLimitSignal | None = None,
) -> GitHubError | None:
    """Map a response to an error, or None when it is a success."""
    if signal is not None:
        return GitHubRateLimitError.from_response(request, response, retry_after=signal.wait)

    status = response.status
    if status >= 500:
        return GitHubServerError.from_response(request, response)
    if status in (401, 403):
        return GitHubAuthError.from_response(request, response)
    if status >= 400:
        return GitHubClientError.from_response(request, response)
    return None


def decode_error(
    request: OutboundRequest,
    response: RawResponse,
    message: str,
    cause: BaseException | None = None,
) -> GitHubDecodeError:
    return GitHubDecodeError(
        message,
        method=str(request.method),
        url=request.url,
        cause=cause,
        status_code=response.status,
        body=response.text,
    )


def is_json_content_type(content_type: str | None) -> bool:
    if not content_type:
        return False
    ct = content_type.split(";", 1)[0].strip().lower()
    return ct == "application/json" or (ct.startswith("application/") and ct.endswith("+json"))


def _pretty_body(body: str | None, content_type: str | None) -> str | None:
    if body is None or not is_json_content_type(content_type):
        return body
    try:
        return json.dumps(json.loads(body), indent=4, ensure_ascii=False)
    except ValueError:
        return body


def _status_line(status_code: int) -> str:
    try:
        return f"{status_code} {HTTPStatus(status_code).phrase}"
    except ValueError:
        return str(status_code)
