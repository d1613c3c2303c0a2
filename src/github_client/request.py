from __future__ import annotations

import json
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Mapping
from urllib.parse import urlsplit

from requests.structures import CaseInsensitiveDict

from ._version import __version__

GITHUB_API_URL = "https://api.github.com"

ACCEPT_VALUE = "application/vnd.github+json"
API_VERSION_HEADER = "X-GitHub-Api-Version"
API_VERSION_VALUE = "2022-11-28"

DEFAULT_USER_AGENT = f"github-rest-client/{__version__}"


class Method(str, Enum):
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"

    @property
    def is_mutating(self) -> bool:
        return self is not Method.GET

    @classmethod
    def parse(cls, value: str | Method) -> Method:
        """Parse a method name, case insensitive."""
        if isinstance(value, Method):
            return value
        try:
            return cls(value.upper())
        except ValueError:
            raise ValueError(f"Unsupported method: {value!r}") from None

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class Credential:
    token: str = field(repr=False)

    def __post_init__(self) -> None:
        if not self.token or not self.token.strip():
            raise ValueError("GitHub token must be a non-empty string")
        # must be usable verbatim as a header value; the token itself is never echoed
        if self.token != self.token.strip():
            raise ValueError("GitHub token must not have leading or trailing whitespace")
        if any(ord(ch) < 0x20 or ord(ch) == 0x7F for ch in self.token):
            raise ValueError("GitHub token must not contain control characters")
        try:
            self.token.encode("latin-1")
        except UnicodeEncodeError:
            raise ValueError("GitHub token contains characters not allowed in a header value") from None

    @property
    def authorization(self) -> str:
        return f"Bearer {self.token}"


@dataclass(frozen=True)
class LogicalRequest:
    method: Method
    path: str
    payload: Any = None


@dataclass(frozen=True)
class OutboundRequest:
    method: Method
    url: str
    headers: Mapping[str, str] = field(repr=False)
    body: bytes | None = field(default=None, repr=False)

    def redacted_headers(self) -> dict[str, str]:
        return {
            k: ("<redacted>" if k.lower() == "authorization" else v)
            for k, v in self.headers.items()
        }


@dataclass
class RawResponse:
    status: int
    headers: CaseInsensitiveDict = field(default_factory=CaseInsensitiveDict)
    body: bytes = b""

    def __post_init__(self) -> None:
        if not isinstance(self.headers, CaseInsensitiveDict):
            self.headers = CaseInsensitiveDict(self.headers)

    @property
    def text(self) -> str:
        return self.body.decode("utf-8", errors="replace")

    @property
    def content_type(self) -> str | None:
        value = self.headers.get("Content-Type")
        if not value:
            return None
        return value.split(";", 1)[0].strip().lower()


class RequestBuilder:
    """Turns logical requests into fully-qualified GitHub API requests."""

    def __init__(
        self,
        credential: Credential,
        *,
        api_url: str = GITHUB_API_URL,
        user_agent: str = DEFAULT_USER_AGENT,
    ):
        if urlsplit(api_url).scheme != "https":
            raise ValueError(f"API URL must use https: {api_url!r}")
        self.credential = credential
        self.api_url = api_url.rstrip("/")
        self.user_agent = user_agent

    def url_for(self, path: str) -> str:
        scheme = urlsplit(path).scheme
        if scheme:
            # next-page links and other server-supplied URLs are used verbatim
            if scheme != "https":
                raise ValueError(f"Refusing non-https URL: {path!r}")
            return path
        return f"{self.api_url}/{path.lstrip('/')}"

    def build(self, request: LogicalRequest) -> OutboundRequest:
        headers = {
            "Accept": ACCEPT_VALUE,
            API_VERSION_HEADER: API_VERSION_VALUE,
            "Authorization": self.credential.authorization,
            "User-Agent": self.user_agent,
        }

        body: bytes | None = None
        if request.payload is not None:
            # compact form, no spaces
            body = json.dumps(request.payload, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
            headers["Content-Type"] = "application/json"

        return OutboundRequest(
            method=Method.parse(request.method),
            url=self.url_for(request.path),
            headers=headers,
            body=body,
        )
