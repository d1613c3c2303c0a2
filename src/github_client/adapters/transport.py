from __future__ import annotations

from typing import Protocol

import requests
from requests.auth import AuthBase
from requests.exceptions import InvalidHeader, InvalidSchema, InvalidURL, MissingSchema, RequestException, Timeout

from ..errors import GitHubTransportError
from ..request import OutboundRequest, RawResponse


class Transport(Protocol):
    def send(self, request: OutboundRequest) -> RawResponse: ...


class _PresetAuthorization(AuthBase):
    """Leaves the Authorization header as built, so ~/.netrc is never consulted."""

    def __call__(self, r):
        return r


class RequestsTransport:
    """
    Transport adapter over a requests.Session.

    Performs exactly one HTTP exchange per call; status codes are never
    raised here, only connection-level failures (DNS, connect, TLS, timeout).
    """

    def __init__(self, *, timeout: float = 10.0, session: requests.Session | None = None):
        self.timeout = timeout
        self.session = session or requests.Session()

    def send(self, request: OutboundRequest) -> RawResponse:
        method = str(request.method)
        try:
            resp = self.session.request(
                method,
                request.url,
                headers=dict(request.headers),
                data=request.body,
                timeout=self.timeout,
                auth=_PresetAuthorization(),
            )
        except (InvalidHeader, InvalidURL, InvalidSchema, MissingSchema) as e:
            # Malformed request, not a network failure. The message may quote header values.
            raise ValueError(
                f"Could not build {method} request to {request.url}: {type(e).__name__}"
            ) from None
        except Timeout as e:
            raise GitHubTransportError(
                f"Timeout after {self.timeout}s", method=method, url=request.url, cause=e
            ) from e
        except RequestException as e:
            raise GitHubTransportError(
                f"Network error: {e}", method=method, url=request.url, cause=e
            ) from e

        return RawResponse(status=resp.status_code, headers=resp.headers, body=resp.content or b"")
