from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import Any

import requests

from .adapters.transport import RequestsTransport, Transport
from .clock import Clock, SystemClock
from .errors import decode_error
from .pagination import Paginator
from .ratelimit import RateLimiter
from .request import (
    DEFAULT_USER_AGENT,
    GITHUB_API_URL,
    Credential,
    LogicalRequest,
    Method,
    RawResponse,
    RequestBuilder,
)
from .retry import RetryConfig, RetryEngine

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ClientConfig:
    api_url: str = GITHUB_API_URL
    user_agent: str = DEFAULT_USER_AGENT
    timeout: float = 10.0               # per HTTP exchange
    mutation_interval: float = 1.0      # min seconds between POST/PUT/PATCH/DELETE
    rate_limit_margin: float = 1.0      # extra seconds added to server-told waits


class GitHubClient:
    """Minimal GitHub REST API client with clean errors.

    Paths are relative to the API base URL (e.g. "/users/octocat/repos").
    Responses are returned as decoded JSON; bring your own schema.
    """

    def __init__(
        self,
        token: str,
        *,
        config: ClientConfig = ClientConfig(),
        retry: RetryConfig = RetryConfig(),
        transport: Transport | None = None,
        session: requests.Session | None = None,
        clock: Clock | None = None,
    ):
        self.config = config
        self.clock = clock or SystemClock()
        self.builder = RequestBuilder(
            Credential(token), api_url=config.api_url, user_agent=config.user_agent
        )
        self.rate_limiter = RateLimiter(
            self.clock,
            mutation_interval=config.mutation_interval,
            margin=config.rate_limit_margin,
        )
        self.transport = transport or RequestsTransport(timeout=config.timeout, session=session)
        self.engine = RetryEngine(self.transport, self.rate_limiter, retry, self.clock)

    def request(self, method: Method | str, path: str, payload: Any = None) -> RawResponse:
        outbound = self.builder.build(LogicalRequest(Method.parse(method), path, payload))
        return self.engine.execute(outbound)

    def request_json(self, method: Method | str, path: str, payload: Any = None) -> Any:
        outbound = self.builder.build(LogicalRequest(Method.parse(method), path, payload))
        response = self.engine.execute(outbound)

        # 204 No Content and friends
        if response.status == 204 or (not response.body and response.status != 200):
            return None

        try:
            return json.loads(response.body)
        except ValueError as e:
            logger.error("%s %s returned invalid JSON", outbound.method, outbound.url)
            raise decode_error(outbound, response, "Invalid JSON in response", e) from e

    def get(self, path: str) -> Any:
        return self.request_json(Method.GET, path)

    def post(self, path: str, payload: Any) -> Any:
        return self.request_json(Method.POST, path, payload)

    def put(self, path: str, payload: Any) -> Any:
        return self.request_json(Method.PUT, path, payload)

    def patch(self, path: str, payload: Any) -> Any:
        return self.request_json(Method.PATCH, path, payload)

    def delete(self, path: str) -> None:
        self.request(Method.DELETE, path)

    def paginate(self, path: str) -> Paginator:
        """Lazily walk every page of a list endpoint, yielding decoded items."""
        return Paginator(self.builder, self.engine, path)
