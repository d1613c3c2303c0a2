from __future__ import annotations

import logging
from dataclasses import dataclass

from .adapters.transport import Transport
from .clock import Clock, SystemClock
from .errors import GitHubError, GitHubRateLimitError, GitHubTransportError, classify_response
from .ratelimit import RateLimiter
from .request import OutboundRequest, RawResponse

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class RetryConfig:
    max_retries: int = 4            # number of retries (excluding the first attempt)
    backoff_base: float = 1.0       # seconds: 1, 2, 4, 8, ...
    backoff_max: float = 60.0       # cap for backoff
    max_total_wait: float = 300.0   # give up once waiting would exceed this

    def backoff_seconds(self, attempt: int) -> float:
        # attempt is 0-based (0 = delay after the first failure)
        return min(self.backoff_base * (2**attempt), self.backoff_max)


class RetryEngine:
    """Runs one request through the rate limiter and transport, retrying transient failures."""

    def __init__(
        self,
        transport: Transport,
        rate_limiter: RateLimiter,
        retry: RetryConfig = RetryConfig(),
        clock: Clock | None = None,
    ):
        self.transport = transport
        self.rate_limiter = rate_limiter
        self.retry = retry
        self.clock = clock or SystemClock()

    def execute(self, request: OutboundRequest) -> RawResponse:
        total = self.retry.max_retries + 1
        deadline = self.clock.monotonic() + self.retry.max_total_wait

        attempts = 0
        while True:
            outcome = self._attempt(request)
            if isinstance(outcome, RawResponse):
                return outcome
            error = outcome

            if not error.retryable:
                logger.error("%s %s failed: %s", request.method, request.url, error)
                raise error

            if attempts >= self.retry.max_retries:
                logger.error(
                    "%s %s giving up after %d attempts: %s",
                    request.method, request.url, attempts + 1, error,
                )
                raise error

            delay = self.delay_for(error, attempts)
            if self.clock.monotonic() + delay > deadline:
                logger.error(
                    "%s %s giving up: waiting %.2fs would exceed %.0fs total",
                    request.method, request.url, delay, self.retry.max_total_wait,
                )
                raise error

            logger.info(
                "%s %s retrying in %.2fs (attempt %d/%d)",
                request.method, request.url, delay, attempts + 1, total,
            )
            self.clock.sleep(delay)
            attempts += 1

    def delay_for(self, error: GitHubError, attempts: int) -> float:
        # The server told us exactly how long to wait
        if isinstance(error, GitHubRateLimitError) and error.retry_after is not None:
            return error.retry_after
        return self.retry.backoff_seconds(attempts)

    def _attempt(self, request: OutboundRequest) -> RawResponse | GitHubError:
        self.rate_limiter.before(request)
        logger.debug("%s %s headers=%s", request.method, request.url, request.redacted_headers())
        try:
            response = self.transport.send(request)
        except GitHubTransportError as e:
            logger.warning("%s %s network error: %s", request.method, request.url, e.message)
            return e

        logger.debug("Server returned %d", response.status)
        signal = self.rate_limiter.after(response)
        error = classify_response(request, response, signal)
        if error is not None:
            return error
        return response
