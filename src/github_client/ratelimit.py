from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import timezone
from email.utils import parsedate_to_datetime

from .clock import Clock, SystemClock
from .request import OutboundRequest, RawResponse

logger = logging.getLogger(__name__)

RATELIMIT_REMAINING_HEADER = "X-RateLimit-Remaining"
RATELIMIT_RESET_HEADER = "X-RateLimit-Reset"

# Status codes GitHub uses for primary and secondary rate limits
RATE_LIMIT_STATUSES = (403, 429)


@dataclass
class RateLimitState:
    last_mutation: float | None = None  # monotonic seconds
    remaining: int | None = None
    reset: float | None = None  # epoch seconds

    def window_active(self, now: float) -> bool:
        return self.remaining == 0 and self.reset is not None and self.reset > now


@dataclass(frozen=True)
class RateLimitSignal:
    """A rate-limited response; wait is None when the server gave no hint."""

    wait: float | None
    primary: bool = False


class RateLimiter:
    """
    Keeps requests within GitHub's rate-limit guidance.

    - at least `mutation_interval` seconds between mutating requests
    - no requests while a known primary window (remaining == 0) is active
    - 403/429 responses are turned into a wait hint for the retry loop
    """

    def __init__(
        self,
        clock: Clock | None = None,
        *,
        mutation_interval: float = 1.0,
        margin: float = 1.0,
    ):
        self.clock = clock or SystemClock()
        self.mutation_interval = mutation_interval
        self.margin = margin
        self.state = RateLimitState()

    def before(self, request: OutboundRequest) -> None:
        now = self.clock.time()
        if self.state.window_active(now):
            wait = self.state.reset - now + self.margin
            logger.warning("Rate limit exhausted; sleeping %.2fs until reset", wait)
            self.clock.sleep(wait)

        if not request.method.is_mutating:
            return

        if self.state.last_mutation is not None:
            elapsed = self.clock.monotonic() - self.state.last_mutation
            delay = self.mutation_interval - elapsed
            if delay > 0:
                logger.debug("Sleeping for %.2fs between mutating requests", delay)
                self.clock.sleep(delay)

        self.state.last_mutation = self.clock.monotonic()

    def after(self, response: RawResponse) -> RateLimitSignal | None:
        self._update_state(response)

        if response.status not in RATE_LIMIT_STATUSES:
            return None

        retry_after = self._parse_retry_after(response.headers.get("Retry-After"))
        if retry_after is not None:
            logger.warning("Secondary rate limit hit; Retry-After=%.0fs", retry_after)
            return RateLimitSignal(wait=retry_after + self.margin)

        if self.state.remaining == 0 and self.state.reset is not None:
            wait = max(0.0, self.state.reset - self.clock.time()) + self.margin
            logger.warning("Primary rate limit exceeded; reset in %.0fs", wait)
            return RateLimitSignal(wait=wait, primary=True)

        if response.status == 429 or "rate limit" in response.text.lower():
            logger.warning("Secondary rate limit hit without Retry-After")
            return RateLimitSignal(wait=None)

        return None

    def _update_state(self, response: RawResponse) -> None:
        remaining = response.headers.get(RATELIMIT_REMAINING_HEADER)
        if remaining is not None:
            try:
                self.state.remaining = int(remaining)
            except ValueError:
                logger.warning("Non-numeric %s header: %r", RATELIMIT_REMAINING_HEADER, remaining)

        reset = response.headers.get(RATELIMIT_RESET_HEADER)
        if reset is not None:
            try:
                self.state.reset = float(reset)
            except ValueError:
                logger.warning("Non-numeric %s header: %r", RATELIMIT_RESET_HEADER, reset)

    def _parse_retry_after(self, value: str | None) -> float | None:
        # Either delta-seconds or an HTTP-date
        if value is None or not value.strip():
            return None
        try:
            seconds = float(value)
        except ValueError:
            try:
                dt = parsedate_to_datetime(value)
            except (TypeError, ValueError):
                logger.warning("Unparseable Retry-After header: %r", value)
                return None
            if dt.tzinfo is None:
                dt = dt.replace(tzinfo=timezone.utc)
            seconds = dt.timestamp() - self.clock.time()
        return max(0.0, seconds)
