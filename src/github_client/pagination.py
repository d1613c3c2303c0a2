from __future__ import annotations

import json
import logging
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Iterator

from requests.utils import parse_header_links

from .errors import decode_error
from .request import LogicalRequest, Method, OutboundRequest, RawResponse, RequestBuilder
from .retry import RetryEngine

logger = logging.getLogger(__name__)


@dataclass
class Page:
    items: list[Any] = field(default_factory=list)
    next_url: str | None = None
    total_count: int | None = None
    incomplete_results: bool | None = None


def next_link(response: RawResponse) -> str | None:
    """Return the rel="next" URL from the Link header, if any."""
    value = response.headers.get("Link")
    if not value:
        return None
    for link in parse_header_links(value):
        rels = link.get("rel", "").split()
        if "next" in rels and link.get("url"):
            return link["url"]
    return None


def parse_page(request: OutboundRequest, response: RawResponse) -> Page:
    """
    Decode one page of results.

    Accepts either a JSON array of items, or an object holding exactly one
    array (e.g. {"total_count": 3, "items": [...]} from the search API).
    """
    try:
        data = json.loads(response.body)
    except ValueError as e:
        raise decode_error(request, response, "Invalid JSON in response", e) from e

    page = Page(next_url=next_link(response))

    if isinstance(data, list):
        page.items = data
        return page

    if not isinstance(data, dict):
        raise decode_error(
            request, response, f"Unexpected JSON type (expected array or object, got {type(data).__name__})"
        )

    lists = [v for v in data.values() if isinstance(v, list)]
    if len(lists) != 1:
        raise decode_error(
            request, response, f"expected exactly one array of items in map page response, got {len(lists)}"
        )
    page.items = lists[0]

    total = data.get("total_count")
    if isinstance(total, int) and not isinstance(total, bool):
        page.total_count = total
    incomplete = data.get("incomplete_results")
    if isinstance(incomplete, bool):
        page.incomplete_results = incomplete
    return page


class Paginator:
    """
    Cursor over a paginated GET endpoint.

    `next_batch()` performs exactly one fetch and returns the page, or None
    once the server stops sending a next link. Iterating yields the items of
    each page in order, fetching the next page only when the previous one
    has been handed out. Not restartable.
    """

    def __init__(self, builder: RequestBuilder, engine: RetryEngine, path: str):
        self._builder = builder
        self._engine = engine
        self._next_url: str | None = builder.url_for(path)
        self._buffer: deque[Any] = deque()
        self.pages_fetched = 0

    @property
    def exhausted(self) -> bool:
        return self._next_url is None and not self._buffer

    def next_batch(self) -> Page | None:
        if self._next_url is None:
            return None

        # the cursor is consumed up front so a failed fetch ends the sequence
        url, self._next_url = self._next_url, None
        request = self._builder.build(LogicalRequest(Method.GET, url))
        response = self._engine.execute(request)
        page = parse_page(request, response)

        self.pages_fetched += 1
        self._next_url = page.next_url
        logger.debug("Fetched page %d from %s (%d items)", self.pages_fetched, url, len(page.items))
        return page

    def __iter__(self) -> Iterator[Any]:
        return self

    def __next__(self) -> Any:
        while not self._buffer:
            page = self.next_batch()
            if page is None:
                raise StopIteration
            self._buffer.extend(page.items)
        return self._buffer.popleft()
