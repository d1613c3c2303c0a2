import pytest
from fakes import make_response

from github_client.errors import GitHubDecodeError, GitHubServerError
from github_client.pagination import Paginator, next_link, parse_page
from github_client.ratelimit import RateLimiter
from github_client.request import Credential, LogicalRequest, Method, RequestBuilder
from github_client.retry import RetryConfig, RetryEngine

builder = RequestBuilder(Credential("t"))
API = "https://api.github.com"


def make_paginator(clock, transport, path="/users/octocat/repos", retry=RetryConfig(max_retries=0)):
    engine = RetryEngine(transport, RateLimiter(clock), retry, clock)
    return Paginator(builder, engine, path)


def link(url, rel="next"):
    return {"Link": f'<{url}>; rel="{rel}", <{API}/users/octocat/repos?page=9>; rel="last"'}


def test_single_page_without_next_link(clock, transport_factory):
    transport = transport_factory(make_response(200, json_data=[{"id": 1}, {"id": 2}]))
    assert list(make_paginator(clock, transport)) == [{"id": 1}, {"id": 2}]
    assert len(transport.sent) == 1


def test_follows_next_links_in_order(clock, transport_factory):
    page2 = f"{API}/user/583231/repos?page=2"
    page3 = f"{API}/user/583231/repos?page=3"
    transport = transport_factory(
        make_response(200, json_data=[1, 2], headers=link(page2)),
        make_response(200, json_data=[3], headers=link(page3)),
        make_response(200, json_data=[4, 5]),
    )

    items = list(make_paginator(clock, transport))

    assert items == [1, 2, 3, 4, 5]
    urls = [sent[0].url for sent in transport.sent]
    assert urls == [f"{API}/users/octocat/repos", page2, page3]
    assert all(sent[0].method is Method.GET for sent in transport.sent)


def test_no_prefetch(clock, transport_factory):
    transport = transport_factory(
        make_response(200, json_data=["a", "b"], headers=link(f"{API}/x?page=2")),
        make_response(200, json_data=["c"]),
    )
    pager = make_paginator(clock, transport)

    assert next(pager) == "a"
    assert next(pager) == "b"
    assert len(transport.sent) == 1
    assert next(pager) == "c"
    assert len(transport.sent) == 2


def test_next_batch_one_fetch_per_call(clock, transport_factory):
    transport = transport_factory(
        make_response(200, json_data=[1], headers=link(f"{API}/x?page=2")),
        make_response(200, json_data=[]),
    )
    pager = make_paginator(clock, transport)

    first = pager.next_batch()
    assert first.items == [1]
    assert first.next_url == f"{API}/x?page=2"
    second = pager.next_batch()
    assert second.items == []
    assert pager.next_batch() is None
    assert pager.exhausted
    assert pager.pages_fetched == 2
    assert len(transport.sent) == 2


def test_not_restartable(clock, transport_factory):
    transport = transport_factory(make_response(200, json_data=[1]))
    pager = make_paginator(clock, transport)
    assert list(pager) == [1]
    assert list(pager) == []


def test_error_aborts_sequence_after_yielded_items(clock, transport_factory):
    transport = transport_factory(
        make_response(200, json_data=[1, 2], headers=link(f"{API}/x?page=2")),
        make_response(500, text="oops"),
    )
    pager = make_paginator(clock, transport)

    seen = []
    with pytest.raises(GitHubServerError):
        for item in pager:
            seen.append(item)

    assert seen == [1, 2]
    assert list(pager) == []
    assert len(transport.sent) == 2


def test_page_fetch_is_retried(clock, transport_factory):
    transport = transport_factory(
        make_response(502, text="bad gateway"),
        make_response(200, json_data=[1]),
    )
    pager = make_paginator(clock, transport, retry=RetryConfig(max_retries=2))
    assert list(pager) == [1]
    assert len(clock.sleeps) == 1


def test_undecodable_page_is_decode_error(clock, transport_factory):
    transport = transport_factory(make_response(200, text="<html>"))
    with pytest.raises(GitHubDecodeError) as exc_info:
        list(make_paginator(clock, transport))
    assert exc_info.value.body == "<html>"
    assert exc_info.value.status_code == 200


def _parse(json_data):
    request = builder.build(LogicalRequest(Method.GET, "/search/repositories?q=x"))
    return parse_page(request, make_response(200, json_data=json_data))


def test_parse_map_page_with_search_metadata():
    page = _parse({"total_count": 100, "incomplete_results": True, "items": [{"name": "Steve"}]})
    assert page.items == [{"name": "Steve"}]
    assert page.total_count == 100
    assert page.incomplete_results is True


def test_parse_map_page_with_extra_scalar_fields():
    page = _parse({"total_count": 17, "widgets": ["a", "b"], "mode": "ponens"})
    assert page.items == ["a", "b"]
    assert page.total_count == 17
    assert page.incomplete_results is None


@pytest.mark.parametrize(
    "json_data",
    [
        {"total_count": 0},
        {"widgets": [1], "more_widgets": [2]},
        {"total_count": 17, "widgets": [1], "modes": ["ponens", "tollens"]},
        "just a string",
    ],
)
def test_parse_rejects_ambiguous_pages(json_data):
    with pytest.raises(GitHubDecodeError):
        _parse(json_data)


def test_next_link_parsing():
    assert next_link(make_response(200, json_data=[])) is None
    resp = make_response(200, json_data=[], headers={
        "Link": f'<{API}/x?page=1>; rel="prev", <{API}/x?page=3>; rel="next"',
    })
    assert next_link(resp) == f"{API}/x?page=3"
    last_only = make_response(200, json_data=[], headers={"Link": f'<{API}/x?page=1>; rel="first"'})
    assert next_link(last_only) is None
