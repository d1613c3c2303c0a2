import pytest

from github_client.request import (
    ACCEPT_VALUE,
    API_VERSION_VALUE,
    Credential,
    LogicalRequest,
    Method,
    RequestBuilder,
)


def make_builder(**kwargs):
    return RequestBuilder(Credential("hunter2"), **kwargs)


def test_url_for_with_and_without_leading_slash():
    b = make_builder()
    assert b.url_for("/foo/bar") == "https://api.github.com/foo/bar"
    assert b.url_for("foo/bar") == "https://api.github.com/foo/bar"


def test_url_for_keeps_enterprise_prefix():
    b = make_builder(api_url="https://ghe.example.com/api/v3/")
    assert b.url_for("/users/octocat") == "https://ghe.example.com/api/v3/users/octocat"


def test_absolute_https_url_is_used_verbatim():
    b = make_builder()
    url = "https://api.github.com/user/123/repos?page=2&per_page=100"
    assert b.url_for(url) == url


def test_non_https_urls_are_rejected():
    b = make_builder()
    with pytest.raises(ValueError):
        b.url_for("http://api.github.com/users/octocat")
    with pytest.raises(ValueError):
        make_builder(api_url="http://api.github.com")


def test_fixed_headers_on_every_request():
    out = make_builder().build(LogicalRequest(Method.GET, "/rate_limit"))

    assert out.method is Method.GET
    assert out.url == "https://api.github.com/rate_limit"
    assert out.headers["Accept"] == ACCEPT_VALUE
    assert out.headers["X-GitHub-Api-Version"] == API_VERSION_VALUE
    assert out.headers["Authorization"] == "Bearer hunter2"
    assert "User-Agent" in out.headers
    assert "Content-Type" not in out.headers
    assert out.body is None


def test_payload_is_compact_json():
    out = make_builder().build(LogicalRequest(Method.POST, "/repos/o/r/issues", {"title": "Bug", "labels": ["x"]}))
    assert out.body == b'{"title":"Bug","labels":["x"]}'
    assert out.headers["Content-Type"] == "application/json"


def test_token_never_in_repr():
    cred = Credential("s3cr3t")
    out = RequestBuilder(cred).build(LogicalRequest(Method.GET, "/user"))
    assert "s3cr3t" not in repr(cred)
    assert "s3cr3t" not in repr(out)
    assert out.redacted_headers()["Authorization"] == "<redacted>"


def test_empty_token_rejected():
    with pytest.raises(ValueError):
        Credential("  ")


@pytest.mark.parametrize(
    "token",
    ["gho_abc\n", " gho_abc", "gho\r\nX-Injected: 1", "gho\x00abc", "gho_☃"],
)
def test_token_must_be_valid_header_value(token):
    with pytest.raises(ValueError) as exc_info:
        Credential(token)
    assert token.strip() not in str(exc_info.value)


@pytest.mark.parametrize(
    "name,expected",
    [
        ("get", Method.GET),
        ("gET", Method.GET),
        ("Post", Method.POST),
        ("pUT", Method.PUT),
        ("patch", Method.PATCH),
        ("DeLeTe", Method.DELETE),
    ],
)
def test_method_parse_is_case_insensitive(name, expected):
    assert Method.parse(name) is expected


@pytest.mark.parametrize("name", ["CONNECT", "OPTIONS", "TRACE", "PROPFIND"])
def test_method_parse_unsupported(name):
    with pytest.raises(ValueError):
        Method.parse(name)


def test_only_get_is_read_only():
    assert not Method.GET.is_mutating
    assert all(m.is_mutating for m in (Method.POST, Method.PUT, Method.PATCH, Method.DELETE))
    assert str(Method.PATCH) == "PATCH"
