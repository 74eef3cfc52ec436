import pytest

from parambind.domain.errors import ParameterValidationError
from parambind.domain.models import RequestBody
from parambind.request.builder import RequestBuilder


def test_relative_url_resolves_against_base():
    b = RequestBuilder(method="GET", base_url="http://example.com/api/", relative_url="users")
    assert b.build().url == "http://example.com/api/users"


def test_service_url_overrides_base_and_last_writer_wins():
    b = RequestBuilder(method="GET", base_url="http://example.com/", relative_url="/foo")
    b.set_service_url("http://one.example")
    b.set_service_url("http://two.example")
    assert b.build().url == "http://two.example/foo"


def test_query_appends_to_existing_query_string():
    b = RequestBuilder(method="GET", base_url="http://example.com/", relative_url="/s?fixed=1")
    b.add_query_param("q", "a&b", encoded=False)
    assert b.build().url == "http://example.com/s?fixed=1&q=a%26b"


def test_path_param_requires_relative_url():
    b = RequestBuilder(method="GET", base_url="http://example.com/")
    with pytest.raises(ParameterValidationError):
        b.add_path_param("id", "1", encoded=False)


@pytest.mark.parametrize("value", [".", ".."])
def test_path_param_rejects_traversal(value):
    b = RequestBuilder(method="GET", base_url="http://example.com/", relative_url="/a/{id}")
    with pytest.raises(ParameterValidationError, match="path traversal"):
        b.add_path_param("id", value, encoded=False)


def test_content_type_header_sets_body_media_type():
    b = RequestBuilder(method="POST", base_url="http://example.com/", relative_url="/")
    b.add_header("Content-Type", "text/csv")
    b.add_header("X-Trim", "  padded  ")
    b.set_body(RequestBody(content=b"a,b", content_type="text/plain"))
    req = b.build()
    assert req.body.content_type == "text/csv"
    assert req.header("Content-Type") is None
    assert req.header("x-trim") == "padded"


def test_content_type_header_kept_when_there_is_no_body():
    b = RequestBuilder(method="GET", base_url="http://example.com/", relative_url="/")
    b.add_header("X-A", "1")
    b.add_header("Content-Type", "application/json")
    req = b.build()
    assert req.body is None
    assert req.header("Content-Type") == "application/json"
    assert req.headers == (("X-A", "1"), ("Content-Type", "application/json"))


def test_explicit_body_wins_over_form_fields():
    b = RequestBuilder(method="POST", base_url="http://example.com/", relative_url="/")
    b.add_form_field("a", "1", encoded=False)
    b.set_body(RequestBody(content=b"raw"))
    assert b.build().body.content == b"raw"


def test_no_body_when_nothing_was_bound():
    b = RequestBuilder(method="GET", base_url="http://example.com/")
    req = b.build()
    assert req.body is None
    assert req.url == "http://example.com/"
