import pytest

from parambind.compiler.method_level import compile_method_handlers
from parambind.domain.errors import ConfigurationError
from parambind.domain.models import MethodMetadata, ParamBinding
from parambind.handlers import variants as v
from parambind.request.builder import RequestBuilder


def method(relative_url="/users/{id}", http_method="GET", *bindings: ParamBinding) -> MethodMetadata:
    return MethodMetadata(
        name="call",
        http_method=http_method,
        relative_url=relative_url,
        parameters=list(bindings),
    )


def test_one_handler_per_parameter_in_order():
    handlers = compile_method_handlers(
        method(
            "/users/{id}",
            "GET",
            ParamBinding(kind="path", name="id"),
            ParamBinding(kind="query", name="q"),
            ParamBinding(kind="header", name="X-A"),
            ParamBinding(kind="query_map"),
        )
    )
    assert [type(h) for h in handlers] == [v.Path, v.Query, v.Header, v.QueryMap]


def test_collection_shapes_lift_the_element_handler():
    (seq, arr) = compile_method_handlers(
        method(
            "/x",
            "GET",
            ParamBinding(kind="query", name="q", collection="sequence"),
            ParamBinding(kind="header", name="H", collection="array"),
        )
    )
    b = RequestBuilder(method="GET", base_url="http://example.com/", relative_url="/x")
    seq.apply(b, ["1", "2"])
    arr.apply(b, ("a", "b"))
    req = b.build()
    assert req.url == "http://example.com/x?q=1&q=2"
    assert req.header_values("H") == ["a", "b"]


def test_unnamed_part_is_raw_part_singleton():
    (handler,) = compile_method_handlers(method("/up", "POST", ParamBinding(kind="part")))
    assert handler is v.RawPart.INSTANCE


def test_named_part_uses_default_transfer_encoding():
    (handler,) = compile_method_handlers(
        method("/up", "POST", ParamBinding(kind="part", name="file", content_type="image/png"))
    )
    assert isinstance(handler, v.Part)
    assert ("Content-Transfer-Encoding", "binary") in handler.headers

    b = RequestBuilder(method="POST", base_url="http://example.com/", relative_url="/up", boundary="x")
    handler.apply(b, b"\x89PNG")
    assert b"Content-Type: image/png\r\n" in b.build().body.content


@pytest.mark.parametrize(
    "meta",
    [
        method("/users/{id}", "GET", ParamBinding(kind="path", name="other")),
        method("/x", "GET", ParamBinding(kind="query")),
        method("/x", "GET", ParamBinding(kind="body")),
        method("/x", "POST", ParamBinding(kind="body"), ParamBinding(kind="body")),
        method("/x", "POST", ParamBinding(kind="body"), ParamBinding(kind="field", name="f")),
        method("/x", "POST", ParamBinding(kind="field", name="f"), ParamBinding(kind="part", name="p")),
        method("/x", "GET", ParamBinding(kind="query_map", collection="sequence")),
        method("/x", "GET", ParamBinding(kind="url")),
        method(None, "GET"),
        method(None, "GET", ParamBinding(kind="url"), ParamBinding(kind="url")),
    ],
)
def test_invalid_method_metadata_is_rejected(meta):
    with pytest.raises(ConfigurationError):
        compile_method_handlers(meta)


def test_url_parameter_without_relative_url():
    (handler,) = compile_method_handlers(method(None, "GET", ParamBinding(kind="url")))
    assert isinstance(handler, v.RelativeUrl)
