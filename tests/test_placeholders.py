import pytest

from parambind.domain.errors import ConfigurationError, EncodingError
from parambind.templates.placeholders import (
    compile_template,
    encode_composite_value,
    extract_header_placeholders,
    extract_path_placeholders,
    form_url_encode,
    parse_header_literal,
    parse_query_literal,
)


def test_extract_path_placeholders_dedupes():
    assert extract_path_placeholders("/a/{id}/{id}/{name}") == {"id", "name"}
    assert extract_path_placeholders("http://example.com") == set()
    # path identifiers must start with a letter
    assert extract_path_placeholders("{1abc}") == set()


def test_extract_header_placeholders_allows_composite_keys():
    keys = extract_header_placeholders("{deviceid=<deviceId>;phone=<phone>}")
    assert keys == {"deviceid=<deviceId>;phone=<phone>"}


def test_parse_query_literal_basic():
    q = parse_query_literal("userid={userid}")
    assert q.name == "userid"
    assert q.value == "{userid}"


def test_parse_query_literal_rejects_equals_in_value():
    # known limitation: the value may not contain '='
    with pytest.raises(ConfigurationError, match="q=a=\\{x\\}"):
        parse_query_literal("q=a={x}")


@pytest.mark.parametrize("literal", ["novalue", "name=", ""])
def test_parse_query_literal_requires_two_parts(literal):
    with pytest.raises(ConfigurationError):
        parse_query_literal(literal)


def test_parse_header_literal_splits_on_first_colon():
    h = parse_header_literal("X-Forwarded: http://host:80")
    assert h.name == "X-Forwarded"
    assert h.value == "http://host:80"


def test_parse_header_literal_requires_colon():
    with pytest.raises(ConfigurationError, match="NoColon"):
        parse_header_literal("NoColon")


def test_compile_template_cardinality():
    static = compile_template("static", extract_path_placeholders, owner="x")
    assert static.key is None
    assert static.is_static
    assert static.render("ignored") == "static"
    t = compile_template("a-{k}-{k}", extract_path_placeholders, owner="x")
    assert t.key == "k"
    assert not t.is_static
    assert t.render("v") == "a-v-v"

    with pytest.raises(ConfigurationError, match="X-Owner"):
        compile_template("{a}{b}", extract_path_placeholders, owner="X-Owner")


def test_form_url_encode_matches_form_rules():
    assert form_url_encode("a b~*<>") == "a+b%7E*%3C%3E"
    assert form_url_encode("é") == "%C3%A9"
    assert form_url_encode("A-z_0.9") == "A-z_0.9"


def test_form_url_encode_unknown_charset():
    with pytest.raises(EncodingError):
        form_url_encode("x", charset="no-such-charset")


def test_encode_composite_single_value_is_encoded_whole():
    assert encode_composite_value("house365") == "house365"
    assert encode_composite_value("k=v") == "k%3Dv"


def test_encode_composite_pairs_encoded_independently():
    value = "deviceid=<deviceId>;phone=<phone>"
    assert encode_composite_value(value) == "deviceid=%3CdeviceId%3E;phone=%3Cphone%3E"
    # a lone pair inside a composite keeps its '='
    assert encode_composite_value("k v=a b;") == "k+v=a+b"


def test_encode_composite_drops_malformed_pairs():
    assert encode_composite_value("a=1;junk;b=;=c;d=2=3") == "a=1;d=2%3D3"


@pytest.mark.parametrize("value", [None, "", "   ", "junk;b=", ";;"])
def test_encode_composite_suppressed(value):
    assert encode_composite_value(value) is None


def test_encode_composite_unencodable_value_is_suppressed():
    assert encode_composite_value("\ud800") is None
    assert encode_composite_value("x", charset="no-such-charset") is None
