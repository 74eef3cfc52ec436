from __future__ import annotations

import logging
from typing import Any, Optional

from parambind.converters import StringConverter, to_string
from parambind.handlers.base import ParameterHandler, convert
from parambind.request.builder import RequestBuilder
from parambind.templates.placeholders import (
    Template,
    compile_template,
    encode_composite_value,
    extract_header_placeholders,
    extract_path_placeholders,
    parse_header_literal,
    parse_query_literal,
)

logger = logging.getLogger(__name__)


class _TemplatedHandler(ParameterHandler[Any]):
    __slots__ = ("template",)

    @property
    def key(self) -> Optional[str]:
        """Placeholder filled at call time, or None for a static literal."""
        return self.template.key


class ParamQuery(_TemplatedHandler):
    """Class-wide query parameter compiled from "name=value_template"."""

    __slots__ = ("name", "value_converter", "encoded")

    def __init__(
        self,
        query: str,
        value_converter: StringConverter = to_string,
        encoded: bool = False,
    ) -> None:
        literal = parse_query_literal(query)
        template = compile_template(
            literal.value, extract_path_placeholders, owner=f"query {literal.name!r}"
        )
        self._freeze(
            name=literal.name,
            template=template,
            value_converter=value_converter,
            encoded=encoded,
        )

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        result = self.template.text
        if not self.template.is_static:
            if value is None:
                return
            converted = convert(self.value_converter, value, f"query parameter {self.name!r}")
            if converted is None:
                return
            result = self.template.render(converted)
        if result:
            builder.add_query_param(self.name, result, self.encoded)


class ParamHeader(_TemplatedHandler):
    """
    Class-wide header compiled from "Name: value_template".

    The call-time value goes through encode_composite_value before substitution;
    a value that encodes to nothing suppresses the header instead of failing.
    """

    __slots__ = ("name", "value_converter", "charset")

    def __init__(
        self,
        header: str,
        value_converter: StringConverter = to_string,
        charset: str = "utf-8",
    ) -> None:
        literal = parse_header_literal(header)
        template = compile_template(
            literal.value, extract_header_placeholders, owner=f"header {literal.name!r}"
        )
        self._freeze(
            name=literal.name,
            template=template,
            value_converter=value_converter,
            charset=charset,
        )

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        result = self.template.text
        if not self.template.is_static:
            if value is None:
                return
            converted = convert(self.value_converter, value, f"header {self.name!r}")
            encoded = encode_composite_value(converted, self.charset)
            if encoded is None:
                logger.debug("suppressing header %s: no encodable value", self.name)
                return
            result = self.template.render(encoded)
        if result:
            builder.add_header(self.name, result)


class ParamUrl(_TemplatedHandler):
    """Service URL template. The value is inlined raw: no converter, no encoding."""

    __slots__ = ()

    def __init__(self, url: str) -> None:
        self._freeze(template=compile_template(url, extract_path_placeholders, owner=url))

    @property
    def url(self) -> str:
        return self.template.text

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        builder.set_service_url(self.template.render("" if value is None else str(value)))
