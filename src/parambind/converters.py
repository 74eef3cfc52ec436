from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Callable

from pydantic import BaseModel

from parambind.domain.models import RequestBody

StringConverter = Callable[[Any], str]
BodyConverter = Callable[[Any], RequestBody]

JSON_MEDIA_TYPE = "application/json; charset=utf-8"
TEXT_MEDIA_TYPE = "text/plain; charset=utf-8"


def to_string(value: Any) -> str:
    if isinstance(value, bool):
        # match the lowercase rendering servers expect in query strings
        return "true" if value else "false"
    return str(value)


def text_body(value: Any) -> RequestBody:
    if isinstance(value, RequestBody):
        return value
    if isinstance(value, bytes):
        return RequestBody(content=value, content_type="application/octet-stream")
    return RequestBody(content=to_string(value).encode("utf-8"), content_type=TEXT_MEDIA_TYPE)


def json_body(value: Any) -> RequestBody:
    if isinstance(value, RequestBody):
        return value
    if isinstance(value, BaseModel):
        payload = value.model_dump_json()
    else:
        payload = json.dumps(value, separators=(",", ":"))
    return RequestBody(content=payload.encode("utf-8"), content_type=JSON_MEDIA_TYPE)


@dataclass(frozen=True)
class ConverterFactory:
    """Resolves the converter a handler is compiled with."""

    string: StringConverter = to_string
    body: BodyConverter = json_body
    part: BodyConverter = text_body

    def string_converter(self) -> StringConverter:
        return self.string

    def body_converter(self) -> BodyConverter:
        return self.body

    def part_converter(self, content_type: str | None = None) -> BodyConverter:
        if content_type is None:
            return self.part
        base = self.part

        def convert(value: Any) -> RequestBody:
            body = base(value)
            return RequestBody(content=body.content, content_type=content_type)

        return convert


DEFAULT_CONVERTERS = ConverterFactory()
