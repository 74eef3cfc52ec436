from __future__ import annotations

from abc import abstractmethod
from typing import Any, Mapping, Optional

from parambind.converters import BodyConverter, StringConverter
from parambind.domain.errors import ParameterValidationError
from parambind.domain.models import Headers, MultipartPart
from parambind.handlers.base import ParameterHandler, convert
from parambind.request.builder import RequestBuilder


def _require_name(name: Optional[str]) -> str:
    if name is None:
        raise ValueError("name must not be None")
    return name


class RelativeUrl(ParameterHandler[Any]):
    __slots__ = ()

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            raise ParameterValidationError("@Url parameter is null.")
        builder.set_relative_url(value)


class Header(ParameterHandler[Any]):
    __slots__ = ("name", "value_converter")

    def __init__(self, name: str, value_converter: StringConverter) -> None:
        self._freeze(name=_require_name(name), value_converter=value_converter)

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            return
        builder.add_header(self.name, convert(self.value_converter, value, f'header "{self.name}"'))


class Path(ParameterHandler[Any]):
    __slots__ = ("name", "value_converter", "encoded")

    def __init__(self, name: str, value_converter: StringConverter, encoded: bool = False) -> None:
        self._freeze(name=_require_name(name), value_converter=value_converter, encoded=encoded)

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            raise ParameterValidationError(
                f'Path parameter "{self.name}" value must not be null.'
            )
        converted = convert(self.value_converter, value, f'path parameter "{self.name}"')
        builder.add_path_param(self.name, converted, self.encoded)


class Query(ParameterHandler[Any]):
    __slots__ = ("name", "value_converter", "encoded")

    def __init__(self, name: str, value_converter: StringConverter, encoded: bool = False) -> None:
        self._freeze(name=_require_name(name), value_converter=value_converter, encoded=encoded)

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            return
        converted = convert(self.value_converter, value, f'query parameter "{self.name}"')
        builder.add_query_param(self.name, converted, self.encoded)


class Field(ParameterHandler[Any]):
    __slots__ = ("name", "value_converter", "encoded")

    def __init__(self, name: str, value_converter: StringConverter, encoded: bool = False) -> None:
        self._freeze(name=_require_name(name), value_converter=value_converter, encoded=encoded)

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            return
        converted = convert(self.value_converter, value, f'form field "{self.name}"')
        builder.add_form_field(self.name, converted, self.encoded)


# ----------------------------
# Map variants
# ----------------------------


class _MapHandler(ParameterHandler[Mapping[str, Any]]):
    """Validates the map and every entry, then binds entries in iteration order."""

    __slots__ = ()
    label = "Map"

    def apply(self, builder: RequestBuilder, value: Optional[Mapping[str, Any]]) -> None:
        if value is None:
            raise ParameterValidationError(f"{self.label} map was null.")

        for entry_key, entry_value in value.items():
            if entry_key is None:
                raise ParameterValidationError(f"{self.label} map contained null key.")
            if entry_value is None:
                raise ParameterValidationError(
                    f"{self.label} map contained null value for key '{entry_key}'."
                )
            self.apply_entry(builder, entry_key, entry_value)

    @abstractmethod
    def apply_entry(self, builder: RequestBuilder, key: str, value: Any) -> None:
        raise NotImplementedError


class QueryMap(_MapHandler):
    __slots__ = ("value_converter", "encoded")
    label = "Query"

    def __init__(self, value_converter: StringConverter, encoded: bool = False) -> None:
        self._freeze(value_converter=value_converter, encoded=encoded)

    def apply_entry(self, builder: RequestBuilder, key: str, value: Any) -> None:
        converted = convert(self.value_converter, value, f'query parameter "{key}"')
        builder.add_query_param(key, converted, self.encoded)


class HeaderMap(_MapHandler):
    __slots__ = ("value_converter",)
    label = "Header"

    def __init__(self, value_converter: StringConverter) -> None:
        self._freeze(value_converter=value_converter)

    def apply_entry(self, builder: RequestBuilder, key: str, value: Any) -> None:
        builder.add_header(key, convert(self.value_converter, value, f'header "{key}"'))


class FieldMap(_MapHandler):
    __slots__ = ("value_converter", "encoded")
    label = "Field"

    def __init__(self, value_converter: StringConverter, encoded: bool = False) -> None:
        self._freeze(value_converter=value_converter, encoded=encoded)

    def apply_entry(self, builder: RequestBuilder, key: str, value: Any) -> None:
        converted = convert(self.value_converter, value, f'form field "{key}"')
        builder.add_form_field(key, converted, self.encoded)


class PartMap(_MapHandler):
    __slots__ = ("value_converter", "transfer_encoding")
    label = "Part"

    def __init__(self, value_converter: BodyConverter, transfer_encoding: str = "binary") -> None:
        self._freeze(value_converter=value_converter, transfer_encoding=transfer_encoding)

    def apply_entry(self, builder: RequestBuilder, key: str, value: Any) -> None:
        headers: Headers = (
            ("Content-Disposition", f'form-data; name="{key}"'),
            ("Content-Transfer-Encoding", self.transfer_encoding),
        )
        builder.add_part(headers, convert(self.value_converter, value, "RequestBody"))


# ----------------------------
# Bodies and parts
# ----------------------------


class Part(ParameterHandler[Any]):
    __slots__ = ("headers", "converter")

    def __init__(self, headers: Headers, converter: BodyConverter) -> None:
        self._freeze(headers=tuple(headers), converter=converter)

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            return
        builder.add_part(self.headers, convert(self.converter, value, "RequestBody"))


class RawPart(ParameterHandler[MultipartPart]):
    """Passes prebuilt parts through. Stateless, use RawPart.INSTANCE."""

    __slots__ = ()
    INSTANCE: "RawPart"

    def apply(self, builder: RequestBuilder, value: Optional[MultipartPart]) -> None:
        if value is not None:
            builder.add_raw_part(value)


RawPart.INSTANCE = RawPart()


class Body(ParameterHandler[Any]):
    __slots__ = ("converter",)

    def __init__(self, converter: BodyConverter) -> None:
        self._freeze(converter=converter)

    def apply(self, builder: RequestBuilder, value: Any) -> None:
        if value is None:
            raise ParameterValidationError("Body parameter value must not be null.")
        builder.set_body(convert(self.converter, value, "RequestBody"))
