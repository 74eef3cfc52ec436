from __future__ import annotations

import logging
from typing import Optional

from parambind.converters import DEFAULT_CONVERTERS, ConverterFactory
from parambind.domain.errors import ConfigurationError
from parambind.domain.models import BindingSettings, MethodMetadata, ParamBinding
from parambind.handlers import variants as v
from parambind.handlers.base import ParameterHandler
from parambind.templates.placeholders import extract_path_placeholders

logger = logging.getLogger(__name__)

_NAMED_KINDS = {"path", "query", "header", "field"}
_MAP_KINDS = {"query_map", "header_map", "field_map", "part_map"}
_FORM_KINDS = {"field", "field_map"}
_MULTIPART_KINDS = {"part", "raw_part", "part_map"}
_BODYLESS_METHODS = {"GET", "HEAD", "DELETE", "OPTIONS"}


def _fail(method: MethodMetadata, index: int, message: str) -> ConfigurationError:
    return ConfigurationError(f"{method.name} (parameter #{index + 1}): {message}")


def _shape(handler: ParameterHandler, binding: ParamBinding) -> ParameterHandler:
    if binding.collection == "sequence":
        return handler.iterable()
    if binding.collection == "array":
        return handler.array()
    return handler


def _part_handler(
    binding: ParamBinding, converters: ConverterFactory, settings: BindingSettings
) -> ParameterHandler:
    if not binding.name:
        return v.RawPart.INSTANCE
    headers = (
        ("Content-Disposition", f'form-data; name="{binding.name}"'),
        ("Content-Transfer-Encoding", binding.transfer_encoding or settings.default_transfer_encoding),
    )
    return v.Part(headers, converters.part_converter(binding.content_type))


def _handler_for(
    method: MethodMetadata,
    index: int,
    binding: ParamBinding,
    converters: ConverterFactory,
    settings: BindingSettings,
) -> ParameterHandler:
    kind = binding.kind
    if kind in _NAMED_KINDS and not binding.name:
        raise _fail(method, index, f"{kind} parameter requires a name.")
    if kind in _MAP_KINDS | {"url", "body"} and binding.collection != "single":
        raise _fail(method, index, f"{kind} parameter cannot be a collection.")

    to_str = converters.string_converter()

    if kind == "url":
        if method.relative_url:
            raise _fail(method, index, "url parameter cannot be combined with a relative URL.")
        return v.RelativeUrl()
    if kind == "path":
        if binding.name not in extract_path_placeholders(method.relative_url or ""):
            raise _fail(
                method, index, f'URL "{method.relative_url}" does not contain "{{{binding.name}}}".'
            )
        return v.Path(binding.name, to_str, binding.encoded)
    if kind == "query":
        return _shape(v.Query(binding.name, to_str, binding.encoded), binding)
    if kind == "header":
        return _shape(v.Header(binding.name, to_str), binding)
    if kind == "field":
        return _shape(v.Field(binding.name, to_str, binding.encoded), binding)
    if kind == "query_map":
        return v.QueryMap(to_str, binding.encoded)
    if kind == "header_map":
        return v.HeaderMap(to_str)
    if kind == "field_map":
        return v.FieldMap(to_str, binding.encoded)
    if kind == "part":
        return _shape(_part_handler(binding, converters, settings), binding)
    if kind == "raw_part":
        return _shape(v.RawPart.INSTANCE, binding)
    if kind == "part_map":
        return v.PartMap(
            converters.part_converter(binding.content_type),
            binding.transfer_encoding or settings.default_transfer_encoding,
        )
    if kind == "body":
        return v.Body(converters.body_converter())
    raise _fail(method, index, f"unknown parameter kind {kind!r}.")


def _check_combinations(method: MethodMetadata) -> None:
    kinds = [p.kind for p in method.parameters]
    has_url = "url" in kinds
    if not method.relative_url and not has_url:
        raise ConfigurationError(f"{method.name}: missing either a relative URL or a url parameter.")
    if kinds.count("url") > 1:
        raise ConfigurationError(f"{method.name}: multiple url parameters found.")

    bodies = kinds.count("body")
    if bodies > 1:
        raise ConfigurationError(f"{method.name}: multiple body parameters found.")
    if bodies and method.http_method in _BODYLESS_METHODS:
        raise ConfigurationError(f"{method.name}: {method.http_method} cannot carry a body parameter.")

    has_form = any(k in _FORM_KINDS for k in kinds)
    has_multipart = any(k in _MULTIPART_KINDS for k in kinds)
    if (bodies and (has_form or has_multipart)) or (has_form and has_multipart):
        raise ConfigurationError(
            f"{method.name}: body, form field and multipart parameters are mutually exclusive."
        )


def compile_method_handlers(
    method: MethodMetadata,
    converters: Optional[ConverterFactory] = None,
    settings: Optional[BindingSettings] = None,
) -> tuple[ParameterHandler, ...]:
    """One handler per positional argument, in declaration order."""
    converters = converters or DEFAULT_CONVERTERS
    settings = settings or BindingSettings()

    _check_combinations(method)
    handlers = tuple(
        _handler_for(method, i, binding, converters, settings)
        for i, binding in enumerate(method.parameters)
    )
    logger.debug("%s: compiled %d method handlers", method.name, len(handlers))
    return handlers
