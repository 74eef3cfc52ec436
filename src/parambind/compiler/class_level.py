from __future__ import annotations

import logging
from typing import Optional

from parambind.converters import DEFAULT_CONVERTERS, ConverterFactory
from parambind.domain.errors import ConfigurationError
from parambind.domain.models import (
    PARAM_HEADERS,
    PARAM_QUERIES,
    PARAM_URL,
    BindingSettings,
    ClassAnnotation,
    InterfaceMetadata,
)
from parambind.handlers.base import ParameterHandler
from parambind.handlers.templated import ParamHeader, ParamQuery, ParamUrl

logger = logging.getLogger(__name__)


def _compile_headers(
    interface: InterfaceMetadata,
    annotation: ClassAnnotation,
    converters: ConverterFactory,
    settings: BindingSettings,
) -> list[ParameterHandler]:
    if not annotation.values:
        raise ConfigurationError(f"{interface.name}: @ParamHeaders annotation is empty.")
    return [
        ParamHeader(literal, converters.string_converter(), charset=settings.header_charset)
        for literal in annotation.values
    ]


def _compile_queries(
    interface: InterfaceMetadata,
    annotation: ClassAnnotation,
    converters: ConverterFactory,
    settings: BindingSettings,
) -> list[ParameterHandler]:
    if not annotation.values:
        raise ConfigurationError(f"{interface.name}: @ParamQuerys annotation is empty.")
    return [
        ParamQuery(literal, converters.string_converter(), encoded=annotation.encoded)
        for literal in annotation.values
    ]


def _compile_url(
    interface: InterfaceMetadata,
    annotation: ClassAnnotation,
    converters: ConverterFactory,
    settings: BindingSettings,
) -> list[ParameterHandler]:
    if annotation.value is None:
        raise ConfigurationError(f"{interface.name}: @ParamUrl annotation has no value.")
    return [ParamUrl(annotation.value)]


_COMPILERS = {
    PARAM_HEADERS: _compile_headers,
    PARAM_QUERIES: _compile_queries,
    PARAM_URL: _compile_url,
}


def compile_class_level_handlers(
    interface: InterfaceMetadata,
    converters: Optional[ConverterFactory] = None,
    settings: Optional[BindingSettings] = None,
) -> tuple[ParameterHandler, ...]:
    """
    Compile interface-wide annotations into an ordered handler tuple.

    Order: declaration order of annotations, then array order inside each one.
    Unknown annotation kinds are skipped. Any error aborts the whole interface;
    nothing partial is returned.
    """
    converters = converters or DEFAULT_CONVERTERS
    settings = settings or BindingSettings()

    handlers: list[ParameterHandler] = []
    for annotation in interface.annotations:
        compiler = _COMPILERS.get(annotation.kind)
        if compiler is None:
            logger.debug("%s: ignoring class annotation %r", interface.name, annotation.kind)
            continue
        handlers.extend(compiler(interface, annotation, converters, settings))

    logger.debug("%s: compiled %d class-level handlers", interface.name, len(handlers))
    return tuple(handlers)
