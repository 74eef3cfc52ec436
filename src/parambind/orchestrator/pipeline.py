from __future__ import annotations

import logging
import threading
from dataclasses import dataclass
from typing import Any, Callable, Optional, TypeVar

from parambind.compiler.class_level import compile_class_level_handlers
from parambind.compiler.method_level import compile_method_handlers
from parambind.converters import DEFAULT_CONVERTERS, ConverterFactory
from parambind.domain.errors import ConfigurationError, ParameterValidationError
from parambind.domain.models import MethodMetadata, ServiceDefinition
from parambind.handlers.base import ParameterHandler
from parambind.handlers.templated import ParamHeader, ParamQuery, ParamUrl
from parambind.provider import ParamProvider
from parambind.request.builder import Request, RequestBuilder

logger = logging.getLogger(__name__)

V = TypeVar("V")

# which provider lookup feeds which class-level handler
_PROVIDER_LOOKUPS = {
    ParamHeader: "get_header_param",
    ParamQuery: "get_query_param",
    ParamUrl: "get_url_param",
}


@dataclass(frozen=True)
class MethodBinding:
    method: MethodMetadata
    class_handlers: tuple[ParameterHandler, ...]
    handlers: tuple[ParameterHandler, ...]


class HandlerCache:
    """
    Compile-once cache keyed by name.

    Compilation runs outside the lock; if two threads race, the first published
    result wins and the other is discarded. Failed compilations cache nothing.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._entries: dict[str, Any] = {}

    def get_or_compile(self, key: str, compile_fn: Callable[[], V]) -> V:
        with self._lock:
            hit = self._entries.get(key)
        if hit is not None:
            return hit

        compiled = compile_fn()
        with self._lock:
            winner = self._entries.setdefault(key, compiled)
        if winner is not compiled:
            logger.debug("discarding duplicate compilation of %s", key)
        return winner

    def __contains__(self, key: str) -> bool:
        with self._lock:
            return key in self._entries

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)


class ServiceBinding:
    """
    Binds a service definition to call arguments.

    Per call: class-level handlers run first (fed by the provider), then method
    handlers paired positionally with the arguments. Both lists are compiled on
    first use and shared by every later call.
    """

    def __init__(
        self,
        definition: ServiceDefinition,
        provider: Optional[ParamProvider] = None,
        converters: Optional[ConverterFactory] = None,
    ) -> None:
        self.definition = definition
        self.provider = provider
        self.converters = converters or DEFAULT_CONVERTERS
        self.cache = HandlerCache()
        # interface-wide handlers live apart so no method name can collide with them
        self.class_cache = HandlerCache()

    @property
    def settings(self):
        return self.definition.settings

    def class_handlers(self) -> tuple[ParameterHandler, ...]:
        return self.class_cache.get_or_compile(
            self.definition.interface.name,
            lambda: compile_class_level_handlers(
                self.definition.interface, self.converters, self.settings
            ),
        )

    def method_binding(self, name: str) -> MethodBinding:
        return self.cache.get_or_compile(name, lambda: self._compile(name))

    def _compile(self, name: str) -> MethodBinding:
        try:
            method = self.definition.method(name)
        except KeyError:
            raise ConfigurationError(
                f"{self.definition.interface.name} has no method named {name!r}"
            ) from None

        class_handlers = self.class_handlers()
        if self.provider is None and any(_key_of(h) is not None for h in class_handlers):
            raise ConfigurationError("Use type parameters must be set ParamProvider")

        return MethodBinding(
            method=method,
            class_handlers=class_handlers,
            handlers=compile_method_handlers(method, self.converters, self.settings),
        )

    def _class_value(self, handler: ParameterHandler) -> Any:
        key = _key_of(handler)
        if key is None or self.provider is None:
            return None
        lookup = getattr(self.provider, _PROVIDER_LOOKUPS[type(handler)])
        return lookup(key)

    def build_request(self, method_name: str, *args: Any) -> Request:
        binding = self.method_binding(method_name)
        if len(args) != len(binding.handlers):
            raise ParameterValidationError(
                f"{method_name}: argument count ({len(args)}) doesn't match "
                f"expected count ({len(binding.handlers)})"
            )

        builder = RequestBuilder(
            method=binding.method.http_method,
            base_url=self.settings.base_url,
            relative_url=binding.method.relative_url,
        )
        for handler in binding.class_handlers:
            handler.apply(builder, self._class_value(handler))
        for handler, arg in zip(binding.handlers, args):
            handler.apply(builder, arg)

        request = builder.build()
        logger.debug("%s -> %s %s", method_name, request.method, request.url)
        return request


def _key_of(handler: ParameterHandler) -> Optional[str]:
    return getattr(handler, "key", None)
