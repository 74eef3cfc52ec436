from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Generic, Iterable, Optional, Sequence, TypeVar

from parambind.domain.errors import ConversionError, ParameterValidationError
from parambind.request.builder import RequestBuilder

T = TypeVar("T")
R = TypeVar("R")


class ParameterHandler(ABC, Generic[T]):
    """
    Compiled, immutable binding of one value onto a RequestBuilder.

    Instances are shared by every call of a method (and across threads), so all
    call data must arrive through apply(); attributes are fixed in __init__.
    """

    __slots__ = ()

    def _freeze(self, **attrs: Any) -> None:
        for name, value in attrs.items():
            object.__setattr__(self, name, value)

    def __setattr__(self, name: str, value: Any) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __delattr__(self, name: str) -> None:
        raise AttributeError(f"{type(self).__name__} is immutable")

    def __repr__(self) -> str:
        fields = []
        for cls in reversed(type(self).__mro__):
            for name in getattr(cls, "__slots__", ()):
                if name.endswith("converter") or not hasattr(self, name):
                    continue
                fields.append(f"{name}={getattr(self, name)!r}")
        return f"{type(self).__name__}({', '.join(fields)})"

    @abstractmethod
    def apply(self, builder: RequestBuilder, value: Optional[T]) -> None:
        raise NotImplementedError

    def iterable(self) -> "ParameterHandler[Iterable[T]]":
        return _SequenceHandler(self)

    def array(self) -> "ParameterHandler[Sequence[T]]":
        return _ArrayHandler(self)


def _reject_text(values: Any, element: ParameterHandler[Any]) -> None:
    # a str is iterable but never a collection of values here
    if isinstance(values, (str, bytes)):
        raise ParameterValidationError(
            f"Expected a collection of values for {element!r}, got {type(values).__name__}"
        )


class _SequenceHandler(ParameterHandler[Iterable[T]]):
    __slots__ = ("element",)

    def __init__(self, element: ParameterHandler[T]) -> None:
        self._freeze(element=element)

    def apply(self, builder: RequestBuilder, values: Optional[Iterable[T]]) -> None:
        if values is None:
            return
        _reject_text(values, self.element)
        for value in values:
            self.element.apply(builder, value)


class _ArrayHandler(ParameterHandler[Sequence[T]]):
    __slots__ = ("element",)

    def __init__(self, element: ParameterHandler[T]) -> None:
        self._freeze(element=element)

    def apply(self, builder: RequestBuilder, values: Optional[Sequence[T]]) -> None:
        if values is None:
            return
        _reject_text(values, self.element)
        for i in range(len(values)):
            self.element.apply(builder, values[i])


def as_sequence_handler(handler: ParameterHandler[T]) -> ParameterHandler[Iterable[T]]:
    return handler.iterable()


def as_fixed_array_handler(handler: ParameterHandler[T]) -> ParameterHandler[Sequence[T]]:
    return handler.array()


def convert(converter: Callable[[Any], R], value: Any, target: str) -> R:
    """Run a converter, re-raising any failure as ConversionError."""
    try:
        return converter(value)
    except ConversionError:
        raise
    except Exception as exc:
        raise ConversionError(f"Unable to convert {value!r} to {target}") from exc
