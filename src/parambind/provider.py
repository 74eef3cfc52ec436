from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Mapping, Optional, Protocol


class ParamProvider(Protocol):
    """Supplies values for class-level placeholders, looked up by key."""

    def get_header_param(self, key: str) -> Optional[Any]: ...

    def get_query_param(self, key: str) -> Optional[Any]: ...

    def get_url_param(self, key: str) -> Optional[Any]: ...


@dataclass(frozen=True)
class MappingParamProvider:
    headers: Mapping[str, Any] = field(default_factory=dict)
    queries: Mapping[str, Any] = field(default_factory=dict)
    urls: Mapping[str, Any] = field(default_factory=dict)

    def get_header_param(self, key: str) -> Optional[Any]:
        return self.headers.get(key)

    def get_query_param(self, key: str) -> Optional[Any]:
        return self.queries.get(key)

    def get_url_param(self, key: str) -> Optional[Any]:
        return self.urls.get(key)
