from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, Optional

from pydantic import BaseModel, Field

HttpMethod = Literal["GET", "POST", "PUT", "PATCH", "DELETE", "OPTIONS", "HEAD"]

# Class-level annotation kinds the compiler understands. Anything else is
# carried through untouched for other collaborators.
PARAM_HEADERS = "param_headers"
PARAM_QUERIES = "param_queries"
PARAM_URL = "param_url"

BindingKind = Literal[
    "url",
    "path",
    "query",
    "header",
    "field",
    "query_map",
    "header_map",
    "field_map",
    "part",
    "raw_part",
    "part_map",
    "body",
]
CollectionShape = Literal["single", "sequence", "array"]

Headers = tuple[tuple[str, str], ...]


class ClassAnnotation(BaseModel):
    kind: str
    values: list[str] = Field(default_factory=list)  # param_headers / param_queries
    value: Optional[str] = None  # param_url
    encoded: bool = False


class InterfaceMetadata(BaseModel):
    name: str
    annotations: list[ClassAnnotation] = Field(default_factory=list)


class ParamBinding(BaseModel):
    """One positional argument of a method and how it is bound."""

    kind: BindingKind
    name: str = ""
    encoded: bool = False
    collection: CollectionShape = "single"

    # multipart only
    content_type: Optional[str] = None
    transfer_encoding: Optional[str] = None


class MethodMetadata(BaseModel):
    name: str
    http_method: HttpMethod = "GET"
    relative_url: Optional[str] = None
    parameters: list[ParamBinding] = Field(default_factory=list)


class BindingSettings(BaseModel):
    base_url: str = "http://localhost/"
    header_charset: str = "utf-8"
    default_transfer_encoding: str = "binary"


class ServiceDefinition(BaseModel):
    settings: BindingSettings = Field(default_factory=BindingSettings)
    interface: InterfaceMetadata
    methods: list[MethodMetadata] = Field(default_factory=list)

    def method(self, name: str) -> MethodMetadata:
        for m in self.methods:
            if m.name == name:
                return m
        raise KeyError(name)


@dataclass(frozen=True)
class RequestBody:
    content: bytes
    content_type: Optional[str] = None


@dataclass(frozen=True)
class MultipartPart:
    headers: Headers
    body: RequestBody
