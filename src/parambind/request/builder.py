from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from typing import Any, Optional
from urllib.parse import quote, urljoin

from parambind.domain.errors import ParameterValidationError
from parambind.domain.models import Headers, MultipartPart, RequestBody

FORM_MEDIA_TYPE = "application/x-www-form-urlencoded"

# characters left alone inside a query component (space and '&', '=', '#', '+' are encoded)
_QUERY_SAFE = "!$'()*,/:;?@"
_FORM_SAFE = "!$'()*,/:;?@"


@dataclass(frozen=True)
class Request:
    """Materialized request. Immutable once built."""

    method: str
    url: str
    headers: Headers = ()
    body: Optional[RequestBody] = None

    def header(self, name: str) -> Optional[str]:
        values = self.header_values(name)
        return values[-1] if values else None

    def header_values(self, name: str) -> list[str]:
        lname = name.lower()
        return [v for (k, v) in self.headers if k.lower() == lname]


def _canonicalize(value: str, safe: str, already_encoded: bool) -> str:
    if already_encoded:
        return value
    return quote(value, safe=safe)


@dataclass
class RequestBuilder:
    """
    Accumulates everything handlers contribute to exactly one call.

    Owned by the calling thread and thrown away after build(). Ordering rules:
      - headers and query params accumulate in call order
      - the last URL-setting call wins
    """

    method: str
    base_url: str
    relative_url: Optional[str] = None
    boundary: Optional[str] = None

    service_url: Optional[str] = None
    _headers: list[tuple[str, str]] = field(default_factory=list, init=False, repr=False)
    _query: list[tuple[str, str]] = field(default_factory=list, init=False, repr=False)
    _form: list[tuple[str, str]] = field(default_factory=list, init=False, repr=False)
    _parts: list[MultipartPart] = field(default_factory=list, init=False, repr=False)
    _body: Optional[RequestBody] = field(default=None, init=False, repr=False)
    _content_type: Optional[str] = field(default=None, init=False, repr=False)

    # ----------------------------
    # Mutators used by handlers
    # ----------------------------

    def set_relative_url(self, value: Any) -> None:
        self.relative_url = str(value)

    def set_service_url(self, url: str) -> None:
        self.service_url = url

    def add_path_param(self, name: str, value: str, encoded: bool) -> None:
        if self.relative_url is None:
            raise ParameterValidationError(
                f'Path parameter "{name}" used without a relative URL to substitute into.'
            )
        replacement = _canonicalize(value, safe="", already_encoded=encoded)
        if replacement in (".", "..", "%2E", "%2E%2E", "%2e", "%2e%2e"):
            raise ParameterValidationError(
                f"Path parameters shouldn't perform path traversal ('.' or '..'): {name} is {value}"
            )
        self.relative_url = self.relative_url.replace("{" + name + "}", replacement)

    def add_query_param(self, name: str, value: str, encoded: bool) -> None:
        self._query.append(
            (
                _canonicalize(name, _QUERY_SAFE, encoded),
                _canonicalize(value, _QUERY_SAFE, encoded),
            )
        )

    def add_header(self, name: str, value: str) -> None:
        if name.lower() == "content-type":
            # body media type, not a plain header
            self._content_type = value.strip()
            return
        self._headers.append((name, value.strip()))

    def add_form_field(self, name: str, value: str, encoded: bool) -> None:
        self._form.append(
            (
                _canonicalize(name, _FORM_SAFE, encoded),
                _canonicalize(value, _FORM_SAFE, encoded),
            )
        )

    def add_part(self, headers: Headers, body: RequestBody) -> None:
        self._parts.append(MultipartPart(headers=tuple(headers), body=body))

    def add_raw_part(self, part: MultipartPart) -> None:
        self._parts.append(part)

    def set_body(self, body: RequestBody) -> None:
        self._body = body

    # ----------------------------
    # Materialization
    # ----------------------------

    def _url(self) -> str:
        # an empty service URL means "not overridden"
        base = self.service_url or self.base_url
        url = urljoin(base, self.relative_url) if self.relative_url is not None else base
        if not self._query:
            return url
        query = "&".join(f"{k}={v}" for (k, v) in self._query)
        sep = "&" if "?" in url else "?"
        return f"{url}{sep}{query}"

    def _multipart_body(self) -> RequestBody:
        boundary = self.boundary or uuid.uuid4().hex
        chunks: list[bytes] = []
        for part in self._parts:
            chunks.append(f"--{boundary}\r\n".encode("utf-8"))
            for (k, v) in part.headers:
                chunks.append(f"{k}: {v}\r\n".encode("utf-8"))
            if part.body.content_type:
                chunks.append(f"Content-Type: {part.body.content_type}\r\n".encode("utf-8"))
            chunks.append(f"Content-Length: {len(part.body.content)}\r\n\r\n".encode("utf-8"))
            chunks.append(part.body.content)
            chunks.append(b"\r\n")
        chunks.append(f"--{boundary}--\r\n".encode("utf-8"))
        return RequestBody(
            content=b"".join(chunks),
            content_type=f"multipart/form-data; boundary={boundary}",
        )

    def _materialize_body(self) -> Optional[RequestBody]:
        if self._body is not None:
            body = self._body
        elif self._form:
            text = "&".join(f"{k}={v}" for (k, v) in self._form)
            body = RequestBody(content=text.encode("utf-8"), content_type=FORM_MEDIA_TYPE)
        elif self._parts:
            body = self._multipart_body()
        else:
            return None

        if self._content_type is not None:
            body = RequestBody(content=body.content, content_type=self._content_type)
        return body

    def build(self) -> Request:
        body = self._materialize_body()
        headers = list(self._headers)
        if body is None and self._content_type is not None:
            # nothing to carry the media type, keep it as a plain header
            headers.append(("Content-Type", self._content_type))
        return Request(
            method=self.method,
            url=self._url(),
            headers=tuple(headers),
            body=body,
        )
