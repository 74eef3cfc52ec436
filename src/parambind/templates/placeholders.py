from __future__ import annotations

import codecs
import logging
import re
from dataclasses import dataclass
from typing import Callable, Optional
from urllib.parse import quote_plus

from parambind.domain.errors import ConfigurationError, EncodingError

logger = logging.getLogger(__name__)

_PATH_PARAM = re.compile(r"\{([a-zA-Z][a-zA-Z0-9_-]*)\}")
# header keys may be composite: {deviceid=<deviceId>;phone=<phone>}
_HEADER_PARAM = re.compile(r"\{([^{}]+)\}")

Extractor = Callable[[str], frozenset]


def _extract(pattern: re.Pattern[str], template: str) -> frozenset:
    return frozenset(m.group(1) for m in pattern.finditer(template or ""))


def extract_path_placeholders(template: str) -> frozenset:
    return _extract(_PATH_PARAM, template)


def extract_header_placeholders(template: str) -> frozenset:
    return _extract(_HEADER_PARAM, template)


@dataclass(frozen=True)
class Template:
    """A literal with zero or one placeholder, rendered at call time."""

    text: str
    key: Optional[str] = None

    @property
    def is_static(self) -> bool:
        return self.key is None

    def render(self, replacement: str) -> str:
        if self.is_static:
            return self.text
        return self.text.replace("{" + self.key + "}", replacement)


def compile_template(text: str, extractor: Extractor, owner: str) -> Template:
    keys = extractor(text)
    if len(keys) > 1:
        found = ", ".join(sorted(keys))
        raise ConfigurationError(
            f"Template error at {owner}: only a single placeholder is allowed, found {found}"
        )
    key = next(iter(keys)) if keys else None
    return Template(text=text, key=key)


@dataclass(frozen=True)
class QueryLiteral:
    name: str
    value: str


@dataclass(frozen=True)
class HeaderLiteral:
    name: str
    value: str


def parse_query_literal(literal: str) -> QueryLiteral:
    """
    "name=value" -> QueryLiteral.

    Splits on every '=' and drops trailing empty pieces, then demands exactly two
    parts. A value containing '=' (e.g. "q=a={x}") is therefore rejected.
    """
    parts = literal.split("=")
    while parts and parts[-1] == "":
        parts.pop()
    if len(parts) != 2:
        raise ConfigurationError(
            f"Malformed query literal {literal!r}: expected exactly one 'name=value' pair"
        )
    return QueryLiteral(name=parts[0], value=parts[1])


def parse_header_literal(literal: str) -> HeaderLiteral:
    """'Name: value' -> HeaderLiteral, split on the first colon."""
    index = literal.find(":")
    if index == -1:
        raise ConfigurationError(
            f"Malformed header literal {literal!r}: expected 'Name: value'"
        )
    name = literal[:index].strip()
    if not name:
        raise ConfigurationError(f"Malformed header literal {literal!r}: empty header name")
    return HeaderLiteral(name=name, value=literal[index + 1 :].strip())


def form_url_encode(content: str, charset: str = "utf-8") -> str:
    """
    application/x-www-form-urlencoded encoding: only A-Za-z0-9 . - * _ survive,
    space becomes '+', everything else is percent-encoded in `charset`.
    """
    try:
        codecs.lookup(charset)
    except LookupError as exc:
        raise EncodingError(f"Unsupported charset {charset!r}") from exc
    try:
        encoded = quote_plus(content, safe="*", encoding=charset, errors="strict")
    except UnicodeEncodeError as exc:
        raise EncodingError(f"Cannot encode {content!r} as {charset}") from exc
    return encoded.replace("~", "%7E")


def _encode_or_none(content: str, charset: str) -> Optional[str]:
    if not content or not content.strip():
        return None
    try:
        return form_url_encode(content, charset)
    except EncodingError as exc:
        logger.debug("dropping header value: %s", exc)
        return None


def encode_composite_value(value: Optional[str], charset: str = "utf-8") -> Optional[str]:
    """
    Encode a header value that may be a ';'-separated list of key=value pairs.

    Single values are encoded whole. For composites each key and value is encoded
    independently; pairs without '=' or ending in '=' are dropped. None means the
    header should be suppressed.
    """
    if not value:
        return None

    if ";" not in value:
        return _encode_or_none(value, charset)

    pairs: list[str] = []
    for chunk in value.split(";"):
        index = chunk.find("=")
        if index == -1 or chunk.rfind("=") == len(chunk) - 1:
            continue
        key = _encode_or_none(chunk[:index], charset)
        val = _encode_or_none(chunk[index + 1 :], charset)
        if key is None or val is None:
            continue
        pairs.append(f"{key}={val}")

    return ";".join(pairs) or None
