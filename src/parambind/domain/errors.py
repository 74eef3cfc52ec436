from __future__ import annotations


class ParamBindError(Exception):
    """Base class for every error raised by parambind."""


class ConfigurationError(ParamBindError, ValueError):
    """Metadata could not be compiled. Raised once, never retried."""


class ParameterValidationError(ParamBindError, ValueError):
    """A call-time value violated a handler's null policy."""


class ConversionError(ParamBindError, RuntimeError):
    """A converter failed while binding a call-time value."""


class EncodingError(ParamBindError, ValueError):
    """A header value could not be encoded in the requested charset."""
