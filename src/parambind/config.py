from __future__ import annotations

import logging
from pathlib import Path

from pydantic import ValidationError

from parambind.domain.errors import ConfigurationError
from parambind.domain.models import ServiceDefinition

logger = logging.getLogger(__name__)


def load_service_definition(path: Path) -> ServiceDefinition:
    """
    Read a JSON service definition (settings + interface + methods).
    Schema problems surface as ConfigurationError so callers only need one except.
    """
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read service definition {path}: {exc}") from exc

    try:
        definition = ServiceDefinition.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid service definition {path}:\n{exc}") from exc

    logger.debug(
        "loaded service definition %s: interface=%s methods=%d",
        path,
        definition.interface.name,
        len(definition.methods),
    )
    return definition
