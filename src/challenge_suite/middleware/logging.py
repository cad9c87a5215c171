"""structlog setup shared by the API and the bootstrap script."""

import logging
from typing import Any

import structlog

from challenge_suite.config import Settings

_REDACTED_KEYS = frozenset({"password", "password_hash", "token", "access_token", "authorization", "api_secret"})

# Libraries that are chatty at INFO
_QUIET_LOGGERS = ("sqlalchemy.engine", "httpx", "cloudinary")


def redact_secrets(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:  # noqa: ANN401
    """Mask credential-like keys before an event is rendered."""
    for key in _REDACTED_KEYS.intersection(event_dict):
        event_dict[key] = "***"
    return event_dict


def setup_logging(settings: Settings) -> None:
    """JSON lines when ``log_format`` is ``json``, coloured console output otherwise."""
    json_output = settings.log_format == "json"
    processors: list[structlog.types.Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        redact_secrets,
        structlog.processors.StackInfoRenderer(),
    ]
    if json_output:
        processors += [structlog.processors.dict_tracebacks, structlog.processors.JSONRenderer()]
    else:
        processors += [structlog.processors.UnicodeDecoder(), structlog.dev.ConsoleRenderer()]

    structlog.configure(
        processors=processors,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, settings.log_level.upper(), logging.INFO)
    logging.basicConfig(level=level, format="%(message)s")
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))
