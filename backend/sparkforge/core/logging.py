"""structlog setup for Sparkforge.

Events go out as JSON lines in production and through ConsoleRenderer when
debugging. Records from the stdlib (uvicorn, SQLAlchemy, httpx) share the same
chain through ``ProcessorFormatter``.

Two processors are specific to this service:
- ``redact_credentials`` blanks Anthropic/Replicate keys and auth headers
- ``ValueTruncator`` shortens artifact payloads (base64 images run to
  megabytes) and story text so a single event stays readable
"""

import logging
import logging.config

import structlog
from asgi_correlation_id.context import correlation_id

DEFAULT_MAX_VALUE_CHARS = 500
REDACTED = "[redacted]"
_CREDENTIAL_KEYS = frozenset({"anthropic_api_key", "replicate_api_token", "api_key", "authorization", "token"})
_QUIET_LOGGERS = ("uvicorn.access", "sqlalchemy.engine", "httpx", "anthropic")


def add_correlation_id(logger, method, event_dict):
    """Copy the asgi-correlation-id context value onto the event."""
    cid = correlation_id.get(None)
    if cid:
        event_dict["correlation_id"] = cid
    return event_dict


def redact_credentials(logger, method, event_dict):
    for key in event_dict.keys() & _CREDENTIAL_KEYS:
        if event_dict[key]:
            event_dict[key] = REDACTED
    return event_dict


class ValueTruncator:
    """Cut string values beyond ``max_chars``, noting how much was dropped.

    ``event`` itself is never cut.
    """

    def __init__(self, max_chars: int = DEFAULT_MAX_VALUE_CHARS):
        self.max_chars = max_chars

    def __call__(self, logger, method, event_dict):
        for key, value in event_dict.items():
            if key != "event" and isinstance(value, str) and len(value) > self.max_chars:
                event_dict[key] = f"{value[: self.max_chars]}...[{len(value) - self.max_chars} more chars]"
        return event_dict


def shared_processors(max_value_chars: int = DEFAULT_MAX_VALUE_CHARS) -> list:
    """Processors applied to both structlog and stdlib records, before rendering."""
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        add_correlation_id,
        redact_credentials,
        ValueTruncator(max_value_chars),
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def _dict_config(pre_chain: list, renderer, log_level: str) -> dict:
    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": structlog.stdlib.ProcessorFormatter,
                "processors": [structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
                "foreign_pre_chain": pre_chain,
            },
        },
        "handlers": {
            "default": {"class": "logging.StreamHandler", "formatter": "structured", "stream": "ext://sys.stdout"},
        },
        "root": {"handlers": ["default"], "level": log_level},
        "loggers": {name: {"level": "WARNING"} for name in _QUIET_LOGGERS},
    }


def configure_structlog(
    log_level: str = "INFO",
    json_logs: bool = True,
    max_value_chars: int = DEFAULT_MAX_VALUE_CHARS,
) -> None:
    """Install the processor chain for structlog and the root stdlib logger.

    Must run before the first ``structlog.get_logger()`` call binds a logger,
    since ``cache_logger_on_first_use`` freezes the chain.

    Args:
        log_level: Root log level ("DEBUG", "INFO", "WARNING", "ERROR")
        json_logs: JSON output when True, coloured console output otherwise
        max_value_chars: Longest string value kept intact in an event
    """
    pre_chain = shared_processors(max_value_chars)
    renderer = structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer()

    logging.config.dictConfig(_dict_config(pre_chain, renderer, log_level))

    structlog.configure(
        processors=pre_chain + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
