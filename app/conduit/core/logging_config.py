"""Structured logging for Conduit.

Configuration is generated, not applied, by this module: `get_logging_config`
returns a plain `dictConfig` dictionary and `configure_structlog_wrapper`
installs structlog's processor chain. Both are called once from the FastAPI
lifespan; library code only calls `get_logger`.

Every log line passes through `redact_credentials`, so provider settings or
request headers bound to a logger never leak an API key. Stream-scoped
metadata (request id, provider, model id) travels through
`structlog.contextvars`.
"""

from typing import Any, Mapping, MutableMapping

import structlog
from pydantic import SecretStr
from structlog.types import Processor

from conduit.config import Settings

REDACTED = "**********"

# Event keys whose values are credentials, compared case-insensitively.
SENSITIVE_KEYS = frozenset({
    "api_key",
    "x-api-key",
    "authorization",
    "secret",
    "token",
})

PACKAGE_LOGGER = "conduit"


# =============================================================================
# PROCESSORS
# =============================================================================


def _redact(value: Any) -> Any:
    if isinstance(value, SecretStr):
        return REDACTED
    if isinstance(value, Mapping):
        return {
            key: REDACTED if str(key).lower() in SENSITIVE_KEYS else _redact(item)
            for key, item in value.items()
        }
    if isinstance(value, (list, tuple)):
        return type(value)(_redact(item) for item in value)
    return value


def redact_credentials(
    logger: Any, method_name: str, event_dict: MutableMapping[str, Any]
) -> MutableMapping[str, Any]:
    """Mask credential values anywhere in the event, nested mappings included."""
    for key in list(event_dict):
        if key.lower() in SENSITIVE_KEYS:
            event_dict[key] = REDACTED
        else:
            event_dict[key] = _redact(event_dict[key])
    return event_dict


def get_common_processors() -> list[Processor]:
    """Processors shared by structlog loggers and foreign (stdlib) records.

    Ordered so that context is merged before redaction and redaction runs
    before anything is rendered.
    """
    return [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        redact_credentials,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
    ]


def select_renderer(settings: Settings) -> Processor:
    """JSON for staging and production, colored console output otherwise."""
    if settings.ENVIRONMENT in ("production", "staging"):
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=True)


# =============================================================================
# CONFIGURATION
# =============================================================================


def get_logging_config(settings: Settings) -> dict[str, Any]:
    """Build the `logging.config.dictConfig` dictionary for `settings`.

    Pure: nothing is configured until the caller passes the result to
    `dictConfig`. The root and `conduit` loggers follow `LOG_LEVEL`; the
    HTTP and adapter libraries listed in `LOGGING_NOISY_MODULES` are capped
    at WARNING so streamed chunks do not flood the output.
    """
    log_level = settings.LOG_LEVEL.upper()

    loggers: dict[str, Any] = {
        "": {"handlers": ["console"], "level": log_level, "propagate": True},
        PACKAGE_LOGGER: {"level": log_level, "propagate": True},
    }
    for module in settings.LOGGING_NOISY_MODULES:
        loggers[module] = {"level": "WARNING", "propagate": False}

    return {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "structured": {
                "()": "structlog.stdlib.ProcessorFormatter",
                "processor": select_renderer(settings),
                "foreign_pre_chain": get_common_processors(),
            },
        },
        "handlers": {
            "console": {
                "level": log_level,
                "class": "logging.StreamHandler",
                "formatter": "structured",
                "stream": "ext://sys.stdout",
            },
        },
        "loggers": loggers,
    }


def configure_structlog_wrapper(settings: Settings) -> None:
    """Install the structlog processor chain on top of stdlib logging."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            *get_common_processors(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )


# =============================================================================
# LOGGER RETRIEVAL
# =============================================================================


def get_logger(name: str | None = None) -> Any:
    """Return a structlog logger; module code passes `__name__`."""
    return structlog.get_logger(name or PACKAGE_LOGGER)


# =============================================================================
# CONTEXT VARIABLES
# =============================================================================

bind_contextvars = structlog.contextvars.bind_contextvars
unbind_contextvars = structlog.contextvars.unbind_contextvars
clear_contextvars = structlog.contextvars.clear_contextvars
bound_contextvars = structlog.contextvars.bound_contextvars
