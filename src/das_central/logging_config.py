"""structlog setup shared by the API server and the ``das`` CLI.

The API logs to stdout; the CLI passes stderr so its stdout stays free for
command output. Batch payments and HTTP requests bind their ids through
contextvars, so every event emitted inside them carries those ids.
"""

import logging
import sys
from pathlib import Path
from typing import Any, TextIO

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from das_central.config import Settings, get_settings

# Libraries whose DEBUG output drowns the payment events.
_QUIET_LOGGERS = ("httpcore", "httpx", "uvicorn.access")


def _level_field(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    event_dict["level"] = "WARNING" if method_name == "warn" else method_name.upper()
    return event_dict


def _service_fields(
    logger: WrappedLogger, method_name: str, event_dict: EventDict
) -> EventDict:
    settings = get_settings()
    event_dict["app"] = settings.app_name
    event_dict["environment"] = settings.environment.value
    return event_dict


def build_processors(log_format: str, colors: bool = True) -> list[Processor]:
    """Processor chain for ``console`` or ``json`` output."""
    shared: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.UnicodeDecoder(),
    ]
    if log_format == "json":
        return [
            _level_field,
            _service_fields,
            *shared,
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    return [
        structlog.stdlib.add_log_level,
        *shared,
        structlog.dev.ConsoleRenderer(
            colors=colors,
            exception_formatter=structlog.dev.plain_traceback,
        ),
    ]


def configure_logging(
    settings: Settings | None = None, stream: TextIO | None = None
) -> None:
    """Configure structlog and the root logger once per process.

    Console output is colored only when ``stream`` is a terminal.
    """
    if settings is None:
        settings = get_settings()
    stream = stream or sys.stdout
    level = getattr(logging, settings.log_level.value)

    structlog.configure(
        processors=build_processors(settings.log_format, colors=stream.isatty()),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=stream, level=level)

    if settings.log_file:
        _add_file_handler(settings.log_file, level)

    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def _add_file_handler(log_file: Path, level: int) -> None:
    log_file.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(log_file)
    handler.setLevel(level)
    handler.setFormatter(
        logging.Formatter("%(asctime)s - %(name)s - %(levelname)s - %(message)s")
    )
    logging.getLogger().addHandler(handler)


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    """Return a structlog logger, e.g. ``get_logger(__name__)``."""
    return structlog.stdlib.get_logger(name)


def bind_context(**kwargs: Any) -> None:
    """Attach values to every later event in the current context."""
    structlog.contextvars.bind_contextvars(**kwargs)


def clear_context() -> None:
    structlog.contextvars.clear_contextvars()


class LogContext:
    """Bind values for the duration of a ``with`` block.

    On exit the previous values come back, so a nested block that rebinds a
    key does not erase the outer binding.

    Example:
        with LogContext(batch_size=3, bank_account_id=str(bank_id)):
            logger.info("batch_payment_started")
    """

    def __init__(self, **kwargs: Any) -> None:
        self.kwargs = kwargs
        self._tokens: dict[str, Any] = {}

    def __enter__(self) -> "LogContext":
        self._tokens = structlog.contextvars.bind_contextvars(**self.kwargs)
        return self

    def __exit__(self, *args: Any) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
