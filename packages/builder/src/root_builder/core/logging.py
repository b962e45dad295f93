from __future__ import annotations

import logging
from typing import Any, Protocol, runtime_checkable

import structlog
from rich.console import Console
from rich.logging import RichHandler
from structlog.contextvars import bind_contextvars, clear_contextvars, merge_contextvars

_CONFIGURED = False

# Chatty per-request loggers from the HTTP stack.
_QUIET_LOGGERS: tuple[str, ...] = ("httpx", "httpcore")


@runtime_checkable
class ILogger(Protocol):
    def debug(self, event: str, **kw: Any) -> Any: ...
    def info(self, event: str, **kw: Any) -> Any: ...
    def warning(self, event: str, **kw: Any) -> Any: ...
    def error(self, event: str, **kw: Any) -> Any: ...
    def exception(self, event: str, **kw: Any) -> Any: ...
    def bind(self, **kw: Any) -> "ILogger": ...


def _shared_processors() -> list[Any]:
    return [
        merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]


def configure_logging(*, level: str = "INFO", fmt: str = "console") -> None:
    """
    Route structlog through stdlib logging to stderr.

    stdout belongs to cmake/ninja/apt, whose output is streamed unchanged.
    """
    global _CONFIGURED
    if _CONFIGURED:
        return

    lvl = level.upper()
    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(lvl)

    processors = _shared_processors()
    if fmt == "console":
        handler: logging.Handler = RichHandler(
            rich_tracebacks=True,
            markup=False,
            show_time=False,
            show_path=False,
            console=Console(stderr=True),
        )
        processors.append(structlog.processors.KeyValueRenderer(sort_keys=True))
    else:
        handler = logging.StreamHandler()
        processors.append(structlog.processors.JSONRenderer(default=str))

    handler.setFormatter(logging.Formatter("%(message)s"))
    handler.setLevel(lvl)
    root.addHandler(handler)

    if lvl != "DEBUG":
        for name in _QUIET_LOGGERS:
            logging.getLogger(name).setLevel(logging.WARNING)

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(lvl),
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    _CONFIGURED = True


def get_logger(name: str = "root_builder") -> structlog.stdlib.BoundLogger:
    return structlog.get_logger(name)


def bind(**values: Any) -> None:
    bind_contextvars(**values)


def clear_bindings() -> None:
    clear_contextvars()
