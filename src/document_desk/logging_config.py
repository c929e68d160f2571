"""structlog setup for Document Desk.

Log lines go to stderr so command output on stdout stays machine-readable.
Console rendering is used while entering documents locally; JSON rendering
adds the app, environment and remote service host to every event.

Awaited form operations run inside ``form_context`` so that adapter and
mapper log lines carry the form id and document kind without passing them
down explicitly.
"""

import logging
import sys
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any
from uuid import UUID

import httpx
import structlog
from structlog.types import EventDict, Processor, WrappedLogger

from document_desk.config import Settings, get_settings
from document_desk.domain.value_objects import DocumentKind

_QUIET_LOGGERS = ("httpx", "httpcore")


def _service_context(settings: Settings) -> Processor:
    service = {
        "app": settings.app_name,
        "environment": settings.environment.value,
        "api_host": httpx.URL(settings.api_base_url).host,
    }

    def add_service_context(
        logger: WrappedLogger, method_name: str, event_dict: EventDict
    ) -> EventDict:
        for key, value in service.items():
            event_dict.setdefault(key, value)
        return event_dict

    return add_service_context


def build_processors(settings: Settings) -> list[Processor]:
    """Processor chain for the configured log format."""
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso"),
    ]
    if settings.log_format == "json":
        processors += [
            _service_context(settings),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ]
    else:
        processors.append(
            structlog.dev.ConsoleRenderer(
                colors=sys.stderr.isatty(),
                exception_formatter=structlog.dev.plain_traceback,
            )
        )
    return processors


def configure_logging(settings: Settings | None = None) -> None:
    """Route structlog through the stdlib root logger on stderr.

    Call once at startup. ``settings.log_file`` adds a plain-text file handler.
    """
    settings = settings or get_settings()
    level = getattr(logging, settings.log_level.value)

    structlog.configure(
        processors=build_processors(settings),
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )
    logging.basicConfig(format="%(message)s", stream=sys.stderr, level=level)

    if settings.log_file:
        settings.log_file.parent.mkdir(parents=True, exist_ok=True)
        handler = logging.FileHandler(settings.log_file)
        handler.setLevel(level)
        handler.setFormatter(
            logging.Formatter("%(asctime)s %(name)s %(levelname)s %(message)s")
        )
        logging.getLogger().addHandler(handler)

    # request lines from the ERP client only at INFO and above
    for name in _QUIET_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.INFO))


def get_logger(name: str | None = None) -> structlog.stdlib.BoundLogger:
    return structlog.stdlib.get_logger(name)


@contextmanager
def form_context(form_id: UUID, document_kind: DocumentKind, **extra: Any) -> Iterator[None]:
    """Bind a form's identity to every log event emitted inside the block.

    Example:
        with form_context(form.form_id, form.kind):
            await gateway.submit(...)
    """
    with structlog.contextvars.bound_contextvars(
        form_id=str(form_id), document_kind=document_kind.value, **extra
    ):
        yield
