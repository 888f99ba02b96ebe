"""Logging for the assignment layer.

structlog renders everything (its own loggers and stdlib ``logging`` records
from the validation and API layers): JSON lines in production, a coloured
console in development.

Assignment runs bind their label space and record ids with
``assignment_context()``; the binding lives in contextvars, so the retry,
breaker and provider logs emitted underneath carry it too.
"""

import logging
import sys
from contextlib import contextmanager
from typing import Iterator, Sequence

import structlog
from structlog.types import EventDict, Processor, WrappedLogger

SERVICE_NAME = "llm-assignment-layer"

# Record ids logged per run; a batch can hold up to 1000 records
MAX_LOGGED_RECORD_IDS = 20

# Transport loggers would echo request bodies, which carry transaction data
QUIET_LOGGERS = ("httpx", "httpcore", "asyncio")


def add_service_name(logger: WrappedLogger, method_name: str, event_dict: EventDict) -> EventDict:
    event_dict.setdefault("service", SERVICE_NAME)
    return event_dict


@contextmanager
def assignment_context(label_space: str, record_ids: Sequence[str]) -> Iterator[None]:
    """Bind label space and record ids to every log event inside the block.

    Args:
        label_space: "category" or "budget"
        record_ids: Ids of the records being assigned (truncated when logged)
    """
    with structlog.contextvars.bound_contextvars(
        label_space=label_space,
        record_count=len(record_ids),
        record_ids=list(record_ids[:MAX_LOGGED_RECORD_IDS]),
    ):
        yield


def _pick_renderer(environment: str) -> Processor:
    if environment.lower() == "production":
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())


def configure_logging(log_level: str = "INFO", environment: str = "development") -> None:
    """Configure structlog and route stdlib logging through the same renderer.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        environment: "production" selects JSON output
    """
    level = logging.getLevelName(log_level.upper())
    if not isinstance(level, int):
        level = logging.INFO

    pre_chain: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_log_level,
        structlog.stdlib.add_logger_name,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        add_service_name,
    ]
    if environment.lower() == "production":
        pre_chain.append(structlog.processors.format_exc_info)

    structlog.configure(
        processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )

    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processor=_pick_renderer(environment),
            foreign_pre_chain=pre_chain,
        )
    )

    root = logging.getLogger()
    root.handlers[:] = [handler]
    root.setLevel(level)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    structlog.get_logger(__name__).info(
        "Logging configured", log_level=logging.getLevelName(level), environment=environment
    )
