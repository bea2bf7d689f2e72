import logging
import sys
from datetime import datetime
from typing import Any, TextIO, Union

import structlog
from structlog.stdlib import BoundLogger

Logger = Union[BoundLogger, Any]

LOG_FORMAT_CONSOLE = "console"
LOG_FORMAT_JSON = "json"


def add_timestamp(logger, method_name, event_dict):
    """
    Add ISO 8601 timestamp with timezone offset.
    """
    event_dict["@timestamp"] = datetime.now().astimezone().isoformat()
    return event_dict


def get_logger(
    name: str,
    log_level: str = "WARNING",
    log_format: str = LOG_FORMAT_CONSOLE,
    stream: TextIO | None = None,
    cache_logger: bool = True,
    force_reconfig: bool = False,
) -> Logger:
    """
    Configure structlog and the root logger and return a bound logger.

    Diagnostics are written to stderr by default: stdout belongs to the wrapped command's teed
    output.
    """
    if force_reconfig:
        structlog.reset_defaults()
        logging.getLogger().handlers.clear()

    shared_processors = [
        structlog.contextvars.merge_contextvars,
        add_timestamp,
        structlog.processors.add_log_level,
        structlog.processors.CallsiteParameterAdder(
            {
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.FUNC_NAME,
                structlog.processors.CallsiteParameter.LINENO,
            }
        ),
        structlog.processors.EventRenamer("message"),
        structlog.processors.dict_tracebacks,
    ]

    if not structlog.is_configured():
        structlog.configure(
            processors=shared_processors
            + [structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
            logger_factory=structlog.stdlib.LoggerFactory(),
            wrapper_class=structlog.stdlib.BoundLogger,
            cache_logger_on_first_use=cache_logger,
        )

    if log_format == LOG_FORMAT_JSON:
        renderer = structlog.processors.JSONRenderer()
    else:
        renderer = structlog.processors.KeyValueRenderer(
            key_order=["@timestamp", "level", "message"], drop_missing=True
        )

    formatter = structlog.stdlib.ProcessorFormatter(
        processor=renderer,
        foreign_pre_chain=shared_processors,
    )

    root_logger = logging.getLogger()
    if root_logger.hasHandlers():
        root_logger.handlers.clear()

    handler = logging.StreamHandler(stream if stream is not None else sys.stderr)
    handler.setFormatter(formatter)
    root_logger.addHandler(handler)
    root_logger.setLevel(getattr(logging, log_level.upper(), logging.WARNING))

    return structlog.get_logger(name)
