# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Log setup shared by the CLI and embedding callers.

Every record, whether emitted through ``logging.getLogger(__name__)`` in the
slimming modules or through a structlog logger, is rendered by one root
handler: plain key/value lines by default, one JSON object per line with
``--log-json``. Records emitted inside :func:`run_context` carry the bound
run fields.

Imports nothing from modelslim, so the CLI can call it before anything else.
"""

from __future__ import annotations

import contextlib
import logging
import sys
from collections.abc import Iterator
from typing import TextIO

import structlog

_SHARED_PROCESSORS: list = [
    structlog.contextvars.merge_contextvars,
    structlog.stdlib.add_logger_name,
    structlog.stdlib.add_log_level,
    structlog.processors.TimeStamper(fmt="iso"),
    structlog.processors.format_exc_info,
    structlog.processors.UnicodeDecoder(),
]


def _renderer(json_output: bool):
    if json_output:
        return structlog.processors.JSONRenderer()
    return structlog.dev.ConsoleRenderer(colors=False)


def _root_handler(json_output: bool, stream: TextIO) -> logging.Handler:
    handler = logging.StreamHandler(stream)
    handler.setFormatter(
        structlog.stdlib.ProcessorFormatter(
            processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, _renderer(json_output)],
            foreign_pre_chain=_SHARED_PROCESSORS,
        )
    )
    return handler


def configure(*, json_output: bool = False, level: str = "INFO", stream: TextIO | None = None) -> None:
    """Route all log records to *stream* (stderr by default) at *level*.

    Calling it again replaces the previous handler. Unknown level names
    mean INFO. stdout is never used, so reports printed there stay clean.
    """
    structlog.configure(
        processors=[*_SHARED_PROCESSORS, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.addHandler(_root_handler(json_output, stream if stream is not None else sys.stderr))
    root.setLevel(getattr(logging, level.upper(), logging.INFO))


@contextlib.contextmanager
def run_context(**fields: str) -> Iterator[None]:
    """Bind *fields* (source, mode, ...) to every log record emitted inside the block."""
    structlog.contextvars.bind_contextvars(**fields)
    try:
        yield
    finally:
        structlog.contextvars.unbind_contextvars(*fields)
