# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Progress output for the CLI.

Spinner and step lines go to stderr and only when it is a terminal, so the
report on stdout and any ``--report-json`` file stay machine-readable.
"""

from __future__ import annotations

import contextlib
from collections.abc import Iterator

from rich.console import Console


def _stderr_console() -> Console:
    return Console(stderr=True, highlight=False)


@contextlib.contextmanager
def status_spinner(msg: str, *, console: Console | None = None) -> Iterator[None]:
    """Show a spinner with *msg* while the block runs. Silent when not a terminal."""
    console = console or _stderr_console()
    if not console.is_terminal:
        yield
        return
    with console.status(msg, spinner="dots"):
        yield


def format_elapsed(elapsed_ms: float) -> str:
    if elapsed_ms >= 1000:
        return f"{elapsed_ms / 1000:.2f}s"
    return f"{elapsed_ms:.0f}ms"


def print_step(msg: str, *, console: Console | None = None) -> None:
    """Print a step line on an interactive terminal."""
    console = console or _stderr_console()
    if console.is_terminal:
        console.print(msg, markup=False)
