# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Capability interfaces for selecting, reading, writing and notifying.

The slimming core never touches the filesystem or the terminal directly:
it talks to four narrow protocols. Concrete implementations cover the CLI
(filesystem + rich console); in-memory variants back the tests.
"""

from __future__ import annotations

import contextlib
import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol, runtime_checkable

from rich.console import Console

from modelslim import Mode
from modelslim.errors import InputReadError, MalformedDocumentError, OutputWriteError

logger = logging.getLogger(__name__)

TREE_SUFFIXES: tuple[str, ...] = (".bim", ".json")
BLOCK_SUFFIXES: tuple[str, ...] = (".tmdl",)

# ---------------------------------------------------------------------------
# Data classes
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class Selection:
    """Input location, output location and the representation to slim."""

    source: Path
    destination: Path
    mode: Mode


# ---------------------------------------------------------------------------
# Protocols
# ---------------------------------------------------------------------------


@runtime_checkable
class SourceSelector(Protocol):
    def select(self) -> Selection: ...


@runtime_checkable
class DocumentReader(Protocol):
    def enumerate(self, selection: Selection) -> list[str]: ...

    def read(self, selection: Selection, relative: str) -> str: ...


@runtime_checkable
class ArtifactWriter(Protocol):
    def write(self, destination: Path, text: str) -> None: ...


@runtime_checkable
class Notifier(Protocol):
    def notify(self, message: str, *, level: str = "info") -> None: ...


# ---------------------------------------------------------------------------
# Filesystem / console implementations
# ---------------------------------------------------------------------------


def default_destination(source: Path, mode: Mode) -> Path:
    """``model.bim`` → ``model.slim.bim``; ``definition/`` → ``definition.slim.tmdl``."""
    if mode is Mode.TREE:
        return source.with_name(f"{source.stem}.slim{source.suffix or '.json'}")
    return source.parent / f"{source.name}.slim.tmdl"


class StaticSelector:
    """Selection fixed up front (CLI arguments). File → tree mode, directory → block mode."""

    def __init__(self, source: str | Path, destination: str | Path | None = None) -> None:
        self._source = Path(source)
        self._destination = Path(destination) if destination else None

    def select(self) -> Selection:
        try:
            mode = Mode.BLOCK if self._source.is_dir() else Mode.TREE
        except OSError as e:
            raise InputReadError(f"Cannot inspect {self._source}: {e}", document=str(self._source)) from e
        destination = self._destination or default_destination(self._source, mode)
        return Selection(source=self._source, destination=destination, mode=mode)


class FileSystemReader:
    """Enumerates ``.bim``/``.json`` (tree) or ``*.tmdl`` under a root (block)."""

    def __init__(
        self,
        tree_suffixes: tuple[str, ...] = TREE_SUFFIXES,
        block_suffixes: tuple[str, ...] = BLOCK_SUFFIXES,
    ) -> None:
        self._tree_suffixes = tree_suffixes
        self._block_suffixes = block_suffixes

    def enumerate(self, selection: Selection) -> list[str]:
        source = selection.source
        if selection.mode is Mode.TREE:
            if source.is_file() and source.suffix.lower() in self._tree_suffixes:
                return [source.name]
            return []
        if not source.is_dir():
            return []
        try:
            return sorted(
                p.relative_to(source).as_posix()
                for p in source.rglob("*")
                if p.is_file() and p.suffix.lower() in self._block_suffixes
            )
        except OSError as e:
            raise InputReadError(f"Cannot list {source}: {e}", document=str(source)) from e

    def read(self, selection: Selection, relative: str) -> str:
        path = selection.source if selection.mode is Mode.TREE else selection.source / relative
        try:
            return path.read_text(encoding="utf-8-sig")
        except UnicodeDecodeError as e:
            raise MalformedDocumentError(f"{relative} is not UTF-8 text: {e}", document=relative) from e
        except OSError as e:
            raise InputReadError(f"Cannot read {relative}: {e}", document=relative) from e


class AtomicFileWriter:
    """Write via a temp file in the destination directory, then ``os.replace``.

    Readers never observe a partially written artifact.
    """

    def write(self, destination: Path, text: str) -> None:
        tmp_name = ""
        try:
            destination.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(prefix=f".{destination.name}.", suffix=".tmp", dir=destination.parent)
            with os.fdopen(fd, "w", encoding="utf-8", newline="") as f:
                f.write(text)
            os.replace(tmp_name, destination)
        except OSError as e:
            if tmp_name:
                with contextlib.suppress(OSError):
                    os.unlink(tmp_name)
            raise OutputWriteError(f"Cannot write {destination}: {e}", destination=str(destination)) from e
        logger.info("wrote %s (%d chars)", destination, len(text))


class ConsoleNotifier:
    """Reports on stdout, warnings and errors on stderr."""

    _STYLES = {"info": None, "warning": "yellow", "error": "bold red"}

    def __init__(self, out: Console | None = None, err: Console | None = None) -> None:
        self._out = out or Console(highlight=False)
        self._err = err or Console(stderr=True, highlight=False)

    def notify(self, message: str, *, level: str = "info") -> None:
        console = self._out if level == "info" else self._err
        console.print(message, style=self._STYLES.get(level), markup=False, soft_wrap=True)


# ---------------------------------------------------------------------------
# In-memory implementations
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class FixedSelector:
    """Returns a prepared Selection."""

    selection: Selection

    def select(self) -> Selection:
        return self.selection


class MemoryReader:
    """Documents held in a dict: relative path → text."""

    def __init__(self, documents: dict[str, str]) -> None:
        self.documents = dict(documents)

    def enumerate(self, selection: Selection) -> list[str]:
        return sorted(self.documents)

    def read(self, selection: Selection, relative: str) -> str:
        return self.documents[relative]


@dataclass
class MemoryWriter:
    """Captures artifacts; ``fail_with`` simulates an unwritable destination."""

    written: dict[str, str] = field(default_factory=dict)
    fail_with: OSError | None = None

    def write(self, destination: Path, text: str) -> None:
        if self.fail_with is not None:
            cause = self.fail_with
            raise OutputWriteError(f"Cannot write {destination}: {cause}", destination=str(destination)) from cause
        self.written[str(destination)] = text


@dataclass
class ListNotifier:
    """Collects (level, message) pairs."""

    messages: list[tuple[str, str]] = field(default_factory=list)

    def notify(self, message: str, *, level: str = "info") -> None:
        self.messages.append((level, message))

    def at(self, level: str) -> list[str]:
        return [m for lvl, m in self.messages if lvl == level]
