# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Model Slim exception hierarchy.

All Model Slim errors inherit from ModelSlimError, allowing callers
to catch the base class for any run failure or specific subclasses
for targeted handling. Every failure is non-partial: when one of these
is raised, no artifact has been written.
"""

from __future__ import annotations


class ModelSlimError(Exception):
    """Base exception for all Model Slim errors."""


class InputNotFoundError(ModelSlimError):
    """No matching model documents at the selected location."""

    def __init__(self, message: str, *, location: str = "") -> None:
        super().__init__(message)
        self.location = location


class MalformedDocumentError(ModelSlimError):
    """A tree-shaped model document could not be parsed."""

    def __init__(self, message: str, *, document: str = "", line: int = 0, column: int = 0) -> None:
        super().__init__(message)
        self.document = document
        self.line = line
        self.column = column


class InputReadError(ModelSlimError):
    """The input location or one of its documents could not be read."""

    def __init__(self, message: str, *, document: str = "") -> None:
        super().__init__(message)
        self.document = document


class OutputWriteError(ModelSlimError):
    """The final artifact could not be written to its destination."""

    def __init__(self, message: str, *, destination: str = "") -> None:
        super().__init__(message)
        self.destination = destination


class ConfigError(ModelSlimError):
    """Invalid option file or option values."""
