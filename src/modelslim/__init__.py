# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Model Slim: strip engine/UI metadata from semantic-model definitions.

Shrinks a model definition while keeping its structural schema intact:
- tree mode: a single JSON model document (``model.bim``) is pruned in place
- block mode: a folder of TMDL documents is filtered line by line and
  concatenated into one artifact
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import StrEnum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from modelslim.slimming.stats import RemovalStats

__version__ = "0.1.0"


class Mode(StrEnum):
    """Structural representation of the input model."""

    TREE = "tree"
    BLOCK = "block"


@dataclass(frozen=True, slots=True)
class Document:
    """A single text document of a block-mode model."""

    path: str  # relative POSIX path under the model root
    text: str

    @property
    def size(self) -> int:
        return len(self.text.encode("utf-8"))


@dataclass
class SlimResult:
    """Outcome of one slimming run."""

    source: str
    mode: Mode
    text: str  # final artifact
    stats: RemovalStats
    elapsed_ms: float = 0.0
    destination: str = ""  # empty when nothing was written (dry run)
    warnings: list[str] = field(default_factory=list)

    @property
    def written(self) -> bool:
        return bool(self.destination)
