# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Slimming options: named boolean toggles plus output settings.

Options come from three layers, later layers winning:
  1. Built-in recommended defaults (everything on except presentation folders)
  2. Optional YAML file (``--config slim.yaml``)
  3. CLI flags (``--keep-lineage``, ``--remove-presentation``, ...)
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from modelslim.errors import ConfigError

# Removal toggles, in rule registration order.
TOGGLE_FIELDS: tuple[str, ...] = (
    "remove_annotations",
    "remove_lineage",
    "remove_language_data",
    "remove_column_defaults",
    "remove_inferred_metadata",
    "remove_presentation",
    "collapse_redundant_names",
    "prune_empty",
    "remove_format_strings",
)


class SlimOptions(BaseModel):
    """Immutable option set for one slimming run."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    remove_annotations: bool = Field(True, description="annotations / extendedProperties")
    remove_lineage: bool = Field(True, description="lineageTag / sourceLineageTag")
    remove_language_data: bool = Field(True, description="cultures, linguisticMetadata, cultures/ documents")
    remove_column_defaults: bool = Field(True, description="summarizeBy=none, dataCategory=Uncategorized, ...")
    remove_inferred_metadata: bool = Field(True, description="isNameInferred, isDataTypeInferred, changedProperties")
    remove_presentation: bool = Field(False, description="displayFolder, queryGroup(s)")
    collapse_redundant_names: bool = Field(True, description="sourceColumn equal to name")
    prune_empty: bool = Field(True, description="null / empty object / empty array / blank string")
    remove_format_strings: bool = Field(True, description="formatString literals")

    compact_output: bool | None = Field(
        None, description="tree mode: True compact, False indented, None keeps the input document's layout"
    )
    line_terminator: Literal["\n", "\r\n"] = "\n"
    language_data_prefixes: tuple[str, ...] = ("cultures",)

    @field_validator("language_data_prefixes")
    @classmethod
    def _normalize_prefixes(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        normalized = tuple(p.replace("\\", "/").strip("/") for p in value)
        if any(not p for p in normalized):
            raise ValueError("language data prefixes must be non-empty paths")
        return normalized

    @classmethod
    def recommended(cls) -> SlimOptions:
        return cls()

    @classmethod
    def all_off(cls) -> SlimOptions:
        return cls(**dict.fromkeys(TOGGLE_FIELDS, False))

    @classmethod
    def all_on(cls) -> SlimOptions:
        return cls(**dict.fromkeys(TOGGLE_FIELDS, True))

    def with_overrides(self, **changes: Any) -> SlimOptions:
        """Return a validated copy with *changes* applied (``None`` values are ignored)."""
        updates = {k: v for k, v in changes.items() if v is not None}
        if not updates:
            return self
        try:
            return SlimOptions.model_validate({**self.model_dump(), **updates})
        except ValidationError as e:
            raise ConfigError(f"Invalid option override: {e}") from e

    def enabled_toggles(self) -> list[str]:
        return [name for name in TOGGLE_FIELDS if getattr(self, name)]


def load_options(path: str | Path) -> SlimOptions:
    """Load options from a YAML mapping file.

    Raises:
        ConfigError: file unreadable, not YAML, not a mapping, or invalid values.
    """
    p = Path(path)
    try:
        raw = yaml.safe_load(p.read_text(encoding="utf-8"))
    except OSError as e:
        raise ConfigError(f"Cannot read option file {p}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"Option file {p} is not valid YAML: {e}") from e

    if raw is None:
        return SlimOptions()
    if not isinstance(raw, dict):
        raise ConfigError(f"Option file {p} must contain a mapping, got {type(raw).__name__}")

    try:
        return SlimOptions.model_validate(raw)
    except ValidationError as e:
        raise ConfigError(f"Invalid options in {p}: {e}") from e
