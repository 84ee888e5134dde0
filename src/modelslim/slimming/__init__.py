# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Slimming engine.

Core data structures shared by the tree cleaner (JSON model documents) and
the block cleaner (TMDL line streams).
"""

from __future__ import annotations

import json
from typing import Any, TypeAlias

from modelslim.errors import MalformedDocumentError

# Tagged variant: Object (dict, insertion ordered, unique names),
# Array (list) or Scalar (str | bool | None, numbers kept opaque).
AttributeNode: TypeAlias = dict[str, "AttributeNode"] | list["AttributeNode"] | str | bool | int | float | None


class _DuplicateNameError(ValueError):
    pass


def _unique_object(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    obj: dict[str, Any] = {}
    for name, value in pairs:
        if name in obj:
            raise _DuplicateNameError(name)
        obj[name] = value
    return obj


def parse_tree(text: str, *, document: str = "") -> AttributeNode:
    """Parse a JSON model document into an AttributeNode tree.

    A leading BOM is tolerated (``model.bim`` files are often saved with one).

    Raises:
        MalformedDocumentError: invalid JSON or a property name repeated within one object.
    """
    try:
        return json.loads(text.lstrip("\ufeff"), object_pairs_hook=_unique_object)
    except json.JSONDecodeError as e:
        raise MalformedDocumentError(
            f"{document or 'document'} is not valid JSON: {e.msg} (line {e.lineno}, column {e.colno})",
            document=document,
            line=e.lineno,
            column=e.colno,
        ) from e
    except _DuplicateNameError as e:
        raise MalformedDocumentError(
            f"{document or 'document'} repeats property name {str(e)!r} within one object",
            document=document,
        ) from e
