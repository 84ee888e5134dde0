# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Rule registry: turns option toggles into the active set of removal rules.

Two rule shapes share one id/category vocabulary:

- TreeRule: ``predicate(name, value, siblings)`` over JSON model properties,
  evaluated in fixed precedence by ``kind``
  (NAME → FORMAT_STRING → EMPTY → SENTINEL → REDUNDANT).
- LineRule: anchored pattern over a TMDL line's leading identifier, optional
  ``:`` / ``=`` operator and optional literal. Block-starting line rules open
  a delimiter-nested region that is dropped in full.

``configure()`` is a pure function of the options: no I/O, same input →
same RuleSet.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from enum import IntEnum, StrEnum
from typing import Any

from modelslim.config import SlimOptions


class Category(StrEnum):
    """Independently toggled removal category."""

    ANNOTATIONS = "annotations"
    LINEAGE = "lineage"
    LANGUAGE_DATA = "language-data"
    COLUMN_DEFAULTS = "column-defaults"
    INFERRED = "inferred-metadata"
    PRESENTATION = "presentation"
    REDUNDANT_NAMES = "redundant-names"
    EMPTY = "empty-containers"
    FORMAT_STRINGS = "format-strings"


class RuleKind(IntEnum):
    """Tree rule precedence (lower value is evaluated first)."""

    NAME = 1
    FORMAT_STRING = 2
    EMPTY = 3
    SENTINEL = 4
    REDUNDANT = 5


# Names that must survive even when empty: they define the model's schema shape.
STRUCTURAL_PRESERVE: frozenset[str] = frozenset(
    {
        "model",
        "tables",
        "columns",
        "measures",
        "partitions",
        "relationships",
        "hierarchies",
        "levels",
        "roles",
    }
)

EMPTY_RULE_ID = "empty-container"
CANONICAL_NAME = "name"

Predicate = Callable[[str, Any, Mapping[str, Any]], bool]


@dataclass(frozen=True, slots=True)
class TreeRule:
    """Removal rule over a JSON object property."""

    id: str
    category: Category
    kind: RuleKind
    predicate: Predicate = field(compare=False)

    def matches(self, name: str, value: Any, siblings: Mapping[str, Any]) -> bool:
        return self.predicate(name, value, siblings)


@dataclass(frozen=True, slots=True)
class LineRule:
    """Removal rule over a single TMDL line."""

    id: str
    category: Category
    pattern: re.Pattern[str]
    block_starting: bool = False

    def matches(self, line: str) -> bool:
        return self.pattern.match(line) is not None


@dataclass(frozen=True, slots=True)
class RuleSet:
    """Active rules for one run."""

    tree_rules: tuple[TreeRule, ...] = ()
    line_rules: tuple[LineRule, ...] = ()
    language_data_prefixes: tuple[str, ...] = ()  # empty when language data is kept
    preserve: frozenset[str] = STRUCTURAL_PRESERVE

    @property
    def prunes_empty(self) -> bool:
        return any(r.kind is RuleKind.EMPTY for r in self.tree_rules)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self.tree_rules] + [r.id for r in self.line_rules]

    def __bool__(self) -> bool:
        return bool(self.tree_rules or self.line_rules or self.language_data_prefixes)


# ---------------------------------------------------------------------------
# Value helpers
# ---------------------------------------------------------------------------


def is_empty(value: Any) -> bool:
    """True for null, ``{}``, ``[]`` and blank strings. Booleans and numbers are never empty."""
    if value is None:
        return True
    if isinstance(value, dict | list):
        return not value
    if isinstance(value, str):
        return not value.strip()
    return False


def unbracket(value: str) -> str:
    """``[Amount]`` → ``Amount``; anything else is returned unchanged."""
    if len(value) >= 2 and value.startswith("[") and value.endswith("]"):
        return value[1:-1]
    return value


# ---------------------------------------------------------------------------
# Tree rule builders
# ---------------------------------------------------------------------------


def _drop_name(name: str, category: Category, kind: RuleKind = RuleKind.NAME) -> TreeRule:
    return TreeRule(
        id=name,
        category=category,
        kind=kind,
        predicate=lambda n, _v, _s: n == name,
    )


def _drop_sentinel(name: str, sentinel: str, category: Category) -> TreeRule:
    return TreeRule(
        id=f"{name}={sentinel}",
        category=category,
        kind=RuleKind.SENTINEL,
        predicate=lambda n, v, _s: n == name and v == sentinel,
    )


def _drop_empty(preserve: frozenset[str]) -> TreeRule:
    return TreeRule(
        id=EMPTY_RULE_ID,
        category=Category.EMPTY,
        kind=RuleKind.EMPTY,
        predicate=lambda n, v, _s: n not in preserve and is_empty(v),
    )


def _drop_redundant(name: str) -> TreeRule:
    def _redundant(n: str, v: Any, siblings: Mapping[str, Any]) -> bool:
        if n != name or not isinstance(v, str):
            return False
        canonical = siblings.get(CANONICAL_NAME)
        return isinstance(canonical, str) and unbracket(v) == unbracket(canonical)

    return TreeRule(
        id=f"redundant-{name}",
        category=Category.REDUNDANT_NAMES,
        kind=RuleKind.REDUNDANT,
        predicate=_redundant,
    )


# ---------------------------------------------------------------------------
# Line rule builders
# ---------------------------------------------------------------------------


def _line_pattern(
    keyword: str,
    *,
    operator: str | None = None,
    value: str | None = None,
    named: bool = False,
    flag: bool = False,
) -> re.Pattern[str]:
    """Anchored pattern: leading identifier, optional operator, optional literal.

    - ``named``: ``keyword <Name> ...`` (``annotation X = 1``)
    - ``flag``: bare boolean, optionally ``: true`` / ``: false``
    - ``operator``: ``keyword:`` or ``keyword =``; the operator must follow the
      identifier, so ``formatString:`` never matches ``formatStringDefinition =``
    - ``value``: exact literal after the operator, then end of line
    """
    regex = r"^\s*" + re.escape(keyword)
    if named:
        regex += r"\s+\S"
    elif flag:
        regex += r"(?:\s*:\s*(?:true|false))?\s*$"
    elif operator is not None:
        regex += r"\s*" + re.escape(operator)
        if value is not None:
            regex += r"\s*" + re.escape(value) + r"\s*$"
    else:
        regex += r"\b"
    return re.compile(regex)


def _line(
    rule_id: str,
    category: Category,
    keyword: str,
    *,
    block_starting: bool = False,
    **pattern_kwargs: Any,
) -> LineRule:
    return LineRule(
        id=rule_id,
        category=category,
        pattern=_line_pattern(keyword, **pattern_kwargs),
        block_starting=block_starting,
    )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------


def _category_rules(category: Category, preserve: frozenset[str]) -> tuple[list[TreeRule], list[LineRule]]:
    """Tree and line rules for one category, in registration order."""
    if category is Category.ANNOTATIONS:
        return (
            [_drop_name("annotations", category), _drop_name("extendedProperties", category)],
            [
                _line("annotation", category, "annotation", named=True, block_starting=True),
                _line("extendedProperty", category, "extendedProperty", named=True, block_starting=True),
            ],
        )
    if category is Category.LINEAGE:
        return (
            [_drop_name("lineageTag", category), _drop_name("sourceLineageTag", category)],
            [
                _line("lineageTag", category, "lineageTag", operator=":"),
                _line("sourceLineageTag", category, "sourceLineageTag", operator=":"),
            ],
        )
    if category is Category.LANGUAGE_DATA:
        return (
            [_drop_name("cultures", category), _drop_name("linguisticMetadata", category)],
            [_line("linguisticMetadata", category, "linguisticMetadata", operator="=", block_starting=True)],
        )
    if category is Category.COLUMN_DEFAULTS:
        return (
            [
                _drop_name("sourceProviderType", category),
                _drop_sentinel("summarizeBy", "none", category),
                _drop_sentinel("dataCategory", "Uncategorized", category),
            ],
            [
                _line("sourceProviderType", category, "sourceProviderType", operator=":"),
                _line("summarizeBy=none", category, "summarizeBy", operator=":", value="none"),
                _line("dataCategory=Uncategorized", category, "dataCategory", operator=":", value="Uncategorized"),
            ],
        )
    if category is Category.INFERRED:
        return (
            [
                _drop_name("isNameInferred", category),
                _drop_name("isDataTypeInferred", category),
                _drop_name("changedProperties", category),
            ],
            [
                _line("isNameInferred", category, "isNameInferred", flag=True),
                _line("isDataTypeInferred", category, "isDataTypeInferred", flag=True),
                _line("changedProperty", category, "changedProperty", operator="="),
            ],
        )
    if category is Category.PRESENTATION:
        return (
            [
                _drop_name("displayFolder", category),
                _drop_name("queryGroup", category),
                _drop_name("queryGroups", category),
            ],
            [
                _line("displayFolder", category, "displayFolder", operator=":"),
                _line("queryGroup", category, "queryGroup", operator=":"),
            ],
        )
    if category is Category.REDUNDANT_NAMES:
        return [_drop_redundant("sourceColumn")], []
    if category is Category.EMPTY:
        return [_drop_empty(preserve)], []
    if category is Category.FORMAT_STRINGS:
        return (
            [_drop_name("formatString", category, RuleKind.FORMAT_STRING)],
            [_line("formatString", category, "formatString", operator=":")],
        )
    raise ValueError(f"Unknown category: {category}")


# Toggle field → category, in registration order.
_TOGGLES: tuple[tuple[str, Category], ...] = (
    ("remove_annotations", Category.ANNOTATIONS),
    ("remove_lineage", Category.LINEAGE),
    ("remove_language_data", Category.LANGUAGE_DATA),
    ("remove_column_defaults", Category.COLUMN_DEFAULTS),
    ("remove_inferred_metadata", Category.INFERRED),
    ("remove_presentation", Category.PRESENTATION),
    ("collapse_redundant_names", Category.REDUNDANT_NAMES),
    ("prune_empty", Category.EMPTY),
    ("remove_format_strings", Category.FORMAT_STRINGS),
)


def configure(options: SlimOptions, *, preserve: frozenset[str] = STRUCTURAL_PRESERVE) -> RuleSet:
    """Build the active RuleSet for *options*.

    Tree rules are stably sorted by kind, so registration order only breaks
    ties within one precedence level. Line rules keep registration order
    (first match wins).
    """
    tree_rules: list[TreeRule] = []
    line_rules: list[LineRule] = []
    for toggle, category in _TOGGLES:
        if not getattr(options, toggle):
            continue
        tree, line = _category_rules(category, preserve)
        tree_rules.extend(tree)
        line_rules.extend(line)

    tree_rules.sort(key=lambda r: r.kind)
    return RuleSet(
        tree_rules=tuple(tree_rules),
        line_rules=tuple(line_rules),
        language_data_prefixes=options.language_data_prefixes if options.remove_language_data else (),
        preserve=preserve,
    )


def category_of(rules: RuleSet) -> dict[str, Category]:
    """Rule id → category lookup for reporting."""
    mapping = {r.id: r.category for r in rules.tree_rules}
    mapping.update({r.id: r.category for r in rules.line_rules})
    return mapping
