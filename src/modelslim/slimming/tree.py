# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Depth-first pruning of JSON model documents (``model.bim``).

Traversal is post-order: children are cleaned before their parent's own
properties are evaluated, so empty-container decisions see the cleaned
state. Per property, the first rule in precedence order decides:

  1. name drop-set      (annotations, lineageTag, ...)
  2. format string      (exact name ``formatString`` only)
  3. empty container    (unless the name is structural)
  4. sentinel default   (summarizeBy == "none", ...)
  5. redundant name     (sourceColumn == name, ``[X]`` == ``X``)

Removal is two-phase per object: collect, then delete.
"""

from __future__ import annotations

import logging
from typing import Any

from modelslim.rules import EMPTY_RULE_ID, RuleSet, TreeRule, is_empty
from modelslim.slimming import AttributeNode
from modelslim.slimming.stats import RemovalStats

logger = logging.getLogger(__name__)


class TreeCleaner:
    """In-place remover over an AttributeNode tree. One visit per node."""

    def __init__(self, rules: RuleSet, stats: RemovalStats | None = None) -> None:
        self._rules: tuple[TreeRule, ...] = rules.tree_rules
        self._prune_empty = rules.prunes_empty
        self.stats = stats if stats is not None else RemovalStats()

    def clean(self, node: AttributeNode) -> AttributeNode:
        """Clean *node* in place and return it. Records node totals in stats."""
        retained = self._visit(node)
        self.stats.nodes_retained += retained
        logger.debug(
            "tree cleaned: %d/%d nodes retained, %d properties removed",
            retained,
            self.stats.nodes_total,
            self.stats.total_removed,
        )
        return node

    def _visit(self, node: AttributeNode) -> int:
        """Clean *node*'s subtree; return the number of nodes left in it."""
        self.stats.nodes_total += 1
        if isinstance(node, dict):
            return 1 + self._clean_object(node)
        if isinstance(node, list):
            return 1 + self._clean_array(node)
        return 1

    def _match(self, name: str, value: Any, siblings: dict[str, Any]) -> TreeRule | None:
        for rule in self._rules:
            if rule.matches(name, value, siblings):
                return rule
        return None

    def _clean_object(self, obj: dict[str, Any]) -> int:
        sizes = {name: self._visit(value) for name, value in obj.items()}

        doomed: list[tuple[str, str]] = []
        for name, value in obj.items():
            rule = self._match(name, value, obj)
            if rule is not None:
                doomed.append((name, rule.id))

        for name, rule_id in doomed:
            del obj[name]
            self.stats.record(rule_id)

        return sum(sizes[name] for name in obj)

    def _clean_array(self, items: list[Any]) -> int:
        sizes = [self._visit(item) for item in items]
        if not self._prune_empty:
            return sum(sizes)

        kept = [(item, size) for item, size in zip(items, sizes, strict=True) if not is_empty(item)]
        dropped = len(items) - len(kept)
        if dropped:
            items[:] = [item for item, _ in kept]
            self.stats.record(EMPTY_RULE_ID, dropped)
        return sum(size for _, size in kept)


def clean_tree(node: AttributeNode, rules: RuleSet, stats: RemovalStats | None = None) -> RemovalStats:
    """Convenience wrapper: clean *node* in place and return the stats used."""
    cleaner = TreeCleaner(rules, stats)
    cleaner.clean(node)
    return cleaner.stats
