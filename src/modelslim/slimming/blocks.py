# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Line-oriented pruning of TMDL documents.

TMDL nests multi-line values (extended properties, linguistic metadata)
between paired ``{`` / ``}`` delimiters rather than in a syntax tree, so
block detection tracks delimiter depth with an explicit state machine:

  NORMAL
    blank line                → drop (uncounted)
    first matching line rule  → drop + count; if the rule is block-starting
                                and the line opens more than it closes,
                                enter SKIPPING(depth)
    no match                  → keep (trailing whitespace trimmed)
  SKIPPING(depth)
    every line                → drop (uncounted), depth += opens - closes;
                                back to NORMAL once depth <= 0

End of input while SKIPPING drops the remainder without raising.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Iterator, Sequence
from enum import Enum, auto
from pathlib import PurePosixPath

from modelslim import Document
from modelslim.rules import LineRule, RuleSet
from modelslim.slimming.stats import RemovalStats

logger = logging.getLogger(__name__)

OPEN_DELIMITER = "{"
CLOSE_DELIMITER = "}"


class _State(Enum):
    NORMAL = auto()
    SKIPPING = auto()


def delimiter_balance(line: str, opener: str = OPEN_DELIMITER, closer: str = CLOSE_DELIMITER) -> int:
    """Opening minus closing delimiters on *line*."""
    return line.count(opener) - line.count(closer)


class BlockCleaner:
    """Single-pass line filter driven by the active line rules."""

    def __init__(
        self,
        rules: RuleSet,
        stats: RemovalStats | None = None,
        *,
        opener: str = OPEN_DELIMITER,
        closer: str = CLOSE_DELIMITER,
    ) -> None:
        self._rules: tuple[LineRule, ...] = rules.line_rules
        self._opener = opener
        self._closer = closer
        self.stats = stats if stats is not None else RemovalStats()

    def _match(self, line: str) -> LineRule | None:
        for rule in self._rules:
            if rule.matches(line):
                return rule
        return None

    def clean(self, lines: Iterable[str], *, document: str = "") -> Iterator[str]:
        """Yield retained lines. Lazy: consume once, left to right."""
        state = _State.NORMAL
        depth = 0
        opened_by = ""

        for line in lines:
            if state is _State.SKIPPING:
                depth += delimiter_balance(line, self._opener, self._closer)
                if depth <= 0:
                    state = _State.NORMAL
                continue

            if not line.strip():
                continue

            rule = self._match(line)
            if rule is None:
                yield line.rstrip()
                continue

            self.stats.record(rule.id)
            if rule.block_starting:
                depth = delimiter_balance(line, self._opener, self._closer)
                if depth > 0:
                    state = _State.SKIPPING
                    opened_by = rule.id

        if state is _State.SKIPPING:
            # Lenient: the rest of the document was treated as inside the block.
            self.stats.unterminated_blocks += 1
            logger.debug("unterminated %s block in %s (depth %d at end of input)", opened_by, document or "input", depth)


def is_language_data(path: str, prefixes: Sequence[str]) -> bool:
    """True when *path* lies in a directory under one of *prefixes*.

    Prefixes are anchored at the document root: ``cultures`` matches
    ``cultures/en-US.tmdl`` but not ``tables/x/cultures/y.tmdl``,
    ``cultures.tmdl`` or ``tables/cultures_lookup.tmdl``.
    """
    parts = PurePosixPath(path.replace("\\", "/")).parts[:-1]
    for prefix in prefixes:
        wanted = PurePosixPath(prefix).parts
        if wanted and parts[: len(wanted)] == wanted:
            return True
    return False


def clean_documents(
    documents: Iterable[Document],
    rules: RuleSet,
    stats: RemovalStats | None = None,
) -> tuple[list[list[str]], RemovalStats]:
    """Clean every document in lexicographic path order.

    Language-data documents are skipped whole: their size goes to
    ``language_data_bytes`` and never to per-rule counts.

    Returns:
        (retained lines per processed document, stats)
    """
    cleaner = BlockCleaner(rules, stats)
    stats = cleaner.stats
    chunks: list[list[str]] = []

    for doc in sorted(documents, key=lambda d: d.path):
        size = doc.size
        stats.documents_total += 1
        stats.input_bytes += size

        if rules.language_data_prefixes and is_language_data(doc.path, rules.language_data_prefixes):
            stats.language_data_bytes += size
            stats.language_documents_skipped += 1
            logger.debug("skipped language data document %s (%d bytes)", doc.path, size)
            continue

        stats.documents_processed += 1
        chunks.append(list(cleaner.clean(doc.text.splitlines(), document=doc.path)))

    return chunks, stats
