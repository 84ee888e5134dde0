# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Removal statistics for one slimming run."""

from __future__ import annotations

from dataclasses import asdict, dataclass, field


@dataclass
class RemovalStats:
    """Per-rule removal counts plus size metrics.

    Created fresh per run; exists only to produce the final report.
    """

    removed: dict[str, int] = field(default_factory=dict)
    input_bytes: int = 0
    output_bytes: int = 0
    language_data_bytes: int = 0
    language_documents_skipped: int = 0
    documents_total: int = 0
    documents_processed: int = 0
    nodes_total: int = 0
    nodes_retained: int = 0
    unterminated_blocks: int = 0

    def record(self, rule_id: str, count: int = 1) -> None:
        self.removed[rule_id] = self.removed.get(rule_id, 0) + count

    @property
    def total_removed(self) -> int:
        return sum(self.removed.values())

    @property
    def reduction_pct(self) -> float:
        if self.input_bytes <= 0:
            return 0.0
        return (1.0 - self.output_bytes / self.input_bytes) * 100

    def breakdown(self) -> list[tuple[str, int]]:
        """Non-zero counts, highest first, ties by rule id."""
        return sorted(
            ((rule_id, n) for rule_id, n in self.removed.items() if n > 0),
            key=lambda item: (-item[1], item[0]),
        )

    def to_dict(self) -> dict:
        data = asdict(self)
        data["removed"] = dict(self.breakdown())
        data["total_removed"] = self.total_removed
        data["reduction_pct"] = round(self.reduction_pct, 2)
        return data
