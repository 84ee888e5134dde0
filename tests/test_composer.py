# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Tests for artifact composition, RemovalStats and the run report."""

from __future__ import annotations

import json
from datetime import UTC, datetime

import pytest

from modelslim import Mode
from modelslim.slimming.composer import (
    block_header,
    compose_blocks,
    compose_body,
    compose_tree,
    compose_tree_like,
    detect_indent,
    join_documents,
    normalize_lines,
    render_report,
)
from modelslim.slimming.stats import RemovalStats

_STAMP = datetime(2025, 3, 1, 12, 30, 5, tzinfo=UTC)


# ---------------------------------------------------------------------------
# TestComposeTree
# ---------------------------------------------------------------------------


class TestComposeTree:
    def test_compact(self):
        assert compose_tree({"a": [1, {"b": None}]}, compact=True) == '{"a":[1,{"b":null}]}'

    def test_verbose_indented(self):
        out = compose_tree({"a": 1})
        assert out == '{\n  "a": 1\n}'

    def test_non_ascii_kept(self):
        assert compose_tree({"name": "Umsätze"}, compact=True) == '{"name":"Umsätze"}'

    def test_round_trips(self, sales_bim):
        assert json.loads(compose_tree(sales_bim)) == sales_bim


class TestLayoutDetection:
    @pytest.mark.parametrize(
        "text, expected",
        [
            ('{"a":1}', None),
            ('\ufeff  {"a": [1, 2]}\n', None),
            ('{\n  "a": 1\n}', "  "),
            ('{\r\n    "a": {\r\n        "b": 1\r\n    }\r\n}', "    "),
            ('[\n\t1\n]', "\t"),
            ('{\n"a": 1\n}', ""),
        ],
    )
    def test_detect_indent(self, text, expected):
        assert detect_indent(text) == expected

    def test_like_compact(self):
        assert compose_tree_like({"a": 1}, '{"a":1,"b":2}') == '{"a":1}'

    def test_like_indented(self):
        assert compose_tree_like({"a": [1]}, '{\n    "a": [\n        1\n    ],\n    "b": 2\n}') == '{\n    "a": [\n        1\n    ]\n}'

    def test_like_falls_back_to_compact_when_larger(self):
        # newline-separated but without key spacing: the indented form would grow
        original = '{\n"a":1,\n"b":2\n}'
        assert compose_tree_like({"a": 1, "b": 2}, original) == '{"a":1,"b":2}'


# ---------------------------------------------------------------------------
# TestBlockComposition
# ---------------------------------------------------------------------------


class TestBlockComposition:
    def test_separator_only_between_documents_with_content(self):
        assert join_documents([["a"], [], ["b", "c"], []]) == ["a", "", "b", "c"]

    def test_no_documents(self):
        assert join_documents([]) == []
        assert compose_body([[], []]) == ""

    def test_blank_run_of_three_collapses(self):
        assert normalize_lines(["a", "", "", "", "b"]) == ["a", "", "b"]

    def test_short_blank_runs_kept(self):
        assert normalize_lines(["a", "", "", "b"]) == ["a", "", "", "b"]

    def test_trailing_blanks_dropped(self):
        assert normalize_lines(["a", "", ""]) == ["a"]

    def test_single_trailing_terminator(self):
        assert compose_body([["a"], ["b"]]) == "a\n\nb\n"

    def test_crlf_terminator(self):
        assert compose_body([["a"], ["b"]], terminator="\r\n") == "a\r\n\r\nb\r\n"

    def test_header(self):
        header = block_header("definition", generated_at=_STAMP)
        assert header == "// Source: definition\n// Generated: 2025-03-01T12:30:05+00:00\n\n"

    def test_compose_blocks_returns_body_separately(self):
        artifact, body = compose_blocks([["table T"]], source_name="definition", generated_at=_STAMP)
        assert body == "table T\n"
        assert artifact.startswith("// Source: definition\n")
        assert artifact.endswith("\n\ntable T\n")

    def test_empty_body_still_has_header(self):
        artifact, body = compose_blocks([], source_name="definition", generated_at=_STAMP)
        assert body == ""
        assert artifact == block_header("definition", generated_at=_STAMP)


# ---------------------------------------------------------------------------
# TestRemovalStats
# ---------------------------------------------------------------------------


class TestRemovalStats:
    def test_record_accumulates(self):
        stats = RemovalStats()
        stats.record("lineageTag")
        stats.record("lineageTag")
        stats.record("empty-container", 3)
        assert stats.removed == {"lineageTag": 2, "empty-container": 3}
        assert stats.total_removed == 5

    def test_breakdown_sorted_by_count_then_id(self):
        stats = RemovalStats(removed={"b": 2, "a": 2, "c": 5, "zero": 0})
        assert stats.breakdown() == [("c", 5), ("a", 2), ("b", 2)]

    def test_reduction_zero_input(self):
        assert RemovalStats().reduction_pct == 0.0

    def test_reduction(self):
        stats = RemovalStats(input_bytes=200, output_bytes=50)
        assert stats.reduction_pct == 75.0

    def test_to_dict(self):
        stats = RemovalStats(removed={"a": 1, "b": 3}, input_bytes=3, output_bytes=1)
        data = stats.to_dict()
        assert list(data["removed"]) == ["b", "a"]
        assert data["total_removed"] == 4
        assert data["reduction_pct"] == 66.67
        json.dumps(data)


# ---------------------------------------------------------------------------
# TestRenderReport
# ---------------------------------------------------------------------------


class TestRenderReport:
    def test_tree_report(self):
        stats = RemovalStats(
            removed={"lineageTag": 4, "formatString": 2},
            input_bytes=2048,
            output_bytes=1024,
            nodes_total=10,
            nodes_retained=6,
        )
        report = render_report(
            stats,
            source="model.bim",
            mode=Mode.TREE,
            categories={"lineageTag": "lineage", "formatString": "format-strings"},
            destination="model.slim.bim",
        )
        assert report.startswith("Model Slim report: model.bim")
        assert "Output: model.slim.bim" in report
        assert "Nodes retained: 6 / 10" in report
        assert "Reduction:   50.0%" in report
        assert "2,048 bytes (2.0 KB)" in report
        assert "Category" in report
        assert report.index("lineageTag") < report.index("formatString")
        assert report.endswith("Total removed: 6")

    def test_block_report(self):
        stats = RemovalStats(
            removed={"annotation": 5},
            documents_total=3,
            documents_processed=2,
            language_documents_skipped=1,
            language_data_bytes=120,
            unterminated_blocks=1,
        )
        report = render_report(stats, source="definition", mode=Mode.BLOCK)
        assert "Documents processed: 2 / 3" in report
        assert "Language data skipped: 1 documents, 120 bytes" in report
        assert "Unterminated blocks: 1" in report
        assert "Nodes retained" not in report
        assert "Category" not in report

    def test_nothing_removed(self):
        report = render_report(RemovalStats(), source="model.bim", mode=Mode.TREE)
        assert report.endswith("Nothing removed.")
        assert "Output:" not in report
