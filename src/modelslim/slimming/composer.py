# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Artifact composition and the human-readable run report.

Two artifact shapes:
- tree: the cleaned JSON, indented, compact, or in the input's own layout
- block: a header comment followed by the retained lines of every document,
  one blank line between documents that produced content
"""

from __future__ import annotations

import json
import re
from collections.abc import Sequence
from datetime import UTC, datetime

from tabulate import tabulate

from modelslim import Mode
from modelslim.slimming import AttributeNode
from modelslim.slimming.stats import RemovalStats

_MAX_BLANK_RUN = 2  # runs longer than this collapse to a single blank line
_INDENT = re.compile(r"^[ \t]+(?=\S)", re.MULTILINE)


def compose_tree(node: AttributeNode, *, compact: bool = False, indent: int | str = 2) -> str:
    """Serialize a cleaned tree."""
    if compact:
        return json.dumps(node, ensure_ascii=False, separators=(",", ":"))
    return json.dumps(node, ensure_ascii=False, indent=indent)


def detect_indent(text: str) -> str | None:
    """Indent unit of a JSON document, or ``None`` when it sits on a single line.

    Raw newlines can only appear between tokens, so the first indented line
    holds exactly one level of indentation.
    """
    body = text.strip("\ufeff \t\r\n")
    if "\n" not in body:
        return None
    match = _INDENT.search(body)
    return match.group(0) if match else ""


def compose_tree_like(node: AttributeNode, original: str) -> str:
    """Serialize *node* in the layout of *original*.

    Falls back to compact output when the matched layout would be larger
    than *original* (key spacing the indented form adds, for instance).
    """
    indent = detect_indent(original)
    if indent is None:
        return compose_tree(node, compact=True)
    output = compose_tree(node, indent=indent)
    if len(output.encode("utf-8")) > len(original.encode("utf-8")):
        return compose_tree(node, compact=True)
    return output


def join_documents(chunks: Sequence[Sequence[str]]) -> list[str]:
    """Concatenate per-document lines with one blank separator between non-empty documents."""
    lines: list[str] = []
    for chunk in chunks:
        if not chunk:
            continue
        if lines:
            lines.append("")
        lines.extend(chunk)
    return lines


def normalize_lines(lines: Sequence[str]) -> list[str]:
    """Collapse runs of 3+ blank lines to one and drop trailing blanks."""
    out: list[str] = []
    blank_run = 0
    for line in lines:
        if not line.strip():
            blank_run += 1
            continue
        if blank_run:
            out.extend([""] * (1 if blank_run > _MAX_BLANK_RUN else blank_run))
            blank_run = 0
        out.append(line)
    return out


def compose_body(chunks: Sequence[Sequence[str]], *, terminator: str = "\n") -> str:
    """Joined, normalized block body ending in exactly one terminator (empty if no content)."""
    lines = normalize_lines(join_documents(chunks))
    if not lines:
        return ""
    return terminator.join(lines) + terminator


def block_header(source_name: str, *, generated_at: datetime | None = None, terminator: str = "\n") -> str:
    """Comment header naming the source model and generation time."""
    stamp = (generated_at or datetime.now(UTC)).isoformat(timespec="seconds")
    return f"// Source: {source_name}{terminator}// Generated: {stamp}{terminator}{terminator}"


def compose_blocks(
    chunks: Sequence[Sequence[str]],
    *,
    source_name: str,
    terminator: str = "\n",
    generated_at: datetime | None = None,
) -> tuple[str, str]:
    """Return (full artifact, body). The body alone is what size metrics measure."""
    body = compose_body(chunks, terminator=terminator)
    header = block_header(source_name, generated_at=generated_at, terminator=terminator)
    return header + body, body


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


def _fmt_bytes(n: int) -> str:
    if n >= 1024 * 1024:
        return f"{n:,} bytes ({n / (1024 * 1024):.1f} MB)"
    if n >= 1024:
        return f"{n:,} bytes ({n / 1024:.1f} KB)"
    return f"{n:,} bytes"


def render_report(
    stats: RemovalStats,
    *,
    source: str,
    mode: Mode,
    categories: dict[str, str] | None = None,
    destination: str = "",
) -> str:
    """Plain-text run summary with a sorted removal breakdown."""
    lines = [f"Model Slim report: {source}"]
    if destination:
        lines.append(f"Output: {destination}")

    if mode is Mode.TREE:
        lines.append(f"Nodes retained: {stats.nodes_retained:,} / {stats.nodes_total:,}")
    else:
        lines.append(f"Documents processed: {stats.documents_processed:,} / {stats.documents_total:,}")
        if stats.language_documents_skipped:
            lines.append(
                f"Language data skipped: {stats.language_documents_skipped:,} documents, "
                f"{_fmt_bytes(stats.language_data_bytes)}"
            )
        if stats.unterminated_blocks:
            lines.append(f"Unterminated blocks: {stats.unterminated_blocks:,}")

    lines.append(f"Input size:  {_fmt_bytes(stats.input_bytes)}")
    lines.append(f"Output size: {_fmt_bytes(stats.output_bytes)}")
    lines.append(f"Reduction:   {stats.reduction_pct:.1f}%")

    breakdown = stats.breakdown()
    if not breakdown:
        lines.append("")
        lines.append("Nothing removed.")
        return "\n".join(lines)

    if categories:
        rows = [(rule_id, categories.get(rule_id, ""), n) for rule_id, n in breakdown]
        headers = ["Removed", "Category", "Count"]
    else:
        rows = breakdown
        headers = ["Removed", "Count"]
    lines.append("")
    lines.append(tabulate(rows, headers=headers, tablefmt="simple"))
    lines.append(f"Total removed: {stats.total_removed:,}")
    return "\n".join(lines)
