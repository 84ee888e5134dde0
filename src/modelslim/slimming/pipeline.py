# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Slimming pipeline orchestration.

Flow:
  options
    → rule registry (configure)
    → select input location
    → enumerate + read documents
    → tree mode:  parse JSON → TreeCleaner (in place) → compose_tree
      block mode: language-data skip → BlockCleaner per document → compose_blocks
    → size metrics
    → write artifact (atomic; skipped on dry run)
    → report via notifier

One run is one atomic unit: the writer is called only after the whole
artifact exists in memory, so any failure leaves nothing behind.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Iterable
from datetime import datetime

from modelslim import Document, Mode, SlimResult
from modelslim.capabilities import ArtifactWriter, DocumentReader, Notifier, SourceSelector
from modelslim.config import SlimOptions
from modelslim.errors import InputNotFoundError, ModelSlimError
from modelslim.logging_config import run_context
from modelslim.rules import category_of, configure
from modelslim.slimming import parse_tree
from modelslim.slimming.blocks import clean_documents
from modelslim.slimming.composer import compose_blocks, compose_tree, compose_tree_like, render_report
from modelslim.slimming.stats import RemovalStats
from modelslim.slimming.tree import TreeCleaner

logger = logging.getLogger(__name__)


def slim_tree_text(text: str, options: SlimOptions, *, source: str = "model.bim") -> SlimResult:
    """Slim one JSON model document.

    Raises:
        MalformedDocumentError: *text* is not a valid model document.
    """
    start = time.monotonic()
    rules = configure(options)
    stats = RemovalStats(documents_total=1, documents_processed=1)
    stats.input_bytes = len(text.encode("utf-8"))

    tree = parse_tree(text, document=source)
    TreeCleaner(rules, stats).clean(tree)
    if options.compact_output is not None:
        output = compose_tree(tree, compact=options.compact_output)
    elif stats.total_removed:
        output = compose_tree_like(tree, text)
    else:
        # Nothing matched: hand the document back as written.
        output = text.lstrip("\ufeff")
    stats.output_bytes = len(output.encode("utf-8"))

    return SlimResult(
        source=source,
        mode=Mode.TREE,
        text=output,
        stats=stats,
        elapsed_ms=(time.monotonic() - start) * 1000,
    )


def slim_documents(
    documents: Iterable[Document],
    options: SlimOptions,
    *,
    source: str = "definition",
    generated_at: datetime | None = None,
) -> SlimResult:
    """Slim a set of TMDL documents into one concatenated artifact."""
    start = time.monotonic()
    rules = configure(options)

    chunks, stats = clean_documents(documents, rules)
    artifact, body = compose_blocks(
        chunks,
        source_name=source,
        terminator=options.line_terminator,
        generated_at=generated_at,
    )
    stats.output_bytes = len(body.encode("utf-8"))

    result = SlimResult(
        source=source,
        mode=Mode.BLOCK,
        text=artifact,
        stats=stats,
        elapsed_ms=(time.monotonic() - start) * 1000,
    )
    if stats.unterminated_blocks:
        result.warnings.append(f"{stats.unterminated_blocks} block(s) ran to end of document")
    return result


def _report_failure(notifier: Notifier, error: ModelSlimError) -> None:
    level = "warning" if isinstance(error, InputNotFoundError) else "error"
    notifier.notify(str(error), level=level)


def run(
    selector: SourceSelector,
    reader: DocumentReader,
    writer: ArtifactWriter,
    notifier: Notifier,
    options: SlimOptions | None = None,
    *,
    dry_run: bool = False,
    generated_at: datetime | None = None,
) -> SlimResult:
    """Run one complete slimming pass and report it through *notifier*.

    Raises:
        InputNotFoundError: nothing to slim at the selected location.
        InputReadError: the location or a document could not be read.
        MalformedDocumentError: the tree document failed to parse.
        OutputWriteError: the artifact could not be written.
    """
    options = options or SlimOptions()
    try:
        selection = selector.select()
    except ModelSlimError as e:
        _report_failure(notifier, e)
        raise

    with run_context(source=str(selection.source), mode=selection.mode.value):
        try:
            paths = reader.enumerate(selection)
            if not paths:
                raise InputNotFoundError(
                    f"No model documents found at {selection.source}",
                    location=str(selection.source),
                )
            logger.info("slimming %d document(s) from %s", len(paths), selection.source)

            if selection.mode is Mode.TREE:
                if len(paths) > 1:
                    logger.warning("tree mode takes one document; using %s", paths[0])
                result = slim_tree_text(reader.read(selection, paths[0]), options, source=selection.source.name)
            else:
                docs = [Document(path=p, text=reader.read(selection, p)) for p in paths]
                result = slim_documents(docs, options, source=selection.source.name, generated_at=generated_at)

            if not dry_run:
                writer.write(selection.destination, result.text)
                result.destination = str(selection.destination)
        except ModelSlimError as e:
            _report_failure(notifier, e)
            raise

        logger.info(
            "slimmed %s: %d -> %d bytes (%.1f%%)",
            selection.source,
            result.stats.input_bytes,
            result.stats.output_bytes,
            result.stats.reduction_pct,
        )

    for warning in result.warnings:
        notifier.notify(warning, level="warning")
    notifier.notify(
        render_report(
            result.stats,
            source=str(selection.source),
            mode=result.mode,
            categories={k: str(v) for k, v in category_of(configure(options)).items()},
            destination=result.destination,
        )
    )
    return result
