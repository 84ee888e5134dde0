# Copyright (C) 2025-2026 Retio AI
# SPDX-License-Identifier: AGPL-3.0-only

"""Shared test configuration and fixtures."""

try:
    import modelslim  # noqa: F401
except ImportError:
    raise ImportError("modelslim is not installed. Run: pip install -e '.[dev]'") from None

import json
import logging

import pytest
import structlog

from modelslim.config import SlimOptions
from tests._samples import CULTURE_TMDL, MODEL_TMDL, SALES_BIM, SALES_TMDL


@pytest.fixture(autouse=True)
def _reset_logging():
    """CLI tests reconfigure the root logger; restore it afterwards."""
    root = logging.getLogger()
    old_handlers = root.handlers[:]
    old_level = root.level
    yield
    root.handlers = old_handlers
    root.setLevel(old_level)
    structlog.reset_defaults()
    structlog.contextvars.clear_contextvars()


@pytest.fixture
def recommended() -> SlimOptions:
    return SlimOptions.recommended()


@pytest.fixture
def sales_bim() -> dict:
    return json.loads(json.dumps(SALES_BIM))


@pytest.fixture
def sales_bim_text() -> str:
    return json.dumps(SALES_BIM, indent=2)


@pytest.fixture
def tmdl_documents() -> dict[str, str]:
    return {
        "tables/Sales.tmdl": SALES_TMDL,
        "model.tmdl": MODEL_TMDL,
        "cultures/en-US.tmdl": CULTURE_TMDL,
    }


@pytest.fixture
def tmdl_folder(tmp_path, tmdl_documents):
    root = tmp_path / "definition"
    for rel, text in tmdl_documents.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    (root / "README.md").write_text("not a model document", encoding="utf-8")
    return root
