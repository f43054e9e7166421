from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterator

import pytest

from tests._fixtures.script_tree import ScriptTreeBuilder


@pytest.fixture
def script_tree(tmp_path: Path) -> ScriptTreeBuilder:
    """Provide a reusable script tree rooted at the pytest tmp_path."""
    return ScriptTreeBuilder(tmp_path)


@pytest.fixture(autouse=True)
def _reset_scriptmeta_logger() -> Iterator[None]:
    """Undo configure_logging() so caplog sees records in every test."""
    yield
    logger = logging.getLogger("scriptmeta")
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()
    logger.propagate = True
    logger.setLevel(logging.NOTSET)
