"""Test configuration ensuring the project source tree is importable."""

from __future__ import annotations

import importlib
import logging
import sys
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parent.parent
TESTS = ROOT / "tests"

root_str = str(ROOT)
if root_str not in sys.path:
    sys.path.insert(0, root_str)

if str(TESTS) not in sys.path:
    sys.path.insert(1, str(TESTS))

# Import the project package eagerly so subsequent imports reuse it
importlib.import_module("beamwand")

import beam_bytes  # noqa: E402


@pytest.fixture(autouse=True)
def _restore_root_logging():
    """The CLI reconfigures the root logger; undo that after every test."""

    root = logging.getLogger()
    handlers = list(root.handlers)
    level = root.level
    yield
    for handler in list(root.handlers):
        if handler not in handlers:
            root.removeHandler(handler)
            handler.close()
    for handler in handlers:
        if handler not in root.handlers:
            root.addHandler(handler)
    root.setLevel(level)


@pytest.fixture
def sample_module() -> bytes:
    """A small but complete module touching every decoded chunk kind."""

    return beam_bytes.sample_module()


@pytest.fixture
def sample_module_path(tmp_path: Path, sample_module: bytes) -> Path:
    path = tmp_path / "sample.beam"
    path.write_bytes(sample_module)
    return path
