import os
import sys
import tempfile
import shutil
import atexit
from pathlib import Path

# Ensure repo root is on sys.path so tests can import the package and cli directly
root = Path(__file__).resolve().parent.parent
if str(root) not in sys.path:
    sys.path.insert(0, str(root))

_lineage_test_data_dir = None


def pytest_configure(config):
    """Create a session-scoped temporary data directory for tests and
    set the LINEAGE_DATA_DIR environment variable so the app and any
    subprocesses will write into an isolated location.
    """
    global _lineage_test_data_dir
    td = tempfile.mkdtemp(prefix="lineage_test_data_")
    _lineage_test_data_dir = td
    os.environ.setdefault("LINEAGE_DATA_DIR", td)


def pytest_unconfigure(config):
    global _lineage_test_data_dir
    td = _lineage_test_data_dir
    _lineage_test_data_dir = None
    if td and os.path.exists(td):
        shutil.rmtree(td, ignore_errors=True)


def _atexit_cleanup():
    td = _lineage_test_data_dir
    if td and os.path.exists(td):
        shutil.rmtree(td, ignore_errors=True)


atexit.register(_atexit_cleanup)


import pytest

from lineage_py.storage import MemoryStore, Storage


@pytest.fixture(params=["memory", "sqlite"])
def store(request, tmp_path):
    """Each builder test runs against both record store implementations."""
    if request.param == "memory":
        yield MemoryStore()
    else:
        st = Storage(tmp_path / "store")
        yield st
        st.close()
