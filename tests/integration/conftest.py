import os
import sys
import shutil
import socket
import time
import subprocess
from pathlib import Path
import urllib.request

import pytest

from lineage_py.seed import seed_demo
from lineage_py.storage import Storage


def _find_free_port():
    s = socket.socket(socket.AF_INET, socket.SOCK_STREAM)
    s.bind(("127.0.0.1", 0))
    addr, port = s.getsockname()
    s.close()
    return port


@pytest.fixture(scope="module")
def live_server(tmp_path_factory):
    """Start a uvicorn server over a seeded demo database and yield (base url, demo ids).

    The fixture copies the package into a temp dir, seeds ``lineage.db`` in a
    separate data dir, starts uvicorn as a subprocess with LINEAGE_DATA_DIR
    pointing at it, and waits for readiness by polling /openapi.json. After
    the tests the server is terminated.
    """
    tmp = tmp_path_factory.mktemp("lineage_live")
    repo_root = Path(__file__).resolve().parents[2]
    shutil.copytree(repo_root / "lineage_py", tmp / "lineage_py")

    data_dir = tmp / "data"
    store = Storage(data_dir)
    try:
        ids = seed_demo(store)
    finally:
        store.close()

    port = _find_free_port()
    cmd = [sys.executable, "-m", "uvicorn", "lineage_py.web.app:app", "--host", "127.0.0.1", "--port", str(port)]
    env = os.environ.copy()
    env.pop("LINEAGE_CONFIG", None)
    env["LINEAGE_DATA_DIR"] = str(data_dir)
    env_pythonpath = env.get("PYTHONPATH", "")
    env["PYTHONPATH"] = str(tmp) + (os.pathsep + env_pythonpath if env_pythonpath else "")
    # Do not capture stdout/stderr so server startup errors are visible in test output
    proc = subprocess.Popen(cmd, cwd=str(tmp), env=env, stdout=None, stderr=None)

    base = f"http://127.0.0.1:{port}"
    deadline = time.time() + 30
    last_exc = None
    while time.time() < deadline:
        try:
            with urllib.request.urlopen(base + "/openapi.json", timeout=1) as r:
                if r.status == 200:
                    break
        except Exception as e:
            last_exc = e
            time.sleep(0.2)
            continue
    else:
        proc.kill()
        proc.wait(timeout=5)
        pytest.fail(f"Server did not become ready in time; last error: {last_exc}")

    try:
        yield base, ids
    finally:
        proc.terminate()
        try:
            proc.wait(timeout=5)
        except Exception:
            proc.kill()
