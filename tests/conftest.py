"""Pytest configuration for tfe2e tests.

The terraform binary is replaced by tests/fake_terraform.py, workspaces are
copies of tests/fixtures/manifests and the clusters management API is the
Flask stub served on an ephemeral port.
"""
import json
import os
import shlex
import shutil
import sys
import threading
from pathlib import Path

import pytest
from werkzeug.serving import make_server

from tfe2e import config
from tfe2e.stub_api import create_app

TESTS_DIR = Path(__file__).parent
FAKE_TERRAFORM = TESTS_DIR / "fake_terraform.py"
FIXTURE_MANIFESTS = TESTS_DIR / "fixtures" / "manifests"
FAKE_TF_BINARY = f"{shlex.quote(sys.executable)} {shlex.quote(str(FAKE_TERRAFORM))}"

CLUSTER_ID = "e2e-cluster"
TOKEN = "offline-token"


def invocations(workspace):
    """Every fake terraform call made in workspace, oldest first."""
    log = Path(workspace) / ".fake_terraform.log"
    if not log.exists():
        return []
    return [json.loads(line) for line in log.read_text().splitlines() if line]


def write_manifest(workspace, manifest):
    workspace = Path(workspace)
    workspace.mkdir(parents=True, exist_ok=True)
    (workspace / "fake_manifest.json").write_text(json.dumps(manifest))
    return str(workspace)


@pytest.fixture(autouse=True)
def fake_terraform(monkeypatch):
    """Route every terraform invocation to the fake binary."""
    monkeypatch.setattr(config, "TF_BINARY", FAKE_TF_BINARY)
    monkeypatch.setattr(config, "TF_TIMEOUT", 60.0)
    return FAKE_TF_BINARY


@pytest.fixture
def manifests(tmp_path, monkeypatch):
    """Private copy of the fixture manifest tree, used as MANIFESTS_DIR."""
    root = tmp_path / "manifests"
    shutil.copytree(FIXTURE_MANIFESTS, root)
    monkeypatch.setattr(config, "MANIFESTS_DIR", str(root))
    return root


@pytest.fixture
def workspace(tmp_path):
    """Empty workspace declaring no variables."""
    return write_manifest(tmp_path / "ws", {"variables": {}, "outputs": {}})


def _serve(app):
    server = make_server("127.0.0.1", 0, app, threaded=True)
    thread = threading.Thread(target=server.serve_forever, daemon=True)
    thread.start()
    return server, thread


@pytest.fixture
def stub_app():
    return create_app(clusters={CLUSTER_ID: {"name": "e2e"}})


@pytest.fixture
def stub_api(stub_app, monkeypatch):
    """Running stub API; its URL is the gateway URL for the test."""
    server, thread = _serve(stub_app)
    url = f"http://127.0.0.1:{server.server_port}"
    monkeypatch.setattr(config, "GATEWAY_URL", url)
    yield url
    server.shutdown()
    thread.join(timeout=5)


@pytest.fixture
def store(stub_app):
    return stub_app.config["STORE"]


@pytest.fixture
def subprocess_env(manifests, stub_api, tmp_path):
    """Environment for running the scripts/ entry points as subprocesses."""
    env = os.environ.copy()
    env.update({
        "TF_BINARY": FAKE_TF_BINARY,
        "RHCS_URL": stub_api,
        "RHCS_TOKEN": TOKEN,
        "CLUSTER_ID": CLUSTER_ID,
        "MANIFESTS_DIR": str(manifests),
        "RESULTS_PATH": str(tmp_path / "results.json"),
        "KUBECONFIG_DIR": str(tmp_path / "kube"),
        "E2E_ENV_FILE": str(tmp_path / "missing.env"),
        "PYTHONPATH": os.pathsep.join(
            p for p in (str(TESTS_DIR.parent), env.get("PYTHONPATH", "")) if p),
    })
    return env
