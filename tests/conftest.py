import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import pytest

# Repo root holds the top-level packages (core, jobs, providers, ...).
REPO_ROOT = Path(__file__).resolve().parents[1]

if str(REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(REPO_ROOT))

from core.output_dir import get_output_dir  # noqa: E402
from core.settings import get_settings  # noqa: E402
from jobs.manager import JobManager  # noqa: E402
from providers.impl.storage_local_files import LocalFilesStorageProvider  # noqa: E402
from providers.jobs import RemoteProbe, RemoteStart  # noqa: E402


class ScriptedKind:
    """
    JobKind whose remote answers are scripted.

    probes: consumed in order; an Exception instance is raised instead of
    returned. When the script runs out, the last entry repeats.
    """

    def __init__(
        self,
        name: str = "video",
        probes: Optional[List[Union[RemoteProbe, Exception]]] = None,
        fetch_data: Optional[bytes] = b"artifact-bytes",
        remote_ids: Optional[List[Optional[str]]] = None,
        start_error: Optional[Exception] = None,
        fetch_error: Optional[Exception] = None,
    ):
        self.name = name
        self.content_type = "application/octet-stream"
        self.probes = list(probes or [RemoteProbe(done=False)])
        self.fetch_data = fetch_data
        self.remote_ids = list(remote_ids or [])
        self.start_error = start_error
        self.fetch_error = fetch_error
        self.started: List[Dict[str, Any]] = []
        self.probe_calls: List[Any] = []
        self.fetch_calls: List[Any] = []
        self._n = 0

    def validate(self, params):
        if params.get("prompt") is not None and not str(params["prompt"]).strip():
            raise ValueError("No prompt provided")

    async def start(self, params):
        if self.start_error is not None:
            raise self.start_error
        self._n += 1
        self.started.append(params)
        rid = self.remote_ids.pop(0) if self.remote_ids else f"{self.name}-op-{self._n}"
        return RemoteStart(handle={"op": self._n}, remote_id=rid)

    async def probe(self, handle):
        self.probe_calls.append(handle)
        step = self.probes.pop(0) if len(self.probes) > 1 else self.probes[0]
        if isinstance(step, Exception):
            raise step
        return step

    async def fetch(self, result):
        self.fetch_calls.append(result)
        if self.fetch_error is not None:
            raise self.fetch_error
        if result is None:
            return None
        return self.fetch_data

    def artifact_key(self, job_id, result):
        return f"{self.name}-{len(self.fetch_calls)}.bin"

    def summarize(self, result):
        return {"result_seen": result is not None}


class FakeTicker:
    """Records requested intervals; never actually sleeps."""

    def __init__(self, on_tick=None):
        self.intervals: List[float] = []
        self.on_tick = on_tick

    async def wait(self, interval, token=None):
        self.intervals.append(interval)
        if self.on_tick is not None:
            self.on_tick(len(self.intervals))


@pytest.fixture
def storage(tmp_path):
    return LocalFilesStorageProvider(tmp_path / "out")


@pytest.fixture
def make_manager(storage):
    def _make(*kinds):
        return JobManager(kinds=list(kinds), storage=storage)

    return _make


@pytest.fixture(autouse=True)
def _fresh_settings(monkeypatch, tmp_path):
    # never write under the real ~/.config during tests
    monkeypatch.setenv("GEMINI_OUTPUT_DIR", str(tmp_path / "gemini-output"))
    get_settings.cache_clear()
    get_output_dir.cache_clear()
    yield
    get_settings.cache_clear()
    get_output_dir.cache_clear()
