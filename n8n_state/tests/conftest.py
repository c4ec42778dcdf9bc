"""
Shared fixtures: an isolated data directory with live n8n state and fully
wired managers backed by fakes.
"""

import pytest

from n8n_state import config as config_module
from n8n_state.config import PathsConfig, RetentionConfig
from n8n_state.profiles import ProfileManager
from n8n_state.retention import RetentionSweeper
from n8n_state.service import ServiceProbe
from n8n_state.snapshot import SnapshotManager, SnapshotRestore
from n8n_state.store import FileStore

from .mocks import FakeServiceController, StepClock, healthy_transport

LIVE_DB = b"SQLite format 3\x00 live workflows v1"


@pytest.fixture(autouse=True)
def isolated_environment(monkeypatch):
    """Keep the user's config files and N8N_* variables out of every test."""
    monkeypatch.setattr(config_module, "CONFIG_SEARCH_PATHS", [])
    for var in ("N8N_DATA_DIR", "N8N_HEALTH_URL", "N8N_RETENTION_DAYS",
                "N8N_CONTAINER_NAME", "N8N_STATE_LOG_LEVEL"):
        monkeypatch.delenv(var, raising=False)


@pytest.fixture
def data_dir(tmp_path):
    path = tmp_path / "n8n"
    path.mkdir()
    return path


@pytest.fixture
def paths(data_dir):
    return PathsConfig(data_dir=str(data_dir))


@pytest.fixture
def store(data_dir):
    return FileStore(data_dir)


@pytest.fixture
def live_state(paths):
    """Populate database.sqlite and .cache like a running n8n would."""
    paths.database_file.write_bytes(LIVE_DB)
    (paths.cache_dir / "workflows").mkdir(parents=True)
    (paths.cache_dir / "workflows" / "wf-1.json").write_text('{"id": 1}')
    (paths.cache_dir / "state.json").write_text('{"open": true}')
    return paths


@pytest.fixture
def controller():
    return FakeServiceController(running=True)


@pytest.fixture
def probe(controller):
    return ServiceProbe(controller, transport=healthy_transport(200))


@pytest.fixture
def clock():
    return StepClock()


@pytest.fixture
def sweeper(store, paths):
    return RetentionSweeper(store, paths)


@pytest.fixture
def snapshots(store, paths, probe, clock, sweeper):
    return SnapshotManager(store, paths, probe, retention=RetentionConfig(days=7),
                           sweeper=sweeper, clock=clock)


@pytest.fixture
def restorer(store, paths, probe, snapshots):
    return SnapshotRestore(store, paths, probe, snapshots)


@pytest.fixture
def profiles(store, paths, clock):
    return ProfileManager(store, paths, clock=clock)
