"""
n8n-state - Session snapshots and configuration profiles for n8n

Saves and restores the persistent state of a locally running n8n
(database.sqlite and the workflow .cache), applies age-based retention,
and manages dev/staging/prod configuration profiles.

Usage:
    # As a module
    python -m n8n_state save
    python -m n8n_state restore 20251128_140530

    # Programmatically
    from n8n_state import Config, FileStore, SnapshotManager

    config = Config.load()
    store = FileStore(config.paths.root)
"""

__version__ = "1.0.0"

# Main exports
from .config import Config
from .errors import StateError
from .store import FileStore, PointerStore, AdvisoryLock

# Snapshot exports
from .snapshot import SnapshotManager, SnapshotRestore

# Profile exports
from .profiles import ProfileManager, ProfileConfig

__all__ = [
    # Version
    "__version__",
    # Core
    "Config",
    "StateError",
    "FileStore",
    "PointerStore",
    "AdvisoryLock",
    # Snapshots
    "SnapshotManager",
    "SnapshotRestore",
    # Profiles
    "ProfileManager",
    "ProfileConfig",
]
