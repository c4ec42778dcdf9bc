"""
Snapshot/Restore system for n8n-state.

Provides consistent copies of the n8n persistent state that can be put back
later. Key features:

- Timestamped snapshots of database.sqlite and the workflow .cache
- A current pointer tracking the latest saved/restored snapshot
- Restore guarded by a running-service check and a pre-restore safety copy
- Dry-run preview before restore

Scope: files in the n8n data directory only (no container checkpoints)
"""

from .models import SnapshotMetadata, SnapshotInfo, SnapshotStats, RestoreResult, RestorePreview
from .capture import SnapshotCapture
from .restore import SnapshotRestore
from .manager import SnapshotManager

__all__ = [
    'SnapshotMetadata',
    'SnapshotInfo',
    'SnapshotStats',
    'RestoreResult',
    'RestorePreview',
    'SnapshotCapture',
    'SnapshotRestore',
    'SnapshotManager',
]
