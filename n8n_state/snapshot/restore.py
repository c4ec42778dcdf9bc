"""
Snapshot restore - puts a snapshot back into the live data directory.
"""

import logging
from pathlib import Path
from typing import Optional

from ..config import PathsConfig
from ..errors import NoCurrentSnapshotError, ServiceRunningError
from ..service.probe import ServiceProbe
from ..store.filestore import FileStore
from ..store.lock import locked
from .capture import DATABASE_FILE, CACHE_DIR
from .manager import SnapshotManager
from .models import RestorePreview, RestoreResult

logger = logging.getLogger(__name__)

PRE_RESTORE_SUFFIX = ".pre-restore"


class SnapshotRestore:
    """Restores live n8n state from a snapshot."""

    def __init__(
        self,
        store: FileStore,
        paths: PathsConfig,
        probe: ServiceProbe,
        snapshots: SnapshotManager,
    ):
        """
        Initialize snapshot restore.

        Args:
            store: FileStore rooted at the data directory
            paths: Data directory layout
            probe: Service probe for the running-service gate
            snapshots: Snapshot manager (lookups and the current pointer)
        """
        self.store = store
        self.paths = paths
        self.probe = probe
        self.snapshots = snapshots

    @property
    def pre_restore_path(self) -> Path:
        """Single slot holding the live database as it was before the last restore."""
        db = self.paths.database_file
        return db.with_name(db.name + PRE_RESTORE_SUFFIX)

    def resolve_target(self, snapshot_id: Optional[str] = None) -> str:
        """
        Snapshot id to restore: the given one, or the current pointer.

        Raises:
            NoCurrentSnapshotError: No id given and nothing was ever saved
            SnapshotNotFoundError: The snapshot is not in the store
        """
        if not snapshot_id:
            snapshot_id = self.snapshots.current_id()
            if snapshot_id is None:
                raise NoCurrentSnapshotError(
                    "no current session found, use 'list' to see available sessions"
                )
        # raises SnapshotNotFoundError
        self.snapshots.get(snapshot_id)
        return snapshot_id

    def preview(self, snapshot_id: Optional[str] = None) -> RestorePreview:
        """
        Show what would change without applying.
        """
        snapshot_id = self.resolve_target(snapshot_id)
        slot = self.snapshots.slot_path(snapshot_id)
        metadata = self.snapshots.get(snapshot_id)

        preview = RestorePreview(
            snapshot_id=snapshot_id,
            replaces_database=metadata.has_database,
            replaces_cache=metadata.has_cache,
            service_running=self.probe.is_process_running(),
        )
        if metadata.has_database:
            preview.database_bytes = self.store.size_of(slot / DATABASE_FILE)
            preview.creates_pre_restore = self.paths.database_file.is_file()
        if metadata.has_cache:
            preview.cache_bytes = self.store.size_of(slot / CACHE_DIR)
        return preview

    def restore(
        self,
        snapshot_id: Optional[str] = None,
        force: bool = False,
    ) -> RestoreResult:
        """
        Restore live state from a snapshot.

        Strategy:
        1. Resolve target (explicit id or current pointer)
        2. Refuse while n8n is running unless force is set
        3. Copy live database aside to database.sqlite.pre-restore
        4. Copy snapshot database over the live one
        5. Replace the live .cache entirely with the snapshot cache
        6. Point current at the restored snapshot. Current then names the
           state n8n was last put in, not only the most recent save.

        A failure after step 3 leaves live state partially overwritten; the
        pre-restore copy is the recovery path and is not applied automatically.

        Args:
            snapshot_id: Snapshot to restore (None = current)
            force: Proceed even though the service is running

        Returns:
            RestoreResult with what was replaced
        """
        snapshot_id = self.resolve_target(snapshot_id)

        if self.probe.is_process_running() and not force:
            raise ServiceRunningError(
                "n8n is currently running, stop it first or confirm the restore",
                subject=snapshot_id,
            )

        slot = self.snapshots.slot_path(snapshot_id)
        result = RestoreResult(snapshot_id=snapshot_id)

        with locked(self.paths.lock_file, "restore"):
            snapshot_db = slot / DATABASE_FILE
            if snapshot_db.is_file():
                if self.paths.database_file.is_file():
                    self.store.copy_file(self.paths.database_file, self.pre_restore_path)
                    result.pre_restore_path = str(self.pre_restore_path)
                    result.steps.append(f"saved live database to {self.pre_restore_path.name}")

                logger.info("Restoring database...")
                self.store.copy_file(snapshot_db, self.paths.database_file)
                result.database_restored = True
                result.steps.append("database restored")

            snapshot_cache = slot / CACHE_DIR
            if snapshot_cache.is_dir():
                logger.info("Restoring workflow cache...")
                self.store.remove(self.paths.cache_dir)
                self.store.copy_tree(snapshot_cache, self.paths.cache_dir)
                result.cache_restored = True
                result.steps.append("workflow cache replaced")

            self.snapshots.current.set(snapshot_id)

        logger.info("Session restored: %s", snapshot_id)
        return result
