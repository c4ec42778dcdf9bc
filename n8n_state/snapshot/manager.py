"""
Snapshot manager - high-level snapshot operations.

Storage layout under <data_dir>/sessions:

    snapshots/
        20251128_140530/
            metadata.json
            database.sqlite     (if the live database existed)
            cache/              (if the live .cache existed)
    current                     (id of the most recently saved/restored snapshot)
    .lock                       (held during save/restore)
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path
from typing import Callable, List, Optional, TYPE_CHECKING

from ..config import PathsConfig, RetentionConfig
from ..errors import (
    DuplicateIdError,
    NoActiveServiceError,
    SnapshotNotFoundError,
    StorageError,
)
from ..service.probe import ServiceProbe
from ..store.filestore import FileStore
from ..store.lock import locked
from ..store.pointer import PointerStore
from .capture import SnapshotCapture, METADATA_FILE, DATABASE_FILE, CACHE_DIR
from .models import (
    SnapshotMetadata,
    SnapshotInfo,
    SnapshotStats,
    make_snapshot_id,
    is_snapshot_id,
    parse_created_at,
)

if TYPE_CHECKING:
    from ..retention import RetentionSweeper

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


class SnapshotManager:
    """High-level snapshot operations for one data directory."""

    def __init__(
        self,
        store: FileStore,
        paths: PathsConfig,
        probe: ServiceProbe,
        current: Optional[PointerStore] = None,
        retention: Optional[RetentionConfig] = None,
        sweeper: Optional["RetentionSweeper"] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        """
        Initialize snapshot manager.

        Args:
            store: FileStore rooted at the data directory
            paths: Data directory layout
            probe: Service probe used as the save precondition
            current: CurrentPointer store (defaults to sessions/current)
            retention: Retention policy, consulted for auto-clean after save
            sweeper: Sweeper used when retention.auto_clean is set
            clock: Source of "now" (UTC)
        """
        self.store = store
        self.paths = paths
        self.probe = probe
        self.current = current or PointerStore(store, paths.current_pointer)
        self.retention = retention or RetentionConfig()
        self.sweeper = sweeper
        self.clock = clock
        self.capture = SnapshotCapture(store, paths, probe.controller)

    @property
    def snapshots_dir(self) -> Path:
        return self.paths.snapshots_dir

    def slot_path(self, snapshot_id: str) -> Path:
        """Get path to a snapshot's directory."""
        return self.snapshots_dir / snapshot_id

    # =========================================================================
    # Core Operations
    # =========================================================================

    def save(self, trigger: str = "manual") -> SnapshotMetadata:
        """
        Snapshot the live database and cache, then repoint current.

        Args:
            trigger: Recorded in metadata ("manual", "scheduled")

        Returns:
            Metadata of the new snapshot

        Raises:
            NoActiveServiceError: n8n is not running (nothing is written)
            DuplicateIdError: a snapshot with this second's id already exists
            LockHeldError: another save/restore is in progress
        """
        if not self.probe.is_process_running():
            raise NoActiveServiceError(
                "n8n is not running, no active session to save",
                subject=self.probe.controller.name or None,
            )

        created = self.clock()
        snapshot_id = make_snapshot_id(created)

        with locked(self.paths.lock_file, "save"):
            slot = self._create_slot(snapshot_id)
            metadata = self.capture.capture(snapshot_id, slot, created, trigger=trigger)
            self.current.set(snapshot_id)

        logger.info("Session saved: %s", snapshot_id)

        if self.retention.auto_clean and self.sweeper is not None:
            result = self.sweeper.sweep("snapshots", self.retention.days, exclude=[slot])
            logger.info("Auto-clean removed %d old snapshot(s)", result.count)

        return metadata

    def _create_slot(self, snapshot_id: str) -> Path:
        """Create the snapshot directory; an existing one means an id collision."""
        self.store.makedirs(self.snapshots_dir)
        slot = self.slot_path(snapshot_id)
        try:
            slot.mkdir()
        except FileExistsError:
            raise DuplicateIdError(
                "snapshot already exists (two saves within the same second)",
                subject=snapshot_id,
            )
        except OSError as e:
            raise StorageError(f"cannot create snapshot: {e.strerror}",
                               subject=str(slot), cause=e)
        return slot

    # =========================================================================
    # Query Operations
    # =========================================================================

    def exists(self, snapshot_id: str) -> bool:
        return is_snapshot_id(snapshot_id) and self.slot_path(snapshot_id).is_dir()

    def get(self, snapshot_id: str) -> SnapshotMetadata:
        """
        Get a snapshot's metadata.

        Raises:
            SnapshotNotFoundError: No such snapshot
        """
        if not self.exists(snapshot_id):
            raise SnapshotNotFoundError("session not found", subject=snapshot_id)
        return self._load_metadata(self.slot_path(snapshot_id))

    def current_id(self) -> Optional[str]:
        return self.current.get()

    def list_snapshots(self) -> List[SnapshotInfo]:
        """
        List all snapshots with summary info.

        Returns:
            List of SnapshotInfo sorted by creation time (oldest first)
        """
        snapshots = []
        for slot in self._slots():
            metadata = self._load_metadata(slot)
            created = parse_created_at(metadata.created_at)
            snapshots.append((created, SnapshotInfo(
                id=metadata.id,
                created_at=metadata.created_at,
                size_bytes=self.store.size_of(slot),
                has_database=metadata.has_database,
                has_cache=metadata.has_cache,
                n8n_version=metadata.n8n_version,
            )))

        snapshots.sort(key=lambda pair: (pair[0], pair[1].id))
        return [info for _, info in snapshots]

    def stats(self) -> SnapshotStats:
        snapshots = self.list_snapshots()
        return SnapshotStats(
            total=len(snapshots),
            with_database=sum(1 for s in snapshots if s.has_database),
            with_cache=sum(1 for s in snapshots if s.has_cache),
            total_bytes=self.store.size_of(self.paths.sessions_dir),
            current_id=self.current_id(),
            retention_days=self.retention.days,
            sessions_dir=str(self.paths.sessions_dir),
        )

    def _slots(self) -> List[Path]:
        return [
            p for p in self.store.list_matching(self.snapshots_dir)
            if p.is_dir() and is_snapshot_id(p.name)
        ]

    def _load_metadata(self, slot: Path) -> SnapshotMetadata:
        """
        Read metadata.json, falling back to what is on disk.

        A snapshot whose metadata write failed is still listed; its creation
        time comes from the directory mtime. File presence always wins over
        the recorded flags.
        """
        metadata = None
        meta_path = slot / METADATA_FILE
        if meta_path.is_file():
            try:
                metadata = SnapshotMetadata.from_dict(json.loads(self.store.read_text(meta_path)))
                metadata.created_at = parse_created_at(metadata.created_at).isoformat()
            except (StorageError, ValueError, TypeError) as e:
                logger.warning("Unreadable metadata for %s: %s", slot.name, e)
                metadata = None

        if metadata is None:
            mtime = datetime.fromtimestamp(slot.stat().st_mtime, tz=timezone.utc)
            metadata = SnapshotMetadata(id=slot.name, created_at=mtime.isoformat())

        metadata.id = slot.name
        metadata.has_database = (slot / DATABASE_FILE).is_file()
        metadata.has_cache = (slot / CACHE_DIR).is_dir()
        return metadata

    # =========================================================================
    # Lifecycle
    # =========================================================================

    def delete(self, snapshot_id: str) -> None:
        """
        Delete a snapshot.

        The current pointer is left alone; restoring it afterwards reports
        the snapshot as missing.
        """
        if not self.exists(snapshot_id):
            raise SnapshotNotFoundError("session not found", subject=snapshot_id)
        self.store.remove(self.slot_path(snapshot_id))
        logger.info("Removed snapshot %s", snapshot_id)
