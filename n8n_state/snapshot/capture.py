"""
Snapshot capture - copies the live n8n state into a snapshot slot.
"""

import json
import logging
from datetime import datetime, timezone
from pathlib import Path

from ..config import PathsConfig
from ..service.controller import ServiceController
from ..store.filestore import FileStore
from .models import SnapshotMetadata

logger = logging.getLogger(__name__)

METADATA_FILE = "metadata.json"
DATABASE_FILE = "database.sqlite"
CACHE_DIR = "cache"


class SnapshotCapture:
    """Captures n8n persistent state (database file + workflow cache)."""

    def __init__(
        self,
        store: FileStore,
        paths: PathsConfig,
        controller: ServiceController,
    ):
        """
        Initialize snapshot capture.

        Args:
            store: FileStore rooted at the data directory
            paths: Layout of live state and snapshot storage
            controller: Service controller, queried for metadata
        """
        self.store = store
        self.paths = paths
        self.controller = controller

    def capture(
        self,
        snapshot_id: str,
        slot: Path,
        created_at: datetime,
        trigger: str = "manual",
    ) -> SnapshotMetadata:
        """
        Copy live state into slot and write its metadata record.

        Order is database, cache, metadata. A failure part-way leaves the slot
        partially populated; nothing is rolled back.

        Args:
            snapshot_id: Id of the new snapshot
            slot: Empty directory that receives the copies
            created_at: Capture time (UTC)
            trigger: How the snapshot was triggered

        Returns:
            SnapshotMetadata describing what was captured
        """
        metadata = SnapshotMetadata(
            id=snapshot_id,
            created_at=created_at.astimezone(timezone.utc).isoformat(),
            n8n_version=self.controller.version(),
            container_id=self.controller.container_id(),
            uptime=self.controller.uptime(),
            trigger=trigger,
        )

        if self.paths.database_file.is_file():
            logger.info("Backing up database...")
            self.store.copy_file(self.paths.database_file, slot / DATABASE_FILE)
            metadata.has_database = True
        else:
            logger.info("No live database at %s, skipping", self.paths.database_file)

        if self.paths.cache_dir.is_dir():
            logger.info("Caching workflow data...")
            self.store.copy_tree(self.paths.cache_dir, slot / CACHE_DIR)
            metadata.has_cache = True

        self.write_metadata(slot, metadata)
        return metadata

    def write_metadata(self, slot: Path, metadata: SnapshotMetadata) -> None:
        text = json.dumps(metadata.to_dict(), indent=2) + "\n"
        self.store.write_text(slot / METADATA_FILE, text)
