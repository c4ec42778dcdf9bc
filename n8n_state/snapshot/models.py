"""
Data models for the snapshot/restore system.
"""

from dataclasses import dataclass, field, asdict, fields
from datetime import datetime, timezone
from typing import Dict, List, Optional, Any

# Snapshot ids sort lexicographically in creation order
SNAPSHOT_ID_FORMAT = "%Y%m%d_%H%M%S"


def make_snapshot_id(when: datetime) -> str:
    """Snapshot id for a moment in time (UTC, second precision)."""
    if when.tzinfo is not None:
        when = when.astimezone(timezone.utc)
    return when.strftime(SNAPSHOT_ID_FORMAT)


def is_snapshot_id(value: str) -> bool:
    try:
        datetime.strptime(value, SNAPSHOT_ID_FORMAT)
    except ValueError:
        return False
    return True


@dataclass
class SnapshotMetadata:
    """Metadata record stored next to a snapshot's copied files."""

    # Identity
    id: str
    created_at: str                        # ISO timestamp (UTC)

    # Service state at capture time
    n8n_version: str = "unknown"
    container_id: str = "unknown"
    uptime: str = "unknown"

    # What was copied
    has_database: bool = False
    has_cache: bool = False

    trigger: str = "manual"                # "manual", "scheduled"

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for JSON serialization."""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'SnapshotMetadata':
        """
        Create from dictionary, ignoring unknown keys.

        Raises:
            TypeError: data is not a mapping, or a field has the wrong type
        """
        if not isinstance(data, dict):
            raise TypeError(f"expected a JSON object, got {type(data).__name__}")
        values = {}
        for f in fields(cls):
            if f.name not in data:
                continue
            if not isinstance(data[f.name], f.type):
                raise TypeError(f"{f.name} must be {f.type.__name__}, got {data[f.name]!r}")
            values[f.name] = data[f.name]
        return cls(**values)


def parse_created_at(value: str) -> datetime:
    """
    Parse a recorded creation time; naive values are taken as UTC.

    Raises:
        ValueError: value is not an ISO 8601 timestamp
    """
    when = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return when


@dataclass
class SnapshotInfo:
    """Summary info for listing snapshots."""
    id: str
    created_at: str
    size_bytes: int
    has_database: bool
    has_cache: bool
    n8n_version: str = "unknown"


@dataclass
class SnapshotStats:
    """Aggregate view of the snapshot store."""
    total: int = 0
    with_database: int = 0
    with_cache: int = 0
    total_bytes: int = 0
    current_id: Optional[str] = None
    retention_days: int = 0
    sessions_dir: str = ""


@dataclass
class RestorePreview:
    """Preview of what restore would change."""
    snapshot_id: str
    replaces_database: bool = False
    replaces_cache: bool = False
    creates_pre_restore: bool = False
    service_running: bool = False
    database_bytes: int = 0
    cache_bytes: int = 0

    @property
    def total_changes(self) -> int:
        return int(self.replaces_database) + int(self.replaces_cache)


@dataclass
class RestoreResult:
    """Result of a restore operation."""
    snapshot_id: str
    database_restored: bool = False
    cache_restored: bool = False
    pre_restore_path: Optional[str] = None
    steps: List[str] = field(default_factory=list)

    @property
    def changes_applied(self) -> int:
        return int(self.database_restored) + int(self.cache_restored)


def format_size(num_bytes: int) -> str:
    """Human readable size (du -h style)."""
    if num_bytes < 1024:
        return f"{num_bytes}B"
    size = float(num_bytes)
    for unit in ("K", "M"):
        size /= 1024
        if size < 1024:
            return f"{size:.1f}{unit}"
    return f"{size / 1024:.1f}G"
