"""
Retention sweeps - age-based deletion of snapshots, cache entries and logs.

The predicate is purely age based: an entry is removed when
age_in_days(entry) > retention_days. Nothing is asked; pass dry_run=True to
get the list without deleting.
"""

import logging
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Dict, Iterable, List, Optional

from .config import PathsConfig
from .history import ExecutionHistory
from .snapshot.models import is_snapshot_id
from .store.filestore import FileStore

logger = logging.getLogger(__name__)

SWEEP_KINDS = ("snapshots", "cache", "logs")

LOG_PATTERNS = ("*.log", "*.json")
BACKUP_PATTERN = "n8n_backup_*.tar.gz"


@dataclass
class SweepResult:
    """Outcome of one sweep."""
    kind: str
    retention_days: float
    dry_run: bool = False
    candidates: List[Path] = field(default_factory=list)
    removed: List[Path] = field(default_factory=list)

    @property
    def count(self) -> int:
        """Number of entries actually removed (0 on a dry run)."""
        return len(self.removed)


class RetentionSweeper:
    """Applies the age threshold to one kind of target at a time."""

    def __init__(
        self,
        store: FileStore,
        paths: PathsConfig,
        clock: Callable[[], float] = time.time,
    ):
        self.store = store
        self.paths = paths
        self.clock = clock
        self._targets: Dict[str, Callable[[], List[Path]]] = {
            "snapshots": self._snapshot_entries,
            "cache": self._cache_entries,
            "logs": self._log_entries,
        }

    def sweep(
        self,
        kind: str,
        retention_days: float,
        dry_run: bool = False,
        exclude: Optional[Iterable[Path]] = None,
    ) -> SweepResult:
        """
        Remove entries of one kind older than retention_days.

        Args:
            kind: "snapshots", "cache" or "logs"
            retention_days: Age threshold; entries strictly older are removed
            dry_run: Only collect candidates
            exclude: Paths never removed (e.g. a snapshot just created)

        Returns:
            SweepResult; an empty or missing target yields count 0
        """
        if kind not in self._targets:
            raise ValueError(f"unknown sweep target '{kind}', expected one of {', '.join(SWEEP_KINDS)}")
        if retention_days < 0:
            raise ValueError("retention days must be zero or more")

        keep = {Path(p) for p in (exclude or [])}
        now = self.clock()
        result = SweepResult(kind=kind, retention_days=retention_days, dry_run=dry_run)

        for entry in self._targets[kind]():
            if entry in keep:
                continue
            if self.store.age_in_days(entry, now=now) > retention_days:
                result.candidates.append(entry)

        if dry_run:
            logger.info("Dry run: %d %s entr(ies) older than %s days",
                        len(result.candidates), kind, retention_days)
            return result

        for entry in result.candidates:
            if self.store.remove(entry):
                result.removed.append(entry)
                logger.info("Removed: %s", entry.name)

        if kind == "cache":
            history = ExecutionHistory(self.store, self.paths.session_cache_dir)
            dropped = history.trim()
            if dropped:
                logger.info("Trimmed %d old execution record(s)", dropped)

        return result

    # =========================================================================
    # Targets
    # =========================================================================

    def _snapshot_entries(self) -> List[Path]:
        return [
            p for p in self.store.list_matching(self.paths.snapshots_dir)
            if p.is_dir() and is_snapshot_id(p.name)
        ]

    def _cache_entries(self) -> List[Path]:
        return self.store.list_matching(self.paths.session_cache_dir)

    def _log_entries(self) -> List[Path]:
        entries = []
        for pattern in LOG_PATTERNS:
            entries.extend(p for p in self.store.list_matching(self.paths.logs_dir, pattern)
                           if p.is_file())
        entries.extend(p for p in self.store.list_matching(self.paths.backups_dir, BACKUP_PATTERN)
                       if p.is_file())
        return sorted(entries)
