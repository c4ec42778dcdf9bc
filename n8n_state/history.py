"""
Execution history kept in the session cache.

Records are appended to session-cache/execution-history.json as a JSON array:

[
  {"workflow": "daily-report", "status": "success", "duration_ms": 1250,
   "timestamp": "2025-11-28T14:05:30Z"}
]
"""

import json
import logging
from dataclasses import dataclass, asdict, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Dict, Any

from .errors import StorageError
from .store.filestore import FileStore

logger = logging.getLogger(__name__)

HISTORY_FILE = "execution-history.json"
MAX_RECORDS = 1000


@dataclass
class ExecutionRecord:
    workflow: str
    status: str
    duration_ms: int
    timestamp: str = ""

    def __post_init__(self):
        if not self.timestamp:
            self.timestamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


@dataclass
class HistorySummary:
    total: int = 0
    successes: int = 0
    failures: int = 0
    recent: List[ExecutionRecord] = field(default_factory=list)


class ExecutionHistory:
    """Append-only (bounded) log of workflow executions."""

    def __init__(self, store: FileStore, cache_dir: Path):
        self.store = store
        self.path = store.resolve(cache_dir) / HISTORY_FILE

    def load(self) -> List[ExecutionRecord]:
        if not self.path.is_file():
            return []
        try:
            data = json.loads(self.store.read_text(self.path))
        except (StorageError, ValueError) as e:
            logger.warning("Execution history is unreadable, ignoring: %s", e)
            return []
        records = []
        for item in data if isinstance(data, list) else []:
            try:
                records.append(ExecutionRecord(
                    workflow=str(item["workflow"]),
                    status=str(item["status"]),
                    duration_ms=int(item.get("duration_ms", 0)),
                    timestamp=str(item.get("timestamp", "")),
                ))
            except (KeyError, TypeError, ValueError):
                continue
        return records

    def _save(self, records: List[ExecutionRecord]) -> None:
        payload: List[Dict[str, Any]] = [asdict(r) for r in records]
        self.store.write_text(self.path, json.dumps(payload, indent=2) + "\n")

    def record(self, workflow: str, status: str, duration_ms: int) -> ExecutionRecord:
        """Append one execution record."""
        entry = ExecutionRecord(workflow=workflow, status=status, duration_ms=duration_ms)
        records = self.load()
        records.append(entry)
        self._save(records)
        logger.info("Recorded execution: %s -> %s", workflow, status)
        return entry

    def summary(self, recent: int = 20) -> HistorySummary:
        records = self.load()
        return HistorySummary(
            total=len(records),
            successes=sum(1 for r in records if r.status == "success"),
            failures=sum(1 for r in records if r.status == "failed"),
            recent=records[-recent:] if recent else [],
        )

    def trim(self, max_records: int = MAX_RECORDS) -> int:
        """
        Keep only the newest max_records entries.

        Returns:
            Number of records dropped
        """
        records = self.load()
        excess = len(records) - max_records
        if excess <= 0:
            return 0
        self._save(records[excess:])
        return excess
