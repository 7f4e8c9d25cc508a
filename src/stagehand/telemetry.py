"""Telemetry logging for staging runs.

Events are appended to a JSONL file under the scratch directory.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any

DEFAULT_TELEMETRY_PATH = ".stagehand/telemetry.jsonl"


@dataclass(frozen=True)
class TelemetrySink:
    """Thin wrapper around JSONL telemetry.

    Event schema:
      {"timestamp": <float>, "run_id": <str>, "type": <str>, "data": <object>}

    Event types:
        - run_started: staging run begins, before the snapshot is saved
        - snapshot_saved: backup stash and patches written
        - task_finished: one task command ran
        - modifications_applied: task edits re-staged, developer edits re-applied
        - snapshot_restored: working copy reset to the backup
        - snapshot_deleted: backup stash dropped
        - run_completed: run ends with data.status
    """

    enabled: bool
    path: Path

    def log(self, run_id: str, event_type: str, data: dict[str, Any]) -> None:
        if not self.enabled:
            return

        self.path.parent.mkdir(parents=True, exist_ok=True)
        entry = {
            "timestamp": time.time(),
            "run_id": run_id,
            "type": event_type,
            "data": data,
        }

        with open(self.path, "a", encoding="utf-8") as f:
            f.write(json.dumps(entry, ensure_ascii=False) + "\n")


def prune_telemetry_file(telemetry_path: Path, retention_days: int) -> None:
    """Delete telemetry file if it is older than retention_days (mtime-based)."""
    if retention_days <= 0:
        return
    try:
        if not telemetry_path.exists():
            return
        cutoff = time.time() - (retention_days * 86400)
        if telemetry_path.stat().st_mtime < cutoff:
            telemetry_path.unlink(missing_ok=True)
    except OSError:
        # Best-effort; telemetry should never break a staging run.
        return


def disabled_sink() -> TelemetrySink:
    return TelemetrySink(enabled=False, path=Path(DEFAULT_TELEMETRY_PATH))
