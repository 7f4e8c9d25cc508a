from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class StatusWindow:
    seconds: float


def _iter_events(path: Path) -> list[dict[str, Any]]:
    if not path.exists():
        return []
    events: list[dict[str, Any]] = []
    with open(path, encoding="utf-8") as f:
        for ln in f:
            ln = ln.strip()
            if not ln:
                continue
            try:
                events.append(json.loads(ln))
            except json.JSONDecodeError:
                continue
    return events


def _p(values: list[float], pct: float) -> float | None:
    if not values:
        return None
    s = sorted(values)
    if pct <= 0:
        return float(s[0])
    if pct >= 100:
        return float(s[-1])
    idx = int(round((pct / 100.0) * (len(s) - 1)))
    return float(s[max(0, min(len(s) - 1, idx))])


def compute_status(telemetry_path: Path, *, window: StatusWindow | None = None) -> dict[str, Any]:
    """Compute run metrics from telemetry.jsonl (best-effort)."""
    window = window or StatusWindow(seconds=3600.0)
    now = time.time()
    cutoff = now - float(window.seconds)

    events = _iter_events(telemetry_path)
    recent = [e for e in events if float(e.get("timestamp", 0.0) or 0.0) >= cutoff]

    completed = [e for e in recent if e.get("type") == "run_completed"]
    succeeded = [e for e in completed if (e.get("data") or {}).get("status") == "success"]
    failed = [e for e in completed if (e.get("data") or {}).get("status") == "failed"]
    restores = [e for e in recent if e.get("type") == "snapshot_restored"]

    task_failures: dict[str, int] = {}
    for e in recent:
        if e.get("type") != "task_finished":
            continue
        data = e.get("data") or {}
        if data.get("exit_code", 0) != 0:
            name = str(data.get("name", "unknown"))
            task_failures[name] = task_failures.get(name, 0) + 1

    # Run latencies from run_started -> run_completed (match by run_id).
    starts: dict[str, float] = {}
    latencies: list[float] = []
    for e in recent:
        rid = str(e.get("run_id") or "")
        ts = float(e.get("timestamp", 0.0) or 0.0)
        if e.get("type") == "run_started":
            starts[rid] = ts
        elif e.get("type") == "run_completed" and rid in starts:
            latencies.append(max(0.0, ts - starts[rid]))

    denom = len(succeeded) + len(failed)
    last_run = next((e for e in reversed(events) if e.get("type") == "run_completed"), None)

    return {
        "window_seconds": window.seconds,
        "telemetry_path": str(telemetry_path),
        "runs": len(completed),
        "succeeded": len(succeeded),
        "failed": len(failed),
        "success_rate": (len(succeeded) / denom) if denom else None,
        "restores": len(restores),
        "task_failures": task_failures,
        "run_latency_s_p50": _p(latencies, 50.0),
        "run_latency_s_p95": _p(latencies, 95.0),
        "last_run": last_run,
    }
