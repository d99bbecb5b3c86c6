"""JSON report export for single results, batches and history.

Reports are written atomically (temp file + ``os.replace``) so a crash never
leaves a half-written document behind.
"""

from __future__ import annotations

import json
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Iterable, List, Optional, Sequence

from .results import AnalysisResult, BatchAnalysisResult, HistoryItem


@dataclass(frozen=True)
class BatchSummary:
    total: int
    synthetic: int
    authentic: int
    synthetic_pct: int

    def to_dict(self) -> dict:
        return asdict(self)


def summarize_batch(results: Sequence[BatchAnalysisResult]) -> BatchSummary:
    total = len(results)
    synthetic = sum(1 for r in results if r.result.is_ai)
    pct = round(synthetic / total * 100) if total else 0
    return BatchSummary(total=total, synthetic=synthetic, authentic=total - synthetic, synthetic_pct=pct)


def default_result_filename(result: AnalysisResult) -> str:
    return f"VERITAS_ANALYSIS_{result.timestamp.split('T')[0]}.json"


def default_batch_filename(now: Optional[float] = None) -> str:
    stamp = time.strftime("%Y%m%dT%H%M%S", time.gmtime(now))
    return f"VERITAS_BATCH_REPORT_{stamp}.json"


def batch_to_wire(results: Iterable[BatchAnalysisResult]) -> List[dict]:
    return [r.to_wire() for r in results]


def history_to_wire(items: Iterable[HistoryItem]) -> List[dict]:
    return [i.to_wire() for i in items]


def write_json(path: Path, payload: Any) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + ".tmp")
    tmp.write_text(json.dumps(payload, indent=2), encoding="utf-8")
    os.replace(tmp, path)
    return path


def _target(dest: Path, default_name: str) -> Path:
    dest = Path(dest)
    return dest / default_name if dest.is_dir() else dest


def write_result_report(result: AnalysisResult, dest: Path) -> Path:
    """Write one result verbatim. ``dest`` may be a directory or a file path."""

    return write_json(_target(dest, default_result_filename(result)), result.to_wire())


def write_batch_report(results: Sequence[BatchAnalysisResult], dest: Path) -> Path:
    """Write the batch result list verbatim (same shape the UI exports)."""

    return write_json(_target(dest, default_batch_filename()), batch_to_wire(results))


def write_history_report(items: Sequence[HistoryItem], dest: Path) -> Path:
    stamp = time.strftime("%Y%m%dT%H%M%S", time.gmtime())
    return write_json(_target(dest, f"VERITAS_HISTORY_{stamp}.json"), history_to_wire(items))


__all__ = [
    "BatchSummary",
    "summarize_batch",
    "default_result_filename",
    "default_batch_filename",
    "batch_to_wire",
    "history_to_wire",
    "write_json",
    "write_result_report",
    "write_batch_report",
    "write_history_report",
]
