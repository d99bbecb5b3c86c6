from __future__ import annotations

import json
from pathlib import Path

from veritas_scan.export import (
    default_batch_filename,
    default_result_filename,
    summarize_batch,
    write_batch_report,
    write_history_report,
    write_result_report,
)
from veritas_scan.results import BatchAnalysisResult, HistoryItem

from .conftest import make_result, make_wire


def _batch():
    return [
        BatchAnalysisResult(file_name="a.png", result=make_result(isAI=True), thumbnail="file:///a.png"),
        BatchAnalysisResult(file_name="b.png", result=make_result(isAI=False), thumbnail=""),
        BatchAnalysisResult(file_name="c.png", result=make_result(isAI=True), thumbnail=""),
    ]


def test_summarize_batch() -> None:
    s = summarize_batch(_batch())
    assert (s.total, s.synthetic, s.authentic, s.synthetic_pct) == (3, 2, 1, 67)
    assert summarize_batch([]).synthetic_pct == 0


def test_result_report_into_directory(tmp_path: Path) -> None:
    result = make_result()
    out = write_result_report(result, tmp_path)

    assert out.name == default_result_filename(result)
    assert out.name.startswith("VERITAS_ANALYSIS_") and out.suffix == ".json"
    data = json.loads(out.read_text(encoding="utf-8"))
    assert data["verdict"] == make_wire()["verdict"]
    assert data["timestamp"] == result.timestamp
    assert not list(tmp_path.glob("*.tmp"))


def test_batch_report_to_explicit_file(tmp_path: Path) -> None:
    dest = tmp_path / "reports" / "batch.json"
    out = write_batch_report(_batch(), dest)

    assert out == dest
    data = json.loads(dest.read_text(encoding="utf-8"))
    assert [d["fileName"] for d in data] == ["a.png", "b.png", "c.png"]
    assert data[0]["thumbnail"] == "file:///a.png"
    assert data[1]["result"]["isAI"] is False


def test_history_report(tmp_path: Path) -> None:
    items = [HistoryItem(result=make_result(), thumbnail="x")]
    out = write_history_report(items, tmp_path)

    data = json.loads(out.read_text(encoding="utf-8"))
    assert data[0]["id"] == items[0].id
    assert data[0]["thumbnail"] == "x"


def test_default_batch_filename_is_stamped() -> None:
    assert default_batch_filename(0) == "VERITAS_BATCH_REPORT_19700101T000000.json"
