from __future__ import annotations

import json
import sys
import threading
from pathlib import Path

import pytest

from veritas_scan import cli


@pytest.fixture
def isolated_home(tmp_path: Path, monkeypatch):
    monkeypatch.setenv("HOME", str(tmp_path))
    monkeypatch.delenv("GEMINI_API_KEY", raising=False)
    monkeypatch.delenv("API_KEY", raising=False)
    monkeypatch.setattr(sys, "excepthook", sys.excepthook)
    monkeypatch.setattr(threading, "excepthook", threading.excepthook)
    return tmp_path


def test_no_arguments_prints_usage(isolated_home) -> None:
    assert cli.main([]) == 2


def test_files_without_api_key_are_rejected(isolated_home, capsys) -> None:
    img = isolated_home / "a.png"
    img.write_bytes(b"\x89PNG")
    assert cli.main([str(img), "--log-dir", str(isolated_home / "logs")]) == 2
    assert "No API key" in capsys.readouterr().err


def test_invalid_quality_is_rejected(isolated_home) -> None:
    assert cli.main(["--inject", "ai", "--quality", "0", "--log-dir", str(isolated_home / "logs")]) == 2


def test_bridge_injection_only_run(isolated_home, capsys) -> None:
    out_file = isolated_home / "history.json"
    code = cli.main(
        [
            "--inject",
            '{"isAI": true, "score": 91, "verdict": "DETECTED: DALL-E 3 SIGNATURE"}',
            "--inject",
            "authentic camera photo",
            "--history-out",
            str(out_file),
            "--log-dir",
            str(isolated_home / "logs"),
        ]
    )

    assert code == 0
    out = capsys.readouterr().out
    assert "DETECTED: DALL-E 3 SIGNATURE" in out
    assert "AUTHENTIC MEDIA" in out
    assert "Session history: 2 scans, 1 synthetic" in out

    data = json.loads(out_file.read_text(encoding="utf-8"))
    assert [d["score"] for d in data] == [91, 5]


def test_save_settings_persists_overrides(isolated_home) -> None:
    code = cli.main(["--inject", "x", "--model", "gemini-custom", "--save-settings", "--log-dir", str(isolated_home / "logs")])
    assert code == 0

    saved = json.loads((isolated_home / ".veritas_scan" / "settings.json").read_text(encoding="utf-8"))
    assert saved["analysis"]["model"] == "gemini-custom"
