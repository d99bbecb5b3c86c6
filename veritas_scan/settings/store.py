from __future__ import annotations

import json
import os
import time
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict


def _veritas_home() -> Path:
    # Keep consistent with the log file location (scan.log)
    return Path.home() / ".veritas_scan"


def default_settings() -> Dict[str, Any]:
    return {
        "schema_version": 1,
        "last_opened_at": None,
        # Remote analysis service
        "analysis": {
            "endpoint": "https://generativelanguage.googleapis.com/v1beta",
            "model": "gemini-2.5-flash",
            "timeout_s": 120.0,
        },
        # Media preprocessing
        "preprocess": {
            "max_dimension": 1024,
            "jpeg_quality": 85,
        },
        # Scanning screen
        "ui": {
            "step_interval_ms": 500,
        },
        # Last export directory
        "export_dir": None,
    }


def _merge(base: Dict[str, Any], data: Dict[str, Any]) -> Dict[str, Any]:
    merged = dict(base)
    for key, value in data.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _merge(merged[key], value)
        else:
            merged[key] = value
    return merged


@dataclass
class SettingsStore:
    """Load/save persistent settings.

    Settings are a plain dict; keys unknown to this version are kept on
    load and save. API keys are never stored.
    """

    filename: str = "settings.json"
    home: Path = field(default_factory=_veritas_home)

    def path(self) -> Path:
        return self.home / self.filename

    def load(self) -> Dict[str, Any]:
        path = self.path()
        base = default_settings()

        if not path.exists():
            return base

        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            if not isinstance(data, dict):
                raise ValueError("settings.json root is not an object")
            # merge defaults (do not delete unknown keys)
            return _merge(base, data)
        except (OSError, ValueError):
            # Backup corrupted file
            try:
                ts = time.strftime("%Y%m%d_%H%M%S")
                bak = path.with_name(f"{path.name}.bak.{ts}")
                bak.write_bytes(path.read_bytes())
            except OSError:
                # Best-effort backup
                pass
            return base

    def save(self, data: Dict[str, Any]) -> None:
        self.home.mkdir(parents=True, exist_ok=True)
        path = self.path()
        tmp = path.with_suffix(path.suffix + ".tmp")

        # Shallow copy so we can stamp timestamp without mutating caller
        payload = dict(data or {})
        payload.setdefault("schema_version", 1)
        payload["last_opened_at"] = time.strftime("%Y-%m-%dT%H:%M:%S")
        for secret in ("api_key", "apiKey"):
            payload.pop(secret, None)

        # Atomic write
        tmp.write_text(json.dumps(payload, indent=2, sort_keys=True), encoding="utf-8")
        os.replace(tmp, path)

    # Convenience helpers -------------------------------------------------
    def get(self, key: str, default: Any = None) -> Any:
        return self.load().get(key, default)

    def update(self, patch: Dict[str, Any]) -> None:
        self.save(_merge(self.load(), patch))
