"""Typed runtime configuration built from the settings dict and environment."""

from __future__ import annotations

import os
from dataclasses import dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .store import SettingsStore, default_settings

API_KEY_ENV_VARS = ("GEMINI_API_KEY", "API_KEY")


def api_key_from_env(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    env = os.environ if environ is None else environ
    for name in API_KEY_ENV_VARS:
        value = (env.get(name) or "").strip()
        if value:
            return value
    return None


def _section(settings: Mapping[str, Any], name: str) -> Dict[str, Any]:
    value = settings.get(name)
    return dict(value) if isinstance(value, dict) else {}


@dataclass(frozen=True)
class ScanConfig:
    endpoint: str
    model: str
    timeout_s: float
    max_dimension: int
    jpeg_quality: int
    step_interval_ms: int
    api_key: Optional[str] = None

    @classmethod
    def from_settings(
        cls,
        settings: Mapping[str, Any],
        environ: Optional[Mapping[str, str]] = None,
    ) -> "ScanConfig":
        defaults = default_settings()
        analysis = {**defaults["analysis"], **_section(settings, "analysis")}
        pre = {**defaults["preprocess"], **_section(settings, "preprocess")}
        ui = {**defaults["ui"], **_section(settings, "ui")}

        return cls(
            endpoint=str(analysis["endpoint"]),
            model=str(analysis["model"]),
            timeout_s=float(analysis["timeout_s"]),
            max_dimension=int(pre["max_dimension"]),
            jpeg_quality=int(pre["jpeg_quality"]),
            step_interval_ms=int(ui["step_interval_ms"]),
            api_key=api_key_from_env(environ),
        )

    def __post_init__(self) -> None:
        if not 1 <= self.jpeg_quality <= 95:
            raise ValueError(f"jpeg_quality must be within 1..95, got {self.jpeg_quality}")
        if self.max_dimension < 1:
            raise ValueError(f"max_dimension must be positive, got {self.max_dimension}")
        if self.timeout_s <= 0:
            raise ValueError(f"timeout_s must be positive, got {self.timeout_s}")
        if self.step_interval_ms < 1:
            raise ValueError(f"step_interval_ms must be positive, got {self.step_interval_ms}")

    def with_overrides(self, **overrides: Any) -> "ScanConfig":
        return replace(self, **{k: v for k, v in overrides.items() if v is not None})


def load_config(store: Optional[SettingsStore] = None) -> ScanConfig:
    store = store or SettingsStore()
    return ScanConfig.from_settings(store.load())
