"""Persistent settings for Veritas Scan.

Settings live in a single versioned JSON file under the user's home folder.

Design goals:
  * Atomic writes (no corrupted settings on crash)
  * Resilient loads (backup and fall back to defaults)
  * No secrets (the API key only comes from the environment)
"""

from .config import ScanConfig, api_key_from_env, load_config
from .store import SettingsStore, default_settings

__all__ = ["SettingsStore", "ScanConfig", "api_key_from_env", "default_settings", "load_config"]
