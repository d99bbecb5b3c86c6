from pathlib import Path


def test_app_layer_contains_no_ui_toolkit_or_transport_code():
    """The app layer drives state only; rendering and HTTP live elsewhere.

    This is a lightweight, grep-based regression test. If the app layer needs
    one of these terms for a label in the future, update the allowlist.
    """

    repo_root = Path(__file__).resolve().parents[1]
    app_dir = repo_root / "veritas_scan" / "app"
    assert app_dir.is_dir(), "app directory not found"

    forbidden = [
        "import tkinter",
        "from tkinter",
        "import requests",
        "from requests",
        "from pil",
        "import pil",
    ]

    for py in app_dir.rglob("*.py"):
        txt = py.read_text(encoding="utf-8", errors="ignore").lower()
        for token in forbidden:
            assert token not in txt, f"Found forbidden token '{token}' in app file: {py}"
