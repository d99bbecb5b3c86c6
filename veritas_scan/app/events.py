"""Simple event registry decoupling the controller from any front end."""

from __future__ import annotations

from typing import Any, Callable, Dict, List


class AppEvents:
    """Small callback-based event hub.

    Callbacks run on the thread that applies controller state (the caller of
    ``ScanController.poll``), except ``upload_started`` which fires from
    ``submit_files``.
    """

    def __init__(self) -> None:
        self._listeners: Dict[str, List[Callable[..., None]]] = {
            "view_changed": [],
            "status_changed": [],
            "result_ready": [],
            "batch_progress": [],
            "history_appended": [],
            "alert": [],
            "upload_started": [],
        }

    def on_view_changed(self, callback: Callable[[Any], None]) -> None:
        self._listeners["view_changed"].append(callback)

    def on_status_changed(self, callback: Callable[[Any], None]) -> None:
        self._listeners["status_changed"].append(callback)

    def on_result_ready(self, callback: Callable[[Any], None]) -> None:
        self._listeners["result_ready"].append(callback)

    def on_batch_progress(self, callback: Callable[[int, int], None]) -> None:
        self._listeners["batch_progress"].append(callback)

    def on_history_appended(self, callback: Callable[[Any], None]) -> None:
        self._listeners["history_appended"].append(callback)

    def on_alert(self, callback: Callable[[str], None]) -> None:
        self._listeners["alert"].append(callback)

    def on_upload_started(self, callback: Callable[[], None]) -> None:
        self._listeners["upload_started"].append(callback)

    def off_upload_started(self, callback: Callable[[], None]) -> None:
        listeners = self._listeners["upload_started"]
        if callback in listeners:
            listeners.remove(callback)

    def emit_view_changed(self, view: Any) -> None:
        for callback in self._listeners["view_changed"]:
            callback(view)

    def emit_status_changed(self, status: Any) -> None:
        for callback in self._listeners["status_changed"]:
            callback(status)

    def emit_result_ready(self, result: Any) -> None:
        for callback in self._listeners["result_ready"]:
            callback(result)

    def emit_batch_progress(self, completed: int, total: int) -> None:
        for callback in self._listeners["batch_progress"]:
            callback(completed, total)

    def emit_history_appended(self, item: Any) -> None:
        for callback in self._listeners["history_appended"]:
            callback(item)

    def emit_alert(self, message: str) -> None:
        for callback in self._listeners["alert"]:
            callback(message)

    def emit_upload_started(self) -> None:
        for callback in self._listeners["upload_started"]:
            callback()


__all__ = ["AppEvents"]
