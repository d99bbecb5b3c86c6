"""Application controller (no UI toolkit code).

The controller owns the view/status machines, the current file/result slot,
the batch lists and the history ledger. Long-running work (preprocessing and
the remote call) runs on a worker which reports back through a queue; every
state change is applied by :meth:`ScanController.poll`, so all mutations
happen on the thread that polls. A UI calls ``poll`` from its event loop
timer, the CLI through :meth:`ScanController.wait`.
"""

from __future__ import annotations

import itertools
import logging
import queue
import threading
import time
from functools import partial
from typing import Any, Callable, Iterable, Optional, Tuple

from ..preprocess import EncodedMedia, MediaFile, preprocess_media
from ..remote.client import AnalysisClient, AnalysisRequestError
from ..results import AnalysisResult, BatchAnalysisResult
from .batch import BatchRunner, batch_progress
from .events import AppEvents
from .history import HistoryLedger
from .machine import InvalidTransitionError, ScanCursor, StatusMachine, ViewEvent, ViewMachine
from .state import AnalysisStatus, AppState, FileData, ViewState

log = logging.getLogger(__name__)

REMEDIATION_HINT = "Try a smaller image."

Spawn = Callable[[Callable[[], None]], None]


def spawn_daemon(target: Callable[[], None]) -> None:
    threading.Thread(target=target, daemon=True, name="veritas-scan-worker").start()


class ScanController:
    def __init__(
        self,
        client: AnalysisClient,
        *,
        events: Optional[AppEvents] = None,
        history: Optional[HistoryLedger] = None,
        preprocess: Optional[Callable[[MediaFile], EncodedMedia]] = None,
        spawn: Optional[Spawn] = None,
        cursor: Optional[ScanCursor] = None,
    ):
        self.client = client
        self.events = events or AppEvents()
        self.history = history or HistoryLedger()
        self.state = AppState()
        self.view_machine = ViewMachine(cursor)
        self.status_machine = StatusMachine()
        self._preprocess = preprocess or preprocess_media
        self._spawn = spawn or spawn_daemon
        self._inbox: "queue.Queue[Tuple[str, Optional[int], Any]]" = queue.Queue()
        self._job_ids = itertools.count(1)
        self._active_job: Optional[int] = None
        self._cancel: Optional[threading.Event] = None

    @classmethod
    def from_config(cls, config, client: Optional[AnalysisClient] = None, **kwargs: Any) -> "ScanController":
        kwargs.setdefault(
            "preprocess",
            partial(preprocess_media, max_dimension=config.max_dimension, quality=config.jpeg_quality),
        )
        kwargs.setdefault("cursor", ScanCursor(interval_s=config.step_interval_ms / 1000.0))
        return cls(client or AnalysisClient.from_config(config), **kwargs)

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------
    @property
    def view(self) -> ViewState:
        return self.view_machine.state

    @property
    def status(self) -> AnalysisStatus:
        return self.status_machine.state

    @property
    def busy(self) -> bool:
        return self._active_job is not None

    @property
    def scan_text(self) -> str:
        if self.view is not ViewState.SCANNING:
            return ""
        return self.view_machine.cursor.text

    @property
    def batch_progress(self) -> float:
        return batch_progress(self.state.batch_completed, len(self.state.batch_queue))

    # ------------------------------------------------------------------
    # User operations
    # ------------------------------------------------------------------
    def submit_files(self, files: Iterable[MediaFile]) -> Optional[int]:
        """Start a single scan (one file) or a batch (two or more).

        Returns the job id, or None when ``files`` is empty.
        """

        files = list(files)
        if not files:
            return None

        event = ViewEvent.START_SINGLE if len(files) == 1 else ViewEvent.START_BATCH
        if not self.view_machine.can_fire(event):
            raise InvalidTransitionError(f"Cannot start a scan from {self.view.value}; reset first")

        job = next(self._job_ids)
        self._active_job = job
        self._cancel = threading.Event()

        if len(files) == 1:
            media = files[0]
            log.info("Single scan #%d: %s (%s)", job, media.name, media.mime_type)
            self._fire(event)
            self._set_status(AnalysisStatus.UPLOADING)
            self.events.emit_upload_started()
            self._spawn(partial(self._run_single, job, media))
        else:
            log.info("Batch scan #%d: %d files", job, len(files))
            self.state.batch_queue = list(files)
            self.state.batch_results = []
            self.state.batch_completed = 0
            self._fire(event)
            self._set_status(AnalysisStatus.UPLOADING)
            self._spawn(partial(self._run_batch, job, files, self._cancel))
        return job

    def reset(self) -> None:
        """Back to HOME with an empty slot; history is kept."""

        self._supersede("reset")
        self.state.clear()
        self._set_status(AnalysisStatus.IDLE)
        self._fire(ViewEvent.RESET)

    def open_dashboard(self) -> None:
        self._fire(ViewEvent.OPEN_DASHBOARD)

    def open_settings(self) -> None:
        self._fire(ViewEvent.OPEN_SETTINGS)

    def go_back(self) -> None:
        self._fire(ViewEvent.GO_BACK)

    def deliver_bridge_result(self, result: AnalysisResult) -> None:
        """Queue a result pushed by the embedding host (thread-safe)."""

        self._post("inject", None, result)

    # ------------------------------------------------------------------
    # Event loop integration
    # ------------------------------------------------------------------
    def poll(self) -> int:
        """Apply every pending worker message; returns how many were applied."""

        applied = 0
        while True:
            try:
                kind, job, payload = self._inbox.get_nowait()
            except queue.Empty:
                return applied
            self._apply(kind, job, payload)
            applied += 1

    def wait(self, timeout: Optional[float] = None, interval: float = 0.1) -> bool:
        """Poll until no job is active. Returns False on timeout."""

        deadline = None if timeout is None else time.monotonic() + timeout
        while True:
            self.poll()
            if not self.busy:
                return True
            if deadline is not None and time.monotonic() >= deadline:
                return False
            time.sleep(interval)

    # ------------------------------------------------------------------
    # Worker side (never touches state directly)
    # ------------------------------------------------------------------
    def _post(self, kind: str, job: Optional[int], payload: Any = None) -> None:
        self._inbox.put((kind, job, payload))

    def _prepare(self, media: MediaFile) -> FileData:
        encoded = self._preprocess(media)
        return FileData(
            file=media,
            preview_url=media.preview_uri(),
            mime_type=encoded.mime_type,
            payload=encoded.payload,
        )

    def _run_single(self, job: int, media: MediaFile) -> None:
        try:
            file_data = self._prepare(media)
            self._post("file", job, file_data)
            result = self.client.analyze(file_data.payload, file_data.mime_type)
        except AnalysisRequestError as e:
            self._post("failed", job, e)
        except Exception as e:
            log.exception("Unexpected failure while scanning %s", media.name)
            self._post("failed", job, e)
        else:
            self._post("result", job, (result, file_data.preview_url))

    def _scan_batch_item(self, job: int, media: MediaFile) -> Tuple[FileData, AnalysisResult]:
        self._post("status", job, AnalysisStatus.UPLOADING)
        file_data = self._prepare(media)
        self._post("status", job, AnalysisStatus.ANALYZING)
        return file_data, self.client.analyze(file_data.payload, file_data.mime_type)

    def _run_batch(self, job: int, files: Iterable[MediaFile], cancel: threading.Event) -> None:
        runner = BatchRunner(partial(self._scan_batch_item, job))
        try:
            runner.run(
                files,
                on_result=lambda item: self._post("batch_item", job, item),
                on_progress=lambda completed, remaining: self._post("batch_step", job, (completed, remaining)),
                cancel_event=cancel,
            )
        finally:
            self._post("batch_done", job)

    # ------------------------------------------------------------------
    # Controller side
    # ------------------------------------------------------------------
    def _fire(self, event: ViewEvent) -> None:
        before = self.view
        after = self.view_machine.fire(event)
        if after is not before:
            self.events.emit_view_changed(after)

    def _set_status(self, status: AnalysisStatus) -> None:
        if status is self.status:
            return
        self.status_machine.move(status)
        self.events.emit_status_changed(status)

    def _supersede(self, reason: str) -> None:
        if self._active_job is None:
            return
        log.info("Job #%d superseded by %s", self._active_job, reason)
        if self._cancel is not None:
            self._cancel.set()
        self._active_job = None
        self._cancel = None

    def _record(self, result: AnalysisResult, thumbnail: str) -> None:
        item = self.history.append(result, thumbnail)
        self.events.emit_history_appended(item)

    def _apply(self, kind: str, job: Optional[int], payload: Any) -> None:
        stale = job is not None and job != self._active_job

        # Completed analyses always reach the history, even from a superseded job.
        if kind == "result":
            self._record(*payload)
        elif kind == "batch_item":
            self._record(payload.result, payload.thumbnail)

        if kind == "inject":
            self._apply_injection(payload)
            return
        if stale:
            log.debug("Dropping %s message from superseded job #%s", kind, job)
            return

        if kind == "status":
            self._set_status(payload)
        elif kind == "file":
            self.state.current_file = payload
            self._set_status(AnalysisStatus.ANALYZING)
        elif kind == "result":
            result, _thumbnail = payload
            self.state.current_result = result
            self._active_job = None
            self._set_status(AnalysisStatus.COMPLETE)
            self._fire(ViewEvent.SCAN_DONE)
            self.events.emit_result_ready(result)
        elif kind == "failed":
            self._active_job = None
            self._set_status(AnalysisStatus.ERROR)
            self._fire(ViewEvent.SCAN_FAILED)
            log.error("Analysis failed: %s", payload)
            self.events.emit_alert(f"Analysis Error: {payload}. {REMEDIATION_HINT}")
        elif kind == "batch_item":
            self.state.batch_results.append(payload)
        elif kind == "batch_step":
            completed, remaining = payload
            if self.state.batch_queue:
                self.state.batch_queue.pop(0)
            self.state.batch_completed = completed
            self.events.emit_batch_progress(completed, completed + remaining)
        elif kind == "batch_done":
            self._active_job = None
            self._cancel = None
            self._set_status(AnalysisStatus.COMPLETE)
            self._fire(ViewEvent.BATCH_DONE)
            log.info(
                "Batch finished: %d/%d files analyzed",
                len(self.state.batch_results),
                self.state.batch_completed,
            )
        else:
            raise ValueError(f"Unknown controller message {kind!r}")

    def _apply_injection(self, result: AnalysisResult) -> None:
        self._supersede("bridge injection")
        if self.state.current_file is None:
            self.state.current_file = FileData.placeholder()
        self.state.current_result = result
        self._set_status(AnalysisStatus.COMPLETE)
        self._fire(ViewEvent.INJECT)
        self._record(result, "")
        self.events.emit_result_ready(result)


__all__ = ["ScanController", "spawn_daemon", "REMEDIATION_HINT"]
