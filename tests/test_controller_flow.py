from __future__ import annotations

import base64
import io

import pytest
from PIL import Image

from veritas_scan.app.controller import ScanController
from veritas_scan.app.machine import InvalidTransitionError
from veritas_scan.app.state import AnalysisStatus, ViewState

from .conftest import FakeClient, failing_file, image_file


def _record_views(controller):
    views = [controller.view]
    controller.events.on_view_changed(views.append)
    return views


def test_single_scan_end_to_end(controller, fake_client) -> None:
    views = _record_views(controller)
    media = image_file("small.png", 640, 480)

    job = controller.submit_files([media])

    assert job is not None
    assert controller.view is ViewState.SCANNING
    assert controller.status is AnalysisStatus.UPLOADING
    assert controller.scan_text

    controller.poll()

    payload, mime = fake_client.calls[0]
    assert mime == "image/jpeg"
    with Image.open(io.BytesIO(base64.b64decode(payload))) as im:
        assert im.size == (640, 480)

    assert views == [ViewState.HOME, ViewState.SCANNING, ViewState.RESULT]
    assert controller.status is AnalysisStatus.COMPLETE
    assert controller.state.current_file.mime_type == "image/jpeg"
    assert controller.state.current_result is not None
    assert len(controller.history) == 1
    assert controller.scan_text == ""
    assert not controller.busy


def test_zero_files_is_a_noop(controller, fake_client) -> None:
    views = _record_views(controller)
    assert controller.submit_files([]) is None
    assert controller.view is ViewState.HOME
    assert controller.status is AnalysisStatus.IDLE
    assert views == [ViewState.HOME]
    assert fake_client.calls == []


def test_two_files_take_the_batch_path(controller) -> None:
    controller.submit_files([image_file("a.png"), image_file("b.png")])
    assert controller.view is ViewState.BATCH_PROCESSING
    assert controller.state.batch_total == 2

    controller.poll()
    assert controller.view is ViewState.BATCH_RESULT
    assert controller.status is AnalysisStatus.COMPLETE
    assert [r.file_name for r in controller.state.batch_results] == ["a.png", "b.png"]


def test_batch_with_failures(controller, fake_client) -> None:
    progress = []
    controller.events.on_batch_progress(lambda done, total: progress.append((done, total)))
    files = [image_file("a.png"), failing_file("b.mp4"), image_file("c.png"), failing_file("d.mp4"), image_file("e.png")]

    controller.submit_files(files)
    controller.poll()

    assert len(fake_client.calls) == 5
    assert progress[-1] == (5, 5)
    assert controller.state.batch_completed == 5
    assert controller.state.batch_queue == []
    assert controller.batch_progress == 1.0
    assert [r.file_name for r in controller.state.batch_results] == ["a.png", "c.png", "e.png"]
    assert len(controller.history) == 3
    assert controller.view is ViewState.BATCH_RESULT


def test_single_scan_failure_alerts_and_returns_home(controller) -> None:
    alerts = []
    controller.events.on_alert(alerts.append)

    controller.submit_files([failing_file("broken.mp4")])
    controller.poll()

    assert controller.view is ViewState.HOME
    assert controller.status is AnalysisStatus.ERROR
    assert len(alerts) == 1
    assert alerts[0].startswith("Analysis Error: service unavailable")
    assert "Try a smaller image." in alerts[0]
    assert len(controller.history) == 0

    # Next scan starts a fresh cycle from ERROR
    controller.submit_files([image_file()])
    controller.poll()
    assert controller.status is AnalysisStatus.COMPLETE


def test_cannot_start_while_not_home(controller) -> None:
    controller.submit_files([image_file()])
    with pytest.raises(InvalidTransitionError):
        controller.submit_files([image_file()])


def test_reset_clears_slot_but_keeps_history(controller) -> None:
    controller.submit_files([image_file()])
    controller.poll()
    controller.reset()

    assert controller.view is ViewState.HOME
    assert controller.status is AnalysisStatus.IDLE
    assert controller.state.current_file is None
    assert controller.state.current_result is None
    assert controller.state.batch_results == []
    assert len(controller.history) == 1


def test_reset_during_scan_drops_late_result_from_view() -> None:
    pending = []
    controller = ScanController(FakeClient(), spawn=pending.append)

    controller.submit_files([image_file()])
    controller.reset()
    pending.pop()()
    controller.poll()

    assert controller.view is ViewState.HOME
    assert controller.state.current_result is None
    # The analysis did complete, so it is still on record.
    assert len(controller.history) == 1


def test_dashboard_round_trip(controller) -> None:
    controller.open_dashboard()
    assert controller.view is ViewState.DASHBOARD
    controller.go_back()
    assert controller.view is ViewState.HOME

    controller.submit_files([image_file()])
    controller.open_settings()
    controller.poll()
    assert controller.view is ViewState.RESULT


def test_history_sums_across_sources(controller) -> None:
    from types import SimpleNamespace

    from veritas_scan.app.bridge import NativeBridgeAdapter

    controller.submit_files([image_file()])
    controller.poll()
    assert len(controller.history) == 1

    controller.reset()
    controller.submit_files([image_file(f"{i}.png") for i in range(4)])
    controller.poll()
    assert len(controller.history) == 5

    host = SimpleNamespace()
    with NativeBridgeAdapter(controller, host):
        host.handleResult('{"isAI": false}')
    controller.poll()
    assert len(controller.history) == 6


def test_threaded_worker_with_wait(fake_client) -> None:
    controller = ScanController(fake_client)
    controller.submit_files([image_file()])
    assert controller.wait(timeout=10, interval=0.01)
    assert controller.view is ViewState.RESULT
