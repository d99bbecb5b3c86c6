from __future__ import annotations

import pytest

from veritas_scan.app.machine import (
    FORENSIC_STEPS,
    InvalidTransitionError,
    ScanCursor,
    StatusMachine,
    ViewEvent,
    ViewMachine,
)
from veritas_scan.app.state import AnalysisStatus, ViewState


class _Clock:
    def __init__(self) -> None:
        self.now = 100.0

    def __call__(self) -> float:
        return self.now


def test_single_and_batch_loops() -> None:
    vm = ViewMachine()
    assert vm.fire(ViewEvent.START_SINGLE) is ViewState.SCANNING
    assert vm.fire(ViewEvent.SCAN_DONE) is ViewState.RESULT
    assert vm.fire(ViewEvent.RESET) is ViewState.HOME

    assert vm.fire(ViewEvent.START_BATCH) is ViewState.BATCH_PROCESSING
    assert vm.fire(ViewEvent.BATCH_DONE) is ViewState.BATCH_RESULT
    assert vm.fire(ViewEvent.RESET) is ViewState.HOME


def test_invalid_view_transition_raises() -> None:
    vm = ViewMachine()
    with pytest.raises(InvalidTransitionError):
        vm.fire(ViewEvent.SCAN_DONE)
    vm.fire(ViewEvent.START_SINGLE)
    with pytest.raises(InvalidTransitionError):
        vm.fire(ViewEvent.START_BATCH)
    assert vm.state is ViewState.SCANNING


def test_side_views_return_to_origin() -> None:
    vm = ViewMachine()
    vm.fire(ViewEvent.START_BATCH)
    vm.fire(ViewEvent.OPEN_DASHBOARD)
    vm.fire(ViewEvent.OPEN_SETTINGS)
    assert vm.fire(ViewEvent.GO_BACK) is ViewState.BATCH_PROCESSING

    with pytest.raises(InvalidTransitionError):
        vm.fire(ViewEvent.GO_BACK)


def test_scan_can_finish_while_on_dashboard() -> None:
    vm = ViewMachine()
    vm.fire(ViewEvent.START_SINGLE)
    vm.fire(ViewEvent.OPEN_DASHBOARD)
    assert vm.fire(ViewEvent.SCAN_DONE) is ViewState.RESULT


def test_cursor_cycles_only_while_scanning() -> None:
    clock = _Clock()
    vm = ViewMachine(ScanCursor(interval_s=0.5, clock=clock))
    assert vm.cursor.index == 0

    vm.fire(ViewEvent.START_SINGLE)
    clock.now += 1.2
    assert vm.cursor.index == 2
    assert vm.cursor.text == FORENSIC_STEPS[2]

    clock.now += 0.5 * len(FORENSIC_STEPS)
    assert vm.cursor.index == 2  # wrapped around

    vm.fire(ViewEvent.SCAN_DONE)
    assert vm.cursor.index == 0
    assert not vm.cursor.running


def test_cursor_restarts_on_reentry() -> None:
    clock = _Clock()
    vm = ViewMachine(ScanCursor(interval_s=0.5, clock=clock))
    vm.fire(ViewEvent.START_SINGLE)
    clock.now += 3.0
    vm.fire(ViewEvent.SCAN_FAILED)
    vm.fire(ViewEvent.START_SINGLE)
    assert vm.cursor.index == 0


def test_status_lifecycle() -> None:
    sm = StatusMachine()
    for status in (AnalysisStatus.UPLOADING, AnalysisStatus.ANALYZING, AnalysisStatus.ERROR, AnalysisStatus.UPLOADING):
        sm.move(status)
    sm.move(AnalysisStatus.ANALYZING)
    sm.move(AnalysisStatus.COMPLETE)
    sm.move(AnalysisStatus.IDLE)
    assert sm.state is AnalysisStatus.IDLE

    with pytest.raises(InvalidTransitionError):
        sm.move(AnalysisStatus.ANALYZING)


def test_status_complete_and_idle_reachable_from_anywhere() -> None:
    for start in AnalysisStatus:
        sm = StatusMachine()
        sm._state = start
        assert sm.can_move(AnalysisStatus.COMPLETE)
        assert sm.can_move(AnalysisStatus.IDLE)
