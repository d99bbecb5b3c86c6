"""View and status state machines.

Both machines are table driven and hold a single current-state variable. The
scanning cursor is derived from the time spent in ``ViewState.SCANNING`` and
restarts from zero each time that view is entered.
"""

from __future__ import annotations

import time
from enum import Enum
from typing import Callable, Dict, FrozenSet, Optional, Sequence

from .state import AnalysisStatus, ViewState

FORENSIC_STEPS: Sequence[str] = (
    "INITIALIZING NEURAL LAYERS...",
    "EXTRACTING FREQUENCY DOMAIN DATA...",
    "DETECTING GAN NOISE FINGERPRINTS...",
    "COMPARING DIFFUSION SIGNATURES...",
    "ANALYZING BIOMETRIC TOPOLOGY...",
    "VALIDATING PHOTOMETRIC CONSISTENCY...",
    "CHECKING TEMPORAL COHERENCE...",
    "CROSS-REFERENCING C2PA METADATA...",
    "FINALIZING PROBABILISTIC MODEL...",
)


class InvalidTransitionError(RuntimeError):
    """An event was fired from a state that does not allow it."""


class ViewEvent(str, Enum):
    START_SINGLE = "start_single"
    START_BATCH = "start_batch"
    SCAN_DONE = "scan_done"
    SCAN_FAILED = "scan_failed"
    BATCH_DONE = "batch_done"
    INJECT = "inject"
    RESET = "reset"
    OPEN_DASHBOARD = "open_dashboard"
    OPEN_SETTINGS = "open_settings"
    GO_BACK = "go_back"


_ANY: FrozenSet[ViewState] = frozenset(ViewState)
_SIDE_VIEWS: FrozenSet[ViewState] = frozenset({ViewState.DASHBOARD, ViewState.SETTINGS})

# event -> (allowed sources, target); GO_BACK resolves its target at runtime
VIEW_TRANSITIONS: Dict[ViewEvent, tuple] = {
    ViewEvent.START_SINGLE: (frozenset({ViewState.HOME}), ViewState.SCANNING),
    ViewEvent.START_BATCH: (frozenset({ViewState.HOME}), ViewState.BATCH_PROCESSING),
    ViewEvent.SCAN_DONE: (frozenset({ViewState.SCANNING}) | _SIDE_VIEWS, ViewState.RESULT),
    ViewEvent.SCAN_FAILED: (frozenset({ViewState.SCANNING}) | _SIDE_VIEWS, ViewState.HOME),
    ViewEvent.BATCH_DONE: (frozenset({ViewState.BATCH_PROCESSING}) | _SIDE_VIEWS, ViewState.BATCH_RESULT),
    ViewEvent.INJECT: (_ANY, ViewState.RESULT),
    ViewEvent.RESET: (_ANY, ViewState.HOME),
    ViewEvent.OPEN_DASHBOARD: (_ANY, ViewState.DASHBOARD),
    ViewEvent.OPEN_SETTINGS: (_ANY, ViewState.SETTINGS),
    ViewEvent.GO_BACK: (_SIDE_VIEWS, None),
}

STATUS_TRANSITIONS: Dict[AnalysisStatus, FrozenSet[AnalysisStatus]] = {
    AnalysisStatus.IDLE: frozenset({AnalysisStatus.UPLOADING}),
    AnalysisStatus.UPLOADING: frozenset({AnalysisStatus.ANALYZING, AnalysisStatus.ERROR}),
    AnalysisStatus.ANALYZING: frozenset(
        {AnalysisStatus.UPLOADING, AnalysisStatus.COMPLETE, AnalysisStatus.ERROR}
    ),
    AnalysisStatus.COMPLETE: frozenset({AnalysisStatus.UPLOADING}),
    AnalysisStatus.ERROR: frozenset({AnalysisStatus.UPLOADING}),
}

# Reset and bridge injection are reachable from every status.
_ALWAYS_ALLOWED: FrozenSet[AnalysisStatus] = frozenset({AnalysisStatus.IDLE, AnalysisStatus.COMPLETE})


class ScanCursor:
    """Rotating index into ``FORENSIC_STEPS`` while scanning."""

    def __init__(
        self,
        steps: Sequence[str] = FORENSIC_STEPS,
        interval_s: float = 0.5,
        clock: Callable[[], float] = time.monotonic,
    ):
        if not steps:
            raise ValueError("ScanCursor needs at least one step")
        if interval_s <= 0:
            raise ValueError("interval_s must be positive")
        self.steps = tuple(steps)
        self.interval_s = float(interval_s)
        self._clock = clock
        self._started: Optional[float] = None

    @property
    def running(self) -> bool:
        return self._started is not None

    def restart(self) -> None:
        self._started = self._clock()

    def stop(self) -> None:
        self._started = None

    @property
    def index(self) -> int:
        if self._started is None:
            return 0
        ticks = int((self._clock() - self._started) / self.interval_s)
        return ticks % len(self.steps)

    @property
    def text(self) -> str:
        return self.steps[self.index]


class ViewMachine:
    def __init__(self, cursor: Optional[ScanCursor] = None):
        self._state = ViewState.HOME
        self._return_to: Optional[ViewState] = None
        self.cursor = cursor or ScanCursor()

    @property
    def state(self) -> ViewState:
        return self._state

    def can_fire(self, event: ViewEvent) -> bool:
        sources, _ = VIEW_TRANSITIONS[event]
        return self._state in sources

    def fire(self, event: ViewEvent) -> ViewState:
        sources, target = VIEW_TRANSITIONS[event]
        if self._state not in sources:
            raise InvalidTransitionError(f"{event.value} not allowed from {self._state.value}")

        if event is ViewEvent.GO_BACK:
            target = self._return_to or ViewState.HOME
            self._return_to = None
        elif target in _SIDE_VIEWS:
            if self._state not in _SIDE_VIEWS:
                self._return_to = self._state
        else:
            self._return_to = None

        previous, self._state = self._state, target
        if target is ViewState.SCANNING and previous is not ViewState.SCANNING:
            self.cursor.restart()
        elif target is not ViewState.SCANNING:
            self.cursor.stop()
        return target


class StatusMachine:
    def __init__(self) -> None:
        self._state = AnalysisStatus.IDLE

    @property
    def state(self) -> AnalysisStatus:
        return self._state

    def can_move(self, target: AnalysisStatus) -> bool:
        return target in _ALWAYS_ALLOWED or target in STATUS_TRANSITIONS[self._state]

    def move(self, target: AnalysisStatus) -> AnalysisStatus:
        if not self.can_move(target):
            raise InvalidTransitionError(f"status {self._state.value} -> {target.value} not allowed")
        self._state = target
        return target


__all__ = [
    "FORENSIC_STEPS",
    "InvalidTransitionError",
    "ViewEvent",
    "VIEW_TRANSITIONS",
    "STATUS_TRANSITIONS",
    "ScanCursor",
    "ViewMachine",
    "StatusMachine",
]
