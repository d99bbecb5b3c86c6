"""Application layer: state machines, batch runner, history, bridge, controller.

Nothing here imports a UI toolkit, so the whole package can be driven and
unit-tested headlessly.
"""

from __future__ import annotations

from .bridge import BridgeNormalizationError, NativeBridgeAdapter, normalize_bridge_result
from .controller import ScanController
from .events import AppEvents
from .history import HistoryLedger
from .machine import InvalidTransitionError
from .state import AnalysisStatus, FileData, ViewState

__all__ = [
    "AnalysisStatus",
    "AppEvents",
    "BridgeNormalizationError",
    "FileData",
    "HistoryLedger",
    "InvalidTransitionError",
    "NativeBridgeAdapter",
    "ScanController",
    "ViewState",
    "normalize_bridge_result",
]
