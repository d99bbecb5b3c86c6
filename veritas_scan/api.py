"""Public API surface (compatibility layer).

This module re-exports the most commonly used functions/classes so front ends
and external scripts can simply import a single module.
"""

from __future__ import annotations

from . import __version__

# Data model
from .results import (
    AnalysisResult,
    BatchAnalysisResult,
    HistoryItem,
    MediaKind,
    from_wire,
)

# Preprocessing
from .preprocess import EncodedMedia, MediaFile, PreprocessingError, fit_within, preprocess_media

# Remote service
from .remote import AnalysisClient, AnalysisRequestError

# Application layer
from .app import (
    AnalysisStatus,
    AppEvents,
    BridgeNormalizationError,
    FileData,
    HistoryLedger,
    InvalidTransitionError,
    NativeBridgeAdapter,
    ScanController,
    ViewState,
    normalize_bridge_result,
)
from .app.batch import BatchRunner, batch_progress

# Export / settings
from .export import summarize_batch, write_batch_report, write_history_report, write_result_report
from .settings import ScanConfig, SettingsStore, load_config

__all__ = [
    "__version__",
    # data model
    "AnalysisResult",
    "BatchAnalysisResult",
    "HistoryItem",
    "MediaKind",
    "from_wire",
    # preprocessing
    "EncodedMedia",
    "MediaFile",
    "PreprocessingError",
    "fit_within",
    "preprocess_media",
    # remote
    "AnalysisClient",
    "AnalysisRequestError",
    # app
    "AnalysisStatus",
    "AppEvents",
    "BatchRunner",
    "BridgeNormalizationError",
    "FileData",
    "HistoryLedger",
    "InvalidTransitionError",
    "NativeBridgeAdapter",
    "ScanController",
    "ViewState",
    "batch_progress",
    "normalize_bridge_result",
    # export / settings
    "summarize_batch",
    "write_batch_report",
    "write_history_report",
    "write_result_report",
    "ScanConfig",
    "SettingsStore",
    "load_config",
]
