"""Shared application state models."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from ..preprocess import DEFAULT_MIME, MediaFile
from ..results import AnalysisResult, BatchAnalysisResult


class ViewState(str, Enum):
    HOME = "HOME"
    SCANNING = "SCANNING"
    RESULT = "RESULT"
    BATCH_PROCESSING = "BATCH_PROCESSING"
    BATCH_RESULT = "BATCH_RESULT"
    DASHBOARD = "DASHBOARD"
    SETTINGS = "SETTINGS"


class AnalysisStatus(str, Enum):
    IDLE = "IDLE"
    UPLOADING = "UPLOADING"
    ANALYZING = "ANALYZING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


@dataclass(frozen=True)
class FileData:
    """The input currently under analysis.

    ``file`` is None for results injected through the native bridge.
    """

    file: Optional[MediaFile]
    preview_url: str
    mime_type: str
    payload: str

    @classmethod
    def placeholder(cls) -> "FileData":
        return cls(file=None, preview_url="", mime_type=DEFAULT_MIME, payload="")


@dataclass
class AppState:
    """Controller-owned state container (single and batch mode)."""

    current_file: Optional[FileData] = None
    current_result: Optional[AnalysisResult] = None
    batch_queue: List[MediaFile] = field(default_factory=list)
    batch_results: List[BatchAnalysisResult] = field(default_factory=list)
    batch_completed: int = 0

    @property
    def batch_total(self) -> int:
        return self.batch_completed + len(self.batch_queue)

    def clear(self) -> None:
        self.current_file = None
        self.current_result = None
        self.batch_queue = []
        self.batch_results = []
        self.batch_completed = 0


__all__ = ["ViewState", "AnalysisStatus", "FileData", "AppState"]
