"""Sequential batch runner.

Files are drained strictly one at a time through the same scan function used
for single files. A failing file is logged and skipped; the batch goes on.
"""

from __future__ import annotations

import logging
import threading
from collections import deque
from typing import Callable, Deque, Iterable, List, Optional, Tuple

from ..preprocess import MediaFile
from ..results import AnalysisResult, BatchAnalysisResult
from .state import FileData

log = logging.getLogger(__name__)

ScanFn = Callable[[MediaFile], Tuple[FileData, AnalysisResult]]


def batch_progress(completed: int, remaining: int) -> float:
    total = completed + remaining
    if total <= 0:
        return 0.0
    return completed / total


class BatchRunner:
    def __init__(self, scan: ScanFn):
        self._scan = scan
        self.pending: Deque[MediaFile] = deque()
        self.results: List[BatchAnalysisResult] = []
        self.completed = 0

    @property
    def progress(self) -> float:
        return batch_progress(self.completed, len(self.pending))

    def run(
        self,
        files: Iterable[MediaFile],
        *,
        on_result: Optional[Callable[[BatchAnalysisResult], None]] = None,
        on_skip: Optional[Callable[[MediaFile, Exception], None]] = None,
        on_progress: Optional[Callable[[int, int], None]] = None,
        cancel_event: Optional[threading.Event] = None,
    ) -> List[BatchAnalysisResult]:
        """Process ``files`` in order and return the successful results.

        ``on_progress`` receives ``(completed, remaining)`` after every file.
        """

        self.pending = deque(files)
        self.results = []
        self.completed = 0

        while self.pending:
            if cancel_event is not None and cancel_event.is_set():
                log.info("Batch cancelled with %d file(s) left", len(self.pending))
                break

            media = self.pending[0]
            try:
                file_data, result = self._scan(media)
            except Exception as e:
                log.warning("Failed to process %s: %s: %s", media.name, type(e).__name__, e)
                if on_skip is not None:
                    on_skip(media, e)
            else:
                item = BatchAnalysisResult(file_name=media.name, result=result, thumbnail=file_data.preview_url)
                self.results.append(item)
                if on_result is not None:
                    on_result(item)

            self.pending.popleft()
            self.completed += 1
            if on_progress is not None:
                on_progress(self.completed, len(self.pending))

        return list(self.results)


__all__ = ["BatchRunner", "batch_progress"]
