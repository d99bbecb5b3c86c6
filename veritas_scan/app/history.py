"""Append-only history of completed analyses."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterator, List, Tuple

import numpy as np

from ..results import AnalysisResult, HistoryItem


@dataclass(frozen=True)
class HistorySummary:
    total: int
    synthetic: int
    authentic: int
    mean_score: float
    median_score: float
    trend: Tuple[float, ...]


class HistoryLedger:
    """Stored oldest-first; :meth:`newest_first` is the display order.

    Items are never removed.
    """

    def __init__(self) -> None:
        self._items: List[HistoryItem] = []

    def append(self, result: AnalysisResult, thumbnail: str = "") -> HistoryItem:
        item = HistoryItem(result=result, thumbnail=thumbnail)
        self._items.append(item)
        return item

    def __len__(self) -> int:
        return len(self._items)

    def __iter__(self) -> Iterator[HistoryItem]:
        return iter(tuple(self._items))

    def items(self) -> Tuple[HistoryItem, ...]:
        return tuple(self._items)

    def newest_first(self) -> Tuple[HistoryItem, ...]:
        return tuple(reversed(self._items))

    def summary(self, window: int = 5) -> HistorySummary:
        """Dashboard figures: counts, score statistics and a moving-average trend."""

        scores = np.asarray([item.result.score for item in self._items], dtype=np.float64)
        synthetic = sum(1 for item in self._items if item.result.is_ai)
        if scores.size == 0:
            return HistorySummary(0, 0, 0, 0.0, 0.0, ())

        w = max(1, min(int(window), scores.size))
        trend = np.convolve(scores, np.ones(w) / w, mode="valid")
        return HistorySummary(
            total=int(scores.size),
            synthetic=synthetic,
            authentic=int(scores.size) - synthetic,
            mean_score=float(scores.mean()),
            median_score=float(np.median(scores)),
            trend=tuple(float(v) for v in trend),
        )


__all__ = ["HistoryLedger", "HistorySummary"]
