"""Remote analysis service access."""

from .client import AnalysisClient, AnalysisRequestError

__all__ = ["AnalysisClient", "AnalysisRequestError"]
