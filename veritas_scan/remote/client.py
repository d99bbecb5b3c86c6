"""HTTP client for the remote analysis service.

The service is a Gemini ``generateContent`` endpoint answering with JSON that
must match :data:`veritas_scan.remote.schema.RESPONSE_SCHEMA`. This layer owns
the request construction, the response contract check and the creation
timestamp. It never retries: a failure is raised to the caller.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from ..log_utils import sanitize_log
from ..results import AnalysisResult, from_wire, utc_timestamp
from .schema import build_request_body

log = logging.getLogger(__name__)

DEFAULT_ENDPOINT = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_MODEL = "gemini-2.5-flash"
DEFAULT_TIMEOUT_S = 120.0
CONNECT_TIMEOUT_S = 10.0


class AnalysisRequestError(RuntimeError):
    """The remote call failed or returned no usable verdict."""


def _response_text(body: Dict[str, Any]) -> str:
    """Concatenate the text parts of the first candidate."""

    candidates = body.get("candidates") or []
    if not candidates:
        return ""
    content = candidates[0].get("content") or {}
    parts = content.get("parts") or []
    return "".join(str(p.get("text", "")) for p in parts if isinstance(p, dict))


class AnalysisClient:
    """Thin wrapper around a ``requests.Session`` talking to the service."""

    def __init__(
        self,
        api_key: str,
        *,
        model: str = DEFAULT_MODEL,
        endpoint: str = DEFAULT_ENDPOINT,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        session: Optional[requests.Session] = None,
    ):
        self.api_key = api_key
        self.model = model
        self.endpoint = endpoint.rstrip("/")
        self.timeout_s = float(timeout_s)
        self._session = session or requests.Session()

    @classmethod
    def from_config(cls, config, session: Optional[requests.Session] = None) -> "AnalysisClient":
        return cls(
            config.api_key or "",
            model=config.model,
            endpoint=config.endpoint,
            timeout_s=config.timeout_s,
            session=session,
        )

    @property
    def url(self) -> str:
        return f"{self.endpoint}/models/{self.model}:generateContent"

    def analyze(self, payload: str, mime_type: str) -> AnalysisResult:
        """Send one encoded medium and return the parsed, timestamped verdict."""

        if not self.api_key:
            raise AnalysisRequestError("No API key configured (set GEMINI_API_KEY)")

        body = build_request_body(payload, mime_type)
        log.info("Requesting analysis (%s, %d payload chars) from %s", mime_type, len(payload), self.model)

        try:
            resp = self._session.post(
                self.url,
                json=body,
                headers={"x-goog-api-key": self.api_key},
                timeout=(CONNECT_TIMEOUT_S, self.timeout_s),
            )
        except requests.Timeout as e:
            raise AnalysisRequestError(f"Analysis request timed out after {self.timeout_s:.0f}s") from e
        except requests.RequestException as e:
            raise AnalysisRequestError(f"Analysis request failed: {e}") from e

        if not resp.ok:
            detail = sanitize_log((resp.text or "")[:500])
            raise AnalysisRequestError(f"Analysis service returned HTTP {resp.status_code}: {detail}")

        try:
            envelope = resp.json()
        except ValueError as e:
            raise AnalysisRequestError("Analysis service returned a non-JSON envelope") from e

        text = _response_text(envelope) if isinstance(envelope, dict) else ""
        if not text.strip():
            raise AnalysisRequestError("No response from analysis service")

        try:
            data = json.loads(text)
        except ValueError as e:
            log.debug("Unparseable verdict text: %s", sanitize_log(text[:500]))
            raise AnalysisRequestError("Analysis service returned malformed JSON") from e

        try:
            result = from_wire(data, timestamp=utc_timestamp(), mime_type=mime_type)
        except (TypeError, ValueError) as e:
            raise AnalysisRequestError(f"Analysis response violates the result contract: {e}") from e

        log.info("Analysis complete: verdict=%r score=%s", result.verdict, result.score)
        return result

    def close(self) -> None:
        self._session.close()
