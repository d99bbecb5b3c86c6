"""Native bridge adapter.

An embedding host delivers results by calling a well-known callback
(``handleResult``) on a host object. The adapter takes over that slot while
keeping whatever handler was there before: the previous handler always runs
first, and :meth:`NativeBridgeAdapter.teardown` puts it back exactly as found.

Host payloads are not under our control, so normalization here is lenient:
JSON strings, free text and partial mappings are all turned into a complete
:class:`~veritas_scan.results.AnalysisResult` by filling neutral defaults.
"""

from __future__ import annotations

import json
import logging
from typing import Any, Callable, Mapping, Optional

from ..results import (
    AnalysisResult,
    ForensicMetrics,
    FrameAnomaly,
    HumanPerception,
    MediaKind,
    ModelSignature,
    SuspiciousRegion,
    VideoAnalysis,
    WatermarkDetection,
    WatermarkSignature,
    utc_timestamp,
)

log = logging.getLogger(__name__)

HANDLER_SLOT = "handleResult"
UPLOAD_NOTIFIER = "notify_upload"

NEUTRAL_METRIC = 50.0
DEFAULT_REASONING = "Analysis provided by native bridge."
SYNTHETIC_KEYWORDS = ("ai", "synthetic")
FALSE_WORDS = frozenset({"", "false", "no", "n", "0", "off", "null", "none"})

_MISSING = object()


class BridgeNormalizationError(ValueError):
    """A host payload (or one of its fields) could not be interpreted."""


def classify_text(text: str) -> dict:
    """Keyword heuristic for free-text host payloads."""

    lowered = text.lower()
    is_ai = any(k in lowered for k in SYNTHETIC_KEYWORDS)
    return {
        "isAI": is_ai,
        "score": 95 if is_ai else 5,
        "verdict": "SYNTHETIC DETECTED" if is_ai else "AUTHENTIC MEDIA",
    }


def parse_payload(raw: Any) -> Mapping[str, Any]:
    """Turn a host payload into a mapping (possibly partial)."""

    if isinstance(raw, Mapping):
        return raw
    if isinstance(raw, (bytes, bytearray)):
        raw = bytes(raw).decode("utf-8", errors="replace")
    if isinstance(raw, str):
        try:
            parsed = json.loads(raw)
        except ValueError:
            return classify_text(raw)
        if isinstance(parsed, Mapping):
            return parsed
        return classify_text(raw)
    raise BridgeNormalizationError(f"Unsupported bridge payload type {type(raw).__name__}")


# ---------------------------------------------------------------------------
# Field coercion (raise BridgeNormalizationError, callers fall back)
# ---------------------------------------------------------------------------


def _flag(value: Any) -> bool:
    """Lenient truthiness: non-zero numbers and strings other than FALSE_WORDS."""

    if isinstance(value, bool):
        return value
    if value is None:
        return False
    if isinstance(value, (int, float)):
        return value != 0
    if isinstance(value, str):
        return value.strip().lower() not in FALSE_WORDS
    return bool(value)


def _number(value: Any, *, clamp: bool = True) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise BridgeNormalizationError(f"expected a number, got {value!r}")
    if clamp:
        return float(min(100.0, max(0.0, value)))
    return float(value)


def _text(value: Any) -> str:
    if not isinstance(value, str) or not value.strip():
        raise BridgeNormalizationError(f"expected a non-empty string, got {value!r}")
    return value


def _obj(value: Any) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise BridgeNormalizationError(f"expected an object, got {type(value).__name__}")
    return value


def _items(value: Any) -> list:
    if not isinstance(value, (list, tuple)):
        raise BridgeNormalizationError(f"expected a list, got {type(value).__name__}")
    return list(value)


def _get(d: Mapping[str, Any], key: str, coerce: Callable[[Any], Any], default: Any) -> Any:
    value = d.get(key, _MISSING)
    if value is _MISSING or value is None:
        return default
    try:
        return coerce(value)
    except BridgeNormalizationError as e:
        log.debug("Bridge field %r unusable (%s); using default", key, e)
        return default


def _sub(d: Mapping[str, Any], key: str) -> Mapping[str, Any]:
    return _get(d, key, _obj, {})


def _region(value: Any) -> SuspiciousRegion:
    r = _obj(value)
    box = _items(r.get("box_2d"))
    if len(box) != 4:
        raise BridgeNormalizationError("box_2d needs 4 values")
    return SuspiciousRegion(
        box_2d=tuple(_number(v) for v in box),  # type: ignore[arg-type]
        label=_get(r, "label", _text, "Unlabeled region"),
        confidence=_get(r, "confidence", _number, NEUTRAL_METRIC),
    )


def _signature(value: Any) -> WatermarkSignature:
    s = _obj(value)
    return WatermarkSignature(
        provider=_get(s, "provider", _text, "Unknown"),
        type=_get(s, "type", _text, "Unknown"),
        confidence=_get(s, "confidence", _number, 0.0),
    )


def _anomaly(value: Any) -> FrameAnomaly:
    a = _obj(value)
    return FrameAnomaly(
        timestamp=_number(a.get("timestamp"), clamp=False),
        description=_get(a, "description", _text, ""),
    )


def _collect(values: list, build: Callable[[Any], Any]) -> tuple:
    out = []
    for v in values:
        try:
            out.append(build(v))
        except BridgeNormalizationError as e:
            log.debug("Dropping malformed bridge entry: %s", e)
    return tuple(out)


def normalize_bridge_result(raw: Any) -> AnalysisResult:
    """Build a complete result from anything the host may send.

    Never raises: unusable input degrades to neutral defaults.
    """

    try:
        data = parse_payload(raw)
    except BridgeNormalizationError as e:
        log.warning("Bridge payload not understood (%s); using defaults", e)
        data = {}

    is_ai = _flag(data.get("isAI"))
    fm = _sub(data, "forensicMetrics")
    hp = _sub(data, "humanPerception")
    sig = _sub(data, "modelSignature")
    wm = _sub(data, "watermark")

    video: Optional[VideoAnalysis] = None
    video_raw = data.get("videoAnalysis")
    if isinstance(video_raw, Mapping):
        video = VideoAnalysis(
            temporal_consistency_score=_get(video_raw, "temporalConsistencyScore", _number, NEUTRAL_METRIC),
            frame_anomalies=_collect(_get(video_raw, "frameAnomalies", _items, []), _anomaly),
        )

    return AnalysisResult(
        is_ai=is_ai,
        score=_get(data, "score", _number, 98.0 if is_ai else 2.0),
        verdict=_get(data, "verdict", _text, "SYNTHETIC DETECTED" if is_ai else "AUTHENTIC"),
        reasoning=_get(data, "reasoning", _text, DEFAULT_REASONING),
        technical_details=tuple(
            str(t) for t in _get(data, "technicalDetails", _items, []) if isinstance(t, str)
        ),
        model_signature=ModelSignature(
            name=_get(sig, "name", _text, "External Model"),
            confidence=_get(sig, "confidence", _number, 0.0),
        ),
        forensic_metrics=ForensicMetrics(
            biometric_integrity=_get(fm, "biometricIntegrity", _number, NEUTRAL_METRIC),
            texture_fidelity=_get(fm, "textureFidelity", _number, NEUTRAL_METRIC),
            lighting_consistency=_get(fm, "lightingConsistency", _number, NEUTRAL_METRIC),
            physical_logic=_get(fm, "physicalLogic", _number, NEUTRAL_METRIC),
        ),
        human_perception=HumanPerception(
            realness_score=_get(hp, "realnessScore", _number, NEUTRAL_METRIC),
            suspiciousness_score=_get(hp, "suspiciousnessScore", _number, NEUTRAL_METRIC),
            perceptual_inconsistency=_get(hp, "perceptualInconsistency", _number, NEUTRAL_METRIC),
            artifact_level=_get(hp, "artifactLevel", _number, NEUTRAL_METRIC),
        ),
        suspicious_regions=_collect(_get(data, "suspiciousRegions", _items, []), _region),
        watermark=WatermarkDetection(
            detected=_flag(wm.get("detected")),
            signatures=_collect(_get(wm, "signatures", _items, []), _signature),
        ),
        timestamp=utc_timestamp(),
        media_kind=MediaKind.VIDEO if video is not None else MediaKind.OTHER,
        _video=video,
    )


class NativeBridgeAdapter:
    """Installs the controller as the host's result handler.

    Usage::

        with NativeBridgeAdapter(controller, host):
            host.handleResult('{"isAI": true, "score": 91}')
    """

    def __init__(self, controller, host: Any, slot: str = HANDLER_SLOT):
        self.controller = controller
        self.host = host
        self.slot = slot
        self._legacy: Any = _MISSING
        self._owned_slot = False
        self._installed = False

    @property
    def installed(self) -> bool:
        return self._installed

    @property
    def legacy_handler(self) -> Optional[Callable[[Any], Any]]:
        return None if self._legacy is _MISSING else self._legacy

    def install(self) -> "NativeBridgeAdapter":
        if self._installed:
            raise RuntimeError("Bridge adapter already installed")
        self._legacy = getattr(self.host, self.slot, _MISSING)
        # Only an instance-level handler is put back; class-level ones reappear on delete
        own = getattr(self.host, "__dict__", None)
        self._owned_slot = self.slot in own if own is not None else self._legacy is not _MISSING
        setattr(self.host, self.slot, self.handle_result)
        self.controller.events.on_upload_started(self._notify_upload)
        self._installed = True
        log.info("Bridge handler installed on %r (previous handler: %s)", self.slot, self.legacy_handler is not None)
        return self

    def teardown(self) -> None:
        if not self._installed:
            return
        self.controller.events.off_upload_started(self._notify_upload)
        if self._owned_slot:
            setattr(self.host, self.slot, self._legacy)
        else:
            delattr(self.host, self.slot)
        self._legacy = _MISSING
        self._owned_slot = False
        self._installed = False
        log.info("Bridge handler removed from %r", self.slot)

    def __enter__(self) -> "NativeBridgeAdapter":
        return self.install()

    def __exit__(self, *exc_info: Any) -> None:
        self.teardown()

    def handle_result(self, raw: Any) -> None:
        legacy = self.legacy_handler
        if callable(legacy):
            try:
                legacy(raw)
            except Exception:
                log.exception("Legacy bridge handler failed")

        result = normalize_bridge_result(raw)
        log.info("Bridge result received: verdict=%r score=%s", result.verdict, result.score)
        self.controller.deliver_bridge_result(result)

    def _notify_upload(self) -> None:
        if not self._installed:
            return
        notify = getattr(self.host, UPLOAD_NOTIFIER, None)
        if not callable(notify):
            return
        try:
            notify("start")
        except Exception as e:
            log.info("Host upload notification failed: %s", e)


__all__ = [
    "HANDLER_SLOT",
    "BridgeNormalizationError",
    "NativeBridgeAdapter",
    "classify_text",
    "normalize_bridge_result",
    "parse_payload",
]
