"""Analysis result data model.

Results are immutable once produced. The wire form is the camelCase JSON
object returned by the analysis service; the same shape is used for exported
reports and for payloads pushed through the native bridge.

``from_wire`` is strict: every required field must be present with the right
type, otherwise ``ValueError``/``TypeError`` is raised. Lenient default-filling
of untrusted input lives in :mod:`veritas_scan.app.bridge`.
"""

from __future__ import annotations

import json
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class MediaKind(str, Enum):
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


def media_kind_for_mime(mime_type: str, *, has_video_block: bool = False) -> MediaKind:
    mime_type = (mime_type or "").lower()
    if has_video_block or mime_type.startswith("video/"):
        return MediaKind.VIDEO
    if mime_type.startswith("image/"):
        return MediaKind.IMAGE
    return MediaKind.OTHER


def utc_timestamp() -> str:
    """ISO-8601 UTC timestamp with millisecond precision and a ``Z`` suffix."""
    return datetime.now(timezone.utc).isoformat(timespec="milliseconds").replace("+00:00", "Z")


@dataclass(frozen=True)
class ModelSignature:
    name: str
    confidence: float


@dataclass(frozen=True)
class ForensicMetrics:
    """0-100 each, higher means more physically plausible."""

    biometric_integrity: float
    texture_fidelity: float
    lighting_consistency: float
    physical_logic: float


@dataclass(frozen=True)
class HumanPerception:
    realness_score: float
    suspiciousness_score: float
    perceptual_inconsistency: float
    artifact_level: float


@dataclass(frozen=True)
class SuspiciousRegion:
    # [ymin, xmin, ymax, xmax] on a 0-100 scale
    box_2d: Tuple[float, float, float, float]
    label: str
    confidence: float


@dataclass(frozen=True)
class WatermarkSignature:
    provider: str
    type: str
    confidence: float


@dataclass(frozen=True)
class WatermarkDetection:
    detected: bool
    signatures: Tuple[WatermarkSignature, ...] = ()


@dataclass(frozen=True)
class FrameAnomaly:
    timestamp: float  # seconds
    description: str


@dataclass(frozen=True)
class VideoAnalysis:
    temporal_consistency_score: float
    frame_anomalies: Tuple[FrameAnomaly, ...] = ()


@dataclass(frozen=True)
class AnalysisResult:
    """Full structured verdict for one analyzed medium.

    The video block is only reachable through :meth:`video_analysis`. It can
    only exist when ``media_kind`` is ``MediaKind.VIDEO``; a video result may
    still lack it when the service omits the block.
    """

    is_ai: bool
    score: float
    verdict: str
    reasoning: str
    technical_details: Tuple[str, ...]
    model_signature: ModelSignature
    forensic_metrics: ForensicMetrics
    human_perception: HumanPerception
    suspicious_regions: Tuple[SuspiciousRegion, ...]
    watermark: WatermarkDetection
    timestamp: str
    media_kind: MediaKind = MediaKind.OTHER
    _video: Optional[VideoAnalysis] = field(default=None, repr=False)

    def __post_init__(self) -> None:
        if self._video is not None and self.media_kind is not MediaKind.VIDEO:
            raise ValueError(f"video analysis requires media_kind VIDEO, got {self.media_kind.value!r}")

    @property
    def is_video(self) -> bool:
        return self.media_kind is MediaKind.VIDEO

    @property
    def has_video_analysis(self) -> bool:
        return self._video is not None

    def video_analysis(self) -> VideoAnalysis:
        if self._video is None:
            raise ValueError(f"No video analysis for media kind {self.media_kind.value!r}")
        return self._video

    def to_wire(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "isAI": self.is_ai,
            "score": self.score,
            "verdict": self.verdict,
            "reasoning": self.reasoning,
            "technicalDetails": list(self.technical_details),
            "modelSignature": {
                "name": self.model_signature.name,
                "confidence": self.model_signature.confidence,
            },
            "forensicMetrics": {
                "biometricIntegrity": self.forensic_metrics.biometric_integrity,
                "textureFidelity": self.forensic_metrics.texture_fidelity,
                "lightingConsistency": self.forensic_metrics.lighting_consistency,
                "physicalLogic": self.forensic_metrics.physical_logic,
            },
            "humanPerception": {
                "realnessScore": self.human_perception.realness_score,
                "suspiciousnessScore": self.human_perception.suspiciousness_score,
                "perceptualInconsistency": self.human_perception.perceptual_inconsistency,
                "artifactLevel": self.human_perception.artifact_level,
            },
            "suspiciousRegions": [
                {"box_2d": list(r.box_2d), "label": r.label, "confidence": r.confidence}
                for r in self.suspicious_regions
            ],
            "watermark": {
                "detected": self.watermark.detected,
                "signatures": [
                    {"provider": s.provider, "type": s.type, "confidence": s.confidence}
                    for s in self.watermark.signatures
                ],
            },
            "timestamp": self.timestamp,
        }
        if self._video is not None:
            data["videoAnalysis"] = {
                "temporalConsistencyScore": self._video.temporal_consistency_score,
                "frameAnomalies": [
                    {"timestamp": a.timestamp, "description": a.description}
                    for a in self._video.frame_anomalies
                ],
            }
        return data

    def to_json(self) -> str:
        return json.dumps(self.to_wire(), indent=2)


# --------------------------------------------------------------------------
# Strict wire parsing
# --------------------------------------------------------------------------

REQUIRED_FIELDS: Tuple[str, ...] = (
    "isAI",
    "score",
    "verdict",
    "reasoning",
    "technicalDetails",
    "modelSignature",
    "watermark",
    "forensicMetrics",
    "humanPerception",
    "suspiciousRegions",
)


def _require(d: Mapping[str, Any], key: str, where: str) -> Any:
    if key not in d:
        raise ValueError(f"Missing required field {where}{key!r}")
    return d[key]


def _mapping(value: Any, where: str) -> Mapping[str, Any]:
    if not isinstance(value, Mapping):
        raise TypeError(f"{where} must be an object, got {type(value).__name__}")
    return value


def _list(value: Any, where: str) -> List[Any]:
    if not isinstance(value, list):
        raise TypeError(f"{where} must be an array, got {type(value).__name__}")
    return value


def _number(value: Any, where: str) -> float:
    # bool is an int subclass; reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise TypeError(f"{where} must be a number, got {type(value).__name__}")
    return value


def _string(value: Any, where: str) -> str:
    if not isinstance(value, str):
        raise TypeError(f"{where} must be a string, got {type(value).__name__}")
    return value


def _boolean(value: Any, where: str) -> bool:
    if not isinstance(value, bool):
        raise TypeError(f"{where} must be a boolean, got {type(value).__name__}")
    return value


def _parse_video(value: Any) -> VideoAnalysis:
    d = _mapping(value, "videoAnalysis")
    anomalies = []
    for i, a in enumerate(_list(_require(d, "frameAnomalies", "videoAnalysis."), "videoAnalysis.frameAnomalies")):
        a = _mapping(a, f"frameAnomalies[{i}]")
        anomalies.append(
            FrameAnomaly(
                timestamp=_number(_require(a, "timestamp", f"frameAnomalies[{i}]."), "timestamp"),
                description=_string(_require(a, "description", f"frameAnomalies[{i}]."), "description"),
            )
        )
    return VideoAnalysis(
        temporal_consistency_score=_number(
            _require(d, "temporalConsistencyScore", "videoAnalysis."), "temporalConsistencyScore"
        ),
        frame_anomalies=tuple(anomalies),
    )


def from_wire(
    data: Mapping[str, Any],
    *,
    timestamp: Optional[str] = None,
    mime_type: str = "",
) -> AnalysisResult:
    """Build an :class:`AnalysisResult` from a service response object.

    ``timestamp`` overrides whatever the payload carries; when neither is
    given a fresh one is generated.
    """

    d = _mapping(data, "response")
    for key in REQUIRED_FIELDS:
        _require(d, key, "")

    sig = _mapping(d["modelSignature"], "modelSignature")
    fm = _mapping(d["forensicMetrics"], "forensicMetrics")
    hp = _mapping(d["humanPerception"], "humanPerception")
    wm = _mapping(d["watermark"], "watermark")

    regions = []
    for i, r in enumerate(_list(d["suspiciousRegions"], "suspiciousRegions")):
        r = _mapping(r, f"suspiciousRegions[{i}]")
        box = _list(_require(r, "box_2d", f"suspiciousRegions[{i}]."), "box_2d")
        if len(box) != 4:
            raise ValueError(f"suspiciousRegions[{i}].box_2d must have 4 values, got {len(box)}")
        regions.append(
            SuspiciousRegion(
                box_2d=tuple(_number(v, "box_2d") for v in box),  # type: ignore[arg-type]
                label=_string(_require(r, "label", f"suspiciousRegions[{i}]."), "label"),
                confidence=_number(_require(r, "confidence", f"suspiciousRegions[{i}]."), "confidence"),
            )
        )

    signatures = []
    for i, s in enumerate(_list(_require(wm, "signatures", "watermark."), "watermark.signatures")):
        s = _mapping(s, f"watermark.signatures[{i}]")
        signatures.append(
            WatermarkSignature(
                provider=_string(s.get("provider", ""), "provider"),
                type=_string(s.get("type", ""), "type"),
                confidence=_number(s.get("confidence", 0), "confidence"),
            )
        )

    video_raw = d.get("videoAnalysis")
    video = _parse_video(video_raw) if video_raw is not None else None

    return AnalysisResult(
        is_ai=_boolean(d["isAI"], "isAI"),
        score=_number(d["score"], "score"),
        verdict=_string(d["verdict"], "verdict"),
        reasoning=_string(d["reasoning"], "reasoning"),
        technical_details=tuple(_string(t, "technicalDetails[]") for t in _list(d["technicalDetails"], "technicalDetails")),
        model_signature=ModelSignature(
            name=_string(_require(sig, "name", "modelSignature."), "modelSignature.name"),
            confidence=_number(_require(sig, "confidence", "modelSignature."), "modelSignature.confidence"),
        ),
        forensic_metrics=ForensicMetrics(
            biometric_integrity=_number(_require(fm, "biometricIntegrity", "forensicMetrics."), "biometricIntegrity"),
            texture_fidelity=_number(_require(fm, "textureFidelity", "forensicMetrics."), "textureFidelity"),
            lighting_consistency=_number(_require(fm, "lightingConsistency", "forensicMetrics."), "lightingConsistency"),
            physical_logic=_number(_require(fm, "physicalLogic", "forensicMetrics."), "physicalLogic"),
        ),
        human_perception=HumanPerception(
            realness_score=_number(_require(hp, "realnessScore", "humanPerception."), "realnessScore"),
            suspiciousness_score=_number(_require(hp, "suspiciousnessScore", "humanPerception."), "suspiciousnessScore"),
            perceptual_inconsistency=_number(
                _require(hp, "perceptualInconsistency", "humanPerception."), "perceptualInconsistency"
            ),
            artifact_level=_number(_require(hp, "artifactLevel", "humanPerception."), "artifactLevel"),
        ),
        suspicious_regions=tuple(regions),
        watermark=WatermarkDetection(
            detected=_boolean(_require(wm, "detected", "watermark."), "watermark.detected"),
            signatures=tuple(signatures),
        ),
        timestamp=timestamp or str(d.get("timestamp") or utc_timestamp()),
        media_kind=media_kind_for_mime(mime_type, has_video_block=video is not None),
        _video=video,
    )


# --------------------------------------------------------------------------
# Batch / history records
# --------------------------------------------------------------------------


@dataclass(frozen=True)
class BatchAnalysisResult:
    file_name: str
    result: AnalysisResult
    thumbnail: str = ""

    def to_wire(self) -> Dict[str, Any]:
        return {"fileName": self.file_name, "result": self.result.to_wire(), "thumbnail": self.thumbnail}


@dataclass(frozen=True)
class HistoryItem:
    """An analysis result plus a generated id and a thumbnail reference."""

    result: AnalysisResult
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    thumbnail: str = ""

    def to_wire(self) -> Dict[str, Any]:
        data = self.result.to_wire()
        data["id"] = self.id
        data["thumbnail"] = self.thumbnail
        return data


__all__ = [
    "MediaKind",
    "ModelSignature",
    "ForensicMetrics",
    "HumanPerception",
    "SuspiciousRegion",
    "WatermarkSignature",
    "WatermarkDetection",
    "FrameAnomaly",
    "VideoAnalysis",
    "AnalysisResult",
    "BatchAnalysisResult",
    "HistoryItem",
    "REQUIRED_FIELDS",
    "from_wire",
    "media_kind_for_mime",
    "utc_timestamp",
]
