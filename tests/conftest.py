from __future__ import annotations

import base64
import copy
import io
from typing import Any, Dict, List, Tuple

import numpy as np
import pytest

from veritas_scan.preprocess import MediaFile
from veritas_scan.remote.client import AnalysisRequestError
from veritas_scan.results import AnalysisResult, from_wire, utc_timestamp

WIRE_RESULT: Dict[str, Any] = {
    "isAI": True,
    "score": 87,
    "verdict": "DETECTED: MIDJOURNEY V6 SIGNATURE",
    "reasoning": "Plastic skin texture and inconsistent catchlights.",
    "technicalDetails": ["Over-smoothed skin", "Mismatched ear geometry"],
    "modelSignature": {"name": "Midjourney v6", "confidence": 72},
    "forensicMetrics": {
        "biometricIntegrity": 31,
        "textureFidelity": 22,
        "lightingConsistency": 40,
        "physicalLogic": 55,
    },
    "humanPerception": {
        "realnessScore": 64,
        "suspiciousnessScore": 70,
        "perceptualInconsistency": 58,
        "artifactLevel": 35,
    },
    "suspiciousRegions": [{"box_2d": [10, 20, 30, 40], "label": "Mismatched ear", "confidence": 81}],
    "watermark": {
        "detected": True,
        "signatures": [{"provider": "SynthID", "type": "Invisible Noise Watermark", "confidence": 66}],
    },
}


def make_wire(**overrides: Any) -> Dict[str, Any]:
    data = copy.deepcopy(WIRE_RESULT)
    data.update(overrides)
    return data


def make_result(**overrides: Any) -> AnalysisResult:
    return from_wire(make_wire(**overrides), timestamp=utc_timestamp(), mime_type="image/jpeg")


def png_bytes(w: int, h: int, mode: str = "RGB") -> bytes:
    from PIL import Image

    channels = 4 if mode == "RGBA" else 3
    im = Image.fromarray(np.full((h, w, channels), 127, dtype=np.uint8), mode=mode)
    buf = io.BytesIO()
    im.save(buf, format="PNG")
    return buf.getvalue()


def image_file(name: str = "photo.png", w: int = 64, h: int = 48) -> MediaFile:
    return MediaFile(name=name, mime_type="image/png", data=png_bytes(w, h))


def failing_file(name: str) -> MediaFile:
    # Non-image, so the payload is the raw bytes and FakeClient can spot it.
    return MediaFile(name=name, mime_type="video/mp4", data=b"FAIL" + name.encode())


class FakeClient:
    """Stands in for AnalysisClient; fails for payloads starting with b'FAIL'."""

    def __init__(self) -> None:
        self.calls: List[Tuple[str, str]] = []

    def analyze(self, payload: str, mime_type: str) -> AnalysisResult:
        self.calls.append((payload, mime_type))
        if base64.b64decode(payload).startswith(b"FAIL"):
            raise AnalysisRequestError("service unavailable")
        return make_result(score=len(self.calls))


@pytest.fixture
def fake_client() -> FakeClient:
    return FakeClient()


@pytest.fixture
def controller(fake_client):
    from veritas_scan.app.controller import ScanController

    # Workers run inline; state still changes only through poll().
    return ScanController(fake_client, spawn=lambda target: target())
