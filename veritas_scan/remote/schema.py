"""Request contract for the analysis service.

The system instruction describes the scoring rubric; the response schema is
the strict JSON contract the service must answer with. Every top-level field
is required except ``videoAnalysis``, which only applies to videos.
"""

from __future__ import annotations

from typing import Any, Dict

from ..results import REQUIRED_FIELDS

SYSTEM_INSTRUCTION = """
Role: World-Class Computer Vision & Deepfake Forensic Expert.
Your capability includes detecting specific generative model signatures (Midjourney, DALL-E, Stable Diffusion, Flux, Sora, Runway) and invisible digital watermarks.

Analyze the visual input for synthetic signatures using these criteria:

1. Model Fingerprinting:
   - Identify style markers specific to: Midjourney (excessive detail, distinctive lighting), DALL-E (plastic smoothness), Stable Diffusion (texture merging).
   - If Real, look for ISO grain, sensor noise patterns, and lens chromatic aberration.

2. Digital Watermarks & Signatures:
   - C2PA/CAI: content credentials or metadata markers preserved in the visual encoding.
   - SynthID: the invisible noise pattern used by Google DeepMind in the high-frequency domain.
   - OpenAI/Meta: known invisible watermarking patterns in the pixel noise distribution.

3. Biometric & Physics Forensics:
   - Eyes: non-circular pupils, inconsistent specular highlights.
   - Hands/Limbs: finger count, joint articulation logic.
   - Lighting: shadow falloff and reflection mapping.

4. Region Detection:
   - Identify rectangular regions [ymin, xmin, ymax, xmax] (0-100 scale) where artifacts are visible.

5. Human Perception Rating:
   - Realness, Suspiciousness (uncanny valley), Perceptual Inconsistency, Artifact Level.

6. Video Analysis (if applicable):
   - Temporal flickering in high-frequency textures (foliage, hair).
   - Face stability during rotation.

Output strict JSON.
""".strip()

USER_PROMPT = "Analyze this media."


def _int(description: str) -> Dict[str, Any]:
    return {"type": "INTEGER", "description": description}


RESPONSE_SCHEMA: Dict[str, Any] = {
    "type": "OBJECT",
    "properties": {
        "isAI": {"type": "BOOLEAN", "description": "True if Synthetic, False if Real."},
        "score": _int("Probability score (0=Real, 100=AI)."),
        "verdict": {
            "type": "STRING",
            "description": "Short technical verdict (e.g. 'DETECTED: MIDJOURNEY V6 SIGNATURE').",
        },
        "reasoning": {"type": "STRING", "description": "Detailed forensic explanation."},
        "technicalDetails": {
            "type": "ARRAY",
            "items": {"type": "STRING"},
            "description": "List of specific artifact descriptions.",
        },
        "modelSignature": {
            "type": "OBJECT",
            "properties": {
                "name": {"type": "STRING", "description": "Likely generator name or 'Real Camera Data'."},
                "confidence": _int("Confidence in this attribution (0-100)."),
            },
            "required": ["name", "confidence"],
        },
        "watermark": {
            "type": "OBJECT",
            "properties": {
                "detected": {"type": "BOOLEAN"},
                "signatures": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "provider": {"type": "STRING", "description": "C2PA, SynthID, OpenAI, etc."},
                            "type": {"type": "STRING", "description": "Type of watermark found."},
                            "confidence": _int("0-100"),
                        },
                    },
                },
            },
            "required": ["detected", "signatures"],
        },
        "forensicMetrics": {
            "type": "OBJECT",
            "properties": {
                "biometricIntegrity": _int("0-100 (100 = anatomically perfect)."),
                "textureFidelity": _int("0-100 (100 = natural texture/noise)."),
                "lightingConsistency": _int("0-100 (100 = physically correct lighting)."),
                "physicalLogic": _int("0-100 (100 = no physics violations)."),
            },
            "required": ["biometricIntegrity", "textureFidelity", "lightingConsistency", "physicalLogic"],
        },
        "humanPerception": {
            "type": "OBJECT",
            "properties": {
                "realnessScore": _int("0-100 (how real it looks to the human eye)."),
                "suspiciousnessScore": _int("0-100 (uncanny valley level)."),
                "perceptualInconsistency": _int("0-100 (cognitive dissonance level)."),
                "artifactLevel": _int("0-100 (visible glitches)."),
            },
            "required": ["realnessScore", "suspiciousnessScore", "perceptualInconsistency", "artifactLevel"],
        },
        "suspiciousRegions": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "box_2d": {
                        "type": "ARRAY",
                        "items": {"type": "INTEGER"},
                        "description": "[ymin, xmin, ymax, xmax] percentage 0-100.",
                    },
                    "label": {"type": "STRING", "description": "What is wrong here."},
                    "confidence": _int("0-100"),
                },
                "required": ["box_2d", "label", "confidence"],
            },
        },
        "videoAnalysis": {
            "type": "OBJECT",
            "description": "Required for VIDEOS. Null for IMAGES.",
            "properties": {
                "temporalConsistencyScore": _int("0-100 stability score."),
                "frameAnomalies": {
                    "type": "ARRAY",
                    "items": {
                        "type": "OBJECT",
                        "properties": {
                            "timestamp": {"type": "NUMBER"},
                            "description": {"type": "STRING"},
                        },
                        "required": ["timestamp", "description"],
                    },
                },
            },
            "nullable": True,
        },
    },
    "required": list(REQUIRED_FIELDS),
}


def build_request_body(payload: str, mime_type: str) -> Dict[str, Any]:
    """JSON body of a ``generateContent`` call for one encoded medium."""

    return {
        "systemInstruction": {"parts": [{"text": SYSTEM_INSTRUCTION}]},
        "contents": [
            {
                "role": "user",
                "parts": [
                    {"inlineData": {"mimeType": mime_type, "data": payload}},
                    {"text": USER_PROMPT},
                ],
            }
        ],
        "generationConfig": {
            "responseMimeType": "application/json",
            "responseSchema": RESPONSE_SCHEMA,
        },
    }
