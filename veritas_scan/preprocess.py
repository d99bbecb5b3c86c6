"""Media preprocessing.

Turns an arbitrary upload into a base64 payload that is safe to transmit:
images are bounded to ``max_dimension`` on their longer side and re-encoded as
JPEG, which also normalizes formats the service may not accept (PNG with alpha,
oversized TIFF, ...). Anything that is not an image goes out unchanged.

Preprocessing never fails a scan: if Pillow cannot decode or re-encode the
image the raw bytes are sent with their original MIME type.
"""

from __future__ import annotations

import base64
import io
import logging
import mimetypes
from dataclasses import dataclass
from pathlib import Path
from typing import Optional, Tuple

from PIL import Image, ImageOps

log = logging.getLogger(__name__)

MAX_DIMENSION = 1024
JPEG_QUALITY = 85
JPEG_MIME = "image/jpeg"
DEFAULT_MIME = "application/octet-stream"


class PreprocessingError(Exception):
    """Image decode or re-encode failed."""


@dataclass(frozen=True)
class MediaFile:
    """Raw input file as selected by the user."""

    name: str
    mime_type: str
    data: bytes
    path: Optional[Path] = None

    @classmethod
    def from_path(cls, path: str | Path, mime_type: Optional[str] = None) -> "MediaFile":
        path = Path(path)
        if mime_type is None:
            mime_type = mimetypes.guess_type(path.name)[0] or DEFAULT_MIME
        return cls(name=path.name, mime_type=mime_type, data=path.read_bytes(), path=path)

    @property
    def is_image(self) -> bool:
        return self.mime_type.startswith("image/")

    def preview_uri(self) -> str:
        if self.path is None:
            return ""
        return self.path.resolve().as_uri()


@dataclass(frozen=True)
class EncodedMedia:
    payload: str
    mime_type: str
    width: Optional[int] = None
    height: Optional[int] = None
    resized: bool = False
    fallback: bool = False


def fit_within(width: int, height: int, max_dimension: int = MAX_DIMENSION) -> Tuple[int, int]:
    """Scale ``(width, height)`` to fit a ``max_dimension`` square, keeping aspect.

    Never upscales.
    """

    if width <= 0 or height <= 0:
        raise ValueError(f"Invalid image size {width}x{height}")

    if width >= height:
        if width > max_dimension:
            height = max(1, round(height * max_dimension / width))
            width = max_dimension
    else:
        if height > max_dimension:
            width = max(1, round(width * max_dimension / height))
            height = max_dimension
    return int(width), int(height)


def _b64(data: bytes) -> str:
    return base64.b64encode(data).decode("ascii")


def _reencode_image(data: bytes, max_dimension: int, quality: int) -> EncodedMedia:
    try:
        with Image.open(io.BytesIO(data)) as im:
            # Upright pixels, as a browser would draw them
            rgb = ImageOps.exif_transpose(im).convert("RGB")
            src_w, src_h = rgb.size
            new_w, new_h = fit_within(src_w, src_h, max_dimension)
            resized = (new_w, new_h) != (src_w, src_h)
            if resized:
                rgb = rgb.resize((new_w, new_h), resample=Image.BILINEAR)
            buf = io.BytesIO()
            rgb.save(buf, format="JPEG", quality=quality)
    except Exception as e:
        raise PreprocessingError(f"{type(e).__name__}: {e}") from e

    return EncodedMedia(
        payload=_b64(buf.getvalue()),
        mime_type=JPEG_MIME,
        width=new_w,
        height=new_h,
        resized=resized,
    )


def preprocess_media(
    media: MediaFile,
    *,
    max_dimension: int = MAX_DIMENSION,
    quality: int = JPEG_QUALITY,
) -> EncodedMedia:
    """Encode ``media`` for transmission to the analysis service."""

    if not media.is_image:
        return EncodedMedia(payload=_b64(media.data), mime_type=media.mime_type)

    try:
        encoded = _reencode_image(media.data, max_dimension, quality)
    except PreprocessingError as e:
        log.warning("Image optimization failed for %s, sending raw bytes: %s", media.name, e)
        return EncodedMedia(payload=_b64(media.data), mime_type=media.mime_type, fallback=True)

    log.debug(
        "Prepared %s as %s %dx%d (resized=%s)",
        media.name,
        encoded.mime_type,
        encoded.width,
        encoded.height,
        encoded.resized,
    )
    return encoded


__all__ = [
    "MAX_DIMENSION",
    "JPEG_QUALITY",
    "MediaFile",
    "EncodedMedia",
    "PreprocessingError",
    "fit_within",
    "preprocess_media",
]
