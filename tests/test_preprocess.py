from __future__ import annotations

import base64
import io

import numpy as np
import pytest
from PIL import Image

from veritas_scan.preprocess import MediaFile, fit_within, preprocess_media

from .conftest import png_bytes


def _decoded_size(payload: str) -> tuple:
    with Image.open(io.BytesIO(base64.b64decode(payload))) as im:
        assert im.format == "JPEG"
        return im.size


@pytest.mark.parametrize(
    "size, expected",
    [
        ((4000, 3000), (1024, 768)),
        ((3000, 4000), (768, 1024)),
        ((2048, 2048), (1024, 1024)),
        ((1025, 10), (1024, 10)),
        ((800, 600), (800, 600)),
        ((1024, 1024), (1024, 1024)),
        ((1, 5000), (1, 1024)),
    ],
)
def test_fit_within_caps_longer_side(size, expected) -> None:
    assert fit_within(*size) == expected


def test_fit_within_preserves_aspect_ratio() -> None:
    for w, h in [(3333, 1234), (1500, 4321), (5000, 1001)]:
        nw, nh = fit_within(w, h)
        assert max(nw, nh) == 1024
        assert abs(nw / nh - w / h) < 0.01 * (w / h) + 1 / min(nw, nh)


def test_large_image_is_resized_and_forced_to_jpeg() -> None:
    media = MediaFile(name="big.png", mime_type="image/png", data=png_bytes(2400, 1200))
    out = preprocess_media(media)

    assert out.mime_type == "image/jpeg"
    assert out.resized and not out.fallback
    assert (out.width, out.height) == (1024, 512)
    assert _decoded_size(out.payload) == (1024, 512)
    assert not out.payload.startswith("data:")


def test_small_image_keeps_size_but_is_reencoded() -> None:
    media = MediaFile(name="alpha.png", mime_type="image/png", data=png_bytes(300, 200, mode="RGBA"))
    out = preprocess_media(media)

    assert out.mime_type == "image/jpeg"
    assert not out.resized
    assert _decoded_size(out.payload) == (300, 200)


def test_undecodable_image_falls_back_to_raw_bytes() -> None:
    raw = b"\x00\x01definitely-not-a-heic"
    media = MediaFile(name="photo.heic", mime_type="image/heic", data=raw)
    out = preprocess_media(media)

    assert out.fallback
    assert out.mime_type == "image/heic"
    assert base64.b64decode(out.payload) == raw


def test_video_passes_through_unchanged() -> None:
    raw = b"\x00\x00\x00\x18ftypmp42"
    out = preprocess_media(MediaFile(name="clip.mp4", mime_type="video/mp4", data=raw))

    assert out.mime_type == "video/mp4"
    assert not out.resized and not out.fallback
    assert base64.b64decode(out.payload) == raw


def test_media_file_from_path_guesses_mime(tmp_path) -> None:
    p = tmp_path / "frame.png"
    p.write_bytes(png_bytes(8, 8))
    media = MediaFile.from_path(p)
    assert media.mime_type == "image/png"
    assert media.preview_uri().startswith("file://")

    other = tmp_path / "blob.unknownext"
    other.write_bytes(b"x")
    assert MediaFile.from_path(other).mime_type == "application/octet-stream"


def _rotated_jpeg(w: int, h: int) -> bytes:
    im = Image.fromarray(np.full((h, w, 3), 90, dtype=np.uint8), mode="RGB")
    exif = Image.Exif()
    exif[0x0112] = 6  # Orientation: rotate 90 CW to display
    buf = io.BytesIO()
    im.save(buf, format="JPEG", exif=exif.tobytes())
    return buf.getvalue()


def test_exif_orientation_is_applied_before_sizing() -> None:
    small = preprocess_media(MediaFile(name="portrait.jpg", mime_type="image/jpeg", data=_rotated_jpeg(200, 100)))
    assert (small.width, small.height) == (100, 200)
    assert _decoded_size(small.payload) == (100, 200)

    big = preprocess_media(MediaFile(name="phone.jpg", mime_type="image/jpeg", data=_rotated_jpeg(2400, 1200)))
    assert big.resized
    assert _decoded_size(big.payload) == (512, 1024)
