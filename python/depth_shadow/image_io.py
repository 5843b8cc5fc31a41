"""
Decode / encode helpers between transport formats and RGBA rasters

Rasters stay in RGBA order inside the pipeline; conversion to OpenCV's
BGRA order happens only at PNG encode time.
"""

import base64
from datetime import datetime, timezone
from io import BytesIO

import cv2
import numpy as np
from PIL import Image

EXPORT_KINDS = (
    "composite", "shadow", "mask", "depth", "depth_masked",
    "foreground_original", "background_original",
)


def base64_to_bytes(base64_string):
    """Strip an optional data URL prefix and decode"""
    if base64_string.startswith('data:image'):
        base64_string = base64_string.split(',', 1)[1]
    return base64.b64decode(base64_string)


def array_to_rgba(image_array):
    """Normalize a decoded array (gray, RGB or RGBA) to RGBA uint8"""
    image_array = np.asarray(image_array)
    if image_array.dtype != np.uint8:
        image_array = np.clip(image_array, 0, 255).astype(np.uint8)

    if image_array.ndim == 2:
        image_array = np.stack([image_array] * 3, axis=2)

    # If image has 3 channels (RGB), add alpha channel (fully opaque)
    if image_array.shape[2] == 3:
        alpha = np.full((image_array.shape[0], image_array.shape[1], 1), 255, dtype=np.uint8)
        image_array = np.concatenate([image_array, alpha], axis=2)

    if image_array.shape[2] != 4:
        raise ValueError(f"Unsupported channel count: {image_array.shape[2]}")
    return np.ascontiguousarray(image_array)


def decode_image(source):
    """
    Decode an image source into an RGBA raster

    Args:
        source: raw bytes, a base64 string / data URL, or an already decoded array

    Returns:
        (h, w, 4) uint8 RGBA array

    Raises:
        PIL.UnidentifiedImageError / binascii.Error / ValueError on undecodable input
    """
    if isinstance(source, np.ndarray):
        return array_to_rgba(source)
    if isinstance(source, str):
        source = base64_to_bytes(source)

    with Image.open(BytesIO(source)) as image:
        rgba = image.convert("RGBA")
        return np.array(rgba)


def encode_png(raster):
    """Encode an RGBA raster as PNG bytes"""
    ok, buffer = cv2.imencode('.png', cv2.cvtColor(raster, cv2.COLOR_RGBA2BGRA))
    if not ok:
        raise ValueError("PNG encoding failed")
    return buffer.tobytes()


def rgba_to_base64(raster):
    """Convert an RGBA raster to a base64 PNG data URL"""
    image_base64 = base64.b64encode(encode_png(raster)).decode('utf-8')
    return f"data:image/png;base64,{image_base64}"


def make_stamp(now=None):
    """Timestamp like 2026-01-21_13-05-09 (UTC)"""
    now = now or datetime.now(timezone.utc)
    return now.strftime("%Y-%m-%d_%H-%M-%S")


def export_filename(kind, now=None):
    if kind not in EXPORT_KINDS:
        raise ValueError(f"Unknown export kind: {kind}")
    return f"{kind}_{make_stamp(now)}.png"
