"""
Raster helpers: RGBA buffers as (h, w, 4) uint8 numpy arrays, origin top-left
"""

import cv2
import numpy as np


def raster_size(raster):
    """Return (w, h) of a raster, or None when there is no raster"""
    if raster is None:
        return None
    return raster.shape[1], raster.shape[0]


def premultiply(image):
    """RGBA uint8 -> float32 with RGB scaled by alpha (alpha kept in 0-255)"""
    out = image.astype(np.float32)
    out[:, :, 0:3] *= out[:, :, 3:4] / 255.0
    return out


def unpremultiply(image):
    """Inverse of premultiply(); fully transparent pixels come back black"""
    alpha = np.clip(np.rint(image[:, :, 3]), 0, 255)
    rgb = np.zeros(image.shape[:2] + (3,), dtype=np.float32)
    visible = alpha > 0
    rgb[visible] = image[:, :, 0:3][visible] * (255.0 / image[:, :, 3][visible])[:, None]

    out = np.empty(image.shape[:2] + (4,), dtype=np.uint8)
    out[:, :, 0:3] = np.clip(np.rint(rgb), 0, 255).astype(np.uint8)
    out[:, :, 3] = alpha.astype(np.uint8)
    return out


def resample_rgba(image, w, h):
    """
    Resample an RGBA raster to (w, h) with a smooth filter

    INTER_AREA when shrinking (no aliasing), INTER_LINEAR when enlarging.
    Color is filtered premultiplied so transparent pixels do not darken
    the edges. Same-size requests return a copy without filtering.
    """
    src_h, src_w = image.shape[:2]
    if (src_w, src_h) == (w, h):
        return image.copy()

    shrinking = w * h < src_w * src_h
    interpolation = cv2.INTER_AREA if shrinking else cv2.INTER_LINEAR
    resized = cv2.resize(premultiply(image), (w, h), interpolation=interpolation)
    return unpremultiply(resized)


def alpha_plane(raster):
    """Alpha channel as float32 in [0, 1]"""
    return raster[:, :, 3].astype(np.float32) / 255.0


def alpha_to_black_rgba(alpha):
    """Build a black RGBA raster whose opacity is the given [0, 1] float plane"""
    h, w = alpha.shape
    raster = np.zeros((h, w, 4), dtype=np.uint8)
    raster[:, :, 3] = np.clip(np.rint(alpha * 255.0), 0, 255).astype(np.uint8)
    return raster
