"""
Final composite: background -> shadow -> subject
"""

import sys

import numpy as np
from PIL import Image

from .raster import resample_rgba


def compose(background, shadow=None, subject=None, placement=None):
    """
    Draw background, shadow and subject onto a background-sized canvas

    Args:
        background: RGBA background raster (defines the canvas size)
        shadow: optional RGBA shadow raster of background size
        subject: optional RGBA subject raster at natural size
        placement: Placement the subject is resampled into

    Returns:
        RGBA composite raster, or None when there is no background
    """
    if background is None:
        return None

    bh, bw = background.shape[:2]
    canvas = Image.fromarray(np.ascontiguousarray(background))

    if shadow is not None and shadow.shape[:2] == (bh, bw):
        canvas = Image.alpha_composite(canvas, Image.fromarray(shadow))
    elif shadow is not None:
        sys.stderr.write(f"compose: shadow size {shadow.shape[1]}x{shadow.shape[0]} != background {bw}x{bh}, skipped\n")

    if subject is not None and placement is not None:
        drawn = resample_rgba(subject, placement.w, placement.h)
        layer = Image.new("RGBA", (bw, bh), (0, 0, 0, 0))
        layer.paste(Image.fromarray(drawn), (placement.x, placement.y))
        canvas = Image.alpha_composite(canvas, layer)

    return np.array(canvas)
