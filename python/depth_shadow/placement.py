"""
Subject placement over the background canvas

Scale-to-fit (never upscale), horizontally centered, bottom edge on the
background's bottom edge so the subject stands on the floor of the frame.
"""

import sys
from typing import NamedTuple, Optional

from .util import round_half_up


class Placement(NamedTuple):
    x: int
    y: int
    w: int
    h: int

    @property
    def size(self):
        return self.w, self.h

    @property
    def anchor(self):
        """Bottom-center point where the subject meets the ground"""
        return self.x + self.w / 2.0, self.y + self.h

    def to_dict(self):
        return {"x": self.x, "y": self.y, "w": self.w, "h": self.h}


def compute_placement(subject_size, background_size) -> Optional[Placement]:
    """
    Compute where the subject is drawn over the background

    Args:
        subject_size: (sw, sh) natural subject dimensions
        background_size: (bw, bh) natural background dimensions

    Returns:
        Placement, or None if either raster has a zero dimension
    """
    sw, sh = subject_size
    bw, bh = background_size
    if sw <= 0 or sh <= 0 or bw <= 0 or bh <= 0:
        sys.stderr.write(f"compute_placement: degenerate sizes subject={subject_size} background={background_size}, no placement\n")
        return None

    scale = min(1.0, bw / sw, bh / sh)

    w = max(1, round_half_up(scale * sw))
    h = max(1, round_half_up(scale * sh))
    # rounding can overshoot by one pixel on the limiting axis
    w = min(w, bw)
    h = min(h, bh)

    x = round_half_up((bw - w) / 2.0)
    y = bh - h

    sys.stderr.write(f"compute_placement: subject=({sw}x{sh}) background=({bw}x{bh}) scale={scale:.4f} -> x={x}, y={y}, w={w}, h={h}\n")
    return Placement(x, y, w, h)
