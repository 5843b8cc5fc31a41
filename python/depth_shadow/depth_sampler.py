"""
Depth buffer construction and calibration

The external depth map is drawn into a placement-sized sampling canvas
(with alignment scale/offset), converted to grayscale in [0, 1], optionally
inverted and finally gamma-shaped. 0 = far, 1 = near (before invert).
"""

import sys
from typing import NamedTuple

import cv2
import numpy as np

from .raster import premultiply, resample_rgba, unpremultiply
from .util import clamp, round_half_up

# Internal clamp for the alignment scale (UI exposes 0.5-2.0)
MIN_DEPTH_SCALE = 0.1
MAX_DEPTH_SCALE = 4.0


class DepthBuffer(NamedTuple):
    """Flat row-major float32 depth values paired with their size"""
    values: np.ndarray
    width: int
    height: int

    def as_grid(self):
        return self.values.reshape(self.height, self.width)

    @property
    def size(self):
        return self.width, self.height


class DepthCalibration(NamedTuple):
    invert: bool = False
    gamma: float = 1.0
    scale: float = 1.0
    offset_x: int = 0
    offset_y: int = 0


def draw_depth_source(depth_source, w, h, scale=1.0, offset_x=0, offset_y=0):
    """
    Draw the depth source into a blank (w, h) RGBA canvas

    The source is resized to (w*scale, h*scale), centered, then shifted by
    the offsets. Parts outside the canvas are clipped; uncovered canvas
    pixels stay transparent black.
    """
    scale = clamp(float(scale), MIN_DEPTH_SCALE, MAX_DEPTH_SCALE)
    dw = w * scale
    dh = h * scale
    x = (w - dw) / 2.0 + offset_x
    y = (h - dh) / 2.0 + offset_y

    resized = resample_rgba(depth_source, max(1, round_half_up(dw)), max(1, round_half_up(dh)))

    M = np.float32([[1, 0, x], [0, 1, y]])
    canvas = cv2.warpAffine(premultiply(resized), M, (w, h), flags=cv2.INTER_LINEAR,
                            borderMode=cv2.BORDER_CONSTANT, borderValue=(0, 0, 0, 0))

    # read back straight color; transparent pixels come back black
    return unpremultiply(canvas)


def sample_depth(depth_source, size, calibration=None):
    """
    Build a calibrated depth buffer at the given (w, h)

    Args:
        depth_source: RGBA depth map at natural size
        size: (w, h) target, normally the placement size
        calibration: DepthCalibration (invert, gamma, scale, offsets)

    Returns:
        DepthBuffer with values in [0, 1], or None if inputs are missing
    """
    if depth_source is None or size is None:
        return None
    if calibration is None:
        calibration = DepthCalibration()

    w = max(1, int(round(size[0])))
    h = max(1, int(round(size[1])))

    canvas = draw_depth_source(depth_source, w, h, calibration.scale,
                               calibration.offset_x, calibration.offset_y)

    rgb = canvas[:, :, 0:3].astype(np.float32)
    z = rgb.sum(axis=2) / (3.0 * 255.0)

    if calibration.invert:
        z = 1.0 - z

    z = np.power(np.clip(z, 0.0, 1.0), float(calibration.gamma)).astype(np.float32)

    sys.stderr.write(f"sample_depth: size=({w}x{h}), invert={calibration.invert}, gamma={calibration.gamma:.2f}, scale={calibration.scale:.2f}, offset=({calibration.offset_x},{calibration.offset_y}), range=[{float(z.min()):.3f},{float(z.max()):.3f}]\n")

    return DepthBuffer(z.reshape(-1), w, h)


def depth_to_rgba(depth):
    """Grayscale visualization of the processed depth buffer (opaque)"""
    gray = np.clip(np.rint(depth.as_grid() * 255.0), 0, 255).astype(np.uint8)
    rgba = np.empty((depth.height, depth.width, 4), dtype=np.uint8)
    rgba[:, :, 0] = gray
    rgba[:, :, 1] = gray
    rgba[:, :, 2] = gray
    rgba[:, :, 3] = 255
    return rgba


def depth_clipped_to_mask(depth, mask):
    """Grayscale depth visualization carrying the mask's alpha"""
    if depth is None or mask is None:
        return None
    if mask.shape[1] != depth.width or mask.shape[0] != depth.height:
        return None
    rgba = depth_to_rgba(depth)
    rgba[:, :, 3] = mask[:, :, 3]
    return rgba
