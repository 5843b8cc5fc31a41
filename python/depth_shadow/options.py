"""
Shadow options: defaults and range clamping

User options arrive as a dict with camelCase keys (as sent by the UI).
Missing keys fall back to DEFAULTS; every value is clamped to the range
the controls expose.
"""

import sys
from typing import NamedTuple

from .depth_sampler import DepthCalibration
from .util import clamp

DEFAULTS = {
    "angle": 180.0,
    "elevation": 55.0,
    "depthStrength": 1.0,
    "invertDepth": False,
    "depthGamma": 1.0,
    "layerCount": 16,
    "depthScale": 1.0,
    "depthOffsetX": 0,
    "depthOffsetY": 0,
}

RANGES = {
    "elevation": (1.0, 89.0),
    "depthStrength": (0.0, 2.0),
    "depthGamma": (0.4, 2.5),
    "layerCount": (8, 32),
    "depthScale": (0.5, 2.0),
    "depthOffsetX": (-300, 300),
    "depthOffsetY": (-300, 300),
}


class ShadowOptions(NamedTuple):
    angle: float
    elevation: float
    depth_strength: float
    invert_depth: bool
    depth_gamma: float
    layer_count: int
    depth_scale: float
    depth_offset_x: int
    depth_offset_y: int

    @property
    def calibration(self):
        return DepthCalibration(
            invert=self.invert_depth,
            gamma=self.depth_gamma,
            scale=self.depth_scale,
            offset_x=self.depth_offset_x,
            offset_y=self.depth_offset_y,
        )


def _clamped(merged, key, cast):
    lo, hi = RANGES[key]
    return cast(clamp(cast(merged[key]), lo, hi))


def resolve_options(options=None):
    """
    Merge user options over DEFAULTS and clamp to the control ranges

    Unknown keys are ignored.
    """
    merged = dict(DEFAULTS)
    if options:
        for key, value in options.items():
            if key in DEFAULTS and value is not None:
                merged[key] = value
            elif key not in DEFAULTS:
                sys.stderr.write(f"resolve_options: ignoring unknown option '{key}'\n")

    return ShadowOptions(
        angle=float(merged["angle"]) % 360.0,
        elevation=_clamped(merged, "elevation", float),
        depth_strength=_clamped(merged, "depthStrength", float),
        invert_depth=bool(merged["invertDepth"]),
        depth_gamma=_clamped(merged, "depthGamma", float),
        layer_count=_clamped(merged, "layerCount", lambda v: int(round(float(v)))),
        depth_scale=_clamped(merged, "depthScale", float),
        depth_offset_x=_clamped(merged, "depthOffsetX", lambda v: int(round(float(v)))),
        depth_offset_y=_clamped(merged, "depthOffsetY", lambda v: int(round(float(v)))),
    )
