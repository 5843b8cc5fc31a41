"""
Depth-aware drop shadow synthesis for cutout compositing

placement -> mask -> depth buffer -> depth layers -> shadow -> composite
"""

from .compositor import compose
from .depth_layers import DepthLayer, band_indices, slice_depth_layers
from .depth_sampler import (
    DepthBuffer,
    DepthCalibration,
    depth_clipped_to_mask,
    depth_to_rgba,
    sample_depth,
)
from .image_io import decode_image, export_filename, rgba_to_base64
from .mask import extract_mask
from .options import DEFAULTS, ShadowOptions, resolve_options
from .pipeline import CancelToken, ShadowPipeline
from .placement import Placement, compute_placement
from .projection import cast_length, compute_light_params, layer_cast_length
from .shadow_renderer import ShadowRenderer, render_shadow

__all__ = [
    "CancelToken",
    "DEFAULTS",
    "DepthBuffer",
    "DepthCalibration",
    "DepthLayer",
    "Placement",
    "ShadowOptions",
    "ShadowPipeline",
    "ShadowRenderer",
    "band_indices",
    "cast_length",
    "compose",
    "compute_light_params",
    "compute_placement",
    "decode_image",
    "depth_clipped_to_mask",
    "depth_to_rgba",
    "export_filename",
    "extract_mask",
    "layer_cast_length",
    "render_shadow",
    "resolve_options",
    "rgba_to_base64",
    "sample_depth",
    "slice_depth_layers",
]
