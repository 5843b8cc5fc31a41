"""
Depth band slicing

Partitions the subject silhouette into layer_count depth bands. Band li
covers [li/N, (li+1)/N); the last band is closed at 1 so every subject
pixel lands in exactly one band. Bands are ordered far (index 0) to near.
"""

import sys
from typing import NamedTuple

import numpy as np

from .mask import subject_pixels


class DepthLayer(NamedTuple):
    raster: np.ndarray  # black RGBA, alpha = original mask alpha inside the band
    z0: float
    z1: float

    @property
    def z_mid(self):
        return (self.z0 + self.z1) / 2.0

    @property
    def pixel_count(self):
        return int(np.count_nonzero(self.raster[:, :, 3]))


def band_indices(depth_grid, layer_count):
    """
    Band index per pixel: li such that li/N <= z < (li+1)/N, last band closed

    Uses the same li/N boundaries as the band definitions so edge values
    (e.g. exactly 0.5) fall in the band that starts there.
    """
    n = max(1, int(layer_count))
    bounds = np.arange(n + 1, dtype=np.float64) / n
    idx = np.searchsorted(bounds, depth_grid.astype(np.float64), side="right") - 1
    return np.clip(idx, 0, n - 1)


def slice_depth_layers(mask, depth, layer_count):
    """
    Slice the mask into depth layers

    Args:
        mask: RGBA mask raster
        depth: DepthBuffer at the same size as the mask
        layer_count: number of bands (clamped to >= 1)

    Returns:
        list of DepthLayer (empty bands included), or [] when either input is
        missing or the sizes disagree (stale)
    """
    if mask is None or depth is None:
        return []
    h, w = mask.shape[:2]
    if (depth.width, depth.height) != (w, h):
        sys.stderr.write(f"slice_depth_layers: stale depth ({depth.width}x{depth.height}) vs mask ({w}x{h}), skipping\n")
        return []

    n = max(1, int(layer_count))
    inside = subject_pixels(mask)
    idx = band_indices(depth.as_grid(), n)
    alpha = mask[:, :, 3]

    layers = []
    for li in range(n):
        raster = np.zeros((h, w, 4), dtype=np.uint8)
        band = inside & (idx == li)
        raster[:, :, 3] = np.where(band, alpha, 0)
        layers.append(DepthLayer(raster, li / float(n), (li + 1) / float(n)))

    populated = sum(1 for layer in layers if layer.pixel_count > 0)
    sys.stderr.write(f"slice_depth_layers: layer_count={n}, populated={populated}, subject_pixels={int(np.count_nonzero(inside))}\n")
    return layers
