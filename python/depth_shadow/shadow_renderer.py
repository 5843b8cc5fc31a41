"""
Projective drop-shadow rendering

The subject silhouette is projected from its bottom-center anchor onto the
ground plane with a shear/scale transform derived from the light:

    X = ax + lx + c * ly
    Y = ay +      d * ly        (ly runs from -h at the top to 0 at the base)

Two paths:
1. No depth layers: the mask is drawn blurred then sharp through one
   transform, each pass stencilled to black with source-in, then faded in
   local space from the base (opaque) to the top (transparent).
2. Depth layers: each band is drawn with its own cast length, blur and
   alphas (far -> near, plain source-over), then the accumulated shadow is
   faded once in screen space along the shadow direction.
"""

import sys

import numpy as np

from .mask import mask_matches
from .projection import (
    fade_length,
    layer_cast_length,
    layer_style,
    projection_coeffs,
)
from .raster import alpha_plane
from .surface import AlphaSurface, linear_gradient

# (blurred?, global alpha) for the no-depth passes
FALLBACK_PASSES = ((True, 0.45), (False, 0.90))

LOCAL_FADE_STOPS = ((0.0, 0.0), (0.6, 0.6), (1.0, 1.0))
SCREEN_FADE_STOPS = ((0.0, 1.0), (0.75, 0.55), (1.0, 0.0))


def _snapshot_consistent(mask, placement, layers):
    """All size-bearing inputs must agree before anything is drawn"""
    if not mask_matches(mask, placement):
        return False
    for layer in layers:
        if layer.raster.shape[:2] != mask.shape[:2]:
            return False
    return True


class ShadowRenderer:
    """
    Renders the shadow raster for a placement on a background-sized surface

    The surface is reused across renders; all drawing state is reset before
    and after each run. `version` increments on every produced raster.
    """

    def __init__(self):
        self.surface = None
        self.version = 0
        self.last_stats = None

    def render(self, mask, placement, background_size, light, layers=None, depth_strength=0.0):
        """
        Render the shadow raster

        Args:
            mask: RGBA mask at placement size
            placement: Placement of the subject on the background
            background_size: (bw, bh) of the output canvas
            light: dict from compute_light_params()
            layers: optional list of DepthLayer (far -> near)
            depth_strength: how much near layers lengthen their cast (0-2)

        Returns:
            Black RGBA shadow raster of background size, or None when an
            input is missing or the inputs disagree in size
        """
        layers = list(layers or [])

        if placement is None or placement.w <= 0 or placement.h <= 0:
            return None
        if mask is None or mask.size == 0:
            return None
        if background_size is None or background_size[0] <= 0 or background_size[1] <= 0:
            return None
        if not _snapshot_consistent(mask, placement, layers):
            sys.stderr.write(f"render_shadow: inconsistent snapshot (mask={mask.shape[1]}x{mask.shape[0]}, placement={placement.w}x{placement.h}), deferring\n")
            return None

        bw, bh = background_size
        if self.surface is None:
            self.surface = AlphaSurface(bw, bh)
        else:
            self.surface.resize(bw, bh)
        surface = self.surface
        surface.reset()

        try:
            if layers:
                self._render_depth_layers(surface, placement, light, layers, depth_strength)
                path = "depth"
            else:
                self._render_fallback(surface, mask, placement, light)
                path = "fallback"
        finally:
            surface.reset()

        shadow = surface.to_rgba()
        self.version += 1

        shadow_alpha = shadow[:, :, 3]
        non_zero = int(np.count_nonzero(shadow_alpha))
        self.last_stats = {
            "path": path,
            "non_zero_pixels": non_zero,
            "mean_intensity": float(shadow_alpha[shadow_alpha > 0].mean()) if non_zero > 0 else 0.0,
            "max_intensity": int(shadow_alpha.max()),
        }
        sys.stderr.write(f"render_shadow: path={path}, k={light['k']:.3f}, blur={light['blur_px']}, layers={len(layers)}, non_zero={non_zero}, version={self.version}\n")
        return shadow

    def _begin_projection(self, surface, placement, light, k):
        ax, ay = placement.anchor
        c, d = projection_coeffs(k, light)
        surface.set_transform(1, 0, 0, 1, 0, 0)
        surface.translate(ax, ay)
        surface.transform(1, 0, c, d, 0, 0)

    def _render_fallback(self, surface, mask, placement, light):
        w, h = placement.w, placement.h
        rect = (-w / 2.0, -h, w, h)
        self._begin_projection(surface, placement, light, light['k'])

        mask_alpha = alpha_plane(mask)
        for blurred, alpha in FALLBACK_PASSES:
            surface.blur_px = light['blur_px'] if blurred else 0.0
            surface.global_alpha = alpha

            surface.operation = "source-over"
            surface.draw_alpha(mask_alpha, rect)
            # stencil: keep only what the mask covered, recolored black
            surface.operation = "source-in"
            surface.fill_rect(rect)

        # fade toward the silhouette top, multiplying existing alpha
        surface.blur_px = 0.0
        surface.global_alpha = 1.0
        surface.operation = "destination-in"
        rows = (np.arange(h, dtype=np.float32) + 0.5) / h
        fade = np.repeat(linear_gradient(rows, LOCAL_FADE_STOPS)[:, None], w, axis=1)
        surface.fill_rect(rect, fade)

    def _render_depth_layers(self, surface, placement, light, layers, depth_strength):
        w, h = placement.w, placement.h
        rect = (-w / 2.0, -h, w, h)
        k_base = light['k']

        for layer in layers:
            if layer.pixel_count == 0:
                continue
            z_mid = layer.z_mid
            self._begin_projection(surface, placement, light, layer_cast_length(k_base, depth_strength, z_mid))
            style = layer_style(z_mid, light['blur_px'])
            plane = alpha_plane(layer.raster)

            surface.operation = "source-over"
            surface.blur_px = style['blur_px']
            surface.global_alpha = style['blurred_alpha']
            surface.draw_alpha(plane, rect)

            surface.blur_px = 0.0
            surface.global_alpha = style['sharp_alpha']
            surface.draw_alpha(plane, rect)

        # one directional fade over the whole accumulated shadow, screen space
        surface.reset()
        surface.operation = "destination-in"
        ax, ay = placement.anchor
        dir_x, dir_y = light['dir']
        max_len = fade_length(h, k_base, depth_strength)
        ys, xs = np.mgrid[0:surface.height, 0:surface.width].astype(np.float32)
        t = ((xs + 0.5 - ax) * dir_x + (ys + 0.5 - ay) * dir_y) / max_len
        surface.fill_rect((0, 0, surface.width, surface.height), linear_gradient(t, SCREEN_FADE_STOPS))


def render_shadow(mask, placement, background_size, light, layers=None, depth_strength=0.0):
    """One-shot render on a fresh surface"""
    return ShadowRenderer().render(mask, placement, background_size, light, layers, depth_strength)
