"""
Light geometry for the cast shadow (SSOT)

Light parameters are computed once per render from (angle, elevation) and
every pass reads them from the same dict, so the blurred and sharp passes
and the fade can never disagree about direction or cast length.

Conventions:
    angle: direction the light comes from, 0 = +x, degrees
    dir: shadow direction in image coordinates (y down), opposite the light
    elevation: clamped to [1, 89] so tan() is never 0 or undefined
"""

from math import cos, pi, sin, tan

from .util import clamp, lerp, round_half_up

MIN_ELEVATION = 1.0
MAX_ELEVATION = 89.0

SQUASH = 0.7          # flattening along the perpendicular axis
BASE_BLUR_PX = 6      # blur at 1/tan(elev) == 1
BLUR_FACTOR_RANGE = (0.7, 2.0)


def cast_length(elevation_deg):
    """kBase = 1/tan(elev): grows as the light drops toward the horizon"""
    elev = clamp(float(elevation_deg), MIN_ELEVATION, MAX_ELEVATION)
    return 1.0 / tan(elev * pi / 180.0)


def layer_cast_length(k_base, depth_strength, z_mid):
    """Per-layer cast length; higher z_mid casts proportionally longer"""
    return k_base * (1.0 + depth_strength * z_mid)


def base_blur_px(k_base):
    lo, hi = BLUR_FACTOR_RANGE
    return round_half_up(BASE_BLUR_PX * clamp(k_base, lo, hi))


def compute_light_params(angle_deg, elevation_deg, squash=SQUASH):
    """
    Compute unified light parameters (SSOT)

    Args:
        angle_deg: light direction in degrees
        elevation_deg: light elevation above the horizon in degrees
        squash: perpendicular flattening of the projected silhouette

    Returns:
        Dict with direction vectors, cast length and base blur radius
    """
    rad = float(angle_deg) * pi / 180.0
    dir_x, dir_y = -cos(rad), sin(rad)
    perp_x, perp_y = -dir_y, dir_x

    elev = clamp(float(elevation_deg), MIN_ELEVATION, MAX_ELEVATION)
    k = cast_length(elev)

    return dict(
        angle=float(angle_deg), elevation=elev,
        dir=(dir_x, dir_y), perp=(perp_x, perp_y),
        k=k, squash=squash, blur_px=base_blur_px(k),
    )


def projection_coeffs(k, params):
    """
    Image of the silhouette's local +y axis after projection

    The silhouette is drawn with local y running from -h (top) to 0 (base);
    local x is kept as-is. Returns (c, d) for the canvas transform
    (1, 0, c, d, 0, 0).
    """
    dir_x, dir_y = params['dir']
    perp_x, perp_y = params['perp']
    squash = params['squash']
    c = -k * dir_x + squash * perp_x
    d = -k * dir_y + squash * perp_y
    return c, d


def layer_style(z_mid, base_blur):
    """Blur radius and pass alphas for a depth layer at z_mid"""
    return dict(
        blur_px=base_blur * lerp(0.7, 1.8, z_mid),
        blurred_alpha=lerp(0.06, 0.2, z_mid),
        sharp_alpha=lerp(0.85, 0.25, z_mid),
    )


def fade_length(h, k_base, depth_strength):
    """Distance along dir over which the depth-aware shadow fades out"""
    return max(10.0, h * k_base * (1.0 + max(0.0, depth_strength)) * 0.9)
