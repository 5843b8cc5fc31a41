"""Small numeric helpers shared across the shadow pipeline"""

from math import floor


def round_half_up(value):
    """Round like a browser canvas does (0.5 always rounds up, never to even)"""
    return int(floor(value + 0.5))


def clamp(value, lo, hi):
    return max(lo, min(hi, value))


def lerp(a, b, t):
    return a + (b - a) * t
