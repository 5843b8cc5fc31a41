"""
Canvas-like alpha surface for shadow drawing

The shadow is always black, so only opacity is tracked. Drawing follows the
2D canvas model: a current transform, global alpha, a blur filter and a
composite operation apply to every draw/fill until changed or reset().

    source-over     D = S + D * (1 - S)
    source-in       D = S * D   (pixels the source does not cover are cleared)
    destination-in  D = D * S
"""

import cv2
import numpy as np

from .raster import alpha_to_black_rgba
from .util import round_half_up

IDENTITY = (1.0, 0.0, 0.0, 1.0, 0.0, 0.0)

COMPOSITE_OPERATIONS = ("source-over", "source-in", "destination-in")


def linear_gradient(t, stops):
    """
    Evaluate gradient stops [(offset, value), ...] at positions t

    Positions outside [first, last] take the nearest end value (canvas pad).
    """
    offsets = [s[0] for s in stops]
    values = [s[1] for s in stops]
    return np.interp(t, offsets, values).astype(np.float32)


class AlphaSurface:
    """Single-channel float opacity buffer with canvas drawing state"""

    def __init__(self, width, height):
        self.width = int(width)
        self.height = int(height)
        self.alpha = np.zeros((self.height, self.width), dtype=np.float32)
        self.reset()

    def reset(self):
        """Restore transform, global alpha, blur and composite operation"""
        self.matrix = IDENTITY
        self.global_alpha = 1.0
        self.blur_px = 0.0
        self.operation = "source-over"

    def is_reset(self):
        return (self.matrix == IDENTITY and self.global_alpha == 1.0
                and self.blur_px == 0.0 and self.operation == "source-over")

    def resize(self, width, height):
        if (int(width), int(height)) != (self.width, self.height):
            self.width = int(width)
            self.height = int(height)
            self.alpha = np.zeros((self.height, self.width), dtype=np.float32)
        self.clear()

    def clear(self):
        self.alpha[:] = 0.0

    # --- transform -------------------------------------------------------

    def set_transform(self, a, b, c, d, e, f):
        self.matrix = (float(a), float(b), float(c), float(d), float(e), float(f))

    def transform(self, a, b, c, d, e, f):
        """Post-multiply the current transform (applied to local coords first)"""
        A, B, C, D, E, F = self.matrix
        self.matrix = (
            A * a + C * b,
            B * a + D * b,
            A * c + C * d,
            B * c + D * d,
            A * e + C * f + E,
            B * e + D * f + F,
        )

    def translate(self, tx, ty):
        self.transform(1.0, 0.0, 0.0, 1.0, tx, ty)

    # --- drawing ---------------------------------------------------------

    def _coverage(self, plane, rect):
        """Warp a local-space plane drawn into rect onto the surface grid"""
        x0, y0, rw, rh = rect
        ph, pw = plane.shape[:2]
        sx = rw / float(pw)
        sy = rh / float(ph)

        A, B, C, D, E, F = self.matrix
        m00, m01 = A * sx, C * sy
        m10, m11 = B * sx, D * sy
        tx = A * x0 + C * y0 + E
        ty = B * x0 + D * y0 + F

        if abs(m00 * m11 - m01 * m10) < 1e-9:
            # singular transform: nothing is drawn
            return np.zeros_like(self.alpha)

        # map pixel centers, not pixel corners
        tx += 0.5 * (m00 + m01) - 0.5
        ty += 0.5 * (m10 + m11) - 0.5

        M = np.float32([[m00, m01, tx], [m10, m11, ty]])
        cov = cv2.warpAffine(plane.astype(np.float32), M, (self.width, self.height),
                             flags=cv2.INTER_LINEAR, borderMode=cv2.BORDER_CONSTANT, borderValue=0.0)

        if self.blur_px > 0:
            cov = cv2.GaussianBlur(cov, (0, 0), sigmaX=float(self.blur_px), sigmaY=float(self.blur_px),
                                   borderType=cv2.BORDER_CONSTANT)

        return np.clip(cov * self.global_alpha, 0.0, 1.0)

    def _composite(self, source):
        op = self.operation
        if op == "source-over":
            self.alpha = source + self.alpha * (1.0 - source)
        elif op == "source-in":
            self.alpha = source * self.alpha
        elif op == "destination-in":
            self.alpha = self.alpha * source
        else:
            raise ValueError(f"Unsupported composite operation: {op}")

    def draw_alpha(self, plane, rect):
        """Draw an opacity plane (values in [0, 1]) into a local-space rect"""
        self._composite(self._coverage(plane, rect))

    def fill_rect(self, rect, plane=None):
        """Fill a local-space rect, solid or with a precomputed gradient plane"""
        if plane is None:
            pw = max(1, round_half_up(rect[2]))
            ph = max(1, round_half_up(rect[3]))
            plane = np.ones((ph, pw), dtype=np.float32)
        self._composite(self._coverage(plane, rect))

    def to_rgba(self):
        return alpha_to_black_rgba(self.alpha)
