"""
Silhouette mask extraction

The mask keeps only the subject's opacity: RGB is forced to white and the
alpha channel carries the subject's (resampled) alpha. Pixels with alpha 0
are outside the subject for every downstream stage.
"""

import sys

import numpy as np

from .raster import resample_rgba


def extract_mask(subject, placement):
    """
    Build the subject mask at exactly placement size

    Args:
        subject: RGBA subject raster at natural size
        placement: current Placement (mask is produced at placement.w x placement.h)

    Returns:
        RGBA mask raster, or None when subject or placement is missing
    """
    if subject is None or placement is None:
        return None
    if placement.w <= 0 or placement.h <= 0:
        return None

    resampled = resample_rgba(subject, placement.w, placement.h)

    mask = np.empty_like(resampled)
    mask[:, :, 0:3] = 255
    mask[:, :, 3] = resampled[:, :, 3]

    coverage = int(np.count_nonzero(mask[:, :, 3]))
    sys.stderr.write(f"extract_mask: size=({placement.w}x{placement.h}), covered_pixels={coverage}\n")
    return mask


def mask_matches(mask, placement):
    """True if mask exists and is exactly placement-sized (not stale)"""
    if mask is None or placement is None:
        return False
    return mask.shape[1] == placement.w and mask.shape[0] == placement.h


def subject_pixels(mask):
    """Boolean plane of pixels inside the subject silhouette"""
    return mask[:, :, 3] > 0
