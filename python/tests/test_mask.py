import cv2
import numpy as np

from depth_shadow.mask import extract_mask, mask_matches, subject_pixels
from depth_shadow.placement import Placement, compute_placement
from depth_shadow.raster import resample_rgba


def test_opaque_subject_gives_fully_opaque_white_mask(square_subject):
    placement = compute_placement((100, 100), (400, 300))
    mask = extract_mask(square_subject, placement)

    assert mask.shape == (100, 100, 4)
    assert np.all(mask == 255)


def test_mask_keeps_only_subject_alpha(ellipse_subject):
    placement = compute_placement((120, 160), (400, 300))
    mask = extract_mask(ellipse_subject, placement)

    assert np.all(mask[:, :, 0:3] == 255)
    assert np.array_equal(mask[:, :, 3], ellipse_subject[:, :, 3])
    # transparent corners stay outside the silhouette
    assert mask[0, 0, 3] == 0
    assert not subject_pixels(mask)[0, 0]
    assert subject_pixels(mask)[110, 60]


def test_mask_is_resampled_to_placement_size():
    subject = np.zeros((200, 200, 4), dtype=np.uint8)
    cv2.circle(subject, (100, 100), 80, (10, 200, 10, 255), -1)
    placement = compute_placement((200, 200), (100, 100))
    mask = extract_mask(subject, placement)

    assert placement == Placement(0, 0, 100, 100)
    assert mask.shape == (100, 100, 4)
    assert np.array_equal(mask[:, :, 3], resample_rgba(subject, 100, 100)[:, :, 3])


def test_missing_inputs_give_no_mask(square_subject):
    assert extract_mask(None, Placement(0, 0, 10, 10)) is None
    assert extract_mask(square_subject, None) is None


def test_mask_matches_detects_stale_size(square_subject):
    placement = Placement(150, 200, 100, 100)
    mask = extract_mask(square_subject, placement)

    assert mask_matches(mask, placement)
    assert not mask_matches(mask, Placement(0, 0, 50, 100))
    assert not mask_matches(None, placement)


def test_downscaled_mask_alpha_matches_drawn_subject():
    subject = np.zeros((2, 2, 4), dtype=np.uint8)
    subject[:, 0] = (220, 30, 30, 255)
    mask = extract_mask(subject, Placement(0, 0, 1, 1))

    assert abs(int(mask[0, 0, 3]) - 128) <= 1
    assert np.all(mask[:, :, 0:3] == 255)
