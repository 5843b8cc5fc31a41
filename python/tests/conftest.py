import cv2
import numpy as np
import pytest


@pytest.fixture
def square_subject():
    """100x100 fully opaque red square"""
    subject = np.zeros((100, 100, 4), dtype=np.uint8)
    subject[:, :] = (220, 30, 30, 255)
    return subject


@pytest.fixture
def background():
    """400x300 opaque light gray background"""
    bg = np.zeros((300, 400, 4), dtype=np.uint8)
    bg[:, :] = (200, 200, 200, 255)
    return bg


@pytest.fixture
def ellipse_subject():
    """120x160 cutout: soft-edged ellipse body with a small head, colored"""
    alpha = np.zeros((160, 120), dtype=np.uint8)
    cv2.ellipse(alpha, (60, 110), (45, 45), 0, 0, 360, 255, -1)
    cv2.circle(alpha, (60, 45), 25, 255, -1)
    alpha = cv2.GaussianBlur(alpha, (5, 5), 0)

    subject = np.zeros((160, 120, 4), dtype=np.uint8)
    subject[:, :, 0] = 40
    subject[:, :, 1] = np.linspace(0, 255, 120, dtype=np.uint8)[None, :]
    subject[:, :, 2] = 180
    subject[:, :, 3] = alpha
    return subject


@pytest.fixture
def gradient_depth():
    """Depth map brightening left to right (0 at left, 255 at right)"""
    ramp = np.linspace(0, 255, 100).astype(np.uint8)
    depth = np.zeros((100, 100, 4), dtype=np.uint8)
    depth[:, :, 0] = ramp[None, :]
    depth[:, :, 1] = ramp[None, :]
    depth[:, :, 2] = ramp[None, :]
    depth[:, :, 3] = 255
    return depth
