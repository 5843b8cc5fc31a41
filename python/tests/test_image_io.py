import base64
from datetime import datetime, timezone
from io import BytesIO

import numpy as np
import pytest
from PIL import Image

from depth_shadow.image_io import (
    array_to_rgba,
    decode_image,
    encode_png,
    export_filename,
    rgba_to_base64,
)


def _png_bytes(mode, size, color):
    buffer = BytesIO()
    Image.new(mode, size, color).save(buffer, format="PNG")
    return buffer.getvalue()


def test_array_to_rgba_expands_channels():
    gray = np.full((3, 5), 77, dtype=np.uint8)
    rgb = np.zeros((3, 5, 3), dtype=np.uint8)

    assert array_to_rgba(gray).shape == (3, 5, 4)
    assert np.all(array_to_rgba(gray)[:, :, 0:3] == 77)
    assert np.all(array_to_rgba(rgb)[:, :, 3] == 255)

    with pytest.raises(ValueError):
        array_to_rgba(np.zeros((3, 5, 2), dtype=np.uint8))


def test_decode_png_bytes_keeps_alpha():
    rgba = decode_image(_png_bytes("RGBA", (6, 4), (10, 20, 30, 40)))

    assert rgba.shape == (4, 6, 4)
    assert tuple(rgba[0, 0]) == (10, 20, 30, 40)


def test_decode_rgb_image_is_opaque():
    rgba = decode_image(_png_bytes("RGB", (3, 3), (1, 2, 3)))

    assert tuple(rgba[1, 1]) == (1, 2, 3, 255)


def test_decode_base64_with_and_without_data_url():
    raw = base64.b64encode(_png_bytes("RGBA", (2, 2), (5, 6, 7, 8))).decode("ascii")

    assert tuple(decode_image(raw)[0, 0]) == (5, 6, 7, 8)
    assert tuple(decode_image("data:image/png;base64," + raw)[0, 0]) == (5, 6, 7, 8)


def test_encoded_png_preserves_rgba_order():
    raster = np.zeros((2, 3, 4), dtype=np.uint8)
    raster[:, :] = (200, 100, 50, 128)

    decoded = np.array(Image.open(BytesIO(encode_png(raster))).convert("RGBA"))
    assert np.array_equal(decoded, raster)

    data_url = rgba_to_base64(raster)
    assert data_url.startswith("data:image/png;base64,")
    assert np.array_equal(decode_image(data_url), raster)


def test_undecodable_bytes_raise():
    with pytest.raises(Exception):
        decode_image(b"definitely not an image")


def test_export_filenames():
    now = datetime(2026, 1, 21, 13, 5, 9, tzinfo=timezone.utc)

    assert export_filename("composite", now) == "composite_2026-01-21_13-05-09.png"
    assert export_filename("depth_masked", now) == "depth_masked_2026-01-21_13-05-09.png"
    with pytest.raises(ValueError):
        export_filename("thumbnail", now)
