from depth_shadow.depth_sampler import DepthCalibration
from depth_shadow.options import DEFAULTS, resolve_options


def test_defaults():
    options = resolve_options()

    assert options.angle == 180.0
    assert options.elevation == 55.0
    assert options.depth_strength == 1.0
    assert options.invert_depth is False
    assert options.depth_gamma == 1.0
    assert options.layer_count == 16
    assert options.depth_scale == 1.0
    assert (options.depth_offset_x, options.depth_offset_y) == (0, 0)


def test_values_are_clamped_to_control_ranges():
    options = resolve_options({
        "elevation": 95,
        "depthStrength": -1,
        "depthGamma": 9,
        "layerCount": 3,
        "depthScale": 0.1,
        "depthOffsetX": 1000,
        "depthOffsetY": -1000,
    })

    assert options.elevation == 89.0
    assert options.depth_strength == 0.0
    assert options.depth_gamma == 2.5
    assert options.layer_count == 8
    assert options.depth_scale == 0.5
    assert options.depth_offset_x == 300
    assert options.depth_offset_y == -300
    assert resolve_options({"layerCount": 40}).layer_count == 32


def test_angle_wraps():
    assert resolve_options({"angle": 370}).angle == 10.0
    assert resolve_options({"angle": -90}).angle == 270.0


def test_unknown_and_null_options_are_ignored():
    options = resolve_options({"shadowColor": "red", "elevation": None})

    assert options.elevation == DEFAULTS["elevation"]
    assert not hasattr(options, "shadowColor")


def test_calibration_view():
    options = resolve_options({"invertDepth": True, "depthGamma": 1.5, "depthScale": 1.2,
                               "depthOffsetX": 4.6, "depthOffsetY": -2})

    assert options.calibration == DepthCalibration(True, 1.5, 1.2, 5, -2)
