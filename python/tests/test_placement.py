import itertools

from depth_shadow.placement import Placement, compute_placement


def test_subject_that_fits_is_not_scaled():
    placement = compute_placement((100, 100), (400, 300))

    assert placement == Placement(x=150, y=200, w=100, h=100)
    assert placement.anchor == (200.0, 300)


def test_wide_subject_is_downscaled_to_background_width():
    placement = compute_placement((800, 400), (400, 300))

    assert placement == Placement(x=0, y=100, w=400, h=200)


def test_tall_subject_is_downscaled_to_background_height():
    placement = compute_placement((100, 600), (400, 300))

    assert placement == Placement(x=175, y=0, w=50, h=300)


def test_half_pixel_centering_rounds_up():
    placement = compute_placement((100, 50), (101, 80))

    assert placement.x == 1
    assert placement.y == 30


def test_zero_sized_inputs_produce_no_placement():
    assert compute_placement((0, 100), (400, 300)) is None
    assert compute_placement((100, 100), (400, 0)) is None


def test_placement_properties_hold_across_sizes():
    sizes = [1, 3, 17, 100, 333, 640, 1024]
    for sw, sh, bw, bh in itertools.product(sizes, sizes, [50, 301, 800], [40, 299, 600]):
        p = compute_placement((sw, sh), (bw, bh))
        scale = min(1.0, bw / sw, bh / sh)

        assert p.w > 0 and p.h > 0
        assert 0 <= p.x
        assert p.x + p.w <= bw
        assert p.y + p.h == bh
        assert p.w <= bw and p.h <= bh
        if scale == 1.0:
            assert (p.w, p.h) == (sw, sh)
        else:
            assert abs(p.w - max(1.0, scale * sw)) <= 0.5 + 1e-9
            assert abs(p.h - max(1.0, scale * sh)) <= 0.5 + 1e-9
