import numpy as np

from webcam_filters.filters.water_ripple import WaterRippleFilter


class TestWaterRippleFilter:
    def test_source_coordinates_at_center(self):
        src_x, src_y = WaterRippleFilter().source_coordinates(100, 100, 0.0)
        assert src_x[50, 50] == 70
        assert src_y[50, 50] == 50

    def test_center_copies_displaced_pixel(self, make_random):
        pixels = make_random(100, 100, seed=13)
        original = pixels.copy()
        out = WaterRippleFilter().apply(pixels, 0.0)
        assert np.array_equal(out[50, 50, :3], original[50, 70, :3])

    def test_alpha_is_never_copied(self, make_random):
        pixels = make_random(64, 64, seed=14)
        pixels[..., 3] = np.arange(64, dtype=np.uint8)[None, :]
        original = pixels.copy()
        out = WaterRippleFilter().apply(pixels, 0.4)
        assert np.array_equal(out[..., 3], original[..., 3])

    def test_out_of_bounds_sources_leave_pixel_unmodified(self, make_random):
        pixels = make_random(100, 60, seed=15)
        original = pixels.copy()
        out = WaterRippleFilter().apply(pixels, 1.3)
        # the horizontal displacement is at least 20 * cos(0.5) > 17.5 px
        assert np.array_equal(out[:, 83:], original[:, 83:])

    def test_reads_from_frozen_copy(self):
        pixels = np.zeros((1, 60, 4), dtype=np.uint8)
        pixels[0, :, 0] = np.arange(60, dtype=np.uint8)
        out = WaterRippleFilter().apply(pixels, 0.0)

        src_x, src_y = WaterRippleFilter().source_coordinates(60, 1, 0.0)
        inside = (src_x[0] < 60) & (src_y[0] == 0)
        expected = np.where(inside, src_x[0], np.arange(60))
        assert inside.any()
        assert np.array_equal(out[0, :, 0], expected.astype(np.uint8))

    def test_deterministic_for_fixed_time(self, make_random):
        frame = make_random(50, 40, seed=16)
        a = WaterRippleFilter().apply(frame.copy(), 0.75)
        b = WaterRippleFilter().apply(frame.copy(), 0.75)
        assert np.array_equal(a, b)
