import numpy as np

from webcam_filters.filters.pixelate import DEFAULT_BLOCK_SIZE, PixelateFilter


class TestPixelateFilter:
    def test_full_blocks_take_top_left_sample(self, make_random):
        pixels = make_random(40, 30, seed=7)
        original = pixels.copy()
        out = PixelateFilter().apply(pixels, 0.0)

        size = DEFAULT_BLOCK_SIZE
        for by in range(0, 30, size):
            for bx in range(0, 40, size):
                block = out[by : by + size, bx : bx + size]
                assert np.all(block == original[by, bx])

    def test_point_sample_not_average(self):
        pixels = np.zeros((10, 10, 4), dtype=np.uint8)
        pixels[..., 3] = 255
        pixels[0, 0, :3] = (10, 20, 30)
        pixels[5:, 5:, :3] = 255
        out = PixelateFilter().apply(pixels, 0.0)
        assert np.all(out[..., :3] == (10, 20, 30))

    def test_edge_blocks_are_clipped(self, make_random):
        pixels = make_random(23, 17, seed=9)
        original = pixels.copy()
        out = PixelateFilter().apply(pixels, 0.0)

        assert out.shape == (17, 23, 4)
        assert np.all(out[10:17, 20:23] == original[10, 20])
        assert np.all(out[0:10, 20:23] == original[0, 20])
        assert np.all(out[10:17, 0:10] == original[10, 0])

    def test_frame_smaller_than_block(self, make_random):
        pixels = make_random(3, 2, seed=4)
        expected = pixels[0, 0].copy()
        out = PixelateFilter().apply(pixels, 0.0)
        assert np.all(out == expected)

    def test_deterministic(self, make_random):
        frame = make_random(31, 19, seed=11)
        a = PixelateFilter().apply(frame.copy(), 1.0)
        b = PixelateFilter().apply(frame.copy(), 99.0)
        assert np.array_equal(a, b)
