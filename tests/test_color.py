import numpy as np
import pytest

from config import COLOR_MODE_HSL, COLOR_MODE_HSV
from core import PixelBuffer
from processors import (
    histogram_equalization,
    hsl_to_rgb,
    hsv_to_rgb,
    rgb_to_gray,
    rgb_to_hsl,
    rgb_to_hsv,
    thresholding,
)
from processors.color import rgb_array_to_hsv


def _rgb(values):
    return PixelBuffer.from_array(np.asarray(values, dtype=np.uint8))


def test_gray_uses_bt709_weights_and_drops_alpha():
    img = _rgb([[[255, 0, 0, 9], [0, 255, 0, 9], [0, 0, 255, 9], [100, 100, 100, 9]]])
    rgb_to_gray(img)
    assert img.channels == 1
    # 0.2126 * 255 = 54.2, 0.7152 * 255 = 182.4, 0.0722 * 255 = 18.4
    np.testing.assert_array_equal(img.data, [54, 182, 18, 100])


def test_gray_on_gray_is_noop():
    img = _rgb([[1, 2], [3, 4]])
    rgb_to_gray(img)
    np.testing.assert_array_equal(img.data, [1, 2, 3, 4])


def test_hsv_of_primaries():
    out = rgb_array_to_hsv(np.array([[255, 0, 0], [0, 255, 0], [0, 0, 255], [0, 0, 0]], dtype=np.uint8))
    # hue 0, 120, 240 degrees -> 0, 85, 170
    np.testing.assert_array_equal(out[:, 0], [0, 85, 170, 0])
    np.testing.assert_array_equal(out[:, 1], [255, 255, 255, 0])
    np.testing.assert_array_equal(out[:, 2], [255, 255, 255, 0])


def test_hsv_round_trip_within_quantization():
    samples = [[200, 120, 40], [30, 160, 90], [60, 90, 220], [180, 180, 180], [240, 60, 120]]
    img = _rgb([samples])
    original = img.pixels.astype(int)
    rgb_to_hsv(img)
    hsv_to_rgb(img)
    assert np.max(np.abs(img.pixels.astype(int) - original)) <= 2


def test_hsl_round_trip_within_quantization():
    samples = [[200, 120, 40], [30, 160, 90], [60, 90, 220], [10, 10, 10]]
    img = _rgb([samples])
    original = img.pixels.astype(int)
    rgb_to_hsl(img)
    hsl_to_rgb(img)
    assert np.max(np.abs(img.pixels.astype(int) - original)) <= 2


def test_color_conversions_keep_alpha():
    img = _rgb([[[200, 120, 40, 33], [30, 160, 90, 66]]])
    rgb_to_hsv(img)
    np.testing.assert_array_equal(img.pixels[0, :, 3], [33, 66])


def test_color_conversions_reject_gray():
    with pytest.raises(ValueError):
        rgb_to_hsv(_rgb([[1, 2]]))


def test_equalization_flat_gray_maps_to_255():
    img = PixelBuffer.from_array(np.full((4, 4), 37, dtype=np.uint8))
    histogram_equalization(img)
    assert np.all(img.data == 255)


def test_equalization_gray_uses_cdf():
    img = PixelBuffer.from_array(np.array([[0, 0, 100, 200]], dtype=np.uint8))
    histogram_equalization(img)
    # CDF: 0 -> 2, 100 -> 3, 200 -> 4 over 4 samples
    np.testing.assert_array_equal(img.data, [128, 128, 191, 255])


@pytest.mark.parametrize("mode", [COLOR_MODE_HSV, COLOR_MODE_HSL])
def test_equalization_color_keeps_shape_and_alpha(mode):
    rng = np.random.default_rng(4)
    arr = rng.integers(0, 256, size=(5, 5, 4), dtype=np.uint8)
    img = PixelBuffer.from_array(arr)
    histogram_equalization(img, mode)
    assert img.shape == (5, 5, 4)
    np.testing.assert_array_equal(img.pixels[:, :, 3], arr[:, :, 3])


def test_equalization_color_remaps_value_channel():
    img = _rgb([[[0, 0, 0], [100, 100, 100], [100, 100, 100], [255, 0, 0]]])
    histogram_equalization(img, COLOR_MODE_HSV)
    # V = 0, 100, 100, 255 over N = 4 with CDF[0] = 1:
    # round(255 * (CDF[v] - 1) / 3) -> 0, 170, 170, 255
    hsv = rgb_array_to_hsv(img.pixels[:, :, :3])
    np.testing.assert_array_equal(hsv[0, :, 2], [0, 170, 170, 255])
    np.testing.assert_array_equal(img.pixels[0, 3], [255, 0, 0])


def test_equalization_all_black_color_image_stays_black():
    img = _rgb(np.zeros((3, 3, 4), dtype=np.uint8) + np.array([0, 0, 0, 77], dtype=np.uint8))
    histogram_equalization(img, COLOR_MODE_HSV)
    assert np.all(img.pixels[:, :, :3] == 0)
    assert np.all(img.pixels[:, :, 3] == 77)


def test_equalization_rejects_unknown_color_mode():
    img = _rgb([[[1, 2, 3]]])
    with pytest.raises(ValueError):
        histogram_equalization(img, 7)


def test_threshold_is_strict():
    img = PixelBuffer.from_array(np.full((4, 4), 100, dtype=np.uint8))
    thresholding(img, 99)
    assert np.all(img.data == 255)

    img = PixelBuffer.from_array(np.full((4, 4), 100, dtype=np.uint8))
    thresholding(img, 100)
    assert np.all(img.data == 0)


@pytest.mark.parametrize("mode", [COLOR_MODE_HSV, COLOR_MODE_HSL])
def test_threshold_color_becomes_single_channel(mode):
    img = _rgb([[[255, 255, 255], [0, 0, 0]]])
    thresholding(img, 128, mode)
    assert img.channels == 1
    np.testing.assert_array_equal(img.data, [255, 0])
