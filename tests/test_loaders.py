"""
Unit tests for image and volume loaders.
"""

import unittest
import os
import tempfile

import numpy as np
from skimage import io as skio

from loaders import DummyLoader, ImageLoader, VolumeLoader, decode_image, list_entries, sorted_entries


def _write_png(path, arr):
    skio.imsave(path, np.asarray(arr, dtype=np.uint8), check_contrast=False)


class TestDecodeImage(unittest.TestCase):
    """Test the codec boundary for single files."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_gray_png(self):
        path = os.path.join(self.tmp, "gray.png")
        arr = np.arange(12, dtype=np.uint8).reshape(3, 4)
        _write_png(path, arr)
        buffer, w, h, c = decode_image(path)
        self.assertEqual((w, h, c), (4, 3, 1))
        np.testing.assert_array_equal(buffer, arr.reshape(-1))

    def test_rgba_png_is_interleaved(self):
        path = os.path.join(self.tmp, "rgba.png")
        arr = np.zeros((2, 2, 4), dtype=np.uint8)
        arr[0, 1] = (1, 2, 3, 4)
        _write_png(path, arr)
        buffer, w, h, c = decode_image(path)
        self.assertEqual(c, 4)
        np.testing.assert_array_equal(buffer[4:8], [1, 2, 3, 4])

    def test_missing_file(self):
        with self.assertRaises(FileNotFoundError):
            decode_image(os.path.join(self.tmp, "nope.png"))

    def test_undecodable_file(self):
        path = os.path.join(self.tmp, "broken.png")
        with open(path, "wb") as fh:
            fh.write(b"not an image")
        with self.assertRaises(OSError):
            ImageLoader().load(path)

    def test_image_loader_metadata(self):
        path = os.path.join(self.tmp, "rgb.png")
        _write_png(path, np.full((2, 3, 3), 9))
        img = ImageLoader().load(path)
        self.assertEqual(img.shape, (2, 3, 3))
        self.assertEqual(img.metadata["Source"], path)


class TestVolumeLoader(unittest.TestCase):
    """Test directory loading, ordering and slab selection."""

    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name
        # written out of order; value encodes the sorted position
        for name, value in [("s03.png", 3), ("s01.png", 1), ("s02.png", 2), ("s04.png", 4)]:
            _write_png(os.path.join(self.tmp, name), np.full((4, 5), value * 10))

    def tearDown(self):
        self._tmp.cleanup()

    def test_sorted_entries_are_case_sensitive_string_order(self):
        open(os.path.join(self.tmp, "A.txt"), "w").close()
        os.mkdir(os.path.join(self.tmp, "sub"))
        names = [name for name, _ in sorted_entries(self.tmp)]
        self.assertEqual(names, ["A.txt", "s01.png", "s02.png", "s03.png", "s04.png", "sub"])
        kinds = dict(list_entries(self.tmp))
        self.assertFalse(kinds["sub"])
        self.assertTrue(kinds["s01.png"])

    def test_loads_in_name_order(self):
        vol = VolumeLoader().load(self.tmp)
        self.assertEqual(vol.dimensions, (4, 4, 5, 1))
        self.assertEqual([int(img.data[0]) for img in vol], [10, 20, 30, 40])
        self.assertEqual(vol.metadata["SliceCount"], 4)

    def test_slab_range(self):
        vol = VolumeLoader().load(self.tmp, z1=2, z2=3)
        self.assertEqual([int(img.data[0]) for img in vol], [20, 30])
        self.assertEqual(vol.metadata["SlabRange"], (2, 3))

    def test_invalid_slab_range(self):
        for z1, z2 in [(0, 2), (3, 2), (1, 5)]:
            with self.assertRaises(ValueError):
                VolumeLoader().load(self.tmp, z1=z1, z2=z2)

    def test_undecodable_files_are_skipped(self):
        with open(os.path.join(self.tmp, "s05.png"), "wb") as fh:
            fh.write(b"garbage")
        with self.assertLogs("loaders.volume", level="WARNING"):
            vol = VolumeLoader().load(self.tmp)
        self.assertEqual(vol.depth, 4)
        self.assertEqual(vol.metadata["FailedFiles"], 1)

    def test_missing_directory(self):
        with self.assertRaises(FileNotFoundError):
            VolumeLoader().load(os.path.join(self.tmp, "missing"))

    def test_directory_without_images(self):
        empty = os.path.join(self.tmp, "empty")
        os.mkdir(empty)
        with self.assertRaises(ValueError):
            VolumeLoader().load(empty)


def test_dummy_loader_generates_uint8_phantom():
    vol = DummyLoader(seed=1).load(32, depth=8)
    assert vol.dimensions == (8, 32, 32, 1)
    arr = vol.as_array()
    assert arr.dtype == np.uint8
    assert arr.max() >= 160, "Expected bright spheres"
    assert vol.metadata["SphereCount"] >= 1


def test_dummy_loader_color_channels():
    vol = DummyLoader(seed=2, channels=4).load(16, depth=2)
    arr = vol.as_array()
    assert arr.shape == (2, 16, 16, 4)
    assert np.all(arr[..., 3] == 255)
    np.testing.assert_array_equal(arr[..., 0], arr[..., 2])


if __name__ == '__main__':
    unittest.main()
