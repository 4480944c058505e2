import unittest
import numpy as np
from core import PixelBuffer, VolumeStack, validate_slab_range


class TestPixelBuffer(unittest.TestCase):
    def test_initialization(self):
        img = PixelBuffer(data=np.arange(24), width=4, height=2, channels=3)
        self.assertEqual(img.shape, (2, 4, 3))
        self.assertEqual(img.data.dtype, np.uint8)
        self.assertEqual(img.data.size, 24)
        self.assertFalse(img.has_alpha)
        self.assertEqual(img.color_channels, 3)

    def test_pixels_view_writes_through(self):
        img = PixelBuffer(data=np.zeros(12), width=2, height=2, channels=3)
        img.pixels[1, 0, 2] = 200
        # row 1, column 0, channel 2 -> ((1 * 2) + 0) * 3 + 2
        self.assertEqual(img.data[8], 200)

    def test_rejects_bad_geometry(self):
        with self.assertRaises(ValueError):
            PixelBuffer(data=np.zeros(0), width=0, height=2, channels=1)
        with self.assertRaises(ValueError):
            PixelBuffer(data=np.zeros(8), width=2, height=2, channels=2)
        with self.assertRaises(ValueError):
            PixelBuffer(data=np.zeros(5), width=2, height=2, channels=1)

    def test_replace_data_swaps_buffer_and_channels(self):
        img = PixelBuffer.from_array(np.full((3, 3, 4), 9, dtype=np.uint8))
        img.replace_data(np.ones(9), channels=1)
        self.assertEqual(img.channels, 1)
        self.assertEqual(img.shape, (3, 3, 1))
        self.assertTrue(np.all(img.data == 1))

    def test_copy_is_independent(self):
        img = PixelBuffer.from_array(np.zeros((2, 2)), metadata={"Source": "x"})
        twin = img.copy()
        twin.data[0] = 77
        self.assertEqual(img.data[0], 0)
        self.assertEqual(twin.metadata["Source"], "x")

    def test_rgba_color_channels_exclude_alpha(self):
        img = PixelBuffer.from_array(np.zeros((2, 2, 4)))
        self.assertTrue(img.has_alpha)
        self.assertEqual(img.color_channels, 3)


class TestVolumeStack(unittest.TestCase):
    def test_dimensions(self):
        vol = VolumeStack.from_array(np.zeros((5, 3, 4), dtype=np.uint8))
        self.assertEqual(vol.depth, 5)
        self.assertEqual(vol.dimensions, (5, 3, 4, 1))
        self.assertEqual((vol.width, vol.height, vol.channels), (4, 3, 1))

    def test_empty_volume(self):
        vol = VolumeStack(metadata={"Type": "Test"})
        self.assertTrue(vol.is_empty)
        self.assertEqual(vol.dimensions, (0, 0, 0, 0))
        self.assertEqual(vol.metadata["Type"], "Test")
        with self.assertRaises(ValueError):
            _ = vol.width

    def test_rejects_heterogeneous_slices(self):
        a = PixelBuffer.from_array(np.zeros((2, 2)))
        b = PixelBuffer.from_array(np.zeros((3, 2)))
        with self.assertRaises(ValueError):
            VolumeStack(images=[a, b])
        vol = VolumeStack(images=[a])
        with self.assertRaises(ValueError):
            vol.append(b)

    def test_set_from_array_round_trip(self):
        vol = VolumeStack.from_array(np.zeros((2, 2, 2), dtype=np.uint8))
        arr = np.arange(8, dtype=np.uint8).reshape(2, 2, 2, 1)
        vol.set_from_array(arr)
        np.testing.assert_array_equal(vol.as_array(), arr)
        self.assertEqual(vol[1].pixels[1, 1, 0], 7)

    def test_slab_is_one_based_inclusive_copy(self):
        arr = np.stack([np.full((2, 2), z, dtype=np.uint8) for z in range(6)])
        vol = VolumeStack.from_array(arr)
        slab = vol.slab(2, 4)
        self.assertEqual(slab.depth, 3)
        self.assertEqual([int(img.data[0]) for img in slab], [1, 2, 3])
        self.assertEqual(slab.metadata["SlabRange"], (2, 4))
        slab[0].data[...] = 99
        self.assertEqual(vol[1].data[0], 1)

    def test_invalid_slab_ranges(self):
        for z1, z2 in [(0, 3), (2, 7), (4, 3)]:
            with self.assertRaises(ValueError):
                validate_slab_range(z1, z2, 6)
        validate_slab_range(1, 6, 6)


if __name__ == '__main__':
    unittest.main()
