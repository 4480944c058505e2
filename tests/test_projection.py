import numpy as np
import pytest

from core import VolumeStack
from processors import SliceType, aip, min_ip, mip, project, slice_volume


def _three_slices():
    arr = np.zeros((3, 2, 2), dtype=np.uint8)
    arr[0] = 10
    arr[1] = 20
    arr[2] = 30
    arr[:, 1, 1] = (5, 6, 8)
    return VolumeStack.from_array(arr)


def test_mip_minip_aip_scenario():
    assert mip(_three_slices()).pixels[0, 0, 0] == 30
    assert min_ip(_three_slices()).pixels[0, 0, 0] == 10
    assert aip(_three_slices()).pixels[0, 0, 0] == 20


def test_aip_rounds_half_up():
    # (5 + 6 + 8) / 3 = 6.33; check a .5 case separately
    assert aip(_three_slices()).pixels[1, 1, 0] == 6
    vol = VolumeStack.from_array(np.array([[[1]], [[2]]], dtype=np.uint8))
    assert aip(vol).data[0] == 2


def test_projection_metadata_and_geometry():
    vol = VolumeStack.from_array(np.zeros((4, 3, 5, 3), dtype=np.uint8))
    out = mip(vol)
    assert out.shape == (3, 5, 3)
    assert out.metadata["Projection"] == "MIP"
    assert out.metadata["Slices"] == 4


@pytest.mark.parametrize("method", [1, 2])
def test_prefilter_runs_on_constant_volume(method):
    vol = VolumeStack.from_array(np.full((3, 4, 4), 70, dtype=np.uint8))
    out = mip(vol, filter_method=method, kernel_size=3, sigma=1.0)
    assert np.all(out.data == 70)


def test_invalid_filter_method_rejected_before_volume_check():
    with pytest.raises(ValueError, match="filter method"):
        mip(VolumeStack(), filter_method=9)


def test_empty_volume_rejected():
    with pytest.raises(ValueError):
        aip(VolumeStack())


def test_project_dispatch():
    assert project(_three_slices(), "MinIP").pixels[0, 0, 0] == 10
    with pytest.raises(ValueError):
        project(_three_slices(), "median")


def _indexed_volume(depth=4, height=3, width=5):
    z, y, x = np.meshgrid(np.arange(depth), np.arange(height), np.arange(width), indexing="ij")
    return VolumeStack.from_array((z * 50 + y * 10 + x).astype(np.uint8))


def test_xz_slice_shape_and_rows():
    vol = _indexed_volume()
    out = slice_volume(vol, 2, SliceType.XZ)
    # width W, height Z
    assert (out.width, out.height) == (5, 4)
    np.testing.assert_array_equal(out.pixels[0, :, 0], vol[0].pixels[2, :, 0])
    np.testing.assert_array_equal(out.pixels[3, :, 0], vol[3].pixels[2, :, 0])


def test_yz_slice_shape_and_columns():
    vol = _indexed_volume()
    out = slice_volume(vol, 1, SliceType.YZ)
    # width Z, height H
    assert (out.width, out.height) == (4, 3)
    np.testing.assert_array_equal(out.pixels[:, 2, 0], vol[2].pixels[:, 1, 0])
    assert out.metadata["Slice"] == "YZ"


def test_slice_accepts_string_type_and_keeps_channels():
    vol = VolumeStack.from_array(np.zeros((2, 3, 3, 4), dtype=np.uint8))
    out = slice_volume(vol, 0, "xz")
    assert out.channels == 4
