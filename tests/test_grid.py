import numpy as np
import pytest

from dyeflow.errors import ComputeResourceLost, SimulationInitError
from dyeflow.grid import (DYE, PRESSURE, VX, VY, BufferIndex, GridState,
                          neighbors, sample_wrapped)


def _indexed(width=4, height=3):
    """Buffer whose VX channel encodes the cell: x + 10 * y."""
    buf = np.zeros((height, width, 4), dtype=np.float32)
    ys, xs = np.mgrid[0:height, 0:width]
    buf[..., VX] = xs + 10 * ys
    return buf


def test_buffer_index_flips_between_a_and_b():
    assert BufferIndex.A.flip() is BufferIndex.B
    assert BufferIndex.B.flip() is BufferIndex.A


def test_state_starts_zeroed_with_distinct_buffers():
    g = GridState(5, 3)
    assert g.read.shape == (3, 5, 4)
    assert not g.read.any() and not g.write.any()
    assert g.read is not g.write
    assert g.current is BufferIndex.A


def test_flip_swaps_read_and_write():
    g = GridState(4, 4)
    read, write = g.read, g.write
    g.flip()
    assert g.read is write
    assert g.write is read


def test_neighbors_wrap_both_axes():
    buf = _indexed()
    c, t, l, r, b = neighbors(buf, slice(0, 3))

    assert c[1, 2, VX] == 12
    assert l[1, 0, VX] == 13      # left of column 0 is column 3
    assert r[1, 3, VX] == 10      # right of column 3 is column 0
    assert t[2, 1, VX] == 1       # above the top row is row 0
    assert b[0, 1, VX] == 21      # below row 0 is the top row


def test_neighbors_of_a_row_band():
    buf = _indexed()
    c, t, l, r, b = neighbors(buf, slice(1, 2))
    assert c.shape == (1, 4, 4)
    np.testing.assert_array_equal(t[0, :, VX], [20, 21, 22, 23])
    np.testing.assert_array_equal(b[0, :, VX], [0, 1, 2, 3])


def test_sample_on_a_cell_is_exact():
    buf = _indexed()
    x = np.array([2.0, 0.0])
    y = np.array([1.0, 2.0])
    np.testing.assert_array_equal(sample_wrapped(buf[..., VX], x, y), [12, 20])


def test_sample_interpolates_across_the_wrap():
    buf = _indexed()
    field = buf[..., VX]
    # halfway between column 3 and column 0 (wrapped) in row 0
    assert sample_wrapped(field, np.array(3.5), np.array(0.0)) == pytest.approx(1.5)
    assert sample_wrapped(field, np.array(-0.5), np.array(0.0)) == pytest.approx(1.5)
    # halfway between the top row and row 0
    assert sample_wrapped(field, np.array(0.0), np.array(2.5)) == pytest.approx(10.0)


def test_sample_vector_field_keeps_channels():
    buf = np.zeros((4, 4, 4), dtype=np.float32)
    buf[..., VX] = 1.0
    buf[..., VY] = -2.0
    out = sample_wrapped(buf[..., VX:VY + 1], np.full((2, 3), 1.25), np.full((2, 3), 0.75))
    assert out.shape == (2, 3, 2)
    np.testing.assert_allclose(out[..., 0], 1.0)
    np.testing.assert_allclose(out[..., 1], -2.0)


@pytest.mark.parametrize("width, height", [(0, 4), (4, -1), (2.5, 4)])
def test_invalid_size_is_fatal(width, height):
    with pytest.raises(SimulationInitError):
        GridState(width, height)


def test_integer_dtype_is_fatal():
    with pytest.raises(SimulationInitError):
        GridState(4, 4, dtype=np.int32)


def test_released_buffers_raise_resource_lost():
    g = GridState(4, 4)
    g.release()
    assert not g.allocated
    with pytest.raises(ComputeResourceLost):
        g.read
    g.allocate()
    assert g.read.shape == (4, 4, 4)


def test_resize_restarts_from_zero():
    g = GridState(4, 4)
    g.read[..., DYE] = 0.5
    g.resize(6, 2)
    assert g.read.shape == (2, 6, 4)
    assert not g.read.any()


@pytest.mark.parametrize("width, height", [(10.5, 6), (6, "4"), (0, 6)])
def test_resize_rejects_bad_size(width, height):
    g = GridState(4, 4)
    g.read[..., DYE] = 0.5
    with pytest.raises(ValueError):
        g.resize(width, height)
    assert g.read.shape == (4, 4, 4)
    assert (g.read[..., DYE] == 0.5).all()


def test_resize_accepts_numpy_integers():
    g = GridState(4, 4)
    g.resize(np.int64(6), np.int32(2))
    assert g.shape == (2, 6, 4)
    assert type(g.width) is int


def test_reset_keeps_buffer_index():
    g = GridState(4, 4)
    g.flip()
    g.read[..., PRESSURE] = 3.0
    g.reset()
    assert g.current is BufferIndex.B
    assert not g.read.any()


def test_divergence_of_uniform_flow_is_zero():
    g = GridState(6, 5)
    g.read[..., VX] = 0.7
    g.read[..., VY] = -0.2
    np.testing.assert_allclose(g.compute_divergence(), 0.0, atol=1e-7)


def test_divergence_of_point_source():
    g = GridState(5, 5)
    g.read[2, 3, VX] = 2.0        # cell (3, 2) flows right
    div = g.compute_divergence()
    assert div[2, 2] == pytest.approx(1.0)     # its right neighbour is (3, 2)
    assert div[2, 4] == pytest.approx(-1.0)    # its left neighbour is (3, 2)
    assert div[2, 3] == 0.0
