import numpy as np
import pytest

from dyeflow.grid import DYE, PRESSURE, VX, VY
from dyeflow.render import MODE_DYE, MODE_VELOCITY, colorize


def _cell(vx, vy, p, dye):
    buf = np.zeros((1, 1, 4), dtype=np.float32)
    buf[0, 0, [VX, VY, PRESSURE, DYE]] = [vx, vy, p, dye]
    return buf


def test_dye_mode_adds_tinted_velocity():
    rgba = colorize(_cell(1.0, -2.0, 0.5, 0.4), MODE_DYE)
    np.testing.assert_allclose(rgba[0, 0], [0.5, 0.2, 0.45, 1.0], rtol=1e-6)


def test_velocity_mode_is_offset_by_half():
    rgba = colorize(_cell(0.25, -0.25, 0.1, 0.9), MODE_VELOCITY)
    np.testing.assert_allclose(rgba[0, 0], [0.75, 0.25, 0.6, 1.0], rtol=1e-6)


def test_shape_and_alpha():
    buf = np.random.default_rng(0).normal(size=(3, 5, 4)).astype(np.float32)
    for mode in (MODE_DYE, MODE_VELOCITY):
        rgba = colorize(buf, mode)
        assert rgba.shape == (3, 5, 4)
        assert (rgba[..., 3] == 1.0).all()


def test_unknown_mode():
    with pytest.raises(ValueError):
        colorize(_cell(0, 0, 0, 0), 2)
