"""指数缩放修正球 Bessel 函数单元测试"""

import numpy as np
import pytest
from scipy.special import spherical_in

from ecpscf.bessel import BesselFunction


@pytest.mark.radial
@pytest.mark.quick
def test_matches_scipy_spherical_in():
    """测试 K_l(x) = e^{-x} i_l(x) 与 scipy 一致。"""
    x = np.array([1e-3, 0.1, 0.5, 2.0, 7.5, 25.0])
    bessel = BesselFunction(4)
    values = bessel.calculate(x)
    assert values.shape == (5, x.size)
    for l in range(5):
        ref = np.exp(-x) * spherical_in(l, x)
        assert np.allclose(values[l], ref, rtol=1e-12, atol=1e-300), f"l={l} 不一致"


@pytest.mark.radial
@pytest.mark.quick
def test_zero_argument():
    """测试 x=0：K_0 = 1，其余阶为 0。"""
    values = BesselFunction(3).calculate(0.0)
    assert values.shape == (4,)
    assert np.allclose(values, [1.0, 0.0, 0.0, 0.0], rtol=0, atol=1e-300)


@pytest.mark.radial
def test_small_argument_series():
    """测试小自变量时的级数分支与 scipy 连续衔接。"""
    x = np.array([1e-10, 5e-9, 2e-8])
    values = BesselFunction(2).calculate(x)
    for l in range(3):
        ref = np.exp(-x) * spherical_in(l, x)
        assert np.allclose(values[l], ref, rtol=1e-7, atol=0), f"l={l} 级数分支不一致"


@pytest.mark.radial
def test_large_argument_is_bounded():
    """测试大自变量时有界：K_l(x) → 1/(2x)。"""
    x = 1.0e4
    values = BesselFunction(2).calculate(x)
    assert np.all(np.isfinite(values))
    assert np.isclose(values[0], 1.0 / (2.0 * x), rtol=1e-3)


@pytest.mark.radial
def test_lower_order_request_and_limits():
    """测试按较低阶数求值，以及超过初始化阶数时报错。"""
    bessel = BesselFunction(3)
    assert bessel.calculate(np.array([0.3, 1.0]), 1).shape == (2, 2)
    with pytest.raises(ValueError, match="超过初始化"):
        bessel.calculate(1.0, 4)
    with pytest.raises(ValueError):
        BesselFunction(-1)
