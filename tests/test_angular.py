"""ECP 角向积分表单元测试

测试 angular.py 中 U / W / Ω 表与实球谐函数的正确性。
"""

import numpy as np
import pytest
import sympy as sp

from ecpscf.angular import AngularIntegral
from ecpscf.utils import cartesian_powers, factorial_table, real_spherical_harmonics


@pytest.fixture(scope="module")
def ang11():
    ang = AngularIntegral(1, 1)
    ang.compute()
    return ang


@pytest.mark.angular
@pytest.mark.quick
def test_dimensions():
    """测试 wDim / maxL 的定义。"""
    ang = AngularIntegral(2, 1)
    assert ang.wDim == max(4 * 2, 3 * 2 + 1)
    assert ang.maxL == max(2 * 2, 2 + 1)
    ang.init(1, 3)
    assert ang.wDim == 6
    assert ang.maxL == 4


@pytest.mark.angular
@pytest.mark.quick
def test_degenerate_lb_le_zero():
    """测试 LB = LE = 0：U = 1/√(4π)，W = √(4π)，is_zero 恒为真。"""
    ang = AngularIntegral(0, 0)
    ang.compute()
    assert np.isclose(ang.U[0, 0, 0, 0, 0], 1.0 / np.sqrt(4 * np.pi))
    assert np.isclose(ang.get_integral(0, 0, 0, 0, 0), np.sqrt(4 * np.pi))
    assert ang.is_zero(0, 0, 0, 0, 0)


@pytest.mark.angular
@pytest.mark.quick
def test_query_before_compute_raises():
    """测试未计算时查询报错。"""
    ang = AngularIntegral(1, 1)
    with pytest.raises(RuntimeError, match="compute"):
        ang.get_integral(0, 0, 0, 0, 0)
    ang.compute()
    ang.clear()
    with pytest.raises(RuntimeError):
        ang.is_zero(0, 0, 0, 0, 0)


@pytest.mark.angular
def test_negative_bounds_rejected():
    with pytest.raises(ValueError, match="角动量上限必须非负"):
        AngularIntegral(-1, 0)


@pytest.mark.angular
@pytest.mark.quick
def test_pijk_matches_double_factorial_formula():
    """测试 P(i,j,k) = 4π (2i-1)!!(2j-1)!!(2k-1)!!/(2i+2j+2k+1)!!（sympy 精确值）。"""
    maxI = 5
    p = AngularIntegral.pijk(maxI).view()
    for i in range(maxI + 1):
        for j in range(i + 1):
            for k in range(j + 1):
                exact = (
                    4 * sp.pi * sp.factorial2(2 * i - 1) * sp.factorial2(2 * j - 1) * sp.factorial2(2 * k - 1)
                    / sp.factorial2(2 * (i + j + k) + 1)
                )
                assert np.isclose(p[i, j, k], float(exact), rtol=1e-13), f"P({i},{j},{k}) 不一致"


@pytest.mark.angular
@pytest.mark.quick
def test_u_mu_zero_branches_coincide():
    """测试 μ=0 时 "+" 与 "−" 两分支相同。"""
    ang = AngularIntegral(2, 2)
    ang.compute()
    u = ang.U.view()
    for lam in range(ang.maxL + 1):
        assert np.allclose(u[lam, 0, :, :, 0], u[lam, 0, :, :, 1], rtol=0, atol=1e-14)


@pytest.mark.angular
@pytest.mark.quick
def test_u_reproduces_real_harmonics():
    """测试 U 展开系数在单位球面上重现实球谐函数。

    :math:`S_{\\lambda,\\pm\\mu}(\\hat r) = \\sum_{ij} U_{\\lambda\\mu}(i,j,\\pm)\\,
    \\hat x^i \\hat y^j \\hat z^{\\lambda-i-j}`
    """
    ang = AngularIntegral(2, 2)
    ang.compute()
    u = ang.U.view()
    theta, phi = 0.7, 2.3
    xh = np.sin(theta) * np.cos(phi)
    yh = np.sin(theta) * np.sin(phi)
    zh = np.cos(theta)
    harmonics = real_spherical_harmonics(ang.maxL, np.cos(theta), phi)
    for lam in range(ang.maxL + 1):
        for mu in range(lam + 1):
            plus = minus = 0.0
            for i in range(lam + 1):
                for j in range(lam - i + 1):
                    mono = xh**i * yh**j * zh ** (lam - i - j)
                    plus += u[lam, mu, i, j, 0] * mono
                    minus += u[lam, mu, i, j, 1] * mono
            assert np.isclose(plus, harmonics[lam, lam + mu], atol=1e-12), f"S({lam},{mu}) 不一致"
            if mu > 0:
                assert np.isclose(minus, harmonics[lam, lam - mu], atol=1e-12), f"S({lam},{-mu}) 不一致"


@pytest.mark.angular
@pytest.mark.quick
def test_real_harmonics_against_sympy():
    """测试实球谐函数：S_{l,±m} = √2 (−1)^m Re/Im Y_lm（sympy 的 Y_lm 含 Condon–Shortley 相位）。"""
    theta, phi = sp.symbols("theta phi", real=True)
    t0, p0 = 1.1, -0.4
    lmax = 3
    values = real_spherical_harmonics(lmax, np.cos(t0), p0)
    for l in range(lmax + 1):
        y0 = complex(sp.Ynm(l, 0, theta, phi).expand(func=True).subs({theta: t0, phi: p0}).evalf())
        assert np.isclose(values[l, l], y0.real, atol=1e-12)
        for m in range(1, l + 1):
            ylm = complex(sp.Ynm(l, m, theta, phi).expand(func=True).subs({theta: t0, phi: p0}).evalf())
            sign = (-1) ** m
            assert np.isclose(values[l, l + m], np.sqrt(2) * sign * ylm.real, atol=1e-12), f"S({l},{m})"
            assert np.isclose(values[l, l - m], np.sqrt(2) * sign * ylm.imag, atol=1e-12), f"S({l},{-m})"


@pytest.mark.angular
@pytest.mark.quick
def test_real_harmonics_cartesian_forms():
    """测试 S_11 ∝ x，S_1,-1 ∝ y，S_10 ∝ z（无 Condon–Shortley 相位）。"""
    theta, phi = 0.9, 0.6
    values = real_spherical_harmonics(1, np.cos(theta), phi)
    c = np.sqrt(3.0 / (4.0 * np.pi))
    assert np.isclose(values[1, 2], c * np.sin(theta) * np.cos(phi))
    assert np.isclose(values[1, 0], c * np.sin(theta) * np.sin(phi))
    assert np.isclose(values[1, 1], c * np.cos(theta))
    assert np.allclose(real_spherical_harmonics(0, 0.3, 1.0), [[1.0 / np.sqrt(4.0 * np.pi)]])


@pytest.mark.angular
@pytest.mark.quick
def test_w_low_order_values(ang11):
    """测试若干低阶 W：∫ x̂^k ŷ^l ẑ^m S_λμ dΩ 的解析值。"""
    s4pi = np.sqrt(4.0 * np.pi)
    assert np.isclose(ang11.get_integral(0, 0, 0, 0, 0), s4pi)
    assert np.isclose(ang11.get_integral(0, 0, 1, 1, 0), np.sqrt(4.0 * np.pi / 3.0))
    assert np.isclose(ang11.get_integral(1, 0, 0, 1, 1), np.sqrt(4.0 * np.pi / 3.0))
    assert np.isclose(ang11.get_integral(0, 1, 0, 1, -1), np.sqrt(4.0 * np.pi / 3.0))
    assert np.isclose(ang11.get_integral(2, 0, 0, 0, 0), 4.0 * np.pi / 3.0 / s4pi)
    # 奇偶性禁戒
    assert ang11.is_zero(1, 0, 0, 1, 0)
    assert ang11.is_zero(0, 0, 1, 0, 0)


@pytest.mark.angular
def test_w_d_channel_values():
    """测试 λ=2 的 W 与显式实球谐函数的球面积分一致。"""
    ang = AngularIntegral(1, 1)
    ang.compute()
    pi = np.pi
    c2 = np.sqrt(15.0 / (4.0 * pi))
    # S_2,-2 = c2 xy, S_21 = c2 xz, S_2,-1 = c2 yz
    assert np.isclose(ang.get_integral(1, 1, 0, 2, -2), c2 * 4.0 * pi / 15.0)
    assert np.isclose(ang.get_integral(1, 0, 1, 2, 1), c2 * 4.0 * pi / 15.0)
    assert np.isclose(ang.get_integral(0, 1, 1, 2, -1), c2 * 4.0 * pi / 15.0)
    # S_22 = (c2/2)(x² − y²), S_20 = √(5/16π)(3z² − 1)
    assert np.isclose(ang.get_integral(2, 0, 0, 2, 2), 0.5 * c2 * (4.0 * pi / 5.0 - 4.0 * pi / 15.0))
    assert np.isclose(ang.get_integral(0, 0, 2, 2, 0), np.sqrt(5.0 / (16.0 * pi)) * 16.0 * pi / 15.0)


@pytest.mark.angular
@pytest.mark.quick
def test_omega_orthonormality(ang11):
    """测试 Ω(0,0,0; ρσ; λμ) = δ_ρλ δ_σμ（实球谐函数正交归一）。"""
    lamDim = ang11.LB + ang11.LE
    for rho in range(lamDim + 1):
        for sigma in range(-rho, rho + 1):
            for lam in range(lamDim + 1):
                for mu in range(-lam, lam + 1):
                    expected = 1.0 if (rho, sigma) == (lam, mu) else 0.0
                    value = ang11.get_integral(0, 0, 0, lam, mu, rho, sigma)
                    assert np.isclose(value, expected, atol=1e-12), f"Ω(0,0,0;{rho},{sigma};{lam},{mu})={value}"


@pytest.mark.angular
@pytest.mark.quick
def test_omega_symmetry():
    """测试 Ω 在交换 (ρσ) ↔ (λμ) 时对称。"""
    ang = AngularIntegral(2, 1)
    ang.compute()
    lamDim = ang.LB + ang.LE
    for k, l, m in [(0, 0, 0), (1, 0, 0), (0, 2, 1), (2, 1, 1)]:
        for rho in range(lamDim + 1):
            for sigma in range(-rho, rho + 1):
                for lam in range(lamDim + 1):
                    for mu in range(-lam, lam + 1):
                        a = ang.get_integral(k, l, m, lam, mu, rho, sigma)
                        b = ang.get_integral(k, l, m, rho, sigma, lam, mu)
                        assert np.isclose(a, b, atol=1e-12)


@pytest.mark.angular
def test_omega_single_monomial():
    """测试 Ω(1,0,0; 1,1; 0,0) = ∫ x S_11 S_00 dΩ = 1/√3。"""
    ang = AngularIntegral(1, 1)
    ang.compute()
    assert np.isclose(ang.get_integral(1, 0, 0, 0, 0, 1, 1), 1.0 / np.sqrt(3.0))
    assert np.isclose(ang.get_integral(1, 0, 0, 1, 1, 0, 0), 1.0 / np.sqrt(3.0))


@pytest.mark.angular
def test_compute_is_idempotent():
    """测试重复 compute() 得到相同结果。"""
    ang = AngularIntegral(1, 2)
    ang.compute()
    w1 = ang.W.copy()
    ang.compute()
    assert np.array_equal(ang.W.data, w1.data)


@pytest.mark.quick
def test_factorial_and_cartesian_helpers():
    """测试阶乘表与笛卡尔分量排列。"""
    assert np.allclose(factorial_table(5), [1, 1, 2, 6, 24, 120])
    assert factorial_table(-1).size == 0
    assert cartesian_powers(2) == [(2, 0, 0), (1, 1, 0), (1, 0, 1), (0, 2, 0), (0, 1, 1), (0, 0, 2)]
