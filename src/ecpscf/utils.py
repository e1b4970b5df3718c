r"""组合数表与实球谐函数

角动量与径向积分共用的小工具：

- 阶乘 / 双阶乘表
- 实球谐函数 :math:`S_{\ell m}(\theta, \phi)`（缔合 Legendre 递推）
- 笛卡尔单项式指数枚举
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "factorial_table",
    "double_factorial_table",
    "real_spherical_harmonics",
    "cartesian_powers",
]


def factorial_table(n: int) -> np.ndarray:
    """返回 :math:`k!`，:math:`0 \\le k \\le n`；``n < 0`` 时返回空数组。"""
    values = np.zeros(max(n + 1, 0))
    if n > -1:
        values[0] = 1.0
        for i in range(1, n + 1):
            values[i] = values[i - 1] * i
    return values


def double_factorial_table(n: int) -> np.ndarray:
    """返回 :math:`k!!`，:math:`0 \\le k \\le n`，约定 :math:`0!! = 1!! = 1`。"""
    values = np.zeros(max(n + 1, 0))
    if n > -1:
        values[0] = 1.0
        if n > 0:
            values[1] = 1.0
            for i in range(2, n + 1):
                values[i] = values[i - 2] * i
    return values


def real_spherical_harmonics(lmax: int, x: float, phi: float) -> np.ndarray:
    r"""计算 :math:`\ell \le \ell_{\max}` 的全部实球谐函数。

    先用递推求缔合 Legendre 函数 :math:`P_\ell^m(x)`，:math:`x=\cos\theta`：

    .. math::

        P_m^m = (-1)^m (2m-1)!!\,(1-x^2)^{m/2}, \qquad
        (\ell - m) P_\ell^m = x(2\ell-1) P_{\ell-1}^m - (\ell+m-1) P_{\ell-2}^m

    再组合为

    .. math::

        S_{\ell 0} = \sqrt{\tfrac{2\ell+1}{4\pi}}\,P_\ell^0, \qquad
        S_{\ell,\pm m} = (-1)^m \sqrt{\tfrac{2(2\ell+1)}{4\pi}\tfrac{(\ell-m)!}{(\ell+m)!}}
        \,P_\ell^m \times \begin{cases}\cos m\phi \\ \sin m\phi\end{cases}

    因子 :math:`(-1)^m` 抵消了 :math:`P_\ell^m` 中的 Condon–Shortley 相位，
    从而 :math:`S_{11} \propto x/r`、:math:`S_{1,-1} \propto y/r`。

    Parameters
    ----------
    lmax : int
        最大角动量。
    x : float
        :math:`\cos\theta`。
    phi : float
        方位角 :math:`\phi`。

    Returns
    -------
    numpy.ndarray
        形状 ``(lmax+1, 2*lmax+1)``，元素 ``[l, l+m]`` 为 :math:`S_{\ell m}`。
    """
    values = np.zeros((lmax + 1, 2 * lmax + 1))
    osq4pi = 1.0 / np.sqrt(4.0 * np.pi)
    if lmax == 0:
        values[0, 0] = osq4pi
        return values

    fac = factorial_table(2 * lmax)
    dfac = double_factorial_table(2 * lmax)

    # Legendre 工作区，未触及的元素保持为 0
    plm = np.zeros((lmax + 1, lmax + 1))
    plm[0, 0] = 1.0
    sox2 = np.sqrt(max(1.0 - x * x, 0.0))
    ox2m = 1.0
    for m in range(1, lmax + 1):
        ox2m *= -sox2
        plm[m, m] = ox2m * dfac[2 * m - 1]

    plm[1, 0] = x
    for l in range(2, lmax + 1):
        ox2m = x * (2 * l - 1)
        for m in range(l):
            plm[l, m] = (ox2m * plm[l - 1, m] - (l + m - 1) * plm[l - 2, m]) / (l - m)

    for l in range(lmax + 1):
        values[l, l] = osq4pi * np.sqrt(2.0 * l + 1.0) * plm[l, 0]
        sign = -1.0
        for m in range(1, l + 1):
            c = (2.0 * l + 1.0) * fac[l - m] / fac[l + m]
            c = sign * osq4pi * np.sqrt(2.0 * c) * plm[l, m]
            values[l, l + m] = c * np.cos(m * phi)
            values[l, l - m] = c * np.sin(m * phi)
            sign = -sign
    return values


def cartesian_powers(l: int) -> list[tuple[int, int, int]]:
    """笛卡尔单项式 :math:`x^a y^b z^c`（:math:`a+b+c=\\ell`）的标准排列。

    :math:`a` 从大到小，其次 :math:`b` 从大到小，例如 ``l=1`` 时为 x, y, z。

    Examples
    --------
    >>> cartesian_powers(1)
    [(1, 0, 0), (0, 1, 0), (0, 0, 1)]
    >>> len(cartesian_powers(2))
    6
    """
    if l < 0:
        raise ValueError(f"角动量必须非负: l={l}")
    return [(a, b, l - a - b) for a in range(l, -1, -1) for b in range(l - a, -1, -1)]
