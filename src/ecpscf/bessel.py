r"""指数缩放的修正球 Bessel 函数

ECP 积分中的径向基函数为

.. math::

    K_\ell(x) = e^{-x}\, i_\ell(x), \qquad
    i_\ell(x) = \sqrt{\frac{\pi}{2x}}\, I_{\ell+1/2}(x),

其中 :math:`i_\ell` 为第一类修正球 Bessel 函数。乘上 :math:`e^{-x}` 后函数有界
（:math:`K_\ell(x) \to 1/(2x)`，:math:`x\to\infty`），可与高斯包络直接相乘而不溢出。

实现基于 :func:`scipy.special.ive`（:math:`I_\nu(x) e^{-x}`）；
:math:`x` 很小时使用级数首项 :math:`x^\ell/(2\ell+1)!!`。
"""

from __future__ import annotations

import numpy as np
from scipy.special import ive

from .utils import double_factorial_table

__all__ = ["BesselFunction"]

_SMALL_X = 1e-8


class BesselFunction:
    """:math:`K_\\ell(x)`，:math:`0 \\le \\ell \\le \\ell_{\\max}` 的批量求值器。

    Parameters
    ----------
    lmax : int
        最大阶数。
    """

    def __init__(self, lmax: int = 0):
        self.init(lmax)

    def init(self, lmax: int) -> None:
        if lmax < 0:
            raise ValueError(f"Bessel 阶数必须非负: lmax={lmax}")
        self.lmax = lmax
        self._dfac = double_factorial_table(2 * lmax + 1)

    def calculate(self, x, lmax: int | None = None) -> np.ndarray:
        """计算 :math:`K_\\ell(x)`。

        Parameters
        ----------
        x : float or array_like
            非负自变量。
        lmax : int, optional
            最大阶数（默认使用初始化时的值，不得超过之）。

        Returns
        -------
        numpy.ndarray
            形状 ``(lmax+1, len(x))``；标量输入时为 ``(lmax+1,)``。
        """
        lmax = self.lmax if lmax is None else lmax
        if lmax > self.lmax:
            raise ValueError(f"请求阶数 {lmax} 超过初始化的 lmax={self.lmax}")
        scalar = np.ndim(x) == 0
        x = np.atleast_1d(np.asarray(x, dtype=float))
        orders = np.arange(lmax + 1)[:, None]

        small = x < _SMALL_X
        xs = np.where(small, 1.0, x)
        values = np.sqrt(np.pi / (2.0 * xs)) * ive(orders + 0.5, xs)

        if np.any(small):
            xsmall = x[small]
            series = np.exp(-xsmall) * xsmall ** orders / self._dfac[2 * orders + 1]
            values[:, small] = series

        return values[:, 0] if scalar else values
