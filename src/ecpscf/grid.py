r"""Gauss–Chebyshev 径向求积网格

采用 Pérez-Jordá 等人变换后的第二类 Gauss–Chebyshev 公式 [PJ1992]_，直接逼近

.. math::

    \int_{-1}^{1} f(x)\,\mathrm{d}x \approx \sum_{i=1}^{n} w_i f(x_i),

其中 :math:`\theta_i = i\pi/(n+1)`，

.. math::

    x_i = 1 + \frac{2}{\pi}\left[\left(1 + \tfrac{2}{3}\sin^2\theta_i\right)
    \cos\theta_i \sin\theta_i - \theta_i\right], \qquad
    w_i = \frac{16}{3(n+1)} \sin^4\theta_i .

点数取 :math:`n = 2^p - 1`，则 :math:`2^{k}-1` 点的粗网格恰为细网格的子集
（下标为 :math:`2^{p-k}` 的倍数），自适应加密时无需重新计算被积函数。

收敛判据
========

- ``"onepoint"``：相邻两级估计之差小于容差即收敛；
- ``"twopoint"``：需要连续两次相邻差均小于容差（更保守）。

工作副本
========

网格对象包含配置（点数、类型）与派生状态（变换后的横坐标、权重、支撑窗口）。
每个壳层对 / 原函数对都应先 :meth:`GCQuadrature.copy` 再变换，避免不同调用之间互相污染。

References
----------
.. [PJ1992] Pérez-Jordá, J. M., San-Fabián, E. & Moscardó, F. (1992)
   "A simple, reliable and efficient scheme for automatic numerical integration"
   Comput. Phys. Commun. 70, 271
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "GCQuadrature",
    "gauss_chebyshev_nodes",
]

_KINDS = ("onepoint", "twopoint")

# 至少比较到该层级（15 点）才接受收敛，避免极粗网格上的偶然一致
_MIN_LEVEL = 4


def gauss_chebyshev_nodes(n: int) -> tuple[np.ndarray, np.ndarray]:
    r"""返回 :math:`n` 点变换 Gauss–Chebyshev 公式的横坐标与权重。

    Parameters
    ----------
    n : int
        点数（>= 1）。

    Returns
    -------
    x : numpy.ndarray
        横坐标，位于 :math:`(-1, 1)`，随下标递减。
    w : numpy.ndarray
        权重，:math:`\sum_i w_i \to 2`。
    """
    if n < 1:
        raise ValueError("n 必须 >= 1")
    theta = np.arange(1, n + 1) * np.pi / (n + 1)
    s = np.sin(theta)
    c = np.cos(theta)
    x = 1.0 + (2.0 / np.pi) * ((1.0 + (2.0 / 3.0) * s * s) * c * s - theta)
    w = 16.0 / (3.0 * (n + 1)) * s**4
    return x, w


class GCQuadrature:
    """可嵌套加密的 Gauss–Chebyshev 求积网格。

    Parameters
    ----------
    points : int
        期望点数，向上取整为 :math:`2^p - 1`。
    kind : str, optional
        ``"onepoint"``（默认）或 ``"twopoint"``，决定收敛判据。

    Attributes
    ----------
    x : numpy.ndarray
        当前（可能已变换的）横坐标。
    w : numpy.ndarray
        对应权重（已含变换 Jacobian）。
    start, end : int
        支撑窗口（闭区间）；``start > end`` 表示窗口为空。
    integral : float
        最近一次 :meth:`integrate` 的最佳估计。
    """

    def __init__(self, points: int, kind: str = "onepoint"):
        if points < 1:
            raise ValueError(f"网格点数必须 >= 1，当前值: {points}")
        if kind not in _KINDS:
            raise ValueError(f"未知网格类型: {kind}，可选 {_KINDS}")
        self.kind = kind
        self.levels = int(np.ceil(np.log2(points + 1.0)))
        self.n = 2**self.levels - 1
        self.x, self.w = gauss_chebyshev_nodes(self.n)
        self.integral = 0.0
        self.reset_window()

    def reset_window(self) -> None:
        """将支撑窗口重置为整个网格。"""
        self.start = 0
        self.end = self.n - 1

    def copy(self) -> "GCQuadrature":
        """返回独立的工作副本。"""
        other = GCQuadrature.__new__(GCQuadrature)
        other.kind = self.kind
        other.levels = self.levels
        other.n = self.n
        other.x = self.x.copy()
        other.w = self.w.copy()
        other.integral = self.integral
        other.start = self.start
        other.end = self.end
        return other

    def transform_zero_inf(self) -> None:
        r"""映射到 :math:`(0, \infty)`：:math:`r = \ln\!\big(2/(1-x)\big)/\ln 2`。"""
        ln2 = np.log(2.0)
        # 大点数时首个横坐标可能舍入到 1
        one_minus = np.maximum(1.0 - self.x, 1e-300)
        self.w = self.w / (ln2 * one_minus)
        self.x = np.log(2.0 / one_minus) / ln2

    def transform_rmin_max(self, z: float, p: float) -> None:
        r"""线性映射到以 :math:`p` 为中心、宽度由指数 :math:`z` 决定的区间。

        .. math::

            r_{\min} = \max(0,\ p - 7/\sqrt{z}), \qquad r_{\max} = p + 9/\sqrt{z}
        """
        osz = 1.0 / np.sqrt(z)
        rmin = max(p - 7.0 * osz, 0.0)
        rmax = p + 9.0 * osz
        half = 0.5 * (rmax - rmin)
        mid = 0.5 * (rmax + rmin)
        self.x = half * self.x + mid
        self.w = half * self.w

    def integrate(self, values: np.ndarray, tolerance: float) -> bool:
        """对预先制表的被积函数值做自适应求积。

        Parameters
        ----------
        values : numpy.ndarray
            被积函数在全部 ``n`` 个横坐标上的取值；窗口外的值被视为 0。
        tolerance : float
            相邻两级估计之差的绝对容差。

        Returns
        -------
        bool
            是否收敛；无论是否收敛，最佳估计均保存在 :attr:`integral`。
        """
        values = np.asarray(values, dtype=float)
        if values.shape != (self.n,):
            raise ValueError(f"被积函数长度 {values.shape} 与网格点数 {self.n} 不符")

        if self.start > self.end:
            self.integral = 0.0
            return True

        f = np.zeros(self.n)
        f[self.start : self.end + 1] = values[self.start : self.end + 1]
        fw = f * self.w

        min_level = min(self.levels, _MIN_LEVEL)
        needed = 2 if self.kind == "twopoint" else 1
        hits = 0
        previous = None
        for k in range(1, self.levels + 1):
            stride = 2 ** (self.levels - k)
            # 粗网格权重为细网格权重的 stride 倍
            current = stride * float(np.sum(fw[stride - 1 :: stride]))
            if previous is not None:
                if abs(current - previous) < tolerance:
                    hits += 1
                else:
                    hits = 0
                if k >= min_level and hits >= needed:
                    self.integral = current
                    return True
            previous = current
        self.integral = previous if previous is not None else 0.0
        return False
