r"""高斯展开的有效核势（ECP）

每个投影角动量 :math:`\ell` 的径向势写作高斯展开：

.. math::

    U_\ell(r) = \sum_k d_k\, r^{n_k} e^{-a_k r^2}

最高的 :math:`\ell = L` 通道为局域部分（Type 1 积分使用），其余通道为半局域
投影部分（Type 2 积分使用）。

Notes
-----
:math:`n_k` 即常见 ECP 格式中的 "r 幂次减 2"，典型值为 -2, -1, 0。
"""

from __future__ import annotations

from dataclasses import dataclass

import numpy as np

__all__ = [
    "GaussianECPPrimitive",
    "ECP",
]


@dataclass(frozen=True)
class GaussianECPPrimitive:
    """单个 ECP 高斯原函数 :math:`d\\,r^n e^{-a r^2}`（投影角动量 ``l``）。"""

    l: int
    n: int
    a: float
    d: float


class ECP:
    """以 ``center`` 为中心的高斯展开 ECP。

    Parameters
    ----------
    center : array_like, optional
        ECP 中心坐标（Bohr），默认原点。

    Examples
    --------
    >>> U = ECP()
    >>> U.add_primitive(l=0, n=0, a=1.0, d=1.0)
    >>> float(U.evaluate(0.0, 0))
    1.0
    """

    def __init__(self, center=(0.0, 0.0, 0.0)):
        center = np.asarray(center, dtype=float)
        if center.shape != (3,):
            raise ValueError(f"ECP 中心必须为三维坐标，当前形状: {center.shape}")
        self.center = center
        self.primitives: list[GaussianECPPrimitive] = []
        self.L = 0

    def add_primitive(self, l: int, n: int, a: float, d: float) -> None:
        """添加原函数；``L`` 随之更新为最大投影角动量。"""
        if l < 0:
            raise ValueError(f"投影角动量必须非负: l={l}")
        if a <= 0:
            raise ValueError(f"ECP 指数必须为正: a={a}")
        self.primitives.append(GaussianECPPrimitive(int(l), int(n), float(a), float(d)))
        self.L = max(self.L, int(l))

    def nprimitive(self) -> int:
        return len(self.primitives)

    def getL(self) -> int:
        return self.L

    def evaluate(self, r, l: int):
        r"""计算 :math:`U_\ell(r)`（标量或数组）。

        :math:`r=0` 且 :math:`n<0` 时结果发散；调用方应保证网格不含原点，
        或该通道不含负幂次原函数。
        """
        r = np.asarray(r, dtype=float)
        value = np.zeros_like(r)
        r2 = r * r
        for prim in self.primitives:
            if prim.l == l:
                value = value + prim.d * r**prim.n * np.exp(-prim.a * r2)
        return value
