"""收缩高斯壳层

一个壳层由共享中心与角动量 :math:`\\ell` 的若干高斯原函数 :math:`e^{-\\zeta r^2}` 收缩而成，
包含 :math:`(\\ell+1)(\\ell+2)/2` 个笛卡尔分量。系数按原样使用，不做归一化。
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from .utils import cartesian_powers

__all__ = ["GaussianShell"]


@dataclass(frozen=True)
class GaussianShell:
    """不可变的收缩高斯壳层。

    Attributes
    ----------
    center : numpy.ndarray
        壳层中心（Bohr）。
    l : int
        角动量。
    exps : numpy.ndarray
        原函数指数 :math:`\\zeta_i > 0`。
    coefs : numpy.ndarray
        收缩系数 :math:`d_i`。
    """

    center: np.ndarray
    l: int
    exps: np.ndarray = field(repr=False)
    coefs: np.ndarray = field(repr=False)

    def __post_init__(self):
        center = np.asarray(self.center, dtype=float)
        exps = np.atleast_1d(np.asarray(self.exps, dtype=float))
        coefs = np.atleast_1d(np.asarray(self.coefs, dtype=float))
        if center.shape != (3,):
            raise ValueError(f"壳层中心必须为三维坐标，当前形状: {center.shape}")
        if self.l < 0:
            raise ValueError(f"角动量必须非负: l={self.l}")
        if exps.size == 0:
            raise ValueError("壳层至少需要一个原函数")
        if exps.shape != coefs.shape:
            raise ValueError(f"指数与系数长度不一致: {exps.size} vs {coefs.size}")
        if np.any(exps <= 0):
            raise ValueError("高斯指数必须为正")
        object.__setattr__(self, "center", center)
        object.__setattr__(self, "exps", exps)
        object.__setattr__(self, "coefs", coefs)

    def nprimitive(self) -> int:
        return int(self.exps.size)

    def ncartesian(self) -> int:
        return (self.l + 1) * (self.l + 2) // 2

    def am(self) -> int:
        return self.l

    def exp(self, i: int) -> float:
        return float(self.exps[i])

    def coef(self, i: int) -> float:
        return float(self.coefs[i])

    def cartesian_powers(self) -> list[tuple[int, int, int]]:
        return cartesian_powers(self.l)
