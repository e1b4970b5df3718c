r"""ECP 径向积分模块

本模块以数值求积计算 ECP 积分的径向部分。

Type 1（局域势）
================

两个高斯原函数之积 :math:`e^{-\zeta_a|\mathbf r-\mathbf A|^2}e^{-\zeta_b|\mathbf r-\mathbf B|^2}
= K_{ab}\,e^{-p|\mathbf r-\mathbf P|^2}` 经平面波展开后，需要

.. math::

    T^{N}_{\lambda\mu} = \sum_{ab} d_a d_b K_{ab}\, S_{\lambda\mu}(\hat{\mathbf P})
    \int_0^\infty r^{N+2}\, U_L(r)\, e^{-p(r-P)^2}\, K_\lambda(2pPr)\,\mathrm{d}r ,

其中 :math:`K_\lambda(x) = e^{-x} i_\lambda(x)`。每个原函数对使用大网格的一个工作副本，
并将其线性映射到以加权中心为中心的区间。

Type 2（半局域投影）
====================

.. math::

    T^{N}_{\ell}(\lambda_1, \lambda_2) = \int_0^\infty r^{N+2}\, U_\ell(r)\,
    F^A_{\lambda_1}(r)\, F^B_{\lambda_2}(r)\,\mathrm{d}r, \qquad
    F^A_\lambda(r) = \sum_a d_a\, K_\lambda(2\zeta_a A r)\, e^{-\zeta_a (r-A)^2}

先在映射到 :math:`(0,\infty)` 的小网格上一次性计算全部通道；若某个
:math:`\lambda_1` 通道不收敛，则对该通道逐个原函数对改用重新定中心的大网格。

收敛状态
========

不收敛不会抛出异常：结果通过 :class:`RadialResult` 的 ``converged``/``failed``
字段返回，同时发出 :class:`ECPConvergenceWarning`。

References
----------
.. [Shaw2017] Shaw, R. A. & Hill, J. G. (2017)
   "Prescreening and efficiency in the evaluation of integrals over ab initio
   effective core potentials"
   J. Chem. Phys. 147, 074108
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field

import numpy as np

from .basis import GaussianShell
from .bessel import BesselFunction
from .ecp import ECP
from .grid import GCQuadrature
from .utils import real_spherical_harmonics

__all__ = [
    "ECPConvergenceWarning",
    "RadialResult",
    "RadialIntegral",
]


class ECPConvergenceWarning(RuntimeWarning):
    """径向求积未达到容差时发出的警告。"""


@dataclass
class RadialResult:
    """径向积分结果。

    Attributes
    ----------
    values : numpy.ndarray
        Type 1 为 ``[l, l+mu]``；Type 2 为 ``[l1, l2]``。
    converged : bool
        全部通道是否收敛。
    failed : list[int]
        最终仍未收敛的通道（Type 1 为 ``l``，Type 2 为 ``l1``）。
    fallback : list[int]
        Type 2 中改用大网格重新计算的 ``l1`` 通道。
    """

    values: np.ndarray
    converged: bool = True
    failed: list[int] = field(default_factory=list)
    fallback: list[int] = field(default_factory=list)


class RadialIntegral:
    """ECP 径向积分引擎（大/小两套 Gauss–Chebyshev 网格）。

    Examples
    --------
    >>> rad = RadialIntegral()
    >>> rad.init(maxL=2, tol=1e-12, small=256, large=1024)
    """

    def __init__(self):
        self.big_grid: GCQuadrature | None = None
        self.small_grid: GCQuadrature | None = None
        self.bessie = BesselFunction(0)
        self.tolerance = 1e-12

    def init(self, maxL: int, tol: float = 1e-12, small: int = 256, large: int = 1024) -> None:
        """构建网格与 Bessel 求值器。

        Parameters
        ----------
        maxL : int
            需要的最大 Bessel 阶数。
        tol : float
            支撑窗口截断与求积收敛共用的容差。
        small, large : int
            小网格（映射到 :math:`(0,\\infty)`，两点判据）与大网格（一点判据）的点数。
        """
        if tol <= 0:
            raise ValueError(f"容差必须为正: tol={tol}")
        self.big_grid = GCQuadrature(large, "onepoint")
        self.small_grid = GCQuadrature(small, "twopoint")
        self.small_grid.transform_zero_inf()
        self.bessie.init(maxL)
        self.tolerance = tol

    def _require(self) -> None:
        if self.big_grid is None or self.small_grid is None:
            raise RuntimeError("径向积分网格尚未初始化，请先调用 init()")

    # ------------------------------------------------------------------
    # 制表
    # ------------------------------------------------------------------

    @staticmethod
    def calc_kij(Na: float, Nb: float, zeta_a: float, zeta_b: float, A, B) -> float:
        r""":math:`N_a N_b \exp\!\big(-\frac{\zeta_a\zeta_b}{\zeta_a+\zeta_b}|\mathbf A-\mathbf B|^2\big)`"""
        muij = zeta_a * zeta_b / (zeta_a + zeta_b)
        R = np.asarray(A, dtype=float) - np.asarray(B, dtype=float)
        return Na * Nb * np.exp(-muij * float(R @ R))

    def build_parameters(self, shellA: GaussianShell, shellB: GaussianShell, A, B) -> None:
        """为每个原函数对计算 ``p``、``P``、``P2``、``K``（每次调用重新计算）。"""
        A = np.asarray(A, dtype=float)
        B = np.asarray(B, dtype=float)
        za = shellA.exps[:, None]
        zb = shellB.exps[None, :]
        self.p = za + zb
        self.Pvec = (za[..., None] * A + zb[..., None] * B) / self.p[..., None]
        self.P2 = np.sum(self.Pvec**2, axis=-1)
        self.P = np.sqrt(self.P2)
        AB = A - B
        self.K = np.exp(-(za * zb / self.p) * float(AB @ AB))

    def build_u(self, U: ECP, l: int, N: int, grid: GCQuadrature) -> np.ndarray:
        r"""制表 :math:`r^{N+2} U_\ell(r)`，并把 ``grid`` 的支撑窗口设为超过容差的区间。

        窗口为首个与最后一个 :math:`|r^{N+2}U_\ell(r)| >` ``tolerance`` 的下标；
        若处处低于容差则窗口为空（``start > end``）。
        """
        r = grid.x
        Utab = r ** (N + 2) * U.evaluate(r, l)
        above = np.flatnonzero(np.abs(Utab) > self.tolerance)
        if above.size:
            grid.start = int(above[0])
            grid.end = int(above[-1])
        else:
            grid.start = grid.n
            grid.end = grid.n - 1
        return Utab

    def build_bessel(self, r: np.ndarray, maxL: int, weight: float) -> np.ndarray:
        """返回 ``[l, i]`` 处的 :math:`K_l(\\mathrm{weight}\\cdot r_i)`。"""
        if maxL > self.bessie.lmax:
            self.bessie.init(maxL)
        return self.bessie.calculate(weight * np.asarray(r, dtype=float), maxL)

    def build_f(self, shell: GaussianShell, A, maxL: int, r: np.ndarray, start: int, end: int) -> np.ndarray:
        r""":math:`F_\lambda(r_i) = \sum_a d_a K_\lambda(2\zeta_a A r_i) e^{-\zeta_a(r_i-A)^2}`，仅填充窗口内的点。"""
        Anorm = float(np.linalg.norm(A))
        F = np.zeros((maxL + 1, r.size))
        if start > end:
            return F
        window = slice(start, end + 1)
        rw = r[window]
        for zeta, c in zip(shell.exps, shell.coefs):
            bessel = self.build_bessel(rw, maxL, 2.0 * zeta * Anorm)
            F[:, window] += c * np.exp(-zeta * (rw - Anorm) ** 2) * bessel
        return F

    def integrate(self, maxL: int, intValues: np.ndarray, grid: GCQuadrature,
                  offset: int = 0, skip: int = 1) -> tuple[np.ndarray, np.ndarray]:
        """对 ``intValues`` 的 ``offset, offset+skip, ...`` 行逐一求积。

        Returns
        -------
        values : numpy.ndarray
            长度 ``maxL+1``，未计算的行保持为 0。
        tests : numpy.ndarray
            每行是否收敛（未计算的行记为收敛）。
        """
        values = np.zeros(maxL + 1)
        tests = np.ones(maxL + 1, dtype=bool)
        for l in range(offset, maxL + 1, skip):
            tests[l] = grid.integrate(intValues[l], self.tolerance)
            values[l] = grid.integral
        return values, tests

    # ------------------------------------------------------------------
    # Type 1
    # ------------------------------------------------------------------

    def type1(self, maxL: int, N: int, offset: int, U: ECP,
              shellA: GaussianShell, shellB: GaussianShell, A, B) -> RadialResult:
        r"""局域势径向积分 :math:`T^{N}_{\lambda\mu}`，:math:`\lambda = ` ``offset``, ``offset+2``, ...

        ``A``、``B`` 为相对 ECP 中心的壳层位置。返回值 ``values[l, l+mu]``。
        """
        self._require()
        self.build_parameters(shellA, shellB, A, B)
        Anorm = float(np.linalg.norm(A))
        Bnorm = float(np.linalg.norm(B))
        channels = list(range(offset, maxL + 1, 2))

        values = np.zeros((maxL + 1, 2 * maxL + 1))
        failed: set[int] = set()
        for a in range(shellA.nprimitive()):
            da = shellA.coef(a)
            za = shellA.exp(a)
            for b in range(shellB.nprimitive()):
                db = shellB.coef(b)
                zb = shellB.exp(b)
                p = self.p[a, b]
                P = self.P[a, b]

                grid = self.big_grid.copy()
                grid.transform_rmin_max(p, (za * Anorm + zb * Bnorm) / p)
                grid.reset_window()
                r = grid.x

                Utab = self.build_u(U, U.getL(), N, grid)
                besselValues = self.build_bessel(r, maxL, 2.0 * p * P)

                intValues = np.zeros((maxL + 1, grid.n))
                if grid.start <= grid.end:
                    window = slice(grid.start, grid.end + 1)
                    rw = r[window]
                    envelope = Utab[window] * np.exp(-p * (rw * (rw - 2.0 * P) + self.P2[a, b]))
                    intValues[offset::2, window] = envelope * besselValues[offset::2, window]

                tempValues, tests = self.integrate(maxL, intValues, grid, offset, 2)
                failed.update(l for l in channels if not tests[l])

                # 加权中心方向上的实球谐函数
                Px, Py, Pz = self.Pvec[a, b]
                x = 0.0 if abs(P) < 1e-12 else Pz / P
                phi = np.arctan2(Py, Px)
                harmonics = real_spherical_harmonics(maxL, x, phi)
                for l in channels:
                    values[l, : 2 * l + 1] += da * db * self.K[a, b] * tempValues[l] * harmonics[l, : 2 * l + 1]

        if failed:
            warnings.warn(
                f"Type 1 径向积分未收敛: N={N}, l={sorted(failed)}",
                ECPConvergenceWarning,
                stacklevel=2,
            )
        return RadialResult(values=values, converged=not failed, failed=sorted(failed))

    # ------------------------------------------------------------------
    # Type 2
    # ------------------------------------------------------------------

    def type2(self, l: int, maxL1: int, maxL2: int, N: int, U: ECP,
              shellA: GaussianShell, shellB: GaussianShell, A, B,
              fallback: bool = True) -> RadialResult:
        r"""投影通道 ``l`` 的径向积分 :math:`T^{N}_{\ell}(\lambda_1, \lambda_2)`。

        Parameters
        ----------
        l : int
            ECP 投影角动量。
        maxL1, maxL2 : int
            :math:`\lambda_1`、:math:`\lambda_2` 的上限。
        N : int
            径向幂次。
        U : ECP
            势函数。
        shellA, shellB : GaussianShell
            两个壳层。
        A, B : array_like
            相对 ECP 中心的壳层位置。
        fallback : bool, optional
            小网格不收敛时是否改用大网格（默认 True）。

        Returns
        -------
        RadialResult
            ``values[l1, l2]``；``fallback`` 列出改用大网格的 ``l1``。
        """
        self._require()
        self.build_parameters(shellA, shellB, A, B)

        grid = self.small_grid.copy()
        grid.reset_window()
        r = grid.x
        Utab = self.build_u(U, l, N, grid)
        Fa = self.build_f(shellA, A, maxL1, r, grid.start, grid.end)
        Fb = self.build_f(shellB, B, maxL2, r, grid.start, grid.end)

        values = np.zeros((maxL1 + 1, maxL2 + 1))
        tests = np.ones(maxL1 + 1, dtype=bool)
        for l1 in range(maxL1 + 1):
            intValues = Utab * Fa[l1] * Fb
            tempValues, flags = self.integrate(maxL2, intValues, grid)
            tests[l1] = bool(np.all(flags))
            values[l1] = tempValues

        failed = [l1 for l1 in range(maxL1 + 1) if not tests[l1]]
        if not failed:
            return RadialResult(values=values)
        if not fallback:
            warnings.warn(
                f"Type 2 径向积分在小网格上未收敛: l={l}, N={N}, l1={failed}",
                ECPConvergenceWarning,
                stacklevel=2,
            )
            return RadialResult(values=values, converged=False, failed=failed)

        warnings.warn(
            f"Type 2 径向积分在小网格上未收敛，改用大网格: l={l}, N={N}, l1={failed}",
            ECPConvergenceWarning,
            stacklevel=2,
        )
        Anorm = float(np.linalg.norm(A))
        Bnorm = float(np.linalg.norm(B))
        still_failed: set[int] = set()
        for l1 in failed:
            values[l1] = 0.0
            for a in range(shellA.nprimitive()):
                za = shellA.exp(a)
                ca = shellA.coef(a)
                for b in range(shellB.nprimitive()):
                    zb = shellB.exp(b)
                    cb = shellB.coef(b)
                    p = self.p[a, b]

                    big = self.big_grid.copy()
                    big.transform_rmin_max(p, (za * Anorm + zb * Bnorm) / p)
                    big.reset_window()
                    rb = big.x
                    Ubig = self.build_u(U, l, N, big)

                    fa = self.build_bessel(rb, l1, 2.0 * za * Anorm)[l1] * np.exp(-za * (rb - Anorm) ** 2)
                    fb = self.build_bessel(rb, maxL2, 2.0 * zb * Bnorm) * np.exp(-zb * (rb - Bnorm) ** 2)
                    tempValues, flags = self.integrate(maxL2, Ubig * fa * fb, big)
                    values[l1] += ca * cb * tempValues
                    if not np.all(flags):
                        still_failed.add(l1)

        if still_failed:
            warnings.warn(
                f"Type 2 径向积分在大网格上仍未收敛: l={l}, N={N}, l1={sorted(still_failed)}",
                ECPConvergenceWarning,
                stacklevel=2,
            )
        return RadialResult(
            values=values,
            converged=not still_failed,
            failed=sorted(still_failed),
            fallback=failed,
        )
