r"""ECP 积分组装

把角向积分表与径向积分组合为壳层对的笛卡尔 ECP 积分矩阵。

算法（Type 1）
==============

以 ECP 中心为原点，壳层 A 的笛卡尔分量按二项式展开：

.. math::

    (x - A_x)^{a} = \sum_{k=0}^{a} C(a, k, A_x)\, x^{k}, \qquad
    C(a, k, A) = (-1)^{a-k} \binom{a}{k} A^{a-k}

对 B 同理。六个一维系数之积 :math:`C` 与单项式 :math:`x^k y^l z^m`
（:math:`k = k_1+k_2` 等）对应，最终

.. math::

    \langle a | U_L | b \rangle = 4\pi \sum C \sum_{\lambda\mu}
    W_{klm}^{\lambda\mu}\, T^{k+l+m}_{\lambda\mu}

其中 :math:`W` 来自 :class:`~ecpscf.angular.AngularIntegral`，
:math:`T` 来自 :meth:`~ecpscf.radial.RadialIntegral.type1`。
"""

from __future__ import annotations

import warnings
from dataclasses import dataclass, field

import numpy as np
from scipy.special import comb

from .angular import AngularIntegral
from .basis import GaussianShell
from .ecp import ECP
from .radial import ECPConvergenceWarning, RadialIntegral
from .tensor import ThreeIndex

__all__ = [
    "ECPConfig",
    "ECPIntegralResult",
    "ECPIntegral",
    "ecp_type1_matrix",
]


@dataclass
class ECPConfig:
    r"""ECP 积分配置参数。

    Attributes
    ----------
    tol : float
        径向求积收敛容差，同时用于支撑窗口截断。
    small_grid : int
        小网格点数（映射到 :math:`(0,\infty)`）。
    large_grid : int
        大网格点数（按原函数对重新定中心）。
    threshold : float
        二项式展开系数 :math:`|C|` 低于该值的项被跳过。
    verbose : bool
        是否打印进度信息。
    """

    tol: float = 1e-12
    small_grid: int = 256
    large_grid: int = 1024
    threshold: float = 1e-14
    verbose: bool = False

    def __post_init__(self):
        if self.tol <= 0:
            raise ValueError(f"容差必须为正: tol={self.tol}")
        if self.small_grid < 1 or self.large_grid < 1:
            raise ValueError(f"网格点数必须 >= 1: small={self.small_grid}, large={self.large_grid}")
        if self.threshold < 0:
            raise ValueError(f"阈值必须非负: threshold={self.threshold}")


@dataclass
class ECPIntegralResult:
    """ECP 积分结果。

    Attributes
    ----------
    values : numpy.ndarray
        笛卡尔积分矩阵。
    converged : bool
        全部径向积分是否收敛。
    failed : list[tuple[int, int]]
        未收敛的 ``(N, l)``；由 :func:`ecp_type1_matrix` 返回时为 ``(ish, jsh, N, l)``。
    """

    values: np.ndarray
    converged: bool = True
    failed: list[tuple] = field(default_factory=list)


class ECPIntegral:
    """壳层对 ECP 积分引擎。

    Parameters
    ----------
    config : ECPConfig, optional
        求积配置；默认 :class:`ECPConfig()`。
    """

    def __init__(self, config: ECPConfig | None = None):
        self.config = config if config is not None else ECPConfig()
        self.ang_ints = AngularIntegral()
        self.rad_ints = RadialIntegral()

    @staticmethod
    def calc_c(a: int, m: int, A: float) -> float:
        r""":math:`(-1)^{a-m}\binom{a}{m}A^{a-m}`"""
        value = 1.0 - 2 * ((a - m) % 2)
        value *= A ** (a - m)
        value *= comb(a, m, exact=True)
        return value

    def type1(self, U: ECP, shellA: GaussianShell, shellB: GaussianShell, A=None, B=None) -> ECPIntegralResult:
        r"""计算局域 ECP 积分矩阵 :math:`\langle a | U_L | b \rangle`。

        Parameters
        ----------
        U : ECP
            势函数，其 ``L`` 通道作为局域部分。
        shellA, shellB : GaussianShell
            两个壳层。
        A, B : array_like, optional
            壳层中心（绝对坐标）；默认取壳层自身的 ``center``。

        Returns
        -------
        ECPIntegralResult
            ``values`` 形状为 ``(ncart(A), ncart(B))``，行列按 x, y, z 降幂的标准笛卡尔顺序。
        """
        cfg = self.config
        A = np.asarray(shellA.center if A is None else A, dtype=float) - U.center
        B = np.asarray(shellB.center if B is None else B, dtype=float) - U.center

        LA = shellA.am()
        LB = shellB.am()
        maxLBasis = max(LA, LB)
        ang = self.ang_ints
        if ang.W is None or (ang.LB, ang.LE) != (maxLBasis, U.getL()):
            ang.init(maxLBasis, U.getL())
            ang.compute()

        # 按总量子数 ix 制表径向积分
        L = LA + LB
        self.rad_ints.init(L, cfg.tol, cfg.small_grid, cfg.large_grid)
        radials = ThreeIndex(L + 1, L + 1, 2 * L + 1)
        rad = radials.view()
        failed: list[tuple[int, int]] = []
        with warnings.catch_warnings():
            warnings.simplefilter("ignore", ECPConvergenceWarning)
            for ix in range(L + 1):
                res = self.rad_ints.type1(ix, ix, ix % 2, U, shellA, shellB, A, B)
                rad[ix, : ix + 1, : 2 * ix + 1] = res.values
                failed.extend((ix, l) for l in res.failed)
        if failed:
            warnings.warn(
                f"Type 1 ECP 积分存在未收敛的径向通道 (N, l): {failed}",
                ECPConvergenceWarning,
                stacklevel=2,
            )

        W = self.ang_ints.W.view()
        values = np.zeros((shellA.ncartesian(), shellB.ncartesian()))
        for na, (x1, y1, z1) in enumerate(shellA.cartesian_powers()):
            Ck1 = [self.calc_c(x1, k1, A[0]) for k1 in range(x1 + 1)]
            Cl1 = [self.calc_c(y1, l1, A[1]) for l1 in range(y1 + 1)]
            Cm1 = [self.calc_c(z1, m1, A[2]) for m1 in range(z1 + 1)]
            for nb, (x2, y2, z2) in enumerate(shellB.cartesian_powers()):
                Ck2 = [self.calc_c(x2, k2, B[0]) for k2 in range(x2 + 1)]
                Cl2 = [self.calc_c(y2, l2, B[1]) for l2 in range(y2 + 1)]
                Cm2 = [self.calc_c(z2, m2, B[2]) for m2 in range(z2 + 1)]

                total = 0.0
                for k1 in range(x1 + 1):
                    for k2 in range(x2 + 1):
                        k = k1 + k2
                        for l1 in range(y1 + 1):
                            for l2 in range(y2 + 1):
                                l = l1 + l2
                                for m1 in range(z1 + 1):
                                    for m2 in range(z2 + 1):
                                        m = m1 + m2
                                        C = Ck1[k1] * Cl1[l1] * Cm1[m1] * Ck2[k2] * Cl2[l2] * Cm2[m2]
                                        if abs(C) <= cfg.threshold:
                                            continue
                                        ix = k + l + m
                                        lparity = ix % 2
                                        msign = 1 - 2 * (l % 2)
                                        mparity = (lparity + m) % 2
                                        for lam in range(lparity, ix + 1, 2):
                                            for mu in range(mparity, lam + 1, 2):
                                                total += C * W[k, l, m, lam, lam + msign * mu] * rad[ix, lam, lam + msign * mu]
                values[na, nb] = 4.0 * np.pi * total

        return ECPIntegralResult(values=values, converged=not failed, failed=failed)


def ecp_type1_matrix(U: ECP, shells: list[GaussianShell], config: ECPConfig | None = None) -> ECPIntegralResult:
    """组装整个基组的局域 ECP 笛卡尔矩阵。

    逐壳层对（``i <= j``）调用 :meth:`ECPIntegral.type1`，利用厄米对称性填充下三角。

    Parameters
    ----------
    U : ECP
        势函数。
    shells : list[GaussianShell]
        基组壳层，按顺序排列笛卡尔分量。
    config : ECPConfig, optional
        求积配置。

    Returns
    -------
    ECPIntegralResult
        ``values`` 为 ``(nbf, nbf)`` 对称矩阵；``failed`` 元素为 ``(ish, jsh, N, l)``。
    """
    engine = ECPIntegral(config)
    offsets = np.concatenate([[0], np.cumsum([sh.ncartesian() for sh in shells])]).astype(int)
    nbf = int(offsets[-1])
    values = np.zeros((nbf, nbf))
    failed: list[tuple] = []

    for i, shi in enumerate(shells):
        for j in range(i, len(shells)):
            shj = shells[j]
            res = engine.type1(U, shi, shj)
            values[offsets[i] : offsets[i + 1], offsets[j] : offsets[j + 1]] = res.values
            values[offsets[j] : offsets[j + 1], offsets[i] : offsets[i + 1]] = res.values.T
            failed.extend((i, j) + item for item in res.failed)
            if engine.config.verbose:
                print(f"[ECP type1] shells=({i},{j}) l=({shi.l},{shj.l}) converged={res.converged}")

    return ECPIntegralResult(values=values, converged=not failed, failed=failed)
