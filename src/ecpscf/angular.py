r"""ECP 角向积分（角动量耦合系数）模块

本模块预先计算 ECP 积分所需的角向积分表：

- :math:`U_{\lambda\mu}(i, j, \pm)`：实立体谐函数在笛卡尔单项式
  :math:`x^i y^j z^{\lambda-i-j}` 上的展开系数；
- :math:`P(i, j, k)`：单位球面上偶次单项式的积分；
- :math:`W(k, l, m, \lambda, \mu)`：单项式与一个实球谐函数乘积的球面积分；
- :math:`\Omega(k, l, m, \rho, \sigma, \lambda, \mu)`：单项式与两个实球谐函数乘积的球面积分。

物理背景
========

Type 1（局域）ECP 积分中，两个高斯函数的乘积经平面波展开后引出

.. math::

    W_{klm}^{\lambda\mu} = \int \hat{x}^k \hat{y}^l \hat{z}^m\,
    S_{\lambda\mu}(\hat{r})\,\mathrm{d}\Omega ,

Type 2（半局域）投影算子积分则需要两个球谐函数：

.. math::

    \Omega_{klm}^{\rho\sigma,\lambda\mu} = \int \hat{x}^k \hat{y}^l \hat{z}^m\,
    S_{\rho\sigma}(\hat{r})\,S_{\lambda\mu}(\hat{r})\,\mathrm{d}\Omega .

球面单项式积分具有闭式：

.. math::

    P(i, j, k) = \int \hat{x}^{2i}\hat{y}^{2j}\hat{z}^{2k}\,\mathrm{d}\Omega
    = 4\pi\,\frac{(2i-1)!!\,(2j-1)!!\,(2k-1)!!}{(2i+2j+2k+1)!!}

存储约定
========

磁量子数 :math:`\mu` 存放在下标 :math:`\lambda+\mu` 处；:math:`\mu>0` 对应
:math:`\cos\mu\phi` 型（"+" 分支），:math:`\mu<0` 对应 :math:`\sin|\mu|\phi`
型（"−" 分支）。:math:`\mu=0` 时两分支相同。

References
----------
.. [McMurchieDavidson1981] McMurchie, L. E. & Davidson, E. R. (1981)
   "Calculation of integrals over ab initio pseudopotentials"
   J. Comput. Phys. 44, 289
.. [Flores-Moreno2006] Flores-Moreno, R. et al. (2006)
   "Half-numerical evaluation of pseudopotential integrals"
   J. Comput. Chem. 27, 1009
"""

from __future__ import annotations

import numpy as np

from .tensor import DenseIndex, FiveIndex, SevenIndex, ThreeIndex
from .utils import factorial_table

__all__ = [
    "AngularIntegral",
]


class AngularIntegral:
    r"""ECP 角向积分表。

    Parameters
    ----------
    LB : int
        基组壳层的最大角动量。
    LE : int
        ECP 投影算子的最大角动量。

    Attributes
    ----------
    LB, LE : int
        角动量上限。
    maxL : int
        :math:`\max(2L_B, L_B+L_E)`，:math:`U` 与 :math:`W` 的最大 :math:`\lambda`。
    wDim : int
        :math:`\max(4L_B, 3L_B+L_E)`，:math:`W` 的单项式指数上限。
    W : DenseIndex
        5 下标表 ``W[k, l, m, lam, lam+mu]``（需先 :meth:`compute`）。
    omega : DenseIndex
        7 下标表 ``omega[k, l, m, lam, lam+mu, rho, rho+sigma]``。

    Notes
    -----
    - 计算开销约为 :math:`O(L^5)`–:math:`O(L^7)`；
    - 同一实例可以重复 :meth:`compute`，结果对相同的 ``(LB, LE)`` 幂等；
    - :meth:`compute` 进行期间不得并发读取同一实例。

    Examples
    --------
    >>> ang = AngularIntegral(1, 1)
    >>> ang.compute()
    >>> w = ang.get_integral(0, 0, 1, 1, 0)  # ∫ z S_10 dΩ
    """

    def __init__(self, LB: int = 0, LE: int = 0):
        self.init(LB, LE)

    def init(self, LB: int, LE: int) -> None:
        """设置角动量上限并丢弃旧表。"""
        if LB < 0 or LE < 0:
            raise ValueError(f"角动量上限必须非负: LB={LB}, LE={LE}")
        self.LB = LB
        self.LE = LE
        self.wDim = max(4 * LB, 3 * LB + LE)
        self.maxL = max(2 * LB, LB + LE)
        self.U: DenseIndex | None = None
        self.W: DenseIndex | None = None
        self.omega: DenseIndex | None = None

    def clear(self) -> None:
        """释放已计算的表。"""
        self.U = None
        self.W = None
        self.omega = None

    # ------------------------------------------------------------------
    # 实立体谐函数的笛卡尔展开
    # ------------------------------------------------------------------

    @staticmethod
    def calc_g(l: int, m: int, fac: np.ndarray) -> float:
        r""":math:`g_{\ell m} = \frac{1}{2^\ell \ell!}\sqrt{\frac{(2\ell+1)(\ell-m)!}{2\pi(\ell+m)!}}`"""
        value1 = 1.0 / (2.0**l * fac[l])
        value2 = np.sqrt((2.0 * l + 1) * fac[l - m] / (2.0 * np.pi * fac[l + m]))
        return value1 * value2

    @staticmethod
    def calc_h1(i: int, j: int, l: int, m: int, fac: np.ndarray) -> float:
        value = 0.0
        if j > -1:
            value = fac[l] / (fac[j] * fac[l - i] * fac[i - j])
            value *= (1 - 2 * (i % 2)) * fac[2 * (l - i)] / fac[l - m - 2 * i]
        return value

    @staticmethod
    def calc_h2(i: int, j: int, k: int, m: int, fac: np.ndarray) -> float:
        value = 0.0
        ki2 = k - 2 * i
        if m >= ki2 >= 0:
            value = fac[j] * fac[m] / (fac[i] * fac[j - i] * fac[ki2] * fac[m - ki2])
            p = (m - k + 2 * i) // 2
            value *= 1.0 - 2.0 * (p % 2)
        return value

    def uklm(self, lam: int, mu: int, fac: np.ndarray) -> DenseIndex:
        r"""单个 :math:`(\lambda, \mu\ge 0)` 的展开系数 ``U[i, j, branch]``。

        ``branch=0`` 为 "+"（余弦型），``branch=1`` 为 "−"（正弦型）；
        :math:`y` 的幂次 :math:`j` 为偶数时只有 "+" 分支非零，奇数时只有 "−" 分支非零。
        """
        values = ThreeIndex(lam + 1, lam + 1, 2)
        out = values.view()
        or2 = 1.0 / np.sqrt(2.0)
        g = self.calc_g(lam, mu, fac)

        for k in range(lam + 1):
            for l in range(lam - k + 1):
                u = um = 0.0
                j = k + l - mu
                if j % 2 == 0:
                    j //= 2
                    u1 = 0.0
                    for i in range(j, (lam - mu) // 2 + 1):
                        u1 += self.calc_h1(i, j, lam, mu, fac)
                    u = g * u1
                    u1 = 0.0
                    for i in range(j + 1):
                        u1 += self.calc_h2(i, j, k, mu, fac)
                    u *= u1
                    um = u

                    parity = l % 2
                    u *= 1 - parity
                    um *= parity
                    if mu == 0:
                        u *= or2
                        um = u
                out[k, l, 0] = u
                out[k, l, 1] = um
        return values

    def make_u(self, fac: np.ndarray) -> DenseIndex:
        """汇总全部 :math:`\\lambda \\le` ``maxL`` 的 ``U[lam, mu, i, j, branch]``。"""
        dim = self.maxL + 1
        values = FiveIndex(dim, dim, dim, dim, 2)
        out = values.view()
        for lam in range(self.maxL + 1):
            for mu in range(lam + 1):
                out[lam, mu, : lam + 1, : lam + 1, :] = self.uklm(lam, mu, fac).view()
        return values

    # ------------------------------------------------------------------
    # 球面积分表
    # ------------------------------------------------------------------

    @staticmethod
    def pijk(maxI: int) -> DenseIndex:
        r"""球面偶次单项式积分 :math:`P(i, j, k)`，仅填充 :math:`i \ge j \ge k`。

        由 :math:`P(0,0,0)=4\pi` 出发向前递推：

        .. math::

            P(i,0,0) = \frac{4\pi}{2i+1}, \quad
            P(i,j,0) = P(i,j-1,0)\,\frac{2j-1}{2(i+j)+1}, \quad
            P(i,j,k) = P(i,j,k-1)\,\frac{2k-1}{2(i+j+k)+1}
        """
        dim = maxI + 1
        values = ThreeIndex(dim, dim, dim)
        out = values.view()
        pi4 = 4.0 * np.pi
        out[0, 0, 0] = pi4
        for i in range(1, maxI + 1):
            out[i, 0, 0] = pi4 / (2 * i + 1)
            for j in range(1, i + 1):
                out[i, j, 0] = out[i, j - 1, 0] * (2.0 * j - 1.0) / (2.0 * (i + j) + 1.0)
                for k in range(1, j + 1):
                    out[i, j, k] = out[i, j, k - 1] * (2.0 * k - 1.0) / (2.0 * (i + j + k) + 1.0)
        return values

    def make_w(self, fac: np.ndarray, U: DenseIndex) -> None:
        r"""构造 :math:`W(k,l,m,\lambda,\mu)`，:math:`0 \le k,l,m \le` ``wDim``。

        对每个单项式三元组，只有与 :math:`k+l+m` 同奇偶的 :math:`\lambda`、
        与 :math:`k+l` 同奇偶的 :math:`|\mu|` 可能非零；:math:`\mu` 的符号由
        :math:`l` 的奇偶决定。
        """
        dim = self.wDim
        maxI = (self.maxL + dim) // 2
        maxLam = self.maxL

        values = FiveIndex(dim + 1, dim + 1, dim + 1, maxLam + 1, 2 * (maxLam + 1))
        out = values.view()
        p = self.pijk(maxI).view()
        u = U.view()

        for k in range(dim + 1):
            for l in range(dim + 1):
                smu = 1 - 2 * (l % 2)
                branch = (1 - smu) // 2
                pmu = (k + l) % 2
                for m in range(dim + 1):
                    plam = (k + l + m) % 2
                    limit = min(maxLam, k + l + m)
                    for lam in range(plam, limit + 1, 2):
                        for mu in range(pmu, lam + 1, 2):
                            w = 0.0
                            for i in range(lam + 1):
                                for j in range(lam - i + 1):
                                    ix = [k + i, l + j, m + lam - i - j]
                                    if ix[0] % 2 + ix[1] % 2 + ix[2] % 2 == 0:
                                        ix.sort()
                                        w += u[lam, mu, i, j, branch] * p[ix[2] // 2, ix[1] // 2, ix[0] // 2]
                            out[k, l, m, lam, lam + smu * mu] = w
        self.W = values

    def make_omega(self, U: DenseIndex) -> None:
        r"""由 :math:`U` 与 :math:`W` 构造 :math:`\Omega`。

        .. math::

            \Omega_{klm}^{\rho\sigma,\lambda\mu}
            = \sum_{i,j} U_{\lambda\mu}(i,j)\, W(k+i, l+j, m+\lambda-i-j, \rho, \sigma)

        只计算 :math:`\lambda \le \rho`，并利用对称性同时写入
        :math:`(\rho\sigma)\leftrightarrow(\lambda\mu)` 两种排列。
        """
        LB = self.LB
        lamDim = self.LE + LB
        muDim = 2 * lamDim + 1
        values = SevenIndex(LB + 1, LB + 1, LB + 1, lamDim + 1, muDim + 1, lamDim + 1, muDim + 1)
        out = values.view()
        u = U.view()
        w = self.W.view()

        for k in range(LB + 1):
            for l in range(LB + 1):
                for m in range(LB + 1):
                    for rho in range(lamDim + 1):
                        for sigma in range(-rho, rho + 1):
                            for lam in range(rho + 1):
                                for mu in range(lam + 1):
                                    om_plus = om_minus = 0.0
                                    for i in range(lam + 1):
                                        for j in range(lam - i + 1):
                                            wval = w[k + i, l + j, m + lam - i - j, rho, rho + sigma]
                                            om_plus += u[lam, mu, i, j, 0] * wval
                                            om_minus += u[lam, mu, i, j, 1] * wval
                                    if mu == 0:
                                        om_minus = om_plus
                                    out[k, l, m, rho, sigma + rho, lam, lam + mu] = om_plus
                                    out[k, l, m, lam, lam + mu, rho, sigma + rho] = om_plus
                                    out[k, l, m, rho, sigma + rho, lam, lam - mu] = om_minus
                                    out[k, l, m, lam, lam - mu, rho, sigma + rho] = om_minus
        self.omega = values

    def compute(self) -> None:
        """按当前 ``(LB, LE)`` 计算 :math:`W` 与 :math:`\\Omega`。"""
        # calc_h1 需要 (2*maxL)!
        fac = factorial_table(max(self.wDim, 2 * self.maxL))
        U = self.make_u(fac)
        self.make_w(fac, U)
        self.make_omega(U)
        self.U = U

    # ------------------------------------------------------------------
    # 查询
    # ------------------------------------------------------------------

    def _require(self) -> None:
        if self.W is None or self.omega is None:
            raise RuntimeError("角向积分表尚未计算，请先调用 compute()")

    def get_integral(self, k: int, l: int, m: int, lam: int, mu: int,
                     rho: int | None = None, sigma: int | None = None) -> float:
        r"""查询 :math:`W_{klm}^{\lambda\mu}`；给出 ``rho, sigma`` 时查询 :math:`\Omega`。"""
        self._require()
        if rho is None:
            return self.W[k, l, m, lam, lam + mu]
        return self.omega[k, l, m, lam, lam + mu, rho, rho + sigma]

    def is_zero(self, k: int, l: int, m: int, lam: int, mu: int,
                rho: int | None = None, sigma: int | None = None,
                tolerance: float = 1e-12) -> bool:
        """判断对应积分的绝对值是否小于 ``tolerance``；``wDim == 0`` 时恒为 ``True``。"""
        self._require()
        if self.wDim > 0:
            return abs(self.get_integral(k, l, m, lam, mu, rho, sigma)) < tolerance
        return True
