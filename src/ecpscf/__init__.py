"""ecpscf 包
=================

高斯基组上有效核势（ECP）积分的半数值实现。

本包包含：

- 稠密多下标张量（角向表的存储）
- 角动量耦合表 :math:`U`、:math:`W`、:math:`\\Omega`
- Gauss–Chebyshev 径向求积与 Type 1 / Type 2 径向积分
- Type 1（局域）ECP 笛卡尔积分矩阵的组装

注：本项目所有文档与注释均使用中文，Docstring 采用 Sphinx + NumPy 风格，公式使用 ``:math:`` 标记。
"""

from ecpscf.angular import AngularIntegral
from ecpscf.basis import GaussianShell
from ecpscf.bessel import BesselFunction
from ecpscf.ecp import ECP, GaussianECPPrimitive
from ecpscf.ecpint import ECPConfig, ECPIntegral, ECPIntegralResult, ecp_type1_matrix
from ecpscf.grid import GCQuadrature
from ecpscf.radial import ECPConvergenceWarning, RadialIntegral, RadialResult
from ecpscf.tensor import DenseIndex, FiveIndex, SevenIndex, ThreeIndex

__all__ = [
    "AngularIntegral",
    "GaussianShell",
    "BesselFunction",
    "ECP",
    "GaussianECPPrimitive",
    "ECPConfig",
    "ECPIntegral",
    "ECPIntegralResult",
    "ecp_type1_matrix",
    "GCQuadrature",
    "ECPConvergenceWarning",
    "RadialIntegral",
    "RadialResult",
    "DenseIndex",
    "ThreeIndex",
    "FiveIndex",
    "SevenIndex",
]

__version__ = "0.1.0"
