"""局域 ECP 积分矩阵（Type 1）示例

运行示例：

    python -m examples.run_ecp_type1

构造一个位于原点的单高斯局域势与一组 s/p/d 壳层，打印笛卡尔 ECP 矩阵，
并与 s-s 块的三中心高斯解析值比较。
"""
from __future__ import annotations

import numpy as np

from ecpscf.basis import GaussianShell
from ecpscf.ecp import ECP
from ecpscf.ecpint import ECPConfig, ecp_type1_matrix


def main() -> None:
    c, d = 1.0, 1.0
    U = ECP(center=(0.0, 0.0, 0.0))
    U.add_primitive(l=0, n=0, a=c, d=d)

    shells = [
        GaussianShell((0.0, 0.0, 0.0), 0, [1.0], [1.0]),
        GaussianShell((0.0, 0.0, 1.0), 0, [1.0], [1.0]),
        GaussianShell((0.0, 0.0, 1.0), 1, [0.8], [1.0]),
        GaussianShell((0.5, 0.0, 0.0), 2, [1.2], [1.0]),
    ]
    cfg = ECPConfig(tol=1e-12, small_grid=256, large_grid=1024, verbose=True)
    res = ecp_type1_matrix(U, shells, cfg)

    np.set_printoptions(precision=6, suppress=True, linewidth=140)
    print("ECP 矩阵维度:", res.values.shape)
    print(res.values)
    print("全部径向积分收敛:", res.converged)

    # s(0) - s(1) 块：A 在原点，B=(0,0,1)，全部指数为 1
    exact = d * (np.pi / 3.0) ** 1.5 * np.exp(-2.0 / 3.0)
    print(f"<s_A|U|s_B> 数值 = {res.values[0, 1]:.12f}")
    print(f"<s_A|U|s_B> 解析 = {exact:.12f}")
    print(f"误差 = {abs(res.values[0, 1] - exact):.3e}")


if __name__ == "__main__":
    main()
