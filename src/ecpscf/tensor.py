r"""多下标稠密张量

角动量耦合表（:math:`U`、:math:`W`、:math:`\Omega`）需要 3/5/7 个下标的稠密数组。
本模块提供统一的 :class:`DenseIndex`：

- 各轴长度在构造时固定；
- 底层存储为二维 ``numpy`` 数组，前 ``rank // 2`` 个轴合并为行，其余轴合并为列；
- 展平顺序为行优先（末尾轴变化最快），与 :meth:`numpy.ndarray.reshape` 一致。

下标越界检查使用 ``assert``，在 ``python -O`` 下自动移除。
"""

from __future__ import annotations

import numpy as np

__all__ = [
    "DenseIndex",
    "ThreeIndex",
    "FiveIndex",
    "SevenIndex",
]


class DenseIndex:
    """任意秩的稠密多下标张量。

    Parameters
    ----------
    *dims : int
        各轴长度（均需 >= 0）。

    Attributes
    ----------
    dims : tuple[int, ...]
        各轴长度。
    data : numpy.ndarray
        二维底层存储，形状 ``(prod(dims[:rank//2]), prod(dims[rank//2:]))``。

    Examples
    --------
    >>> t = DenseIndex(2, 3, 4)
    >>> t[1, 2, 3] = 5.0
    >>> float(t.data[1, 2 * 4 + 3])
    5.0
    """

    def __init__(self, *dims: int):
        if len(dims) == 0:
            raise ValueError("张量至少需要一个轴")
        if any(int(d) < 0 for d in dims):
            raise ValueError(f"轴长度必须非负: {dims}")
        self.dims = tuple(int(d) for d in dims)
        split = len(self.dims) // 2
        nrow = int(np.prod(self.dims[:split], dtype=np.int64))
        ncol = int(np.prod(self.dims[split:], dtype=np.int64))
        self.data = np.zeros((nrow, ncol))
        # 行/列步长：末尾轴变化最快
        self._row_strides = _strides(self.dims[:split])
        self._col_strides = _strides(self.dims[split:])
        self._split = split

    @property
    def rank(self) -> int:
        return len(self.dims)

    def _offset(self, idx: tuple) -> tuple[int, int]:
        assert len(idx) == self.rank, f"下标个数 {len(idx)} 与张量秩 {self.rank} 不符"
        assert all(0 <= i < d for i, d in zip(idx, self.dims)), f"下标越界: {idx}, dims={self.dims}"
        row = sum(i * s for i, s in zip(idx[: self._split], self._row_strides))
        col = sum(i * s for i, s in zip(idx[self._split :], self._col_strides))
        return row, col

    def __getitem__(self, idx: tuple) -> float:
        if not isinstance(idx, tuple):
            idx = (idx,)
        return float(self.data[self._offset(idx)])

    def __setitem__(self, idx: tuple, value: float) -> None:
        if not isinstance(idx, tuple):
            idx = (idx,)
        self.data[self._offset(idx)] = value

    def view(self) -> np.ndarray:
        """返回共享内存的 N 维视图。"""
        return self.data.reshape(self.dims)

    def copy(self) -> "DenseIndex":
        """深拷贝（底层存储独立）。"""
        other = DenseIndex(*self.dims)
        other.data[...] = self.data
        return other

    def __repr__(self) -> str:
        return f"{type(self).__name__}{self.dims}"


def _strides(dims: tuple[int, ...]) -> tuple[int, ...]:
    out = []
    acc = 1
    for d in reversed(dims):
        out.append(acc)
        acc *= d
    return tuple(reversed(out))


def ThreeIndex(dim1: int, dim2: int, dim3: int) -> DenseIndex:
    return DenseIndex(dim1, dim2, dim3)


def FiveIndex(dim1: int, dim2: int, dim3: int, dim4: int, dim5: int) -> DenseIndex:
    return DenseIndex(dim1, dim2, dim3, dim4, dim5)


def SevenIndex(dim1: int, dim2: int, dim3: int, dim4: int, dim5: int, dim6: int, dim7: int) -> DenseIndex:
    return DenseIndex(dim1, dim2, dim3, dim4, dim5, dim6, dim7)
