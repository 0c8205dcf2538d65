from typing import Optional

import numpy as np
from scipy.linalg import lu_factor, lu_solve
from scipy.linalg.lapack import dgeequ

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..utils.base_logged import BaseLogged
from ..utils.exceptions import SingularSystemError, DimensionMismatchError

class DenseLinearSolver(BaseLogged):
    """稠密方阵的直接求解器: 可选的行列平衡 + 部分主元 LU 分解

    使用方式与顺序:
        solver.set_matrix(K)
        solver.set_vectors(x, F)     # x 可为 None
        solver.factor_with_equilibration(True)
        solver.factor()
        x = solver.solve()

    分解失败 (零主元或非有限元素) 抛出 SingularSystemError, 不做重试.
    """
    def __init__(self,
                enable_logging: bool = False,
                logger_name: Optional[str] = None
            ) -> None:

        super().__init__(enable_logging=enable_logging, logger_name=logger_name)

        self._A = None
        self._x = None
        self._b = None
        self._equilibrate = False

        # 分解结果
        self._lu_piv = None
        self._R = None
        self._C = None

    def set_matrix(self, A: TensorLike) -> None:
        A = np.asarray(bm.to_numpy(A), dtype=np.float64)
        if A.ndim != 2 or A.shape[0] != A.shape[1]:
            raise DimensionMismatchError(f"Expected a square matrix, got shape {A.shape}")

        self._A = A
        self._lu_piv = None

    def set_vectors(self, x: Optional[TensorLike], b: TensorLike) -> None:
        """设置解向量 (可为 None) 与右端项 (向量或按列排列的矩阵)"""
        b = np.asarray(bm.to_numpy(b), dtype=np.float64)
        if self._A is not None and b.shape[0] != self._A.shape[0]:
            raise DimensionMismatchError(
                f"Right-hand side has {b.shape[0]} rows, matrix has {self._A.shape[0]}")

        self._x = x
        self._b = b

    def factor_with_equilibration(self, flag: bool = True) -> None:
        self._equilibrate = flag

    def factor(self) -> None:
        if self._A is None:
            raise ValueError("Matrix not set. Call set_matrix first.")

        A = self._A
        if not np.all(np.isfinite(A)):
            self._log_error("Matrix contains non-finite entries")
            raise SingularSystemError("Matrix contains non-finite entries")

        n = A.shape[0]
        if self._equilibrate:
            R, C = self._compute_equilibration(A)
            A = R[:, None] * A * C[None, :]
        else:
            R, C = np.ones(n), np.ones(n)

        lu, piv = lu_factor(A, check_finite=False)

        diag = np.abs(np.diag(lu))
        if np.any(diag == 0.0):
            k = int(np.argmin(diag))
            self._log_error(f"Zero pivot at position {k}")
            raise SingularSystemError(f"Matrix is singular: U[{k}, {k}] is exactly zero")

        self._lu_piv = (lu, piv)
        self._R, self._C = R, C

    def solve(self) -> TensorLike:
        if self._lu_piv is None:
            raise ValueError("Matrix not factored. Call factor first.")
        if self._b is None:
            raise ValueError("Right-hand side not set. Call set_vectors first.")

        b = self._b
        R = self._R if b.ndim == 1 else self._R[:, None]
        C = self._C if b.ndim == 1 else self._C[:, None]

        # (R A C) y = R b,  x = C y
        y = lu_solve(self._lu_piv, R * b, check_finite=False)
        x = C * y

        if not np.all(np.isfinite(x)):
            self._log_error("Solution contains non-finite entries")
            raise SingularSystemError("Solve produced non-finite entries")

        self._x = bm.array(x, dtype=bm.float64)

        return self._x

    @staticmethod
    def _compute_equilibration(A: np.ndarray):
        """LAPACK dgeequ 给出的行列缩放因子 R, C, 使 R A C 各行各列最大元接近 1"""
        R, C, rowcnd, colcnd, amax, info = dgeequ(A)
        n = A.shape[0]
        if 0 < info <= n:
            raise SingularSystemError(f"Matrix is singular: row {info - 1} is identically zero")
        if info > n:
            raise SingularSystemError(
                f"Matrix is singular: column {info - n - 1} is identically zero")

        return R, C


def solve_dense(A: TensorLike, b: TensorLike, equilibrate: bool = True) -> TensorLike:
    """一次性完成分解与求解"""
    solver = DenseLinearSolver()
    solver.set_matrix(A)
    solver.set_vectors(None, b)
    solver.factor_with_equilibration(equilibrate)
    solver.factor()

    return solver.solve()
