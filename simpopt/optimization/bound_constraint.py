from scipy.optimize import Bounds

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..utils.exceptions import ConfigurationError

class BoundConstraint:
    """设计变量的盒约束 lower <= z <= upper"""

    def __init__(self, lower: TensorLike, upper: TensorLike) -> None:
        if lower.shape != upper.shape:
            raise ConfigurationError(
                f"Bound shapes differ: {tuple(lower.shape)} vs {tuple(upper.shape)}")
        if bm.any(lower > upper):
            raise ConfigurationError("Lower bound exceeds upper bound")

        self._lower = bm.copy(lower)
        self._upper = bm.copy(upper)

    @classmethod
    def uniform(cls, n: int, lower: float = 1e-3, upper: float = 1.0) -> 'BoundConstraint':
        """所有分量使用相同上下界"""
        lo = bm.full((n, ), lower, dtype=bm.float64)
        hi = bm.full((n, ), upper, dtype=bm.float64)

        return cls(lo, hi)

    @property
    def lower(self) -> TensorLike:
        return bm.copy(self._lower)

    @property
    def upper(self) -> TensorLike:
        return bm.copy(self._upper)

    def project(self, z: TensorLike) -> TensorLike:
        return bm.minimum(bm.maximum(z, self._lower), self._upper)

    def is_feasible(self, z: TensorLike) -> bool:
        return bool(bm.all(z >= self._lower) and bm.all(z <= self._upper))

    def to_scipy(self) -> Bounds:
        return Bounds(bm.to_numpy(self._lower), bm.to_numpy(self._upper), keep_feasible=True)
