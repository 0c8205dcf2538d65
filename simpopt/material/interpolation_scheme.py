from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..utils.exceptions import ConfigurationError

class SIMPPenalization:
    """Solid Isotropic Material with Penalization: 单元刚度按 z^p 缩放.

    一阶和二阶导数对 p = 1, p = 2 单独处理, 避免出现 0^0 以及 z^(p-2) 的奇异指数.
    三个分支不能合并为一个闭式表达式.
    """

    def __init__(self, penalty_factor: float = 3.0):
        if penalty_factor < 1:
            raise ConfigurationError(f"Penalty factor must satisfy p >= 1, got {penalty_factor}")

        self.name = "SIMP"
        self.penalty_factor = penalty_factor

    def calculate_property(self, z: TensorLike) -> TensorLike:
        """Zp = z^p"""
        p = self.penalty_factor

        return z ** p

    def calculate_property_derivative(self, z: TensorLike) -> TensorLike:
        """dZp/dz"""
        p = self.penalty_factor
        if p == 1:
            return bm.ones(z.shape, dtype=bm.float64)
        else:
            return p * z ** (p - 1.0)

    def calculate_property_second_derivative(self, z: TensorLike) -> TensorLike:
        """d^2 Zp/dz^2"""
        p = self.penalty_factor
        if p == 1:
            return bm.zeros(z.shape, dtype=bm.float64)
        elif p == 2:
            return 2.0 * bm.ones(z.shape, dtype=bm.float64)
        else:
            return p * (p - 1.0) * z ** (p - 2.0)
