from typing import Optional

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..analysis.structured_fem_analyzer import StructuredFEMAnalyzer
from ..config import ObjectiveConfig
from ..utils.base_logged import BaseLogged
from ..utils.tools import check_vector_size

class ComplianceObjective(BaseLogged):
    """柔顺度 + Moreau-Yoshida 体积罚 + 0-1 密度罚

    J(u, z) = u^T f + reg * max(0, sum(z) - frac*N)^3 + pen/N * sum(z_e (1 - z_e))

    其中 N = nx * ny. 关于 u 的梯度取 f (u 满足状态方程时 u^T f = u^T K u),
    柔顺度对 z 的灵敏度不在此处计算, 由约束的伴随路径在降维目标函数中给出.
    reg 与 pen 由外部的连续化流程逐步增大.
    """
    def __init__(self,
                analyzer: StructuredFEMAnalyzer,
                volume_fraction: float = 0.5,
                regularization: float = 1.0,
                penalty: float = 1.0,
                enable_logging: bool = False,
                logger_name: Optional[str] = None
            ) -> None:

        super().__init__(enable_logging=enable_logging, logger_name=logger_name)

        self._analyzer = analyzer
        self._volume_fraction = volume_fraction
        self._regularization = regularization
        self._penalty = penalty
        self._NZ = analyzer.number_of_design_variables()
        self._NU = analyzer.number_of_state_dofs()

    @classmethod
    def from_config(cls,
                    analyzer: StructuredFEMAnalyzer,
                    config: ObjectiveConfig,
                    **kwargs
                ) -> 'ComplianceObjective':
        """由 ObjectiveConfig 构造"""
        return cls(analyzer,
                   volume_fraction=config.volume_fraction,
                   regularization=config.regularization,
                   penalty=config.penalty,
                   **kwargs)

    #####################################################################################################
    # 属性访问器
    #####################################################################################################

    @property
    def volume_fraction(self) -> float:
        return self._volume_fraction

    @property
    def regularization(self) -> float:
        return self._regularization

    @property
    def penalty(self) -> float:
        return self._penalty

    #####################################################################################################
    # 核心方法
    #####################################################################################################

    def value(self, u: TensorLike, z: TensorLike) -> float:
        """计算目标函数值"""
        check_vector_size(u, self._NU, 'u')
        check_vector_size(z, self._NZ, 'z')

        F = self._analyzer.build_force()
        c = bm.einsum('i, i ->', u, F)

        excess = self._volume_excess(z)
        r = self._regularization * excess**3

        p = self._penalty / self._NZ * bm.sum(z * (1.0 - z))

        return float(c + r + p)

    def gradient_state(self, u: TensorLike, z: TensorLike) -> TensorLike:
        """关于 u 的梯度, 即载荷向量 f"""
        check_vector_size(u, self._NU, 'u')

        return self._analyzer.build_force()

    def gradient_design(self, u: TensorLike, z: TensorLike) -> TensorLike:
        """关于 z 的偏梯度 (仅两个罚项)"""
        check_vector_size(z, self._NZ, 'z')
        excess = self._volume_excess(z)

        g = self._regularization * 3.0 * excess**2 * bm.ones((self._NZ, ), dtype=bm.float64)
        g = g + self._penalty / self._NZ * (1.0 - 2.0 * z)

        return g

    def hess_vec_state_state(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        check_vector_size(v, self._NU, 'v')

        return bm.zeros((self._NU, ), dtype=bm.float64)

    def hess_vec_state_design(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        """状态梯度沿设计方向 v 的导数, 恒为零"""
        check_vector_size(v, self._NZ, 'v')

        return bm.zeros((self._NU, ), dtype=bm.float64)

    def hess_vec_design_state(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        """设计梯度沿状态方向 v 的导数, 恒为零"""
        check_vector_size(v, self._NU, 'v')

        return bm.zeros((self._NZ, ), dtype=bm.float64)

    def hess_vec_design_design(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        check_vector_size(v, self._NZ, 'v')
        check_vector_size(z, self._NZ, 'z')
        excess = self._volume_excess(z)

        hv = self._regularization * 6.0 * excess * bm.sum(v) * bm.ones((self._NZ, ), dtype=bm.float64)
        hv = hv - self._penalty / self._NZ * 2.0 * v

        return hv

    #####################################################################################################
    # 外部调用方法
    #####################################################################################################

    def volume_fraction_of(self, z: TensorLike) -> float:
        """当前设计的体积分数 sum(z) / N"""
        return float(bm.sum(z)) / self._NZ

    #####################################################################################################
    # 内部方法
    #####################################################################################################

    def _volume_excess(self, z: TensorLike) -> float:
        """超出目标体积的部分 max(0, sum(z) - frac*N)"""
        vol = float(bm.sum(z))
        target = self._volume_fraction * self._NZ

        return 0.0 if vol <= target else vol - target
