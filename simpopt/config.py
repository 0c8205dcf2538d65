from typing import Literal, Union
from dataclasses import dataclass

from .model import create_problem
from .utils.exceptions import ConfigurationError

__all__ = ['FEMConfig', 'ObjectiveConfig', 'ContinuationConfig']

ProblemType = Union[Literal['mbb_beam', 'cantilever'], int]

@dataclass(frozen=True)
class FEMConfig:
    """结构化四边形网格有限元配置类

    # 示例: 60 x 20 的半 MBB 梁, SIMP 惩罚指数为 3
    config = FEMConfig(nx=60, ny=20, penalty_factor=3, problem='mbb_beam')

    analyzer = StructuredFEMAnalyzer(config=config)

    构造后不可修改.
    """
    nx: int = 32
    ny: int = 20
    penalty_factor: float = 3.0
    problem: ProblemType = 'cantilever'
    elastic_modulus: float = 1.0
    poisson_ratio: float = 0.3

    def __post_init__(self):
        for name in ('nx', 'ny'):
            val = getattr(self, name)
            if isinstance(val, bool) or not isinstance(val, int) or val < 1:
                raise ConfigurationError(f"'{name}' must be a positive integer, got {val!r}")

        if self.penalty_factor < 1:
            raise ConfigurationError(
                f"SIMP penalty factor must satisfy p >= 1, got {self.penalty_factor}")

        if self.elastic_modulus <= 0:
            raise ConfigurationError(
                f"Young's modulus must be positive, got {self.elastic_modulus}")

        create_problem(self.problem)

@dataclass
class ObjectiveConfig:
    """柔顺度目标函数及罚项参数"""
    volume_fraction: float = 0.5
    regularization: float = 1.0   # Moreau-Yoshida 正则化参数 reg
    penalty: float = 1.0          # 0-1 罚参数 pen

    def __post_init__(self):
        if not 0.0 < self.volume_fraction <= 1.0:
            raise ConfigurationError(
                f"volume_fraction must lie in (0, 1], got {self.volume_fraction}")
        if self.regularization < 0 or self.penalty < 0:
            raise ConfigurationError("regularization and penalty must be non-negative")

@dataclass
class ContinuationConfig:
    """连续化优化流程的配置类

    外层循环 n_penalty 次 (每次 pen *= penalty_growth),
    内层循环 n_regularization 次 (每次 reg *= regularization_growth),
    每个外层循环结束后 reg 重置为初值, n_regularization 增加 regularization_increment.
    """
    volume_fraction: float = 0.4
    regularization: float = 1.0
    penalty: float = 1.0

    n_regularization: int = 10
    n_penalty: int = 3
    regularization_growth: float = 2.0
    regularization_increment: int = 5
    penalty_growth: float = 10.0

    lower_bound: float = 1e-3
    upper_bound: float = 1.0

    max_iterations: int = 500
    max_iterations_decrement: int = 100
    newton_max_iterations: int = 500
    gradient_tolerance: float = 1e-4
    step_tolerance: float = 1e-8
    use_trust_region: bool = False

    def __post_init__(self):
        if not 0.0 < self.volume_fraction <= 1.0:
            raise ConfigurationError(
                f"volume_fraction must lie in (0, 1], got {self.volume_fraction}")
        if not 0.0 < self.lower_bound < self.upper_bound:
            raise ConfigurationError(
                f"bounds must satisfy 0 < lower < upper, got "
                f"[{self.lower_bound}, {self.upper_bound}]")
        if self.n_regularization < 0 or self.n_penalty < 0:
            raise ConfigurationError("continuation counts must be non-negative")
