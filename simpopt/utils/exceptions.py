from numpy.linalg import LinAlgError


class ConfigurationError(ValueError):
    """网格尺寸、惩罚指数或算例标识非法, 在构造阶段抛出"""


class DimensionMismatchError(ValueError):
    """向量长度与网格的状态/设计自由度数不一致"""


class SingularSystemError(LinAlgError):
    """组装得到的刚度矩阵无法分解"""
