from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

# KE 中每个位置取哪一个系数 k[.], 8 x 8 对称
_KE_PATTERN = (
    (0, 1, 2, 3, 4, 5, 6, 7),
    (1, 0, 7, 6, 5, 4, 3, 2),
    (2, 7, 0, 5, 6, 3, 4, 1),
    (3, 6, 5, 0, 7, 2, 1, 4),
    (4, 5, 6, 7, 0, 1, 2, 3),
    (5, 4, 3, 2, 1, 0, 7, 6),
    (6, 3, 4, 1, 2, 7, 0, 5),
    (7, 2, 1, 4, 3, 6, 5, 0),
)

def element_stiffness_coefficients(nu: float) -> TensorLike:
    """单位正方形双线性单元 (平面应力) 刚度矩阵的 8 个独立系数 k[0..7]"""
    k = bm.array([
             1.0/2.0 - nu/6.0,
             1.0/8.0 + nu/8.0,
            -1.0/4.0 - nu/12.0,
            -1.0/8.0 + 3.0*nu/8.0,
            -1.0/4.0 + nu/12.0,
            -1.0/8.0 - nu/8.0,
             nu/6.0,
             1.0/8.0 - 3.0*nu/8.0,
        ], dtype=bm.float64)

    return k

def element_stiffness_matrix(E: float, nu: float) -> TensorLike:
    """计算单位厚度、单位正方形双线性四边形单元的平面应力刚度矩阵 KE

    局部自由度顺序为 (x0, y0, x1, y1, x2, y2, x3, y3), 四个节点按逆时针排列.
    不检查 nu 的物理范围 (-1, 0.5).

    Parameters
    - E : 杨氏模量
    - nu : 泊松比

    Returns
    - KE (8, 8): 对称的单元刚度矩阵
    """
    k = element_stiffness_coefficients(nu)
    pattern = bm.array(_KE_PATTERN, dtype=bm.int32)
    KE = E / (1.0 - nu*nu) * k[pattern]

    return KE


class PlaneStressQuadElement:
    """平面应力双线性四边形单元, KE 只在构造时计算一次, 之后只读共享"""

    def __init__(self, elastic_modulus: float = 1.0, poisson_ratio: float = 0.3):
        self._E = elastic_modulus
        self._nu = poisson_ratio
        self._KE = element_stiffness_matrix(elastic_modulus, poisson_ratio)

    @property
    def elastic_modulus(self) -> float:
        return self._E

    @property
    def poisson_ratio(self) -> float:
        return self._nu

    @property
    def stiffness_matrix(self) -> TensorLike:
        """单元刚度矩阵 KE (8, 8), 返回副本以免被就地修改"""
        return bm.copy(self._KE)

    def number_of_local_dofs(self) -> int:
        return 8
