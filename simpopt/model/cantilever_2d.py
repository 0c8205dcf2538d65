from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

class Cantilever2dData:
    '''
    悬臂梁, 算例编号 prob = 1

    位移边界条件: 梁的左边界所有自由度固定
    载荷: 网格最后一个自由度 (右端角点的 y 方向) 施加 T = -1
    '''
    name = 'cantilever'

    def __init__(self, T: float = -1.0) -> None:
        self.T = T

    def is_dirichlet_boundary_dof(self, nx: int, ny: int, gdof: TensorLike) -> TensorLike:
        return gdof < 2 * (ny + 1)

    def dirichlet(self, nx: int, ny: int) -> float:
        return 0.0

    def force(self, nx: int, ny: int) -> TensorLike:
        ndof = 2 * (nx + 1) * (ny + 1)
        F = bm.zeros((ndof, ), dtype=bm.float64)
        F = bm.set_at(F, ndof - 1, self.T)

        return F
