from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

class HalfMBBBeam2dData:
    '''
    半 MBB 梁 (简支梁的对称半模型), 算例编号 prob = 0

    结点按列优先编号, 结点 (i, j) 的自由度为 (2 * ((ny+1)*i + j), 2 * ((ny+1)*i + j) + 1)

    位移边界条件: 左边界所有结点的 x 方向位移固定 (对称面),
                 以及网格最后一个自由度 (右端角点的 y 方向支座)
    载荷: 全局自由度 1 (结点 0 的 y 方向) 施加 T = -1
    '''
    name = 'mbb_beam'

    def __init__(self, T: float = -1.0) -> None:
        self.T = T

    def is_dirichlet_boundary_dof(self, nx: int, ny: int, gdof: TensorLike) -> TensorLike:
        """判断全局自由度编号是否位于 Dirichlet 边界上"""
        ndof = 2 * (nx + 1) * (ny + 1)
        left_x = (gdof < 2 * (ny + 1)) & (gdof % 2 == 0)
        support = gdof == ndof - 1

        return left_x | support

    def dirichlet(self, nx: int, ny: int) -> float:
        """边界上的给定位移 (齐次)"""
        return 0.0

    def force(self, nx: int, ny: int) -> TensorLike:
        ndof = 2 * (nx + 1) * (ny + 1)
        F = bm.zeros((ndof, ), dtype=bm.float64)
        F = bm.set_at(F, 1, self.T)

        return F
