from typing import Optional

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..config import FEMConfig
from ..material.element_stiffness import PlaneStressQuadElement
from ..material.interpolation_scheme import SIMPPenalization
from ..model import create_problem
from ..utils.base_logged import BaseLogged
from ..utils.tools import check_vector_size

class StructuredFEMAnalyzer(BaseLogged):
    """轴对齐结构化网格上的 SIMP 线弹性有限元分析器

    网格由 nx * ny 个单位正方形双线性单元组成, 结点按列优先编号.
    单元 (i, j) 对应的设计变量编号为 e = i + j * nx.

    所有组装和无矩阵算子遵循同一套边界规则:
    - 边界行: 组装时置单位主元, 无矩阵乘积中直接复制输入向量的对应分量;
    - 边界列: 不参与内部行的累加.
    """
    def __init__(self,
                config: FEMConfig,
                enable_logging: bool = False,
                logger_name: Optional[str] = None
            ) -> None:

        super().__init__(enable_logging=enable_logging, logger_name=logger_name)

        self._config = config
        self._nx, self._ny = config.nx, config.ny
        self._problem = create_problem(config.problem)

        # 单元刚度矩阵只计算一次, 所有单元共享
        self._element = PlaneStressQuadElement(elastic_modulus=config.elastic_modulus,
                                               poisson_ratio=config.poisson_ratio)
        self._KE = self._element.stiffness_matrix
        self._penalization = SIMPPenalization(penalty_factor=config.penalty_factor)

        self._cell2dof = self._build_cell_to_dof()
        gdof = bm.arange(self.number_of_state_dofs(), dtype=bm.int32)
        self._is_bd_dof = self._problem.is_dirichlet_boundary_dof(self._nx, self._ny, gdof)
        self._is_bd_cell_dof = self._is_bd_dof[self._cell2dof]           # (NC, 8)
        self._is_int_cell_dof = bm.logical_not(self._is_bd_cell_dof)     # (NC, 8)

        self._F = self._problem.force(self._nx, self._ny)

        self._log_info(f"Mesh Information: nx: {self._nx}, ny: {self._ny}, "
                       f"NZ: {self.number_of_design_variables()}, "
                       f"NU: {self.number_of_state_dofs()}, "
                       f"problem: {self._problem.name}, p: {self._penalization.penalty_factor}")


    ##############################################################################################
    # 属性访问器
    ##############################################################################################

    @property
    def config(self) -> FEMConfig:
        return self._config

    @property
    def nx(self) -> int:
        return self._nx

    @property
    def ny(self) -> int:
        return self._ny

    @property
    def problem(self):
        """边界条件与载荷模型"""
        return self._problem

    @property
    def penalization(self) -> SIMPPenalization:
        return self._penalization

    @property
    def penalty_factor(self) -> float:
        return self._penalization.penalty_factor

    @property
    def element_stiffness_matrix(self) -> TensorLike:
        """单元刚度矩阵 KE 的副本"""
        return bm.copy(self._KE)

    def number_of_design_variables(self) -> int:
        """设计变量 (单元密度) 个数 nx * ny"""
        return self._nx * self._ny

    def number_of_state_dofs(self) -> int:
        """状态变量 (结点位移) 自由度个数 2 * (nx+1) * (ny+1)"""
        return 2 * (self._nx + 1) * (self._ny + 1)


    ##############################################################################################
    # 编号与边界
    ##############################################################################################

    @staticmethod
    def get_index(r: int, n1: int, n2: int) -> int:
        """局部自由度 r 到全局自由度的映射, n1, n2 为从 1 开始的结点编号"""
        table = {
            0: 2*n1 - 2, 1: 2*n1 - 1,
            2: 2*n2 - 2, 3: 2*n2 - 1,
            4: 2*n2,     5: 2*n2 + 1,
            6: 2*n1,     7: 2*n1 + 1,
        }
        return table[r]

    def element_nodes(self, i: int, j: int):
        """单元 (i, j) 的结点标识 (n1, n2), 从 1 开始编号"""
        n1 = (self._ny + 1) * i + (j + 1)
        n2 = (self._ny + 1) * (i + 1) + (j + 1)

        return n1, n2

    def cell_to_dof(self) -> TensorLike:
        """单元到全局自由度的映射 (NC, 8), 第 e 行对应设计变量 e"""
        return bm.copy(self._cell2dof)

    def is_boundary_dof(self) -> TensorLike:
        """全局自由度是否位于 Dirichlet 边界上 (NU, )"""
        return bm.copy(self._is_bd_dof)

    def check_on_boundary(self, r: int) -> bool:
        return bool(self._is_bd_dof[r])

    def set_boundary_conditions(self, u: TensorLike) -> TensorLike:
        """返回边界自由度被置为给定位移 (0) 的副本"""
        check_vector_size(u, self.number_of_state_dofs(), 'u')
        uh = bm.copy(u)
        uh = bm.set_at(uh, self._is_bd_dof, self._problem.dirichlet(self._nx, self._ny))

        return uh

    def build_force(self) -> TensorLike:
        """全局载荷向量 f (NU, )"""
        return bm.copy(self._F)


    ##############################################################################################
    # 全局刚度矩阵组装
    ##############################################################################################

    def assemble(self, z: TensorLike, transpose: bool = False) -> TensorLike:
        """组装稠密全局刚度矩阵 K(z), 单元贡献为 z_e^p * KE"""
        check_vector_size(z, self.number_of_design_variables(), 'z')
        Zp = self._penalization.calculate_property(z)

        return self._assemble_scaled(Zp, transpose=transpose)

    def assemble_derivative(self,
                            z: TensorLike, v: TensorLike,
                            transpose: bool = False
                        ) -> TensorLike:
        """组装 K 沿设计方向 v 的方向导数, 单元贡献为 dZp/dz_e * v_e * KE"""
        check_vector_size(z, self.number_of_design_variables(), 'z')
        check_vector_size(v, self.number_of_design_variables(), 'v')
        dZp = self._penalization.calculate_property_derivative(z)

        return self._assemble_scaled(dZp * v, transpose=transpose)


    ##############################################################################################
    # 无矩阵算子
    ##############################################################################################

    def apply_jacobian_state(self, u: TensorLike, z: TensorLike) -> TensorLike:
        """K(z) u, 边界行直接复制 u"""
        check_vector_size(u, self.number_of_state_dofs(), 'u')
        check_vector_size(z, self.number_of_design_variables(), 'z')
        Zp = self._penalization.calculate_property(z)

        return self._apply_scaled(u, Zp)

    def apply_jacobian_design(self, u: TensorLike, z: TensorLike, v: TensorLike) -> TensorLike:
        """(dK/dz [v]) u, 边界行直接复制 u"""
        check_vector_size(u, self.number_of_state_dofs(), 'u')
        check_vector_size(z, self.number_of_design_variables(), 'z')
        check_vector_size(v, self.number_of_design_variables(), 'v')
        dZp = self._penalization.calculate_property_derivative(z)

        return self._apply_scaled(u, dZp * v)

    def apply_adjoint_jacobian_design(self, u: TensorLike, z: TensorLike, v: TensorLike) -> TensorLike:
        """设计空间中的伴随作用: g_e = dZp/dz_e * v_e^T KE u_e (内部行/列)
        加上边界行的 v_row * u_row

        Parameters
        - u (NU, ): 状态
        - z (NZ, ): 设计变量
        - v (NU, ): 伴随方向

        Returns
        - g (NZ, )
        """
        check_vector_size(u, self.number_of_state_dofs(), 'u')
        check_vector_size(z, self.number_of_design_variables(), 'z')
        check_vector_size(v, self.number_of_state_dofs(), 'v')
        dZp = self._penalization.calculate_property_derivative(z)

        return self._bilinear_form(dZp, v, u)

    def apply_adjoint_hessian_design(self,
                                    u: TensorLike, z: TensorLike,
                                    v: TensorLike, w: TensorLike
                                ) -> TensorLike:
        """设计-设计块的伴随 Hessian 作用: h_e = d2Zp/dz_e^2 * v_e * w_e^T KE u_e
        加上边界行的 w_row * u_row

        Parameters
        - u (NU, ): 状态
        - z (NZ, ): 设计变量
        - v (NZ, ): 设计方向
        - w (NU, ): 伴随变量
        """
        check_vector_size(u, self.number_of_state_dofs(), 'u')
        check_vector_size(z, self.number_of_design_variables(), 'z')
        check_vector_size(v, self.number_of_design_variables(), 'v')
        check_vector_size(w, self.number_of_state_dofs(), 'w')
        d2Zp = self._penalization.calculate_property_second_derivative(z)

        return self._bilinear_form(d2Zp * v, w, u)


    ##############################################################################################
    # 内部方法
    ##############################################################################################

    def _build_cell_to_dof(self) -> TensorLike:
        nx, ny = self._nx, self._ny
        e = bm.arange(nx * ny, dtype=bm.int32)
        i = e % nx
        j = e // nx
        n1 = (ny + 1) * i + (j + 1)
        n2 = (ny + 1) * (i + 1) + (j + 1)

        cell2dof = bm.stack([2*n1 - 2, 2*n1 - 1,
                             2*n2 - 2, 2*n2 - 1,
                             2*n2,     2*n2 + 1,
                             2*n1,     2*n1 + 1], axis=1)   # (NC, 8)

        return cell2dof

    def _assemble_scaled(self, scale: TensorLike, transpose: bool = False) -> TensorLike:
        NU = self.number_of_state_dofs()
        NC = self.number_of_design_variables()
        ldof = self._element.number_of_local_dofs()
        cell2dof = self._cell2dof

        KE_c = bm.einsum('c, ij -> cij', scale, self._KE)                      # (NC, ldof, ldof)
        keep = self._is_int_cell_dof[:, :, None] & self._is_int_cell_dof[:, None, :]
        KE_c = bm.where(keep, KE_c, 0.0)

        rows = bm.broadcast_to(cell2dof[:, :, None], (NC, ldof, ldof)).reshape(-1)
        cols = bm.broadcast_to(cell2dof[:, None, :], (NC, ldof, ldof)).reshape(-1)
        if transpose:
            rows, cols = cols, rows

        K = bm.zeros((NU, NU), dtype=bm.float64)
        K = bm.add_at(K, (rows, cols), KE_c.reshape(-1))

        # 边界行列: 单位主元
        bd = bm.nonzero(self._is_bd_dof)[0]
        K = bm.set_at(K, (bd, bd), 1.0)

        return K

    def _apply_scaled(self, u: TensorLike, scale: TensorLike) -> TensorLike:
        NU = self.number_of_state_dofs()
        cell2dof = self._cell2dof
        is_int = self._is_int_cell_dof

        ue = bm.where(is_int, u[cell2dof], 0.0)                                 # (NC, 8)
        Ku_e = bm.einsum('c, ij, cj -> ci', scale, self._KE, ue)
        Ku_e = bm.where(is_int, Ku_e, 0.0)

        ju = bm.zeros((NU, ), dtype=bm.float64)
        ju = bm.add_at(ju, cell2dof.reshape(-1), Ku_e.reshape(-1))
        ju = bm.set_at(ju, self._is_bd_dof, u[self._is_bd_dof])

        return ju

    def _bilinear_form(self, scale: TensorLike, v: TensorLike, u: TensorLike) -> TensorLike:
        """逐单元计算 scale_e * v_e^T KE u_e (内部) + sum_{边界行} v_r * u_r"""
        cell2dof = self._cell2dof
        is_int = self._is_int_cell_dof
        is_bd = self._is_bd_cell_dof

        ue, ve = u[cell2dof], v[cell2dof]                                       # (NC, 8)
        ue_int = bm.where(is_int, ue, 0.0)
        ve_int = bm.where(is_int, ve, 0.0)

        vku = bm.einsum('c, ci, ij, cj -> c', scale, ve_int, self._KE, ue_int)
        vku = vku + bm.einsum('ci, ci -> c', bm.where(is_bd, ve, 0.0), bm.where(is_bd, ue, 0.0))

        return vku
