from typing import Optional

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..analysis.structured_fem_analyzer import StructuredFEMAnalyzer
from ..solver.dense_solver import DenseLinearSolver
from ..utils.base_logged import BaseLogged
from ..utils.exceptions import SingularSystemError
from ..utils.tools import check_vector_size

class ElasticStateConstraint(BaseLogged):
    """离散线弹性方程 c(u, z) = K(z) u - f = 0 作为等式约束

    状态变量 u (NU, ), 设计变量 z (NZ, ).
    所有作用在状态空间的输入 (状态、扰动、伴随) 使用前都先把边界自由度置 0.
    每次求解都重新组装 K(z), 不在不同 z 之间缓存.
    """
    def __init__(self,
                analyzer: StructuredFEMAnalyzer,
                equilibrate: bool = True,
                enable_logging: bool = False,
                logger_name: Optional[str] = None
            ) -> None:

        super().__init__(enable_logging=enable_logging, logger_name=logger_name)

        self._analyzer = analyzer
        self._equilibrate = equilibrate

    @property
    def analyzer(self) -> StructuredFEMAnalyzer:
        return self._analyzer

    def number_of_state_dofs(self) -> int:
        return self._analyzer.number_of_state_dofs()

    def number_of_design_variables(self) -> int:
        return self._analyzer.number_of_design_variables()


    #####################################################################################################
    # 约束值与状态求解
    #####################################################################################################

    def residual(self, u: TensorLike, z: TensorLike) -> TensorLike:
        """c(u, z) = K(z) u - f"""
        c = self.apply_jacobian_state(u, z)
        c = c - self._analyzer.build_force()

        return c

    def solve_state(self, z: TensorLike) -> TensorLike:
        """给定 z 求解 K(z) u = f"""
        K = self._analyzer.assemble(z)
        F = self._analyzer.build_force()
        uh = self._solve(K, F)
        self._log_debug(f"State solved, compliance u^T f = {float(bm.einsum('i, i ->', uh, F)):.6e}")

        return uh


    #####################################################################################################
    # 一阶导数作用
    #####################################################################################################

    def apply_jacobian_state(self, v: TensorLike, z: TensorLike) -> TensorLike:
        """J1 v = K(z) v"""
        V = self._analyzer.set_boundary_conditions(v)

        return self._analyzer.apply_jacobian_state(V, z)

    def apply_jacobian_design(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        """J2 v = (dK/dz [v]) u, v 为设计方向"""
        U = self._analyzer.set_boundary_conditions(u)

        return self._analyzer.apply_jacobian_design(U, z, v)

    def apply_inverse_jacobian_state(self, v: TensorLike, z: TensorLike) -> TensorLike:
        """J1^{-1} v"""
        check_vector_size(v, self.number_of_state_dofs(), 'v')
        K = self._analyzer.assemble(z)

        return self._solve(K, v)

    def apply_adjoint_jacobian_state(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        """J1^T v, K 对称, 与 J1 v 相同"""
        return self.apply_jacobian_state(v, z)

    def apply_adjoint_jacobian_design(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        """J2^T v, 结果位于设计空间"""
        U = self._analyzer.set_boundary_conditions(u)
        V = self._analyzer.set_boundary_conditions(v)

        return self._analyzer.apply_adjoint_jacobian_design(U, z, V)

    def apply_inverse_adjoint_jacobian_state(self, v: TensorLike, u: TensorLike, z: TensorLike) -> TensorLike:
        """(J1^T)^{-1} v, K 对称, 与 J1^{-1} v 相同"""
        return self.apply_inverse_jacobian_state(v, z)


    #####################################################################################################
    # 伴随 Hessian 作用, 命名为 <结果空间>_<方向空间>, w 为伴随 (乘子) 变量
    #####################################################################################################

    def apply_adjoint_hessian_state_state(self,
            w: TensorLike, v: TensorLike, u: TensorLike, z: TensorLike
        ) -> TensorLike:
        """方程关于 u 线性, 该块恒为零"""
        NU = self.number_of_state_dofs()
        check_vector_size(w, NU, 'w')
        check_vector_size(v, NU, 'v')
        check_vector_size(u, NU, 'u')
        check_vector_size(z, self.number_of_design_variables(), 'z')

        return bm.zeros((self.number_of_state_dofs(), ), dtype=bm.float64)

    def apply_adjoint_hessian_design_state(self,
            w: TensorLike, v: TensorLike, u: TensorLike, z: TensorLike
        ) -> TensorLike:
        """d/du <w, J2 (.)> 作用于状态方向 v, 结果位于设计空间"""
        return self.apply_adjoint_jacobian_design(w, v, z)

    def apply_adjoint_hessian_state_design(self,
            w: TensorLike, v: TensorLike, u: TensorLike, z: TensorLike
        ) -> TensorLike:
        """d/dz (J1^T w) 作用于设计方向 v, 结果位于状态空间"""
        return self.apply_jacobian_design(v, w, z)

    def apply_adjoint_hessian_design_design(self,
            w: TensorLike, v: TensorLike, u: TensorLike, z: TensorLike
        ) -> TensorLike:
        """d/dz (J2^T w) 作用于设计方向 v"""
        U = self._analyzer.set_boundary_conditions(u)
        W = self._analyzer.set_boundary_conditions(w)

        return self._analyzer.apply_adjoint_hessian_design(U, z, v, W)


    #####################################################################################################
    # 内部方法
    #####################################################################################################

    def _solve(self, K: TensorLike, b: TensorLike) -> TensorLike:
        solver = DenseLinearSolver()
        solver.set_matrix(K)
        solver.set_vectors(None, b)
        solver.factor_with_equilibration(self._equilibrate)
        try:
            solver.factor()
            x = solver.solve()
        except SingularSystemError as err:
            self._log_error(f"Stiffness matrix factorization failed: {err}")
            raise

        return self._analyzer.set_boundary_conditions(x)
