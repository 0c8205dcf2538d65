from typing import Optional

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from .compliance_objective import ComplianceObjective
from .state_constraint import ElasticStateConstraint
from ..utils.base_logged import BaseLogged
from ..utils.tools import check_vector_size

class ReducedObjective(BaseLogged):
    """消去状态变量后的目标函数 j(z) = J(u(z), z), u(z) 满足 c(u, z) = 0

    梯度与 Hessian 向量积通过伴随方法计算:
    - 伴随方程   J1^T lam = -J_u
    - 梯度       g = J_z + J2^T lam
    - 状态灵敏度 J1 s = -J2 v
    - 伴随灵敏度 J1^T mu = -(J_uu s + J_uz v + c_uu(lam) s + c_uz(lam) v)
    - Hessian    Hv = J2^T mu + J_zu s + J_zz v + c_zu(lam) s + c_zz(lam) v

    状态和伴随只对同一个 z 复用, z 改变后重新求解.
    """
    def __init__(self,
                objective: ComplianceObjective,
                constraint: ElasticStateConstraint,
                enable_logging: bool = False,
                logger_name: Optional[str] = None
            ) -> None:

        super().__init__(enable_logging=enable_logging, logger_name=logger_name)

        self._objective = objective
        self._constraint = constraint

        self._z = None
        self._state = None
        self._adjoint = None

        self.n_state_solves = 0
        self.n_adjoint_solves = 0

    @property
    def objective(self) -> ComplianceObjective:
        return self._objective

    @property
    def constraint(self) -> ElasticStateConstraint:
        return self._constraint

    def value(self, z: TensorLike) -> float:
        u = self.state(z)

        return self._objective.value(u, z)

    def gradient(self, z: TensorLike) -> TensorLike:
        u = self.state(z)
        lam = self.adjoint(z)

        g = self._objective.gradient_design(u, z)
        g = g + self._constraint.apply_adjoint_jacobian_design(lam, u, z)

        return g

    def hess_vec(self, z: TensorLike, v: TensorLike) -> TensorLike:
        check_vector_size(v, self._constraint.number_of_design_variables(), 'v')
        obj, con = self._objective, self._constraint
        u = self.state(z)
        lam = self.adjoint(z)

        # 状态灵敏度
        rhs = con.apply_jacobian_design(v, u, z)
        s = con.apply_inverse_jacobian_state(-rhs, z)

        # 伴随灵敏度
        rhs = obj.hess_vec_state_state(s, u, z)
        rhs = rhs + obj.hess_vec_state_design(v, u, z)
        rhs = rhs + con.apply_adjoint_hessian_state_state(lam, s, u, z)
        rhs = rhs + con.apply_adjoint_hessian_state_design(lam, v, u, z)
        mu = con.apply_inverse_adjoint_jacobian_state(-rhs, u, z)

        hv = con.apply_adjoint_jacobian_design(mu, u, z)
        hv = hv + obj.hess_vec_design_state(s, u, z)
        hv = hv + obj.hess_vec_design_design(v, u, z)
        hv = hv + con.apply_adjoint_hessian_design_state(lam, s, u, z)
        hv = hv + con.apply_adjoint_hessian_design_design(lam, v, u, z)

        return hv

    def state(self, z: TensorLike) -> TensorLike:
        """当前 z 对应的状态 u(z)"""
        self._update(z)
        if self._state is None:
            self._state = self._constraint.solve_state(z)
            self.n_state_solves += 1

        return self._state

    def adjoint(self, z: TensorLike) -> TensorLike:
        """当前 z 对应的伴随变量 lam(z)"""
        u = self.state(z)
        if self._adjoint is None:
            rhs = self._objective.gradient_state(u, z)
            self._adjoint = self._constraint.apply_inverse_adjoint_jacobian_state(-rhs, u, z)
            self.n_adjoint_solves += 1

        return self._adjoint

    def _update(self, z: TensorLike) -> None:
        check_vector_size(z, self._constraint.number_of_design_variables(), 'z')
        if self._z is None or bm.any(self._z != z):
            self._z = bm.copy(z)
            self._state = None
            self._adjoint = None
