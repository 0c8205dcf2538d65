from time import time
from typing import Optional, Tuple

from scipy.optimize import minimize

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from .bound_constraint import BoundConstraint
from .compliance_objective import ComplianceObjective
from .reduced_objective import ReducedObjective
from .state_constraint import ElasticStateConstraint
from .tools import OptimizationHistory
from ..analysis.structured_fem_analyzer import StructuredFEMAnalyzer
from ..config import ContinuationConfig, ObjectiveConfig
from ..utils.base_logged import BaseLogged
from ..utils.tools import check_vector_size

class ContinuationOptimizer(BaseLogged):
    """对 Moreau-Yoshida 参数 reg 和 0-1 罚参数 pen 做连续化的外层优化流程

    每组 (reg, pen) 构造新的目标函数与降维目标函数, 从上一组的结果热启动:
    - 线搜索模式: 先用拟牛顿 (L-BFGS-B) 求解, 迭代上限每次递减,
      再用 Newton-Krylov (trust-constr + Hessian 向量积) 求解;
    - 信赖域模式: 只用 trust-constr.
    """
    def __init__(self,
                analyzer: StructuredFEMAnalyzer,
                constraint: ElasticStateConstraint,
                options: Optional[ContinuationConfig] = None,
                enable_logging: bool = True,
                logger_name: Optional[str] = None
            ) -> None:

        super().__init__(enable_logging=enable_logging, logger_name=logger_name)

        self._analyzer = analyzer
        self._constraint = constraint
        self.options = options if options is not None else ContinuationConfig()

        NZ = analyzer.number_of_design_variables()
        self._bounds = BoundConstraint.uniform(NZ, self.options.lower_bound, self.options.upper_bound)

    @property
    def bounds(self) -> BoundConstraint:
        return self._bounds

    def initial_design(self) -> TensorLike:
        """均匀初始设计 z = frac"""
        NZ = self._analyzer.number_of_design_variables()

        return bm.full((NZ, ), self.options.volume_fraction, dtype=bm.float64)

    def optimize(self, z0: Optional[TensorLike] = None) -> Tuple[TensorLike, OptimizationHistory]:
        """运行连续化优化

        Parameters
        - z0 : 初始设计, 默认为 initial_design(); 会先投影到盒约束内

        Returns
        - z : 最终设计
        - history : 每个子问题的记录
        """
        opts = self.options
        NZ = self._analyzer.number_of_design_variables()

        z = self.initial_design() if z0 is None else bm.copy(z0)
        check_vector_size(z, NZ, 'z0')
        z = self._bounds.project(z)

        history = OptimizationHistory()

        reg, pen = opts.regularization, opts.penalty
        n_reg = opts.n_regularization
        maxit = opts.max_iterations

        for _ in range(opts.n_penalty):
            self._log_info(f"Penalty parameter: {pen}")
            for _ in range(n_reg):
                self._log_info(f"Moreau-Yoshida regularization parameter: {reg}")
                start_time = time()

                objective = ComplianceObjective.from_config(
                                self._analyzer,
                                ObjectiveConfig(volume_fraction=opts.volume_fraction,
                                                regularization=reg, penalty=pen))
                reduced = ReducedObjective(objective, self._constraint)

                n_iter = 0
                if not opts.use_trust_region:
                    maxit = max(maxit - opts.max_iterations_decrement, 0)
                    if maxit > 0:
                        z, nit = self._run_quasi_newton(reduced, z, maxit)
                        n_iter += nit
                    z, nit = self._run_newton_krylov(reduced, z, opts.newton_max_iterations)
                    n_iter += nit
                else:
                    z, nit = self._run_newton_krylov(reduced, z, opts.max_iterations)
                    n_iter += nit

                volfrac = objective.volume_fraction_of(z)
                obj_val = reduced.value(z)
                history.log_run(z=z, obj_val=obj_val, volfrac=volfrac,
                                regularization=reg, penalty=pen,
                                n_iter=n_iter, time_cost=time() - start_time)
                self._log_info(f"The volume fraction is {volfrac:.6f}, objective: {obj_val:.6e}")

                reg *= opts.regularization_growth

            reg = opts.regularization
            n_reg += opts.regularization_increment
            pen *= opts.penalty_growth

        self._log_info(f"Final volume fraction: {float(bm.sum(z)) / NZ:.6f}, "
                       f"total time: {history.get_total_time():.3f} sec")

        return z, history

    #####################################################################################################
    # 内部方法
    #####################################################################################################

    def _run_quasi_newton(self, reduced: ReducedObjective, z: TensorLike, maxiter: int):
        res = minimize(reduced.value, bm.to_numpy(z),
                       jac=reduced.gradient,
                       method='L-BFGS-B',
                       bounds=self._bounds.to_scipy(),
                       options={'maxiter': maxiter,
                                'gtol': self.options.gradient_tolerance})
        self._log_debug(f"L-BFGS-B: {res.message} ({res.nit} iterations)")

        return self._bounds.project(bm.array(res.x, dtype=bm.float64)), int(res.nit)

    def _run_newton_krylov(self, reduced: ReducedObjective, z: TensorLike, maxiter: int):
        res = minimize(reduced.value, bm.to_numpy(z),
                       jac=reduced.gradient,
                       hessp=lambda x, p: reduced.hess_vec(x, p),
                       method='trust-constr',
                       bounds=self._bounds.to_scipy(),
                       options={'maxiter': maxiter,
                                'gtol': self.options.gradient_tolerance,
                                'xtol': self.options.step_tolerance})
        self._log_debug(f"trust-constr: {res.message} ({res.nit} iterations)")

        return self._bounds.project(bm.array(res.x, dtype=bm.float64)), int(res.nit)
