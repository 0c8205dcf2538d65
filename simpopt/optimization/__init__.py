from .state_constraint import ElasticStateConstraint
from .compliance_objective import ComplianceObjective
from .reduced_objective import ReducedObjective
from .bound_constraint import BoundConstraint
from .continuation_optimizer import ContinuationOptimizer
from .tools import (
                    OptimizationHistory,
                    save_density,
                    load_density,
                    plot_density,
                )
from .derivative_check import (
                            check_gradient,
                            check_hess_vec,
                            check_apply_jacobian,
                            check_adjoint_consistency,
                            min_error,
                            format_table,
                        )

__all__ = [
    'ElasticStateConstraint',
    'ComplianceObjective',
    'ReducedObjective',
    'BoundConstraint',
    'ContinuationOptimizer',
    'OptimizationHistory',
    'save_density',
    'load_density',
    'plot_density',
    'check_gradient',
    'check_hess_vec',
    'check_apply_jacobian',
    'check_adjoint_consistency',
    'min_error',
    'format_table',
]
