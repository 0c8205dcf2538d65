from .dense_solver import DenseLinearSolver, solve_dense

__all__ = [
    'DenseLinearSolver',
    'solve_dense',
]
