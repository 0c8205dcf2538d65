import numpy as np
import pytest

from fealpy.backend import backend_manager as bm

bm.set_backend('numpy')

from simpopt.config import FEMConfig
from simpopt.analysis import StructuredFEMAnalyzer
from simpopt.optimization import (ElasticStateConstraint,
                                  check_apply_jacobian, check_adjoint_consistency, min_error)
from simpopt.utils.exceptions import SingularSystemError, DimensionMismatchError

def _setup(nx=3, ny=2, p=3.0, problem='cantilever'):
    analyzer = StructuredFEMAnalyzer(FEMConfig(nx=nx, ny=ny, penalty_factor=p, problem=problem))
    constraint = ElasticStateConstraint(analyzer)

    return analyzer, constraint

def _random_vector(rng, n, low=-1.0, high=1.0):
    return bm.array(rng.uniform(low, high, n), dtype=bm.float64)


@pytest.mark.parametrize("problem", ['mbb_beam', 'cantilever'])
def test_solve_state_satisfies_equation(problem, rng):
    analyzer, constraint = _setup(nx=4, ny=3, problem=problem)
    z = _random_vector(rng, 12, 0.2, 1.0)

    u = constraint.solve_state(z)
    c = constraint.residual(u, z)

    bd = analyzer.is_boundary_dof()
    np.testing.assert_array_equal(u[bd], 0.0)
    np.testing.assert_allclose(c, 0.0, atol=1e-9 * max(1.0, float(np.max(np.abs(u)))))

def test_single_element_cantilever_solution():
    analyzer, constraint = _setup(nx=1, ny=1, p=3.0)
    z = bm.array([0.8], dtype=bm.float64)
    KE = analyzer.element_stiffness_matrix

    u = constraint.solve_state(z)

    f = np.zeros(4)
    f[3] = -1.0
    expected = np.linalg.solve(0.8 ** 3 * KE[2:6, 2:6], f)
    np.testing.assert_array_equal(u[:4], 0.0)
    np.testing.assert_allclose(u[4:], expected, rtol=1e-10)

@pytest.mark.parametrize("problem", ['mbb_beam', 'cantilever'])
def test_regression_against_loop_assembly(problem, reference_assemble, reference_force, rng):
    """2x2 网格, p = 3, 与循环组装 + numpy 求解的结果一致"""
    analyzer, constraint = _setup(nx=2, ny=2, p=3.0, problem=problem)
    z = _random_vector(rng, 4, 0.3, 1.0)

    u = constraint.solve_state(z)
    K = reference_assemble(2, 2, z, 3.0, problem)
    expected = np.linalg.solve(K, reference_force(2, 2, problem))

    np.testing.assert_allclose(u, expected, rtol=1e-10, atol=1e-12)

def test_regression_recorded_cantilever_displacement():
    """2x2 悬臂梁, p = 3, z = 1 的位移与柔度记录值"""
    analyzer, constraint = _setup(nx=2, ny=2, p=3.0, problem='cantilever')
    z = bm.ones((4, ), dtype=bm.float64)

    expected = np.array([
         0.0,             0.0,             0.0,             0.0,
         0.0,             0.0,            -1.769242664925, -2.432730819661,
        -0.174565886551, -2.18549731447,   2.054586224324, -2.220103440649,
        -2.243652093611, -4.976649573633, -0.162098204125, -5.502095050746,
         3.200597516369, -7.511067713352,
    ])

    u = constraint.solve_state(z)
    compliance = float(u @ analyzer.build_force())

    np.testing.assert_allclose(u, expected, rtol=1e-10, atol=1e-12)
    assert compliance == pytest.approx(7.5110677133522, rel=1e-10)

def test_inverse_jacobian_state(rng):
    analyzer, constraint = _setup(nx=3, ny=3)
    NZ, NU = analyzer.number_of_design_variables(), analyzer.number_of_state_dofs()
    z = _random_vector(rng, NZ, 0.2, 1.0)
    b = _random_vector(rng, NU)

    x = constraint.apply_inverse_jacobian_state(b, z)
    np.testing.assert_allclose(constraint.apply_jacobian_state(x, z),
                               analyzer.set_boundary_conditions(b), rtol=1e-9, atol=1e-10)

    y = constraint.apply_inverse_adjoint_jacobian_state(b, x, z)
    np.testing.assert_allclose(y, x, rtol=1e-12, atol=1e-14)

def test_jacobian_state_inputs_sanitized(rng):
    analyzer, constraint = _setup(nx=3, ny=2)
    NZ, NU = analyzer.number_of_design_variables(), analyzer.number_of_state_dofs()
    z = _random_vector(rng, NZ, 0.2, 1.0)
    v = _random_vector(rng, NU)

    jv = constraint.apply_jacobian_state(v, z)
    bd = analyzer.is_boundary_dof()

    np.testing.assert_array_equal(jv[bd], 0.0)
    np.testing.assert_allclose(jv, analyzer.apply_jacobian_state(analyzer.set_boundary_conditions(v), z))

def test_jacobian_design_finite_difference(rng):
    analyzer, constraint = _setup(nx=3, ny=2, p=3.0)
    NZ, NU = analyzer.number_of_design_variables(), analyzer.number_of_state_dofs()
    z = _random_vector(rng, NZ, 0.3, 0.9)
    u = _random_vector(rng, NU)
    d = _random_vector(rng, NZ)

    table = check_apply_jacobian(lambda x: constraint.residual(u, x),
                                 lambda x, v: constraint.apply_jacobian_design(v, u, x),
                                 z, d)

    assert min_error(table) < 1e-6 * max(1.0, table[0][1])

def test_adjoint_consistency(rng):
    analyzer, constraint = _setup(nx=3, ny=2, p=3.0)
    NZ, NU = analyzer.number_of_design_variables(), analyzer.number_of_state_dofs()
    z = _random_vector(rng, NZ, 0.3, 0.9)
    u = _random_vector(rng, NU)

    # 设计方向 -> 状态空间
    err = check_adjoint_consistency(lambda v: constraint.apply_jacobian_design(v, u, z),
                                    lambda w: constraint.apply_adjoint_jacobian_design(w, u, z),
                                    _random_vector(rng, NZ), _random_vector(rng, NU))
    assert err < 1e-10

    # 状态方向 -> 状态空间
    err = check_adjoint_consistency(lambda v: constraint.apply_jacobian_state(v, z),
                                    lambda w: constraint.apply_adjoint_jacobian_state(w, u, z),
                                    _random_vector(rng, NU), _random_vector(rng, NU))
    assert err < 1e-10

def test_adjoint_hessian_blocks(rng):
    analyzer, constraint = _setup(nx=3, ny=2, p=3.0)
    NZ, NU = analyzer.number_of_design_variables(), analyzer.number_of_state_dofs()
    z = _random_vector(rng, NZ, 0.3, 0.9)
    u = _random_vector(rng, NU)
    w = _random_vector(rng, NU)
    vz = _random_vector(rng, NZ)
    vu = _random_vector(rng, NU)

    hss = constraint.apply_adjoint_hessian_state_state(w, vu, u, z)
    np.testing.assert_array_equal(hss, 0.0)
    assert hss.shape == (NU, )

    # d/du (J2^T w) 沿 vu: J2^T w 关于 u 线性
    hds = constraint.apply_adjoint_hessian_design_state(w, vu, u, z)
    np.testing.assert_allclose(hds, constraint.apply_adjoint_jacobian_design(w, vu, z))
    assert hds.shape == (NZ, )

    h = 1e-6
    # d/dz (J1^T w) 沿 vz
    fd = (constraint.apply_adjoint_jacobian_state(w, u, z + h * vz)
          - constraint.apply_adjoint_jacobian_state(w, u, z - h * vz)) / (2 * h)
    hsd = constraint.apply_adjoint_hessian_state_design(w, vz, u, z)
    np.testing.assert_allclose(hsd, fd, rtol=1e-6, atol=1e-7)

    # d/dz (J2^T w) 沿 vz
    fd = (constraint.apply_adjoint_jacobian_design(w, u, z + h * vz)
          - constraint.apply_adjoint_jacobian_design(w, u, z - h * vz)) / (2 * h)
    hdd = constraint.apply_adjoint_hessian_design_design(w, vz, u, z)
    np.testing.assert_allclose(hdd, fd, rtol=1e-6, atol=1e-7)

def test_singular_stiffness_raises():
    analyzer, constraint = _setup(nx=2, ny=2, p=3.0)
    z = bm.zeros((4, ), dtype=bm.float64)

    with pytest.raises(SingularSystemError):
        constraint.solve_state(z)

def test_dimension_mismatch(rng):
    analyzer, constraint = _setup(nx=2, ny=2)
    z = bm.ones((4, ), dtype=bm.float64)

    with pytest.raises(DimensionMismatchError):
        constraint.solve_state(bm.ones((5, ), dtype=bm.float64))
    with pytest.raises(DimensionMismatchError):
        constraint.apply_inverse_jacobian_state(bm.ones((3, ), dtype=bm.float64), z)

def test_adjoint_hessian_state_state_checks_all_arguments():
    analyzer, constraint = _setup(nx=2, ny=2)
    NU = analyzer.number_of_state_dofs()
    u = bm.ones((NU, ), dtype=bm.float64)
    z = bm.ones((4, ), dtype=bm.float64)
    bad_u = bm.ones((NU + 1, ), dtype=bm.float64)
    bad_z = bm.ones((5, ), dtype=bm.float64)

    with pytest.raises(DimensionMismatchError):
        constraint.apply_adjoint_hessian_state_state(bad_u, u, u, z)
    with pytest.raises(DimensionMismatchError):
        constraint.apply_adjoint_hessian_state_state(u, u, bad_u, z)
    with pytest.raises(DimensionMismatchError):
        constraint.apply_adjoint_hessian_state_state(u, u, u, bad_z)


if __name__ == "__main__":
    test_single_element_cantilever_solution()
    test_singular_stiffness_raises()
    print("ElasticStateConstraint tests completed successfully.")
