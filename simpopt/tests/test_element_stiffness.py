import numpy as np
import pytest

from fealpy.backend import backend_manager as bm

bm.set_backend('numpy')

from simpopt.material import (element_stiffness_coefficients, element_stiffness_matrix,
                              PlaneStressQuadElement, SIMPPenalization)
from simpopt.utils.exceptions import ConfigurationError

@pytest.mark.parametrize("nu", [0.0, 0.25, 0.3, 0.45])
def test_stiffness_symmetric(nu):
    KE = element_stiffness_matrix(1.0, nu)

    assert KE.shape == (8, 8)
    np.testing.assert_allclose(KE, KE.T, rtol=0, atol=1e-15)

@pytest.mark.parametrize("nu", [0.0, 0.3, 0.45])
def test_rigid_translations_in_null_space(nu):
    """x, y 方向的刚体平移不产生内力"""
    KE = element_stiffness_matrix(1.0, nu)
    tx = bm.array([1, 0, 1, 0, 1, 0, 1, 0], dtype=bm.float64)
    ty = bm.array([0, 1, 0, 1, 0, 1, 0, 1], dtype=bm.float64)

    np.testing.assert_allclose(KE @ tx, 0.0, atol=1e-14)
    np.testing.assert_allclose(KE @ ty, 0.0, atol=1e-14)

def test_coefficients_nu_03():
    nu = 0.3
    k = element_stiffness_coefficients(nu)
    expected = [0.45, 0.1625, -0.275, -0.0125, -0.225, -0.1625, 0.05, 0.0125]

    np.testing.assert_allclose(k, expected, rtol=1e-14, atol=1e-15)

    KE = element_stiffness_matrix(1.0, nu)
    scale = 1.0 / (1.0 - nu * nu)
    assert KE[0, 0] == pytest.approx(0.45 * scale)
    assert KE[0, 7] == pytest.approx(0.0125 * scale)
    assert KE[3, 5] == pytest.approx(-0.275 * scale)
    assert KE[6, 1] == pytest.approx(-0.0125 * scale)

def test_diagonal_is_k0():
    KE = element_stiffness_matrix(1.0, 0.3)

    np.testing.assert_allclose(np.diag(KE), 0.45 / 0.91, rtol=1e-14)

def test_linear_in_young_modulus():
    KE1 = element_stiffness_matrix(1.0, 0.3)
    KE2 = element_stiffness_matrix(2.5, 0.3)

    np.testing.assert_allclose(KE2, 2.5 * KE1, rtol=1e-14)

def test_element_returns_copy():
    element = PlaneStressQuadElement(elastic_modulus=1.0, poisson_ratio=0.3)
    KE = element.stiffness_matrix
    KE[0, 0] = 100.0

    assert element.stiffness_matrix[0, 0] == pytest.approx(0.45 / 0.91)
    assert element.number_of_local_dofs() == 8
    assert element.poisson_ratio == 0.3


def test_simp_values():
    z = bm.array([0.1, 0.5, 1.0], dtype=bm.float64)
    simp = SIMPPenalization(penalty_factor=3.0)

    np.testing.assert_allclose(simp.calculate_property(z), z ** 3)
    np.testing.assert_allclose(simp.calculate_property_derivative(z), 3 * z ** 2)
    np.testing.assert_allclose(simp.calculate_property_second_derivative(z), 6 * z)

def test_simp_p1_branches():
    """p = 1 时一阶导数恒为 1 (包括 z = 0), 二阶导数恒为 0"""
    z = bm.array([0.0, 0.5, 1.0], dtype=bm.float64)
    simp = SIMPPenalization(penalty_factor=1.0)

    np.testing.assert_array_equal(simp.calculate_property(z), z)
    np.testing.assert_array_equal(simp.calculate_property_derivative(z), [1.0, 1.0, 1.0])
    np.testing.assert_array_equal(simp.calculate_property_second_derivative(z), [0.0, 0.0, 0.0])

def test_simp_p2_branches():
    """p = 2 时二阶导数恒为 2 (包括 z = 0)"""
    z = bm.array([0.0, 0.5, 1.0], dtype=bm.float64)
    simp = SIMPPenalization(penalty_factor=2.0)

    np.testing.assert_allclose(simp.calculate_property_derivative(z), 2 * z)
    np.testing.assert_array_equal(simp.calculate_property_second_derivative(z), [2.0, 2.0, 2.0])

def test_simp_rejects_small_penalty():
    with pytest.raises(ConfigurationError):
        SIMPPenalization(penalty_factor=0.5)


if __name__ == "__main__":
    test_coefficients_nu_03()
    test_simp_p1_branches()
    print("Element stiffness tests completed successfully.")
