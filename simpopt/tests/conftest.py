import numpy as np
import pytest

from fealpy.backend import backend_manager as bm

bm.set_backend('numpy')

from simpopt.material import element_stiffness_matrix

def _element_dofs(i, j, ny):
    """单元 (i, j) 的 8 个全局自由度, 结点从 1 开始编号"""
    n1 = (ny + 1) * i + j + 1
    n2 = (ny + 1) * (i + 1) + j + 1

    return [2*n1 - 2, 2*n1 - 1, 2*n2 - 2, 2*n2 - 1, 2*n2, 2*n2 + 1, 2*n1, 2*n1 + 1]

def _on_boundary(r, nx, ny, problem):
    ndof = 2 * (nx + 1) * (ny + 1)
    if problem == 'mbb_beam':
        return (r < 2 * (ny + 1) and r % 2 == 0) or r == ndof - 1

    return r < 2 * (ny + 1)

def _reference_assemble(nx, ny, z, p, problem, E=1.0, nu=0.3):
    """逐单元、逐自由度的循环组装, 编号与边界判断都直接按公式写出"""
    ndof = 2 * (nx + 1) * (ny + 1)
    KE = np.asarray(element_stiffness_matrix(E, nu))
    zh = np.asarray(z)

    K = np.zeros((ndof, ndof))
    for i in range(nx):
        for j in range(ny):
            e = i + j * nx
            dofs = _element_dofs(i, j, ny)
            for r in range(8):
                row = dofs[r]
                if _on_boundary(row, nx, ny, problem):
                    continue
                for s in range(8):
                    col = dofs[s]
                    if _on_boundary(col, nx, ny, problem):
                        continue
                    K[row, col] += zh[e] ** p * KE[r, s]

    for r in range(ndof):
        if _on_boundary(r, nx, ny, problem):
            K[r, r] = 1.0

    return K

def _reference_force(nx, ny, problem):
    ndof = 2 * (nx + 1) * (ny + 1)
    F = np.zeros(ndof)
    if problem == 'mbb_beam':
        F[1] = -1.0
    else:
        F[ndof - 1] = -1.0

    return F

@pytest.fixture
def reference_assemble():
    return _reference_assemble

@pytest.fixture
def reference_force():
    return _reference_force

@pytest.fixture
def rng():
    return np.random.default_rng(2024)
