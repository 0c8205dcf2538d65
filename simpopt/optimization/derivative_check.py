"""有限差分导数检查

每个检查函数返回 [(h, 解析值, 差分值, 误差), ...], 步长 h = 10^0, 10^-1, ...
一阶前向差分的误差应先随 h 线性下降, 直到被舍入误差淹没.
"""
from typing import Callable, List, Tuple

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..utils.tools import inner

CheckTable = List[Tuple[float, float, float, float]]

def _steps(num_steps: int) -> List[float]:
    return [10.0 ** (-k) for k in range(num_steps)]

def _norm(x: TensorLike) -> float:
    return float(bm.sqrt(bm.sum(x * x)))

def check_gradient(fun: Callable[[TensorLike], float],
                   grad: Callable[[TensorLike], TensorLike],
                   x: TensorLike, d: TensorLike,
                   num_steps: int = 9) -> CheckTable:
    """比较 <grad(x), d> 与 (fun(x + h d) - fun(x)) / h"""
    f0 = fun(x)
    dd = inner(grad(x), d)

    table = []
    for h in _steps(num_steps):
        fd = (fun(x + h * d) - f0) / h
        table.append((h, dd, fd, abs(fd - dd)))

    return table

def check_hess_vec(grad: Callable[[TensorLike], TensorLike],
                   hess_vec: Callable[[TensorLike, TensorLike], TensorLike],
                   x: TensorLike, d: TensorLike,
                   num_steps: int = 9) -> CheckTable:
    """比较 ||H d|| 与 ||(grad(x + h d) - grad(x)) / h||, 误差为两者之差的范数"""
    g0 = grad(x)
    hv = hess_vec(x, d)
    nhv = _norm(hv)

    table = []
    for h in _steps(num_steps):
        fd = (grad(x + h * d) - g0) / h
        table.append((h, nhv, _norm(fd), _norm(fd - hv)))

    return table

def check_apply_jacobian(residual: Callable[[TensorLike], TensorLike],
                         jacobian_action: Callable[[TensorLike, TensorLike], TensorLike],
                         x: TensorLike, d: TensorLike,
                         num_steps: int = 9) -> CheckTable:
    """比较 J(x) d 与 (c(x + h d) - c(x)) / h"""
    c0 = residual(x)
    jv = jacobian_action(x, d)
    njv = _norm(jv)

    table = []
    for h in _steps(num_steps):
        fd = (residual(x + h * d) - c0) / h
        table.append((h, njv, _norm(fd), _norm(fd - jv)))

    return table

def check_adjoint_consistency(forward: Callable[[TensorLike], TensorLike],
                              adjoint: Callable[[TensorLike], TensorLike],
                              v: TensorLike, w: TensorLike) -> float:
    """|<w, A v> - <A^T w, v>|, 相对于两者量级归一化"""
    wAv = inner(w, forward(v))
    Atwv = inner(adjoint(w), v)
    scale = max(abs(wAv), abs(Atwv), 1e-300)

    return abs(wAv - Atwv) / scale

def min_error(table: CheckTable) -> float:
    """差分表中的最小误差"""
    return min(row[-1] for row in table)

def format_table(table: CheckTable) -> str:
    lines = [f"{'Step':>12s} {'Analytic':>16s} {'FD':>16s} {'Error':>12s}"]
    for h, a, fd, err in table:
        lines.append(f"{h:12.4e} {a:16.8e} {fd:16.8e} {err:12.4e}")

    return "\n".join(lines)
