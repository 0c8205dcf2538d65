from time import time
from pathlib import Path
from typing import List, Optional, Union
from dataclasses import dataclass, field

from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from ..utils.tools import check_vector_size

@dataclass
class OptimizationHistory:
    """连续化优化过程的历史记录, 每次子问题求解记录一条"""
    # 每次子问题结束时的设计变量
    densities: List[TensorLike] = field(default_factory=list)
    # 目标函数值
    obj_values: List[float] = field(default_factory=list)
    # 体积分数
    volume_fractions: List[float] = field(default_factory=list)
    # Moreau-Yoshida 参数与 0-1 罚参数
    regularizations: List[float] = field(default_factory=list)
    penalties: List[float] = field(default_factory=list)
    # 子问题迭代次数与耗时
    iterations: List[int] = field(default_factory=list)
    run_times: List[float] = field(default_factory=list)
    start_time: float = field(default_factory=time)

    def log_run(self,
                z: TensorLike,
                obj_val: float,
                volfrac: float,
                regularization: float,
                penalty: float,
                n_iter: int,
                time_cost: float
            ) -> None:
        """记录一次子问题求解的结果"""
        self.densities.append(bm.copy(z))
        self.obj_values.append(obj_val)
        self.volume_fractions.append(volfrac)
        self.regularizations.append(regularization)
        self.penalties.append(penalty)
        self.iterations.append(n_iter)
        self.run_times.append(time_cost)

    def __len__(self) -> int:
        return len(self.obj_values)

    def get_total_time(self) -> float:
        return time() - self.start_time

    def summary(self) -> str:
        lines = [f"{'Run':>4s} {'Pen':>10s} {'Reg':>10s} {'Objective':>14s} "
                 f"{'Volfrac':>8s} {'Iter':>6s} {'Time':>8s}"]
        for k in range(len(self)):
            lines.append(f"{k+1:4d} {self.penalties[k]:10.3e} {self.regularizations[k]:10.3e} "
                         f"{self.obj_values[k]:14.6e} {self.volume_fractions[k]:8.4f} "
                         f"{self.iterations[k]:6d} {self.run_times[k]:8.3f}")

        return "\n".join(lines)


def save_density(path: Union[str, Path], z: TensorLike, nx: int, ny: int) -> Path:
    """将密度场写入文本文件, 每行一个单元 'i  j  z_e', e = i + j*nx"""
    check_vector_size(z, nx * ny, 'z')
    path = Path(path)
    zh = bm.to_numpy(z)

    with open(path, 'w') as file:
        for i in range(nx):
            for j in range(ny):
                file.write(f"{i}  {j}  {zh[i + j*nx]}\n")

    return path

def load_density(path: Union[str, Path], nx: int, ny: int) -> TensorLike:
    """读取 save_density 写出的文件"""
    z = bm.zeros((nx * ny, ), dtype=bm.float64)
    with open(path, 'r') as file:
        for line in file:
            if not line.strip():
                continue
            i, j, val = line.split()
            z = bm.set_at(z, int(i) + int(j) * nx, float(val))

    return z

def plot_density(z: TensorLike, nx: int, ny: int,
                 ax=None, title: Optional[str] = None):
    """灰度显示密度场, 黑色为实体材料"""
    import matplotlib.pyplot as plt

    check_vector_size(z, nx * ny, 'z')
    field_ = bm.to_numpy(z).reshape(ny, nx)

    if ax is None:
        fig, ax = plt.subplots(figsize=(6, 6 * ny / max(nx, 1)))
    else:
        fig = ax.figure

    ax.imshow(-field_, cmap='gray', interpolation='none', origin='upper', vmin=-1.0, vmax=0.0)
    ax.set_xticks([])
    ax.set_yticks([])
    if title is not None:
        ax.set_title(title)

    return fig, ax
