from fealpy.backend import backend_manager as bm
from fealpy.typing import TensorLike

from .exceptions import DimensionMismatchError

def check_vector_size(vec: TensorLike, size: int, name: str = 'vector') -> None:
    """检查向量长度, 长度不符属于调用方错误, 直接抛出"""
    n = vec.shape[0] if len(vec.shape) > 0 else 0
    if len(vec.shape) != 1 or n != size:
        raise DimensionMismatchError(
            f"'{name}' has shape {tuple(vec.shape)}, expected ({size},)")

def inner(a: TensorLike, b: TensorLike) -> float:
    """两个一维向量的欧氏内积"""
    return float(bm.einsum('i, i ->', a, b))
