from typing import Union

from .mbb_beam_2d import HalfMBBBeam2dData
from .cantilever_2d import Cantilever2dData
from ..utils.exceptions import ConfigurationError

# 也接受整数算例编号: 0 -> MBB 梁, 1 -> 悬臂梁
_PROBLEMS = {
    'mbb_beam': HalfMBBBeam2dData,
    'cantilever': Cantilever2dData,
    0: HalfMBBBeam2dData,
    1: Cantilever2dData,
}

def create_problem(problem: Union[str, int]):
    """根据算例标识创建边界条件/载荷模型"""
    if isinstance(problem, (HalfMBBBeam2dData, Cantilever2dData)):
        return problem
    try:
        return _PROBLEMS[problem]()
    except (KeyError, TypeError):
        raise ConfigurationError(
            f"Unknown problem variant: {problem!r}, expected one of "
            f"'mbb_beam', 'cantilever', 0, 1") from None

__all__ = [
    'HalfMBBBeam2dData',
    'Cantilever2dData',
    'create_problem',
]
