__version__ = '1.0.0'
__all__ = ['config', 'utils', 'material', 'model', 'analysis', 'solver', 'optimization']

def version():
    """返回软件版本信息"""
    return __version__

def import_all():
    """导入所有子模块"""
    from . import config
    from . import utils
    from . import material
    from . import model
    from . import analysis
    from . import solver
    from . import optimization
    return locals()
