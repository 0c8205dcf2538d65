from .base_logged import BaseLogged
from .exceptions import ConfigurationError, DimensionMismatchError, SingularSystemError
from .tools import check_vector_size, inner

__all__ = [
    'BaseLogged',
    'ConfigurationError',
    'DimensionMismatchError',
    'SingularSystemError',
    'check_vector_size',
    'inner',
]
