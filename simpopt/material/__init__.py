from .element_stiffness import (
                                element_stiffness_coefficients,
                                element_stiffness_matrix,
                                PlaneStressQuadElement,
                            )
from .interpolation_scheme import SIMPPenalization

__all__ = [
    'element_stiffness_coefficients',
    'element_stiffness_matrix',
    'PlaneStressQuadElement',
    'SIMPPenalization',
]
