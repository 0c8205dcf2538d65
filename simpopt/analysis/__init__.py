from .structured_fem_analyzer import StructuredFEMAnalyzer

__all__ = [
    'StructuredFEMAnalyzer',
]
