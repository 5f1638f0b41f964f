from .derivatives import DerivativeAlgorithm, DerivativeEngine, DerivativeParams
from .interpolation import Interpolator

__all__ = [
    "DerivativeAlgorithm",
    "DerivativeEngine",
    "DerivativeParams",
    "Interpolator",
]
