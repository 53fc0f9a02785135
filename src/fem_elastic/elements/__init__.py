from .cache import ElasticityElementCacheEntry, ElementCache
from .elasticity import ElasticityElement
from .elements import (
    ElementFactory,
    FemElement,
    register_constitutive_model,
    register_shape_function,
)
from .isoparametric import IsoparametricElement

__all__ = [
    "ElasticityElement",
    "ElasticityElementCacheEntry",
    "ElementCache",
    "ElementFactory",
    "FemElement",
    "IsoparametricElement",
    "register_constitutive_model",
    "register_shape_function",
]
