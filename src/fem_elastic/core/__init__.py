"""
Core module for fem_elastic.

Provides errors, quadrature rules, the external FEM state, materials and
configuration.
"""

from .config import ElasticityConfig
from .errors import ContractViolationError, FemError, GeometryError, PreconditionError
from .material import IsotropicMaterial
from .quadrature import GaussLegendreQuadrature, Quadrature, SimplexGaussianQuadrature
from .state import FemState

__all__ = [
    "ElasticityConfig",
    "ContractViolationError",
    "FemError",
    "GeometryError",
    "PreconditionError",
    "IsotropicMaterial",
    "GaussLegendreQuadrature",
    "Quadrature",
    "SimplexGaussianQuadrature",
    "FemState",
]
