"""
fem_elastic - elastic energy and nodal forces of 3D solid finite elements.

An ElasticityElement combines a pluggable constitutive model, isoparametric
shape function family and quadrature rule, and evaluates the elastic energy
and nodal residual for the current nodal positions held in a FemState.

Quick start:
    from fem_elastic import ElasticityElement, FemState, SimplexGaussianQuadrature

    quadrature = SimplexGaussianQuadrature(order=1)
    shape = MyTetrahedron(quadrature.points)          # an IsoparametricElement
    element = ElasticityElement(0, (0, 1, 2, 3), 1000.0, MyModel(), X, quadrature, shape)

    state = FemState(x)                               # current positions, 3 × N
    energy = element.calc_elastic_energy(state)
    residual = element.calc_residual(state)
"""

__version__ = "0.1.0"

from .constitutive import ConstitutiveModel, DeformationGradientCacheEntry
from .core import (
    ContractViolationError,
    ElasticityConfig,
    FemError,
    FemState,
    GaussLegendreQuadrature,
    GeometryError,
    IsotropicMaterial,
    PreconditionError,
    Quadrature,
    SimplexGaussianQuadrature,
)
from .elements import (
    ElasticityElement,
    ElasticityElementCacheEntry,
    ElementCache,
    ElementFactory,
    FemElement,
    IsoparametricElement,
    register_constitutive_model,
    register_shape_function,
)
