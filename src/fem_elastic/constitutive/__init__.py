"""
Constitutive model contracts for fem_elastic.

Concrete material laws are supplied by the application and registered with
``fem_elastic.elements.register_constitutive_model``.
"""

from fem_elastic.constitutive.base import ConstitutiveModel, DeformationGradientCacheEntry

__all__ = [
    "ConstitutiveModel",
    "DeformationGradientCacheEntry",
]
