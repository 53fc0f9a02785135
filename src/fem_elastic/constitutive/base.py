"""
Constitutive model contract for hyperelastic solids.

A constitutive model maps a 3×3 deformation gradient F to

- an elastic energy density Ψ(F) per unit reference volume (J/m³), and
- the first Piola stress P(F) = ∂Ψ/∂F (Pa).

Both must be pure functions of F. Elements treat the model as opaque, so any
material law (linear elasticity, corotational, neo-Hookean, ...) can be
plugged in as long as the two quantities are consistent.

Each model also declares the type of DeformationGradientCacheEntry it works
with. Model-specific entries can precompute derived quantities (J, F⁻ᵀ, ...)
whenever the cached deformation gradient changes.
"""

from abc import ABC, abstractmethod
from typing import Optional, Type

import numpy as np

from fem_elastic.core.errors import PreconditionError


class DeformationGradientCacheEntry:
    """Deformation gradients of one element at all of its quadrature points.

    Parameters
    ----------
    element_index : int
        Index of the element the entry belongs to
    num_quadrature_points : int
        Number of quadrature points of that element

    Attributes
    ----------
    deformation_gradient : np.ndarray
        F at each quadrature point (n_points × 3 × 3), identity until updated.
        Read-only.
    model_type : type or None
        Constitutive model class that produced this entry
    """

    def __init__(self, element_index: int, num_quadrature_points: int):
        self.element_index = element_index
        self.num_quadrature_points = num_quadrature_points
        self.deformation_gradient = np.tile(np.eye(3), (num_quadrature_points, 1, 1))
        self.deformation_gradient.setflags(write=False)
        self.model_type: Optional[Type["ConstitutiveModel"]] = None

    def update(self, F: np.ndarray) -> None:
        """Store new deformation gradients and refresh derived quantities."""
        F = np.asarray(F)
        expected = (self.num_quadrature_points, 3, 3)
        if F.shape != expected:
            raise ValueError(f"Deformation gradient must have shape {expected}, got {F.shape}")
        # Cache hits hand this array out directly, so it must stay read-only.
        self.deformation_gradient = F.copy()
        self.deformation_gradient.setflags(write=False)
        self._update_cache_entry(self.deformation_gradient)

    def _update_cache_entry(self, F: np.ndarray) -> None:
        """Hook for subclasses caching quantities derived from F."""

    def __repr__(self):
        return (
            f"<{type(self).__name__} element={self.element_index} "
            f"points={self.num_quadrature_points}>"
        )


class ConstitutiveModel(ABC):
    """Abstract material law used by elasticity elements.

    Subclasses implement ``calc_elastic_energy_density`` and
    ``calc_first_piola_stress`` and may override ``cache_entry_type``.

    A model instance belongs to exactly one element; ``owner`` holds that
    element's index once it has been attached.
    """

    cache_entry_type: Type[DeformationGradientCacheEntry] = DeformationGradientCacheEntry

    @abstractmethod
    def calc_elastic_energy_density(self, F: np.ndarray):
        """Elastic energy density Ψ(F) in J/m³.

        Parameters
        ----------
        F : np.ndarray
            Deformation gradient (3×3)

        Returns
        -------
        scalar
            Energy density, same scalar type as F
        """

    @abstractmethod
    def calc_first_piola_stress(self, F: np.ndarray) -> np.ndarray:
        """First Piola stress P(F) = ∂Ψ/∂F in Pa.

        Parameters
        ----------
        F : np.ndarray
            Deformation gradient (3×3)

        Returns
        -------
        np.ndarray
            First Piola stress (3×3)
        """

    @property
    def owner(self) -> Optional[int]:
        """Index of the element owning this model, or None."""
        return getattr(self, "_owner", None)

    def attach(self, element_index: int) -> None:
        """Record exclusive ownership by an element. Called by the element."""
        if self.owner is not None:
            raise PreconditionError(
                f"{type(self).__name__} is already owned by element {self.owner}"
            )
        self._owner = element_index

    def make_deformation_gradient_cache_entry(
        self, element_index: int, num_quadrature_points: int
    ) -> DeformationGradientCacheEntry:
        """Create a cache entry compatible with this model."""
        entry = self.cache_entry_type(element_index, num_quadrature_points)
        entry.model_type = type(self)
        return entry

    def is_compatible(self, entry: DeformationGradientCacheEntry) -> bool:
        """Whether ``entry`` was produced for this kind of model."""
        return isinstance(entry, self.cache_entry_type) and entry.model_type is type(self)

    def __repr__(self):
        return f"<{type(self).__name__} owner={self.owner}>"
