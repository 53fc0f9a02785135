"""Isoparametric shape functions evaluated at a fixed set of locations.

The same basis interpolates the geometry and the displacement field:

    x(ξ) = Σ_a N_a(ξ) x_a

An IsoparametricElement is built once from the natural coordinates of the
quadrature points of a rule and tabulates, per location, the shape function
values N_a and their gradients ∂N_a/∂ξ. Instances are immutable after
construction and can be shared by every element using the same family and
quadrature rule.

Concrete families (linear tetrahedron, trilinear hexahedron, ...) subclass
IsoparametricElement and implement ``shape_values`` / ``shape_gradients``.
"""

from abc import ABC, abstractmethod

import numpy as np


class IsoparametricElement(ABC):
    """Base class for isoparametric shape function families.

    Parameters
    ----------
    locations : np.ndarray
        Natural coordinates where the basis is tabulated
        (n_locations × natural_dimension), usually ``quadrature.points``.

    Attributes
    ----------
    num_nodes : int
        Number of nodes (basis functions) of the family
    natural_dimension : int
        Dimension of the parent domain
    """

    num_nodes: int = 0
    natural_dimension: int = 3

    def __init__(self, locations: np.ndarray):
        locations = np.atleast_2d(np.asarray(locations, dtype=np.float64))
        if locations.shape[1] != self.natural_dimension:
            raise ValueError(
                f"{type(self).__name__} requires {self.natural_dimension}D locations, "
                f"got shape {locations.shape}"
            )
        locations.setflags(write=False)
        self._locations = locations

        S = np.array([self.shape_values(xi) for xi in locations], dtype=np.float64)
        dSdxi = np.array([self.shape_gradients(xi) for xi in locations], dtype=np.float64)
        if S.shape != (len(locations), self.num_nodes):
            raise ValueError(
                f"shape_values must return {self.num_nodes} values per location, "
                f"got {S.shape[1:]}"
            )
        if dSdxi.shape != (len(locations), self.num_nodes, self.natural_dimension):
            raise ValueError(
                f"shape_gradients must return ({self.num_nodes}, {self.natural_dimension}) "
                f"per location, got {dSdxi.shape[1:]}"
            )
        S.setflags(write=False)
        dSdxi.setflags(write=False)
        self._S = S
        self._dSdxi = dSdxi

    @abstractmethod
    def shape_values(self, xi: np.ndarray) -> np.ndarray:
        """Evaluate shape functions at natural coordinates.

        Parameters
        ----------
        xi : np.ndarray
            Natural coordinates (natural_dimension,)

        Returns
        -------
        np.ndarray
            Shape function values (n_nodes,)
        """

    @abstractmethod
    def shape_gradients(self, xi: np.ndarray) -> np.ndarray:
        """Evaluate shape function derivatives at natural coordinates.

        Parameters
        ----------
        xi : np.ndarray
            Natural coordinates (natural_dimension,)

        Returns
        -------
        np.ndarray
            Row ``a`` holds ∂N_a/∂ξ (n_nodes × natural_dimension)
        """

    @property
    def num_locations(self) -> int:
        return len(self._locations)

    @property
    def locations(self) -> np.ndarray:
        return self._locations

    def get_shape_functions(self) -> np.ndarray:
        """Tabulated N_a at every location (n_locations × n_nodes)."""
        return self._S

    def get_gradient_in_parent_coordinates(self) -> np.ndarray:
        """Tabulated ∂N_a/∂ξ at every location (n_locations × n_nodes × natural_dimension)."""
        return self._dSdxi

    def interpolate_nodal_values(self, nodal_values: np.ndarray) -> np.ndarray:
        """Interpolate nodal quantities to every location.

        Parameters
        ----------
        nodal_values : np.ndarray
            Values at the nodes, one column per node (k × n_nodes)

        Returns
        -------
        np.ndarray
            Interpolated values (n_locations × k)
        """
        nodal_values = np.atleast_2d(nodal_values)
        self._check_nodal_columns(nodal_values)
        return self._S @ nodal_values.T

    def calc_jacobian(self, xa: np.ndarray) -> np.ndarray:
        """Jacobian of the isoparametric map at every location.

        J[q] = ∂x/∂ξ = Σ_a x_a ⊗ ∂N_a/∂ξ

        Parameters
        ----------
        xa : np.ndarray
            Nodal coordinates, one column per node (3 × n_nodes)

        Returns
        -------
        np.ndarray
            Jacobians (n_locations × 3 × natural_dimension)
        """
        xa = np.asarray(xa)
        self._check_nodal_columns(xa)
        return np.einsum("in,qnd->qid", xa, self._dSdxi)

    def calc_jacobian_inverse(self, xa: np.ndarray) -> np.ndarray:
        """Inverse Jacobian ∂ξ/∂x at every location (n_locations × 3 × 3).

        Only defined for solid (natural_dimension == 3) families.
        """
        if self.natural_dimension != 3:
            raise ValueError(
                f"Jacobian inverse requires natural dimension 3, got {self.natural_dimension}"
            )
        return np.linalg.inv(self.calc_jacobian(xa))

    def calc_gradient_in_spatial_coordinates(self, xa: np.ndarray) -> np.ndarray:
        """Shape function gradients ∂N_a/∂x at every location.

        [∂N/∂x] = [∂N/∂ξ] · J⁻¹

        Returns
        -------
        np.ndarray
            Gradients (n_locations × n_nodes × 3)
        """
        return np.einsum("qnd,qdj->qnj", self._dSdxi, self.calc_jacobian_inverse(xa))

    def _check_nodal_columns(self, values: np.ndarray) -> None:
        if values.ndim != 2 or values.shape[1] != self.num_nodes:
            raise ValueError(
                f"Expected one column per node ({self.num_nodes}), got shape {values.shape}"
            )

    def __repr__(self):
        return f"<{type(self).__name__} nodes={self.num_nodes} locations={self.num_locations}>"
