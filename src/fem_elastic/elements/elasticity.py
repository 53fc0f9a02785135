"""3D Solid Element for Static and Dynamic Hyperelasticity

Evaluates, for a single solid element, the elastic potential energy and the
nodal residual implied by the current nodal positions, for any pluggable
constitutive model, isoparametric shape function family and quadrature rule.

Formulation:
    Deformation gradient:  F_q = Σ_a x_a ⊗ ∂N_a/∂X |_q
    Elastic energy:        E   = ∫Ψ(F) dV ≈ Σ_q Ψ(F_q) V_q
    Elastic force:         f_a = -∂E/∂x_a ≈ -Σ_q P(F_q) · ∂N_a/∂X |_q V_q
    Residual:              r_a = -f_a

where:
    x_a: Current position of node a
    ∂N_a/∂X: Shape function gradient in reference coordinates, ∂N_a/∂ξ · ∂ξ/∂X
    Ψ: Elastic energy density per unit reference volume
    P: First Piola stress, ∂Ψ/∂F
    V_q: Reference volume of quadrature point q, det(∂X/∂ξ) w_q

Only reference quantities (∂ξ/∂X, V_q) are precomputed. Every evaluation
reads the state afresh unless a cache entry for the current state generation
is supplied.
"""

import logging
from typing import Optional, Sequence

import numpy as np

from fem_elastic.constitutive.base import ConstitutiveModel
from fem_elastic.core.errors import ContractViolationError, GeometryError, PreconditionError
from fem_elastic.core.quadrature import Quadrature
from fem_elastic.elements.cache import ElasticityElementCacheEntry
from fem_elastic.elements.elements import FemElement
from fem_elastic.elements.isoparametric import IsoparametricElement

logger = logging.getLogger(__name__)

# det(∂X/∂ξ) relative to the product of the Jacobian column norms. Below this
# the reference element is treated as flat.
DEGENERACY_TOLERANCE = 1e-12


def _read_only(array: np.ndarray) -> np.ndarray:
    array.setflags(write=False)
    return array


class ElasticityElement(FemElement):
    """Solid element for 3D elasticity with a pluggable material law.

    Parameters
    ----------
    element_index : int
        Global index of the element
    node_indices : Sequence[int]
        Global node indices, ordered as the nodes of ``shape_function``
    density : float
        Mass density in the reference configuration (kg/m³)
    constitutive_model : ConstitutiveModel
        Material law. The element takes exclusive ownership of it.
    reference_positions : np.ndarray
        Reference nodal positions, one column per node (3 × n_nodes)
    quadrature : Quadrature
        Integration rule in natural coordinates
    shape_function : IsoparametricElement
        Shape functions tabulated at ``quadrature.points``

    Raises
    ------
    PreconditionError
        Invalid indices, mismatched cardinalities or shapes, negative
        density, or a model already owned by another element.
    GeometryError
        Non-positive Jacobian determinant at some quadrature point.

    Examples
    --------
    ::

        quadrature = SimplexGaussianQuadrature(order=1)
        shape = LinearTetrahedron(quadrature.points)
        element = ElasticityElement(0, (0, 1, 2, 3), 1000.0, model, X, quadrature, shape)
        energy = element.calc_elastic_energy(state)
        residual = element.calc_residual(state)
    """

    def __init__(
        self,
        element_index: int,
        node_indices: Sequence[int],
        density: float,
        constitutive_model: ConstitutiveModel,
        reference_positions: np.ndarray,
        quadrature: Quadrature,
        shape_function: IsoparametricElement,
    ):
        super().__init__(element_index, node_indices)

        if not isinstance(constitutive_model, ConstitutiveModel):
            raise PreconditionError(
                f"Element {element_index}: constitutive_model must be a ConstitutiveModel, "
                f"got {type(constitutive_model).__name__}"
            )
        if constitutive_model.owner is not None:
            raise PreconditionError(
                f"Element {element_index}: constitutive model is already owned by "
                f"element {constitutive_model.owner}"
            )
        if shape_function.natural_dimension != 3:
            raise PreconditionError(
                f"Element {element_index}: solid elements require natural dimension 3, "
                f"got {shape_function.natural_dimension}"
            )
        if (
            shape_function.num_locations != quadrature.num_points
            or quadrature.natural_dimension != shape_function.natural_dimension
            or not np.allclose(shape_function.locations, quadrature.points)
        ):
            raise PreconditionError(
                f"Element {element_index}: shape function must be tabulated at the "
                f"{quadrature.num_points} quadrature points"
            )

        num_nodes = shape_function.num_nodes
        if len(self.node_indices) != num_nodes:
            raise PreconditionError(
                f"Element {element_index}: {type(shape_function).__name__} requires "
                f"{num_nodes} nodes, got {len(self.node_indices)}"
            )

        X = np.array(reference_positions, dtype=np.float64)
        if X.shape != (3, num_nodes):
            raise PreconditionError(
                f"Element {element_index}: reference_positions must have shape "
                f"(3, {num_nodes}), got {X.shape}"
            )

        density = float(density)
        if not np.isfinite(density) or density < 0:
            raise PreconditionError(
                f"Element {element_index}: density must be finite and non-negative, got {density}"
            )

        # J[q] = ∂X/∂ξ, columns are the natural directions
        dXdxi = shape_function.calc_jacobian(X)
        det_J = np.linalg.det(dXdxi)
        scale = np.prod(np.linalg.norm(dXdxi, axis=1), axis=-1)
        for q in range(quadrature.num_points):
            if not np.isfinite(det_J[q]) or det_J[q] <= DEGENERACY_TOLERANCE * scale[q]:
                raise GeometryError(
                    f"Element {element_index}: non-positive Jacobian determinant at "
                    f"quadrature point {q} ({quadrature.points[q]}): {det_J[q]}"
                )

        dxidX = np.linalg.inv(dXdxi)
        dSdX = np.einsum(
            "qnd,qdj->qnj", shape_function.get_gradient_in_parent_coordinates(), dxidX
        )

        self._quadrature = quadrature
        self._shape = shape_function
        self._density = density
        self._reference_positions = _read_only(X)
        self._dxidX = _read_only(dxidX)
        self._dSdX = _read_only(dSdX)
        self._reference_volume = _read_only(det_J * quadrature.weights)

        constitutive_model.attach(self.element_index)
        self._constitutive_model = constitutive_model

        logger.debug(
            "Element %d: %d nodes, %d quadrature points, reference volume %.6e",
            self.element_index,
            num_nodes,
            quadrature.num_points,
            self._reference_volume.sum(),
        )

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def num_nodes(self) -> int:
        return self._shape.num_nodes

    @property
    def num_quadrature_points(self) -> int:
        return self._quadrature.num_points

    @property
    def density(self) -> float:
        return self._density

    @property
    def constitutive_model(self) -> ConstitutiveModel:
        return self._constitutive_model

    @property
    def quadrature(self) -> Quadrature:
        return self._quadrature

    @property
    def shape_function(self) -> IsoparametricElement:
        return self._shape

    @property
    def reference_positions(self) -> np.ndarray:
        """Reference nodal positions (3 × n_nodes), read-only."""
        return self._reference_positions

    @property
    def dxidX(self) -> np.ndarray:
        """Inverse reference Jacobian ∂ξ/∂X per quadrature point (n_points × 3 × 3)."""
        return self._dxidX

    @property
    def reference_volume(self) -> np.ndarray:
        """Integration measure per quadrature point (n_points,).

        To integrate f over the reference domain, sum f(q) * reference_volume[q].
        """
        return self._reference_volume

    # ------------------------------------------------------------------
    # Cache
    # ------------------------------------------------------------------

    def make_element_cache_entry(self) -> ElasticityElementCacheEntry:
        """Creates an ElasticityElementCacheEntry that is compatible with this element."""
        return ElasticityElementCacheEntry(
            self.element_index,
            self.num_quadrature_points,
            self._constitutive_model.make_deformation_gradient_cache_entry(
                self.element_index, self.num_quadrature_points
            ),
        )

    def _check_cache_entry(self, cache_entry) -> None:
        if not isinstance(cache_entry, ElasticityElementCacheEntry):
            raise ContractViolationError(
                f"Element {self.element_index}: expected ElasticityElementCacheEntry, "
                f"got {type(cache_entry).__name__}"
            )
        if (
            cache_entry.element_index != self.element_index
            or cache_entry.num_quadrature_points != self.num_quadrature_points
        ):
            raise ContractViolationError(
                f"Element {self.element_index}: cache entry belongs to element "
                f"{cache_entry.element_index} with {cache_entry.num_quadrature_points} points"
            )
        if not self._constitutive_model.is_compatible(cache_entry.deformation_gradient_cache_entry):
            raise ContractViolationError(
                f"Element {self.element_index}: "
                f"{type(cache_entry.deformation_gradient_cache_entry).__name__} is not "
                f"compatible with {type(self._constitutive_model).__name__}"
            )

    # ------------------------------------------------------------------
    # State-dependent quantities
    # ------------------------------------------------------------------

    def calc_deformation_gradient(self, state) -> np.ndarray:
        """Deformation gradient at every quadrature point.

        F_q = x · ∂S/∂ξ |_q · ∂ξ/∂X |_q

        Parameters
        ----------
        state : FemState
            State providing current nodal positions

        Returns
        -------
        np.ndarray
            F per quadrature point (n_points × 3 × 3)
        """
        x = state.get_positions(self.node_indices)
        return np.einsum("in,qnj->qij", x, self._dSdX)

    def eval_deformation_gradient(
        self, state, cache_entry: Optional[ElasticityElementCacheEntry] = None
    ) -> np.ndarray:
        """Deformation gradient, reusing ``cache_entry`` when it matches the state."""
        if cache_entry is None:
            return self.calc_deformation_gradient(state)

        self._check_cache_entry(cache_entry)
        dg_entry = cache_entry.deformation_gradient_cache_entry
        if cache_entry.is_current(state.generation):
            logger.debug(
                "Element %d: cached deformation gradient for generation %d",
                self.element_index,
                state.generation,
            )
            return dg_entry.deformation_gradient

        F = self.calc_deformation_gradient(state)
        dg_entry.update(F)
        cache_entry.generation = state.generation
        logger.debug(
            "Element %d: refreshed deformation gradient for generation %d",
            self.element_index,
            state.generation,
        )
        return F

    def calc_elastic_energy_density(self, state, cache_entry=None) -> np.ndarray:
        """Elastic energy density Ψ (J/m³) at every quadrature point."""
        F = self.eval_deformation_gradient(state, cache_entry)
        model = self._constitutive_model
        return np.array([model.calc_elastic_energy_density(F_q) for F_q in F])

    def calc_first_piola_stress(self, state, cache_entry=None) -> np.ndarray:
        """First Piola stress P (Pa) at every quadrature point (n_points × 3 × 3)."""
        F = self.eval_deformation_gradient(state, cache_entry)
        model = self._constitutive_model
        P = np.array([model.calc_first_piola_stress(F_q) for F_q in F])
        if P.shape != F.shape:
            raise ContractViolationError(
                f"{type(model).__name__} returned stresses of shape {P.shape[1:]}, expected (3, 3)"
            )
        return P

    def calc_elastic_energy(self, state, cache_entry=None):
        """Returns the elastic potential energy stored in this element in unit J."""
        return self.calc_elastic_energy_density(state, cache_entry) @ self._reference_volume

    def calc_elastic_force(self, state, force: Optional[np.ndarray] = None, cache_entry=None):
        """Elastic forces on the nodes of this element.

        f_a = -Σ_q P_q · ∂N_a/∂X |_q V_q

        Parameters
        ----------
        state : FemState
            State providing current nodal positions
        force : np.ndarray, optional
            Output buffer of size ``3 * num_nodes``; overwritten when given
        cache_entry : ElasticityElementCacheEntry, optional
            Entry created by ``make_element_cache_entry``

        Returns
        -------
        np.ndarray
            Forces (3 * n_nodes,), entries ``3*i`` to ``3*i+2`` for local node ``i``
        """
        values = -self._calc_negative_elastic_force(state, cache_entry)
        return self._write_output(values, force, "force")

    def _do_calc_residual(self, state, cache_entry=None) -> np.ndarray:
        return self._calc_negative_elastic_force(state, cache_entry)

    def _calc_negative_elastic_force(self, state, cache_entry=None) -> np.ndarray:
        P = self.calc_first_piola_stress(state, cache_entry)
        return np.einsum("qij,qaj,q->ai", P, self._dSdX, self._reference_volume).reshape(-1)

    # ------------------------------------------------------------------
    # Inertia and body loads
    # ------------------------------------------------------------------

    def calc_mass(self) -> float:
        """Total mass of the element (kg)."""
        return self._density * float(self._reference_volume.sum())

    def calc_mass_matrix(self) -> np.ndarray:
        """Consistent mass matrix.

        M = ∫ρNᵀN dΩ ≈ Σᵢ ρ NᵢᵀNᵢ V_i

        Returns
        -------
        np.ndarray
            Symmetric mass matrix (3 n_nodes × 3 n_nodes) in node-block ordering
        """
        S = self._shape.get_shape_functions()
        M_scalar = self._density * np.einsum("qa,qb,q->ab", S, S, self._reference_volume)
        M = np.kron(M_scalar, np.eye(3))
        return 0.5 * (M + M.T)

    def calc_gravity_force(self, gravity) -> np.ndarray:
        """Nodal forces from a uniform gravitational acceleration.

        f = ∫ρNᵀg dΩ ≈ Σᵢ ρ Nᵢᵀg V_i

        Parameters
        ----------
        gravity : array_like
            Gravitational acceleration [gx, gy, gz] (m/s²)

        Returns
        -------
        np.ndarray
            Force vector (3 * n_nodes,)
        """
        g = np.asarray(gravity, dtype=np.float64)
        if g.shape != (3,):
            raise PreconditionError(f"gravity must be a 3-vector, got shape {g.shape}")
        S = self._shape.get_shape_functions()
        nodal_weights = self._density * (S.T @ self._reference_volume)
        return np.outer(nodal_weights, g).reshape(-1)
