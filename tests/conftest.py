"""
Shared fixtures and reference implementations for the fem_elastic tests.

The package only defines the shape function and constitutive model
contracts. The concrete families and material laws below are registered
under the names used by the configuration tests.
"""

import numpy as np
import pytest

from fem_elastic import (
    ConstitutiveModel,
    DeformationGradientCacheEntry,
    ElasticityElement,
    GaussLegendreQuadrature,
    IsoparametricElement,
    IsotropicMaterial,
    SimplexGaussianQuadrature,
    register_constitutive_model,
    register_shape_function,
)

# =============================================================================
# Shape function families
# =============================================================================


@register_shape_function("TETRA4")
class LinearTetrahedron(IsoparametricElement):
    """4-node linear tetrahedron.

    Natural coordinates: ξ, η, ζ ∈ [0, 1] with ξ + η + ζ ≤ 1
    """

    num_nodes = 4
    natural_dimension = 3

    def shape_values(self, xi):
        x, y, z = xi
        return np.array([1 - x - y - z, x, y, z])

    def shape_gradients(self, xi):
        return np.array(
            [
                [-1.0, -1.0, -1.0],
                [1.0, 0.0, 0.0],
                [0.0, 1.0, 0.0],
                [0.0, 0.0, 1.0],
            ]
        )


@register_shape_function("TETRA10")
class QuadraticTetrahedron(IsoparametricElement):
    """10-node quadratic tetrahedron (Gmsh node ordering).

    Corners: 0, 1, 2, 3
    Edge midpoints: 4 (0-1), 5 (1-2), 6 (0-2), 7 (0-3), 8 (2-3), 9 (1-3)
    """

    num_nodes = 10
    natural_dimension = 3

    def shape_values(self, xi):
        L2, L3, L4 = xi
        L1 = 1 - L2 - L3 - L4
        return np.array(
            [
                L1 * (2 * L1 - 1),
                L2 * (2 * L2 - 1),
                L3 * (2 * L3 - 1),
                L4 * (2 * L4 - 1),
                4 * L1 * L2,
                4 * L2 * L3,
                4 * L3 * L1,
                4 * L1 * L4,
                4 * L3 * L4,
                4 * L2 * L4,
            ]
        )

    def shape_gradients(self, xi):
        L2, L3, L4 = xi
        L1 = 1 - L2 - L3 - L4

        dL1 = np.array([-1.0, -1.0, -1.0])
        dL2 = np.array([1.0, 0.0, 0.0])
        dL3 = np.array([0.0, 1.0, 0.0])
        dL4 = np.array([0.0, 0.0, 1.0])

        dN = np.zeros((10, 3))
        dN[0] = (4 * L1 - 1) * dL1
        dN[1] = (4 * L2 - 1) * dL2
        dN[2] = (4 * L3 - 1) * dL3
        dN[3] = (4 * L4 - 1) * dL4
        dN[4] = 4 * (L2 * dL1 + L1 * dL2)
        dN[5] = 4 * (L3 * dL2 + L2 * dL3)
        dN[6] = 4 * (L1 * dL3 + L3 * dL1)
        dN[7] = 4 * (L4 * dL1 + L1 * dL4)
        dN[8] = 4 * (L4 * dL3 + L3 * dL4)
        dN[9] = 4 * (L4 * dL2 + L2 * dL4)
        return dN


_HEX_CORNERS = np.array(
    [
        [-1, -1, -1],
        [1, -1, -1],
        [1, 1, -1],
        [-1, 1, -1],
        [-1, -1, 1],
        [1, -1, 1],
        [1, 1, 1],
        [-1, 1, 1],
    ],
    dtype=float,
)


@register_shape_function("HEXA8")
class TrilinearHexahedron(IsoparametricElement):
    """8-node trilinear hexahedron.

    Natural coordinates: ξ, η, ζ ∈ [-1, 1]
    """

    num_nodes = 8
    natural_dimension = 3

    def shape_values(self, xi):
        return 0.125 * np.prod(1 + _HEX_CORNERS * np.asarray(xi), axis=1)

    def shape_gradients(self, xi):
        factors = 1 + _HEX_CORNERS * np.asarray(xi)
        dN = np.empty((8, 3))
        for d in range(3):
            others = [k for k in range(3) if k != d]
            dN[:, d] = 0.125 * _HEX_CORNERS[:, d] * np.prod(factors[:, others], axis=1)
        return dN


class TriangleShape(IsoparametricElement):
    """3-node triangle, only used to exercise the natural dimension check."""

    num_nodes = 3
    natural_dimension = 2

    def shape_values(self, xi):
        x, y = xi
        return np.array([1 - x - y, x, y])

    def shape_gradients(self, xi):
        return np.array([[-1.0, -1.0], [1.0, 0.0], [0.0, 1.0]])


# =============================================================================
# Constitutive models
# =============================================================================


@register_constitutive_model("LinearElasticity")
class LinearElasticityModel(ConstitutiveModel):
    """Small-strain linear elasticity.

    Ψ = μ ε:ε + λ/2 tr(ε)²,  ε = ½(F + Fᵀ) - I
    P = 2μ ε + λ tr(ε) I
    """

    def __init__(self, material: IsotropicMaterial):
        self.mu = material.mu
        self.lam = material.lam

    def calc_elastic_energy_density(self, F):
        strain = 0.5 * (F + F.T) - np.eye(3)
        trace = np.trace(strain)
        return self.mu * np.sum(strain * strain) + 0.5 * self.lam * trace * trace

    def calc_first_piola_stress(self, F):
        strain = 0.5 * (F + F.T) - np.eye(3)
        return 2 * self.mu * strain + self.lam * np.trace(strain) * np.eye(3)


class NeoHookeanCacheEntry(DeformationGradientCacheEntry):
    """Caches J = det(F) and F⁻ᵀ at every quadrature point."""

    def __init__(self, element_index, num_quadrature_points):
        super().__init__(element_index, num_quadrature_points)
        self.J = np.ones(num_quadrature_points)
        self.F_inv_T = np.tile(np.eye(3), (num_quadrature_points, 1, 1))

    def _update_cache_entry(self, F):
        self.J = np.linalg.det(F)
        self.F_inv_T = np.transpose(np.linalg.inv(F), (0, 2, 1))


@register_constitutive_model("NeoHookean")
class NeoHookeanModel(ConstitutiveModel):
    """Compressible neo-Hookean law.

    Ψ = μ/2 (tr(FᵀF) - 3) - μ ln J + λ/2 (ln J)²
    P = μ (F - F⁻ᵀ) + λ ln J F⁻ᵀ
    """

    cache_entry_type = NeoHookeanCacheEntry

    def __init__(self, material: IsotropicMaterial):
        self.mu = material.mu
        self.lam = material.lam

    def calc_elastic_energy_density(self, F):
        log_J = np.log(np.linalg.det(F))
        I1 = np.trace(F.T @ F)
        return 0.5 * self.mu * (I1 - 3) - self.mu * log_J + 0.5 * self.lam * log_J**2

    def calc_first_piola_stress(self, F):
        F_inv_T = np.linalg.inv(F).T
        log_J = np.log(np.linalg.det(F))
        return self.mu * (F - F_inv_T) + self.lam * log_J * F_inv_T


# =============================================================================
# Fixtures
# =============================================================================


@pytest.fixture
def steel():
    """Steel isotropic material for testing."""
    return IsotropicMaterial(name="steel", E=210e9, nu=0.3, rho=7850)


@pytest.fixture
def soft():
    """Soft rubber-like material, keeps energies of order one."""
    return IsotropicMaterial(name="soft", E=1.0e3, nu=0.3, rho=1000)


@pytest.fixture
def tetra4_nodes():
    """Unit tetrahedron, one column per node (3 × 4)."""
    return np.array(
        [
            [0, 0, 0],  # 0
            [1, 0, 0],  # 1
            [0, 1, 0],  # 2
            [0, 0, 1],  # 3
        ],
        dtype=float,
    ).T


@pytest.fixture
def tetra10_nodes(tetra4_nodes):
    """Unit quadratic tetrahedron (Gmsh node ordering), 3 × 10."""
    corners = tetra4_nodes.T
    edges = [(0, 1), (1, 2), (0, 2), (0, 3), (2, 3), (1, 3)]
    mid_edges = np.array([0.5 * (corners[a] + corners[b]) for a, b in edges])
    return np.vstack([corners, mid_edges]).T


@pytest.fixture
def hexa8_nodes():
    """Unit cube, one column per node (3 × 8)."""
    return ((_HEX_CORNERS + 1) / 2).T


@pytest.fixture
def tet_quadrature():
    return SimplexGaussianQuadrature(order=1)


@pytest.fixture
def tet_shape(tet_quadrature):
    return LinearTetrahedron(tet_quadrature.points)


@pytest.fixture
def make_tet(tet_quadrature, tet_shape, soft):
    """Factory for single linear tetrahedra sharing one quadrature and shape."""

    def _make(
        reference_positions,
        node_indices=(0, 1, 2, 3),
        element_index=0,
        model=None,
        density=1000.0,
    ):
        if model is None:
            model = LinearElasticityModel(soft)
        return ElasticityElement(
            element_index,
            node_indices,
            density,
            model,
            reference_positions,
            tet_quadrature,
            tet_shape,
        )

    return _make


@pytest.fixture
def make_hex(soft):
    quadrature = GaussLegendreQuadrature(2)
    shape = TrilinearHexahedron(quadrature.points)

    def _make(reference_positions, model=None, density=1000.0):
        if model is None:
            model = NeoHookeanModel(soft)
        return ElasticityElement(
            0, tuple(range(8)), density, model, reference_positions, quadrature, shape
        )

    return _make


@pytest.fixture
def make_tet10(soft):
    quadrature = SimplexGaussianQuadrature(order=2)
    shape = QuadraticTetrahedron(quadrature.points)

    def _make(reference_positions, model=None, density=1000.0):
        if model is None:
            model = NeoHookeanModel(soft)
        return ElasticityElement(
            0, tuple(range(10)), density, model, reference_positions, quadrature, shape
        )

    return _make


@pytest.fixture
def rng():
    return np.random.default_rng(20201016)


@pytest.fixture
def rotation():
    """Rotation matrix about a skew axis (Rodrigues' formula)."""
    axis = np.array([1.0, 2.0, 3.0])
    axis /= np.linalg.norm(axis)
    K = np.array([[0, -axis[2], axis[1]], [axis[2], 0, -axis[0]], [-axis[1], axis[0], 0]])
    theta = 0.7
    return np.eye(3) + np.sin(theta) * K + (1 - np.cos(theta)) * K @ K
