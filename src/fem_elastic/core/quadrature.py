"""Numerical integration rules in natural (parent) coordinates.

Two families are provided:

- SimplexGaussianQuadrature: Gauss rules on the unit simplex
  {ξ_i >= 0, Σ ξ_i <= 1}, exact for polynomials up to ``order``.
- GaussLegendreQuadrature: tensor-product Gauss-Legendre rules on [-1, 1]^d.

Both are immutable once built; points and weights are exposed as read-only
arrays so a single rule can be shared by any number of elements.
"""

from abc import ABC
from functools import lru_cache
from typing import Tuple, Union

import numpy as np


def _read_only(array: np.ndarray) -> np.ndarray:
    array = np.array(array, dtype=np.float64)
    array.setflags(write=False)
    return array


class Quadrature(ABC):
    """Base class for a fixed set of integration points and weights.

    Parameters
    ----------
    points : np.ndarray
        Natural coordinates of the integration points (n_points × natural_dimension)
    weights : np.ndarray
        Integration weights (n_points,)
    """

    def __init__(self, points: np.ndarray, weights: np.ndarray):
        points = np.atleast_2d(points)
        weights = np.atleast_1d(weights)
        if points.shape[0] != weights.shape[0]:
            raise ValueError(
                f"Got {points.shape[0]} quadrature points but {weights.shape[0]} weights"
            )
        self._points = _read_only(points)
        self._weights = _read_only(weights)

    @property
    def num_points(self) -> int:
        """Total number of quadrature points."""
        return len(self._weights)

    @property
    def natural_dimension(self) -> int:
        return self._points.shape[1]

    @property
    def points(self) -> np.ndarray:
        """Quadrature points, shape (n_points, natural_dimension)."""
        return self._points

    @property
    def weights(self) -> np.ndarray:
        """Quadrature weights, shape (n_points,)."""
        return self._weights

    def __repr__(self):
        return (
            f"<{type(self).__name__} points={self.num_points} "
            f"dimension={self.natural_dimension}>"
        )


class SimplexGaussianQuadrature(Quadrature):
    """Gauss quadrature on the unit triangle or unit tetrahedron.

    Natural coordinates: ξ_i ∈ [0, 1] with Σ ξ_i ≤ 1. The weights sum to the
    measure of the reference simplex (1/2 for triangles, 1/6 for tetrahedra).

    Parameters
    ----------
    order : int
        Polynomial order integrated exactly (1, 2 or 3)
    natural_dimension : int
        2 (triangle) or 3 (tetrahedron)

    Notes
    -----
    The cubic rules carry a negative weight at the centroid.
    """

    def __init__(self, order: int, natural_dimension: int = 3):
        if natural_dimension not in (2, 3):
            raise ValueError(
                f"Simplex quadrature supports natural dimension 2 or 3, got {natural_dimension}"
            )
        if order not in (1, 2, 3):
            raise ValueError(f"Simplex quadrature supports order 1, 2 or 3, got {order}")
        self.order = order
        points, weights = _simplex_rule(order, natural_dimension)
        super().__init__(points, weights)


@lru_cache(maxsize=8)
def _simplex_rule(order: int, natural_dimension: int) -> Tuple[np.ndarray, np.ndarray]:
    if natural_dimension == 2:
        if order == 1:
            points = np.array([[1 / 3, 1 / 3]])
            weights = np.array([0.5])
        elif order == 2:
            points = np.array([[1 / 6, 1 / 6], [2 / 3, 1 / 6], [1 / 6, 2 / 3]])
            weights = np.full(3, 1 / 6)
        else:
            points = np.array([[1 / 3, 1 / 3], [0.6, 0.2], [0.2, 0.6], [0.2, 0.2]])
            weights = np.array([-27 / 96, 25 / 96, 25 / 96, 25 / 96])
    else:
        if order == 1:
            points = np.array([[0.25, 0.25, 0.25]])
            weights = np.array([1 / 6])
        elif order == 2:
            a = (5 - np.sqrt(5)) / 20
            b = (5 + 3 * np.sqrt(5)) / 20
            points = np.array([[a, a, a], [b, a, a], [a, b, a], [a, a, b]])
            weights = np.full(4, 1 / 24)
        else:
            points = np.array(
                [
                    [0.25, 0.25, 0.25],
                    [1 / 6, 1 / 6, 1 / 6],
                    [1 / 6, 1 / 6, 0.5],
                    [1 / 6, 0.5, 1 / 6],
                    [0.5, 1 / 6, 1 / 6],
                ]
            )
            weights = np.array([-2 / 15, 3 / 40, 3 / 40, 3 / 40, 3 / 40])
    return points, weights


class GaussLegendreQuadrature(Quadrature):
    """Tensor-product Gauss-Legendre quadrature on [-1, 1]^d.

    n points per direction integrate exactly polynomials up to degree 2n-1
    in each direction. The weights sum to 2^d.

    Parameters
    ----------
    n_points_per_dir : int or Tuple[int, ...]
        Number of points in each direction. A single int means a 3D rule
        with the same count in every direction.
    """

    def __init__(self, n_points_per_dir: Union[int, Tuple[int, ...]]):
        if isinstance(n_points_per_dir, (int, np.integer)):
            n_points_per_dir = (int(n_points_per_dir),) * 3
        n_points_per_dir = tuple(int(n) for n in n_points_per_dir)
        if not 1 <= len(n_points_per_dir) <= 3:
            raise ValueError(f"Unsupported dimension: {len(n_points_per_dir)}")
        if any(n < 1 for n in n_points_per_dir):
            raise ValueError("Need at least 1 quadrature point per direction")
        self.n_points_per_dir = n_points_per_dir

        rules = [np.polynomial.legendre.leggauss(n) for n in n_points_per_dir]
        # First direction varies fastest, matching the usual brick node ordering.
        grids = np.meshgrid(*[pts for pts, _ in rules], indexing="ij")
        weight_grids = np.meshgrid(*[wts for _, wts in rules], indexing="ij")
        points = np.stack([g.ravel(order="F") for g in grids], axis=1)
        weights = np.prod(np.stack([w.ravel(order="F") for w in weight_grids], axis=1), axis=1)
        super().__init__(points, weights)
