"""
External FEM state shared by all elements of a model.

The state owns the time-varying nodal quantities (current positions and
velocities), stored column-wise as 3 × N arrays keyed by global node index.
Elements only ever read from it. Every mutation draws a new ``generation``
stamp so that cached per-state quantities can be invalidated without
inspecting the data.
"""

import itertools
from typing import Optional, Sequence

import numpy as np

from fem_elastic.core.errors import PreconditionError

# Shared by all states so that a generation never identifies two different
# configurations.
_generation_counter = itertools.count(1)


def _as_nodal_array(values, name: str, num_nodes: Optional[int] = None) -> np.ndarray:
    values = np.asarray(values)
    if not np.iscomplexobj(values):
        values = values.astype(np.float64)
    if values.ndim != 2 or values.shape[0] != 3:
        raise PreconditionError(f"{name} must have shape (3, N), got {values.shape}")
    if num_nodes is not None and values.shape[1] != num_nodes:
        raise PreconditionError(
            f"{name} must have {num_nodes} columns, got {values.shape[1]}"
        )
    return values.copy()


class FemState:
    """Current configuration of a finite element model.

    Parameters
    ----------
    positions : array_like
        Current nodal positions, shape (3, N). Column ``i`` belongs to global
        node ``i``. Complex input is kept complex (complex-step differentiation).
    velocities : array_like, optional
        Nodal velocities, shape (3, N). Defaults to zero.

    Attributes
    ----------
    generation : int
        Stamp of the current data. Unique across all states and increasing
        with every mutation.
    """

    def __init__(self, positions, velocities=None):
        self._positions = _as_nodal_array(positions, "positions")
        if velocities is None:
            self._velocities = np.zeros((3, self.num_nodes))
        else:
            self._velocities = _as_nodal_array(velocities, "velocities", self.num_nodes)
        self.generation = next(_generation_counter)

    @property
    def num_nodes(self) -> int:
        return self._positions.shape[1]

    @property
    def dtype(self) -> np.dtype:
        return self._positions.dtype

    @property
    def positions(self) -> np.ndarray:
        """Read-only view of all nodal positions (3 × N)."""
        view = self._positions.view()
        view.setflags(write=False)
        return view

    @property
    def velocities(self) -> np.ndarray:
        """Read-only view of all nodal velocities (3 × N)."""
        view = self._velocities.view()
        view.setflags(write=False)
        return view

    def get_positions(self, node_indices: Sequence[int]) -> np.ndarray:
        """Gather positions of the given nodes, in the given order.

        Parameters
        ----------
        node_indices : Sequence[int]
            Global node indices

        Returns
        -------
        np.ndarray
            Positions (3 × len(node_indices)), a copy
        """
        return self._positions[:, list(node_indices)]

    def get_velocities(self, node_indices: Sequence[int]) -> np.ndarray:
        """Gather velocities of the given nodes (3 × len(node_indices))."""
        return self._velocities[:, list(node_indices)]

    def set_positions(self, positions) -> None:
        self._positions = _as_nodal_array(positions, "positions", self.num_nodes)
        self.generation = next(_generation_counter)

    def set_velocities(self, velocities) -> None:
        self._velocities = _as_nodal_array(velocities, "velocities", self.num_nodes)
        self.generation = next(_generation_counter)

    def clone(self) -> "FemState":
        """Independent copy with the same data and its own generation."""
        return FemState(self._positions, self._velocities)

    def __repr__(self):
        return f"<FemState nodes={self.num_nodes} generation={self.generation}>"
