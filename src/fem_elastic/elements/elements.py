import logging
import numbers
from abc import ABC, abstractmethod
from typing import Callable, Dict, Optional, Sequence, Tuple, Type

import numpy as np

from fem_elastic.core.errors import PreconditionError

logger = logging.getLogger(__name__)


def _is_index(value) -> bool:
    return isinstance(value, numbers.Integral) and not isinstance(value, bool) and value >= 0


class FemElement(ABC):
    """Base class for finite elements with three displacement DOFs per node.

    Parameters
    ----------
    element_index : int
        Global index of the element (non-negative)
    node_indices : Sequence[int]
        Distinct global node indices. The order defines the local node
        numbering and the block layout of every per-node output vector.
    """

    dofs_per_node: int = 3

    def __init__(self, element_index: int, node_indices: Sequence[int]):
        if not _is_index(element_index):
            raise PreconditionError(f"Invalid element index: {element_index!r}")
        node_indices = tuple(node_indices)
        for node in node_indices:
            if not _is_index(node):
                raise PreconditionError(
                    f"Element {element_index}: invalid node index {node!r}"
                )
        if len(set(node_indices)) != len(node_indices):
            raise PreconditionError(
                f"Element {element_index}: repeated node indices {node_indices}"
            )
        self._element_index = int(element_index)
        self._node_indices = tuple(int(node) for node in node_indices)

    @property
    def element_index(self) -> int:
        return self._element_index

    @property
    def node_indices(self) -> Tuple[int, ...]:
        return self._node_indices

    @property
    @abstractmethod
    def num_nodes(self) -> int:
        """Number of nodes associated with this element."""

    @property
    @abstractmethod
    def num_quadrature_points(self) -> int:
        """Number of quadrature points at which element quantities are evaluated."""

    @property
    def dofs_count(self) -> int:
        return self.num_nodes * self.dofs_per_node

    @property
    def global_dof_indices(self) -> Dict[int, Tuple[int, ...]]:
        """
        Global DOF indices of each node, in local node order.

        Returns
        -------
        Dict[int, Tuple[int, ...]]
            Maps global node index to its DOF indices.
        """
        global_dof_indices = {}
        for node_id in self._node_indices:
            start_dof = node_id * self.dofs_per_node
            end_dof = start_dof + self.dofs_per_node
            global_dof_indices[node_id] = tuple(range(start_dof, end_dof))

        return global_dof_indices

    @abstractmethod
    def make_element_cache_entry(self):
        """Create a cache entry compatible with this element."""

    def calc_residual(self, state, residual: Optional[np.ndarray] = None, cache_entry=None):
        """Element residual evaluated at ``state``.

        Parameters
        ----------
        state : FemState
            State providing current nodal positions
        residual : np.ndarray, optional
            Output buffer of size ``3 * num_nodes``; overwritten when given
        cache_entry : optional
            Cache entry created by ``make_element_cache_entry``

        Returns
        -------
        np.ndarray
            Residual ordered in node blocks: entries ``3*i`` to ``3*i+2``
            belong to local node ``i``.
        """
        values = self._do_calc_residual(state, cache_entry)
        return self._write_output(values, residual, "residual")

    @abstractmethod
    def _do_calc_residual(self, state, cache_entry=None) -> np.ndarray:
        """Compute the residual as a flat array of size ``3 * num_nodes``."""

    def _check_output_buffer(self, buffer: np.ndarray, name: str, dtype: np.dtype) -> None:
        if not isinstance(buffer, np.ndarray) or buffer.shape != (self.dofs_count,):
            shape = getattr(buffer, "shape", type(buffer).__name__)
            raise PreconditionError(
                f"Element {self._element_index}: {name} buffer must have shape "
                f"({self.dofs_count},), got {shape}"
            )
        if not np.can_cast(dtype, buffer.dtype):
            raise PreconditionError(
                f"Element {self._element_index}: cannot write {dtype} values into a "
                f"{buffer.dtype} {name} buffer"
            )

    def _write_output(self, values: np.ndarray, buffer: Optional[np.ndarray], name: str):
        if buffer is None:
            return values
        self._check_output_buffer(buffer, name, values.dtype)
        buffer[:] = values
        return buffer

    def __repr__(self):
        return f"<{type(self).__name__} id={self._element_index} nodes={self._node_indices}>"


# =============================================================================
# Plug-in registries
# =============================================================================

SHAPE_FUNCTION_MAP: Dict[str, Type] = {}
CONSTITUTIVE_MODEL_MAP: Dict[str, Type] = {}


def _register(registry: Dict[str, Type], kind: str, name: str) -> Callable[[Type], Type]:
    def decorator(cls: Type) -> Type:
        if name in registry and registry[name] is not cls:
            raise ValueError(f"{kind} '{name}' is already registered to {registry[name].__name__}")
        registry[name] = cls
        return cls

    return decorator


def register_shape_function(name: str) -> Callable[[Type], Type]:
    """Class decorator making an IsoparametricElement available to configs by name."""
    return _register(SHAPE_FUNCTION_MAP, "Shape function", name)


def register_constitutive_model(name: str) -> Callable[[Type], Type]:
    """Class decorator making a ConstitutiveModel available to configs by name.

    The class is instantiated as ``cls(material)`` with an IsotropicMaterial.
    """
    return _register(CONSTITUTIVE_MODEL_MAP, "Constitutive model", name)


def _lookup(registry: Dict[str, Type], kind: str, name: str) -> Type:
    try:
        return registry[name]
    except KeyError:
        available = ", ".join(sorted(registry)) or "none"
        raise KeyError(f"Unknown {kind} '{name}'. Available: {available}") from None


class ElementFactory:
    """Builds elasticity elements of one family from an ElasticityConfig.

    The quadrature rule and the shape function are built once and shared by
    every element created by the factory. Each element gets its own
    constitutive model instance.

    Parameters
    ----------
    config : ElasticityConfig
        Element family and material configuration
    """

    def __init__(self, config):
        from fem_elastic.core.quadrature import GaussLegendreQuadrature, SimplexGaussianQuadrature

        self.config = config
        quad_config = config.element.quadrature
        if quad_config.type == "simplex":
            self.quadrature = SimplexGaussianQuadrature(
                quad_config.order, quad_config.natural_dimension
            )
        else:
            self.quadrature = GaussLegendreQuadrature(
                (quad_config.order,) * quad_config.natural_dimension
            )

        shape_cls = _lookup(SHAPE_FUNCTION_MAP, "shape function", config.element.shape_function)
        self.shape_function = shape_cls(self.quadrature.points)
        self.model_cls = _lookup(CONSTITUTIVE_MODEL_MAP, "constitutive model", config.material.model)
        self.material = config.material.get_material()
        logger.info(
            "Element factory ready: %s with %r, model %s",
            config.element.shape_function,
            self.quadrature,
            config.material.model,
        )

    def create(self, element_index: int, node_indices: Sequence[int], reference_positions):
        """Create one element of this family.

        Parameters
        ----------
        element_index : int
            Global element index
        node_indices : Sequence[int]
            Global node indices, in the family's local node order
        reference_positions : np.ndarray
            Reference nodal positions (3 × n_nodes)

        Returns
        -------
        ElasticityElement
        """
        from fem_elastic.elements.elasticity import ElasticityElement

        return ElasticityElement(
            element_index,
            node_indices,
            self.material.rho,
            self.model_cls(self.material),
            reference_positions,
            self.quadrature,
            self.shape_function,
        )
