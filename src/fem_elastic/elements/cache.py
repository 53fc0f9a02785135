"""
Per-element cache entries for state-dependent quantities.

Elements never keep per-state data themselves. Callers that evaluate the same
state several times (energy, then residual, ...) can hand an
ElasticityElementCacheEntry to the element; the deformation gradient stored
in it is reused as long as the entry's ``generation`` matches the state's.

ElementCache keeps one entry per element index. Entries of different
elements are independent, so evaluating different elements concurrently
only needs the lock taken while an entry is first created.
"""

import logging
import threading
from typing import Dict, Optional

from fem_elastic.constitutive.base import DeformationGradientCacheEntry

logger = logging.getLogger(__name__)


class ElasticityElementCacheEntry:
    """Cached quantities for one elasticity element.

    Parameters
    ----------
    element_index : int
        Index of the element owning the entry
    num_quadrature_points : int
        Number of quadrature points of that element
    deformation_gradient_cache_entry : DeformationGradientCacheEntry
        Model-specific storage for F and derived quantities

    Attributes
    ----------
    generation : int or None
        State generation the cached data corresponds to, None if never filled
    """

    def __init__(
        self,
        element_index: int,
        num_quadrature_points: int,
        deformation_gradient_cache_entry: DeformationGradientCacheEntry,
    ):
        self.element_index = element_index
        self.num_quadrature_points = num_quadrature_points
        self.deformation_gradient_cache_entry = deformation_gradient_cache_entry
        self.generation: Optional[int] = None

    def is_current(self, generation: int) -> bool:
        return self.generation is not None and self.generation == generation

    def invalidate(self) -> None:
        self.generation = None

    def __repr__(self):
        return (
            f"<ElasticityElementCacheEntry element={self.element_index} "
            f"generation={self.generation}>"
        )


class ElementCache:
    """Collection of cache entries keyed by element index.

    Examples
    --------
    ::

        cache = ElementCache()
        for element in elements:
            entry = cache.entry_for(element)
            energy += element.calc_elastic_energy(state, cache_entry=entry)
            element.calc_residual(state, residual_blocks[element.element_index], cache_entry=entry)
    """

    def __init__(self):
        self._entries: Dict[int, ElasticityElementCacheEntry] = {}
        self._lock = threading.Lock()

    def entry_for(self, element) -> ElasticityElementCacheEntry:
        """Return the entry of ``element``, creating it on first use."""
        entry = self._entries.get(element.element_index)
        if entry is not None:
            return entry
        with self._lock:
            entry = self._entries.get(element.element_index)
            if entry is None:
                entry = element.make_element_cache_entry()
                self._entries[element.element_index] = entry
                logger.debug("Created cache entry for element %d", element.element_index)
        return entry

    def invalidate(self) -> None:
        """Mark every entry stale without dropping it."""
        with self._lock:
            for entry in self._entries.values():
                entry.invalidate()

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, element_index: int) -> bool:
        return element_index in self._entries
