"""
Error taxonomy for elastic finite elements.

Construction-time problems are reported immediately and are never retried:
a degenerate reference element is a permanent configuration error for that
instance.
"""


class FemError(Exception):
    """Base class for all errors raised by fem_elastic."""


class PreconditionError(FemError, ValueError):
    """Invalid construction input (indices, cardinalities, shapes)."""


class GeometryError(FemError, ValueError):
    """Degenerate or inverted reference geometry (det(J) <= 0)."""


class ContractViolationError(FemError, TypeError):
    """A collaborator does not match the element it is used with."""
