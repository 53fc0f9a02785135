"""
Element Family Configuration Module.

This module provides a YAML-based configuration for a family of elasticity
elements: the shape function family, the quadrature rule and the material
law with its parameters. Shape function and material law names refer to
classes registered with ``register_shape_function`` and
``register_constitutive_model``.

Example YAML configuration:
    element:
      shape_function: "TETRA4"
      quadrature:
        type: "simplex"
        order: 1

    material:
      model: "LinearElasticity"
      name: "steel"
      E: 2.1e+11
      nu: 0.3
      rho: 7850.0
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, Union

import yaml

from fem_elastic.core.material import IsotropicMaterial

logger = logging.getLogger(__name__)


class QuadratureType(str, Enum):
    """Available quadrature families."""

    SIMPLEX = "simplex"
    GAUSS_LEGENDRE = "gauss_legendre"


# =============================================================================
# Configuration Data Classes
# =============================================================================


@dataclass
class QuadratureConfig:
    """Quadrature rule configuration.

    ``order`` is the polynomial order for simplex rules and the number of
    points per direction for Gauss-Legendre rules.
    """

    type: str = QuadratureType.SIMPLEX.value
    order: int = 1
    natural_dimension: int = 3

    def __post_init__(self):
        valid_types = [t.value for t in QuadratureType]
        if self.type not in valid_types:
            raise ValueError(f"Invalid quadrature type: {self.type}. Valid: {valid_types}")
        self.order = int(self.order)
        if self.order < 1:
            raise ValueError(f"Quadrature order must be positive: {self.order}")
        self.natural_dimension = int(self.natural_dimension)


@dataclass
class ElementConfig:
    """Element family configuration."""

    shape_function: str
    quadrature: QuadratureConfig = field(default_factory=QuadratureConfig)

    def __post_init__(self):
        if not self.shape_function:
            raise ValueError("Element configuration requires a shape_function name")


@dataclass
class MaterialConfig:
    """Material law and isotropic parameters."""

    model: str
    E: float
    nu: float
    rho: float
    name: str = "Material"

    def __post_init__(self):
        # PyYAML reads exponents without a sign ("4.0e6") as strings
        self.E = float(self.E)
        self.nu = float(self.nu)
        self.rho = float(self.rho)
        if not self.model:
            raise ValueError("Material configuration requires a model name")
        if self.E <= 0:
            raise ValueError(f"Young's modulus must be positive: {self.E}")
        if not -1 < self.nu < 0.5:
            raise ValueError(f"Poisson's ratio must be in (-1, 0.5): {self.nu}")
        if self.rho < 0:
            raise ValueError(f"Density must be non-negative: {self.rho}")

    def get_material(self) -> IsotropicMaterial:
        """Get the material parameters as an IsotropicMaterial."""
        return IsotropicMaterial(name=self.name, E=self.E, nu=self.nu, rho=self.rho)


@dataclass
class ElasticityConfig:
    """Complete configuration of an elasticity element family."""

    element: ElementConfig
    material: MaterialConfig

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ElasticityConfig":
        """Create configuration from a dictionary.

        Parameters
        ----------
        data : dict
            Configuration dictionary with ``element`` and ``material`` sections.

        Returns
        -------
        ElasticityConfig
            Parsed configuration object.
        """
        if not isinstance(data, dict):
            raise ValueError(f"Configuration must be a mapping, got {type(data).__name__}")
        for section in ("element", "material"):
            if section not in data:
                raise ValueError(f"Missing required configuration section: '{section}'")

        element_data = dict(data["element"])
        quadrature_data = element_data.pop("quadrature", None) or {}
        element = ElementConfig(quadrature=QuadratureConfig(**quadrature_data), **element_data)
        material = MaterialConfig(**data["material"])

        return cls(element=element, material=material)

    @classmethod
    def from_yaml(cls, yaml_path: Union[str, Path]) -> "ElasticityConfig":
        """Load configuration from YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Path to YAML configuration file.

        Returns
        -------
        ElasticityConfig
            Parsed configuration object.
        """
        yaml_path = Path(yaml_path)
        if not yaml_path.exists():
            raise FileNotFoundError(f"Configuration file not found: {yaml_path}")

        with open(yaml_path, "r") as f:
            data = yaml.safe_load(f)

        config = cls.from_dict(data)
        logger.info("Loaded element configuration from %s", yaml_path)
        return config

    def to_dict(self) -> Dict[str, Any]:
        """Convert configuration to dictionary."""
        return {
            "element": {
                "shape_function": self.element.shape_function,
                "quadrature": {
                    "type": self.element.quadrature.type,
                    "order": self.element.quadrature.order,
                    "natural_dimension": self.element.quadrature.natural_dimension,
                },
            },
            "material": {
                "model": self.material.model,
                "name": self.material.name,
                "E": self.material.E,
                "nu": self.material.nu,
                "rho": self.material.rho,
            },
        }

    def save_yaml(self, yaml_path: Union[str, Path]) -> None:
        """Save configuration to YAML file.

        Parameters
        ----------
        yaml_path : str or Path
            Output path for YAML file.
        """
        with open(yaml_path, "w") as f:
            yaml.dump(self.to_dict(), f, default_flow_style=False, sort_keys=False)
