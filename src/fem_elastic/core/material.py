from dataclasses import dataclass


@dataclass(frozen=True)
class IsotropicMaterial:
    """
    Class representing an isotropic material with uniform properties in all directions.

    Parameters
    ----------
    name : str
        The name of the material.
    E : float
        Young's Modulus of the material.
    nu : float
        Poisson's ratio of the material.
    rho : float
        Mass density of the material in the reference configuration (kg/m³).
    """

    name: str
    E: float
    nu: float
    rho: float

    @property
    def mu(self) -> float:
        """Shear modulus (second Lamé parameter) μ = E / (2(1+ν))."""
        return self.E / (2 * (1 + self.nu))

    @property
    def lam(self) -> float:
        """First Lamé parameter λ = Eν / ((1+ν)(1-2ν))."""
        return self.E * self.nu / ((1 + self.nu) * (1 - 2 * self.nu))
