"""
Fission source evaluator.

    S(x) = sum_g' nu_g'(x) * Sf_g'(x) * phi_g'(x)

with region-local constants. The source is a lazily evaluated field: it
stores only references to the group fluxes and the parameter table and is
computed wherever the integrator or assembler samples it. Reflector
regions always evaluate to zero.
"""

import numpy as np


class FissionSource:
    """Lazily evaluated fission source density of a set of group fluxes.

    Parameters
    ----------
    fluxes : sequence of GroupFluxField
        One field per group, all on the same mesh.
    parameters : PhysicalParameterTable
    """

    def __init__(self, fluxes, parameters):
        fluxes = list(fluxes)
        if len(fluxes) != parameters.n_groups:
            raise ValueError(
                f"Expected {parameters.n_groups} group fluxes, got {len(fluxes)}"
            )
        self.mesh = fluxes[0].mesh
        for phi in fluxes[1:]:
            if phi.mesh is not self.mesh:
                raise ValueError("All group fluxes must live on the same mesh")
        self.fluxes = fluxes
        self.parameters = parameters

    @property
    def degree(self):
        return max(phi.degree for phi in self.fluxes)

    def evaluate(self, e, points):
        """Source density at reference points of element e.

        Parameters
        ----------
        e : int
        points : ndarray, shape (n_qp, 2)

        Returns
        -------
        values : ndarray, shape (n_qp,)
        """
        region = self.parameters.region(self.mesh.region_ids[e])
        nu_sigma_f = region.nu_fission()
        values = np.zeros(len(points))
        for g, phi in enumerate(self.fluxes):
            if nu_sigma_f[g] != 0.0:
                values += nu_sigma_f[g] * phi.evaluate(e, points)
        return values


class FissionSourceEvaluator:
    """Stateless factory: group fluxes -> FissionSource field."""

    def __init__(self, parameters):
        self.parameters = parameters

    def __call__(self, fluxes):
        return FissionSource(fluxes, self.parameters)
