"""
Region integrator.

Computes

    I = sum over elements e with region(e) in R of
        integral_e  w(x) * f(x)  dA

with the geometry weight w = 2*pi*r on axisymmetric (r-z) meshes and
w = 1 on cartesian meshes. In r-z this is the volume integral over the
body of revolution.

The quadrature degree is the field's polynomial degree plus the degree of
the weight (1 for 2*pi*r, 0 otherwise). Elements are affine, so the rule
is exact for polynomial fields.
"""

import logging

import numpy as np

from ..elements.quadrature import triangle_rule
from ..elements.mapping import map_to_physical, volume_weight

log = logging.getLogger(__name__)


class RegionIntegrator:
    """Integrates lazily evaluated fields over tagged regions of a mesh.

    Parameters
    ----------
    mesh : Mesh
    """

    def __init__(self, mesh):
        self.mesh = mesh
        self._weight_degree = 1 if mesh.axisymmetric else 0
        self._geometry = {}

    def quadrature_degree(self, field):
        return field.degree + self._weight_degree

    def _element_geometry(self, degree):
        """Per-element (|J| * w(x_q)) table for a quadrature degree, cached."""
        if degree not in self._geometry:
            points, weights = triangle_rule(degree)
            scaled = np.empty((self.mesh.n_elements, len(weights)))
            for e in range(self.mesh.n_elements):
                xy, detJ = map_to_physical(self.mesh.element_coords(e), points)
                scaled[e] = weights * detJ * volume_weight(xy, self.mesh.axisymmetric)
            self._geometry[degree] = (points, scaled)
        return self._geometry[degree]

    def integrate(self, field, region=None):
        """Integral of ``field`` over the elements tagged ``region``.

        Parameters
        ----------
        field : object
            Anything with ``degree`` and ``evaluate(e, points)``.
        region : int, iterable of int, or None
            Region id(s); None integrates over the whole domain.

        Returns
        -------
        integral : float
            0.0 if no element carries the requested tag.
        """
        elems = self.mesh.region_elements(region)
        if len(elems) == 0:
            log.debug("No elements in region %s, integral is zero", region)
            return 0.0

        points, scaled = self._element_geometry(self.quadrature_degree(field))
        total = 0.0
        for e in elems:
            total += float(scaled[e] @ field.evaluate(e, points))
        return total

    def volume(self, region=None):
        """Volume (r-z) or area (cartesian) of a region."""
        return self.integrate(_Unit(), region)


class _Unit:
    degree = 0

    def evaluate(self, e, points):
        return np.ones(len(points))
