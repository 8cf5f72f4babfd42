"""
Group flux fields on a finite element mesh.

A GroupFluxField holds the nodal coefficients of one energy group's flux
and evaluates it at reference points of any element through the element
shape functions. Fields are never modified after construction: every
power iteration produces a fresh set.
"""

import numpy as np

from ..elements.mapping import shape_table


class GroupFluxField:
    """Neutron flux of one energy group.

    Parameters
    ----------
    mesh : Mesh
    coefficients : ndarray, shape (N_nodes,)
        Nodal values (Lagrange basis coefficients).
    group : int
        0-based group index.
    """

    def __init__(self, mesh, coefficients, group=0):
        coefficients = np.array(coefficients, dtype=np.float64)
        if coefficients.shape != (mesh.n_nodes,):
            raise ValueError(
                f"coefficients shape {coefficients.shape} != ({mesh.n_nodes},)"
            )
        coefficients.setflags(write=False)
        self.mesh = mesh
        self.coefficients = coefficients
        self.group = int(group)

    @classmethod
    def constant(cls, mesh, value, group=0):
        """Uniform field; exactly representable in any Lagrange basis."""
        return cls(mesh, np.full(mesh.n_nodes, float(value)), group=group)

    @property
    def degree(self):
        """Polynomial degree of the field within an element."""
        return self.mesh.degree

    def evaluate(self, e, points):
        """Field values at reference points of element e.

        Parameters
        ----------
        e : int
            Element index.
        points : ndarray, shape (n_qp, 2)
            Reference coordinates (xi, eta).

        Returns
        -------
        values : ndarray, shape (n_qp,)
        """
        table = shape_table(self.mesh.element_type, points)
        return table @ self.coefficients[self.mesh.elements[e]]

    def max(self):
        return float(np.max(self.coefficients))

    def __repr__(self):
        return (f"<GroupFluxField group={self.group} "
                f"n_nodes={len(self.coefficients)}>")
