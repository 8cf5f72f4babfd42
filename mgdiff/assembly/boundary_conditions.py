"""
Boundary conditions for the group diffusion operator.

Variants, selected per boundary tag and resolved once when the backend is
set up:

1. Reflecting (symmetry):
   - dphi/dn = 0, natural BC
   - No contribution to the assembled system

2. Vacuum (default for 'vacuum'):
   - dphi/dn = -0.5 * phi
   - The diffusion flux term gives D_g * dphi/dn = -0.5 * D_g * phi, so
     group g gets the boundary mass 0.5 * D_g * integral(N_i N_j) ds, with
     D_g taken from the element owning each boundary edge

3. Marshak:
   - D * dphi/dn = -0.5 * phi
   - Adds 0.5 * integral(N_i N_j) ds to every group (independent of D)

Robin terms include the 2*pi*r factor on axisymmetric meshes.

Usage:
    bcs = resolve_boundary_conditions(mesh, {'left': 'reflecting',
                                             'right': 'vacuum'})
"""

from .. import config
from .sparse_assembler import assemble_boundary_mass


class BoundaryCondition:
    """Base class: a linear boundary term added to a group's block."""

    name = None

    def boundary_matrix(self, mesh, boundary_tag, diffusion):
        """Global matrix contribution on ``boundary_tag`` or None.

        Parameters
        ----------
        mesh : Mesh
        boundary_tag : str
        diffusion : ndarray, shape (N_elem,)
            Diffusion coefficient of the group being assembled.
        """
        raise NotImplementedError

    def __repr__(self):
        return f"{type(self).__name__}()"


class Reflecting(BoundaryCondition):
    """Zero net current; natural condition with no assembled term."""

    name = 'reflecting'

    def boundary_matrix(self, mesh, boundary_tag, diffusion):
        return None


class Vacuum(BoundaryCondition):
    """Vacuum condition dphi/dn = -alpha * phi.

    Parameters
    ----------
    alpha : float
        Ratio of inward derivative to flux; 0.5 by default.
    """

    name = 'vacuum'

    def __init__(self, alpha=config.VACUUM_COEFFICIENT):
        if alpha <= 0.0:
            raise ValueError(f"{type(self).__name__} coefficient must be > 0, got {alpha}")
        self.alpha = alpha

    def edge_coefficients(self, mesh, boundary_tag, diffusion):
        owners = mesh.boundary_edge_elements(boundary_tag)
        return self.alpha * diffusion[owners]

    def boundary_matrix(self, mesh, boundary_tag, diffusion):
        return assemble_boundary_mass(
            mesh, boundary_tag, self.edge_coefficients(mesh, boundary_tag, diffusion))

    def __repr__(self):
        return f"{type(self).__name__}(alpha={self.alpha})"


class Marshak(Vacuum):
    """Marshak condition D * dphi/dn = -alpha * phi (no D scaling)."""

    name = 'marshak'

    def edge_coefficients(self, mesh, boundary_tag, diffusion):
        return self.alpha


BOUNDARY_CONDITIONS = {
    Reflecting.name: Reflecting,
    Vacuum.name: Vacuum,
    Marshak.name: Marshak,
}


def resolve_boundary_conditions(mesh, conditions):
    """Map every boundary tag of ``conditions`` to a BoundaryCondition instance.

    Parameters
    ----------
    mesh : Mesh
    conditions : dict
        {boundary_tag: 'reflecting' | 'vacuum' | 'marshak' | BoundaryCondition}.
        Mesh tags absent from ``conditions`` are treated as reflecting.

    Returns
    -------
    bcs : dict
        {boundary_tag: BoundaryCondition}

    Raises
    ------
    KeyError
        If a tag in ``conditions`` does not exist on the mesh.
    ValueError
        If a condition name is unknown.
    """
    resolved = {}
    for tag, bc in conditions.items():
        if tag not in mesh.boundary_edges:
            raise KeyError(
                f"Boundary tag '{tag}' not found in mesh. "
                f"Available tags: {list(mesh.boundary_edges.keys())}"
            )
        if isinstance(bc, str):
            try:
                bc = BOUNDARY_CONDITIONS[bc]()
            except KeyError:
                raise ValueError(
                    f"Unknown boundary condition '{bc}' for tag '{tag}'. "
                    f"Available: {sorted(BOUNDARY_CONDITIONS)}"
                ) from None
        elif not isinstance(bc, BoundaryCondition):
            raise ValueError(f"Invalid boundary condition for tag '{tag}': {bc!r}")
        resolved[tag] = bc

    for tag in mesh.boundary_edges:
        resolved.setdefault(tag, Reflecting())
    return resolved
