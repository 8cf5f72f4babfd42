"""
Multigroup diffusion discretization backend.

Assembles the coupled G-group system for one power iteration:

    [A_11  A_12 ... A_1G] [phi_1]   [b_1]
    [A_21  A_22 ... A_2G] [phi_2] = [b_2]
    [ ...              ] [ ... ]   [...]
    [A_G1  ...     A_GG] [phi_G]   [b_G]

Diagonal blocks (diffusion + removal + vacuum boundary):
    A_gg[i,j] = integral(D_g grad N_i . grad N_j + Sr_g N_i N_j) w dA
                + sum_vacuum 0.5 * D_g * integral(N_i N_j) w ds
    (D_g of the element owning each edge; the Marshak variant drops D_g)
Off-diagonal blocks (scattering into g from g'):
    A_gg'[i,j] = -integral(Ss(g'->g) N_i N_j) w dA
Right-hand side (lagged fission source from the previous fluxes):
    b_g[i] = chi_g / k * integral(S_prev N_i) w dA   (fissile elements)

w = 2*pi*r on axisymmetric meshes, 1 otherwise.

The block matrix only depends on geometry and cross-sections, so after the
first assembly an rhs-only pass returns the cached matrix object unchanged.
"""

import logging
from dataclasses import dataclass

import numpy as np
from scipy.sparse import bmat, csc_matrix

from ..elements.quadrature import triangle_rule
from ..elements.mapping import shape_table, map_to_physical, volume_weight, weighted_load
from ..fields.flux import GroupFluxField
from ..fields.fission_source import FissionSourceEvaluator
from .sparse_assembler import (
    assemble_global_vector,
    assemble_scalar_mass,
    assemble_scalar_stiffness,
)
from .boundary_conditions import resolve_boundary_conditions

log = logging.getLogger(__name__)


@dataclass
class LinearSystem:
    """Assembled system of one iteration.

    Attributes
    ----------
    matrix : csc_matrix, shape (G*N, G*N)
    rhs : ndarray, shape (G*N,)
    full_reassembly : bool
        Whether the matrix was rebuilt for this system.
    """
    matrix: csc_matrix
    rhs: np.ndarray
    full_reassembly: bool


class MultigroupDiffusionBackend:
    """Finite element backend for the G-group diffusion eigenproblem.

    Parameters
    ----------
    mesh : Mesh
        Tri3 or Tri6 mesh with region ids present in ``parameters``.
    parameters : PhysicalParameterTable
    boundary_conditions : dict
        {boundary_tag: 'reflecting' | 'vacuum' | 'marshak' | BoundaryCondition}.
    """

    def __init__(self, mesh, parameters, boundary_conditions):
        parameters.check_mesh(mesh)
        self.mesh = mesh
        self.parameters = parameters
        self.boundary_conditions = resolve_boundary_conditions(mesh, boundary_conditions)
        self.n_groups = parameters.n_groups
        self.n_dofs = mesh.n_nodes

        self._source = FissionSourceEvaluator(parameters)
        self._fissile_elements = mesh.region_elements(parameters.active_region_ids)
        self._chi = np.array([parameters.element_values(mesh, 'chi', g)
                              for g in range(self.n_groups)])
        self._matrix = None

        log.debug("Backend: %d groups, %d dofs/group, %d fissile elements, BCs %s",
                  self.n_groups, self.n_dofs, len(self._fissile_elements),
                  self.boundary_conditions)

    @property
    def size(self):
        """Total number of unknowns G * N."""
        return self.n_groups * self.n_dofs

    @property
    def matrix(self):
        """Cached system matrix (None before the first assembly)."""
        return self._matrix

    def assemble(self, previous_fluxes, k, full_reassembly=True):
        """Assemble the system whose rhs is the lagged fission source.

        Parameters
        ----------
        previous_fluxes : sequence of GroupFluxField
            Fluxes of the previous iterate.
        k : float
            Current eigenvalue estimate (scales the source by 1/k).
        full_reassembly : bool
            Rebuild the matrix. When False the cached matrix is reused
            verbatim (it is built on demand if none exists yet).

        Returns
        -------
        system : LinearSystem
        """
        if k <= 0.0:
            raise ValueError(f"Eigenvalue estimate must be > 0, got {k}")

        rebuilt = full_reassembly or self._matrix is None
        if rebuilt:
            self._matrix = self._assemble_matrix()

        rhs = self._assemble_rhs(previous_fluxes, k)
        return LinearSystem(matrix=self._matrix, rhs=rhs, full_reassembly=rebuilt)

    def _assemble_matrix(self):
        mesh = self.mesh
        G = self.n_groups

        blocks = [[None] * G for _ in range(G)]
        for g in range(G):
            D = self.parameters.element_values(mesh, 'diffusion', g)
            Sr = self.parameters.element_values(mesh, 'removal', g)
            A_gg = assemble_scalar_stiffness(mesh, D) + assemble_scalar_mass(mesh, Sr)
            for tag, bc in self.boundary_conditions.items():
                H = bc.boundary_matrix(mesh, tag, D)
                if H is not None:
                    A_gg = A_gg + H
            blocks[g][g] = A_gg

            for g_from in range(G):
                if g_from == g:
                    continue
                Ss = self.parameters.element_values(mesh, 'scattering', g_from, g)
                if np.any(Ss != 0.0):
                    blocks[g][g_from] = -assemble_scalar_mass(mesh, Ss)

        matrix = bmat(blocks, format='csc')
        log.debug("Assembled system matrix: %d x %d, nnz = %d",
                  matrix.shape[0], matrix.shape[1], matrix.nnz)
        return matrix

    def _assemble_rhs(self, previous_fluxes, k):
        mesh = self.mesh
        n = self.n_dofs
        rhs = np.zeros(self.size)

        source = self._source(previous_fluxes)
        weight_degree = 1 if mesh.axisymmetric else 0
        points, weights = triangle_rule(source.degree + mesh.degree + weight_degree)
        table = shape_table(mesh.element_type, points)

        def fission_load(e):
            xy, detJ = map_to_physical(mesh.element_coords(e), points)
            return weighted_load(table, source.evaluate(e, points), weights,
                                 detJ, volume_weight(xy, mesh.axisymmetric))

        load = {e: fission_load(e) for e in self._fissile_elements}
        for g in range(self.n_groups):
            chi = self._chi[g]
            emitting = [e for e in self._fissile_elements if chi[e] != 0.0]
            if emitting:
                rhs[g * n:(g + 1) * n] = assemble_global_vector(
                    mesh, lambda e: chi[e] / k * load[e], elements=emitting)

        return rhs

    def split(self, solution):
        """Partition a flat solution vector into G GroupFluxFields."""
        solution = np.asarray(solution, dtype=np.float64)
        if solution.shape != (self.size,):
            raise ValueError(
                f"solution shape {solution.shape} != ({self.size},)"
            )
        n = self.n_dofs
        return [GroupFluxField(self.mesh, solution[g * n:(g + 1) * n], group=g)
                for g in range(self.n_groups)]

    def uniform_fluxes(self, value=1.0):
        """Uniform seed flux in every group."""
        return [GroupFluxField.constant(self.mesh, value, group=g)
                for g in range(self.n_groups)]
