"""
Multi-group finite element diffusion eigenvalue solve.

Wires the pieces of one k-eigenvalue calculation together:

    Problem (mesh, parameters, boundary conditions, active region)
        -> MultigroupDiffusionBackend   (block matrix + lagged source rhs)
        -> LinearSolver                  (direct LU or Krylov)
        -> PowerIteration                (k update from fission integrals)
        -> post-processing               (fission density, power scaling)

Weak form for group g (test function N_i, w = 2*pi*r in r-z, 1 otherwise):

    integral(D_g grad N_i . grad phi_g + Sr_g N_i phi_g) w dA
      + 0.5 * integral_vacuum(N_i phi_g) w ds
      - sum_{g' != g} integral(Ss(g'->g) N_i phi_g') w dA
        = chi_g / k * integral(N_i sum_g' nu Sf_g' phi_g') w dA

Usage:
    from mgdiff.problems import bare_slab_problem
    from mgdiff.solvers.eigenvalue import solve_eigenvalue

    result = solve_eigenvalue(bare_slab_problem(), tolerance=1e-6)
    print(result.keff)
"""

import logging
from dataclasses import dataclass, field
from typing import List, Optional

import numpy as np

from .. import config
from ..assembly.diffusion_system import MultigroupDiffusionBackend
from ..fields.fission_source import FissionSourceEvaluator
from ..fields.integration import RegionIntegrator
from ..postprocessing.field_output import element_fission_density, normalize_to_power
from .linear import LinearSolver, get_linear_solver
from .power_iteration import PowerIteration

log = logging.getLogger(__name__)


@dataclass
class NeutronicsResult:
    """Results from the multigroup diffusion eigenvalue solve.

    Attributes
    ----------
    keff : float
        Effective multiplication factor.
    fluxes : list of GroupFluxField
        Group fluxes; scaled to ``total_power`` when one was given.
    fission_density : ndarray, shape (N_elem,)
        Element-averaged fission rate density.
    power_density : ndarray or None
        Element power density [W/cm^3] when normalized to a power.
    mesh : Mesh
    iterations : int
        Number of power iterations performed.
    converged : bool
    relative_changes : list of float
    k_history : list of float
    problem : str
    total_power : float or None
    """
    keff: float
    fluxes: List
    fission_density: np.ndarray
    power_density: Optional[np.ndarray]
    mesh: 'Mesh'
    iterations: int
    converged: bool
    relative_changes: List[float] = field(default_factory=list)
    k_history: List[float] = field(default_factory=list)
    problem: str = ''
    total_power: Optional[float] = None


def build_engine(problem, solver=config.DEFAULT_LINEAR_SOLVER):
    """Fresh PowerIteration engine (uninitialized) for a Problem."""
    backend = MultigroupDiffusionBackend(problem.mesh, problem.parameters,
                                         problem.boundary_conditions)
    if not isinstance(solver, LinearSolver):
        solver = get_linear_solver(solver)
    return PowerIteration(
        backend,
        solver,
        FissionSourceEvaluator(problem.parameters),
        RegionIntegrator(problem.mesh),
        problem.active_region,
    )


def solve_eigenvalue(problem, tolerance=config.DEFAULT_TOLERANCE,
                     max_iterations=config.DEFAULT_MAX_ITERATIONS,
                     initial_k=config.DEFAULT_INITIAL_K,
                     initial_flux=config.DEFAULT_INITIAL_FLUX,
                     solver=config.DEFAULT_LINEAR_SOLVER,
                     total_power=None, should_stop=None):
    """Solve the k-eigenvalue problem by power iteration.

    Parameters
    ----------
    problem : Problem
    tolerance : float
        Convergence tolerance on |dk/k|. Default 1e-5.
    max_iterations : int or None
        Iteration cap; None iterates until converged.
    initial_k : float
        Seed eigenvalue. Default 1.0.
    initial_flux : float
        Uniform seed flux in every group. Default 1.0.
    solver : str or LinearSolver
        'direct', 'gmres', 'bicgstab' or a solver instance.
    total_power : float or None
        Thermal power [W] to normalize the fluxes to.
    should_stop : callable or None
        Cancellation flag polled between iterations.

    Returns
    -------
    result : NeutronicsResult

    Raises
    ------
    NonConvergenceError, IterationCancelled, SolverFailure,
    DegenerateSourceError
        Propagated from the power iteration.
    """
    mesh = problem.mesh
    engine = build_engine(problem, solver)
    log.info("Solving '%s': %d groups, %d %s elements, %d unknowns",
             problem.name, engine.backend.n_groups, mesh.n_elements,
             mesh.element_type, engine.backend.size)

    engine.initialize(engine.backend.uniform_fluxes(initial_flux), initial_k)
    eig = engine.run(tolerance=tolerance, max_iterations=max_iterations,
                     should_stop=should_stop)

    fluxes = list(eig.fluxes)
    fission_density = element_fission_density(mesh, fluxes, problem.parameters)
    power_density = None
    if total_power is not None:
        fluxes, power_density, scale = normalize_to_power(
            mesh, fluxes, fission_density, total_power)
        fission_density = fission_density * scale

    return NeutronicsResult(
        keff=eig.k,
        fluxes=fluxes,
        fission_density=fission_density,
        power_density=power_density,
        mesh=mesh,
        iterations=eig.iterations,
        converged=eig.converged,
        relative_changes=eig.relative_changes,
        k_history=eig.k_history,
        problem=problem.name,
        total_power=total_power,
    )
