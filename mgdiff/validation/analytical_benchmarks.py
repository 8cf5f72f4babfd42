"""
Analytical Benchmarks for Eigenvalue Validation
================================================

Benchmark problems with closed-form eigenvalues to verify the
correctness and convergence of the power iteration and the finite
element discretization.

Benchmarks:
    1. Bare critical slab (1 group, vacuum faces)
    2. Infinite homogeneous medium (G groups, no leakage)

The slab benchmark runs a mesh convergence study (h-refinement) and
reports eigenvalue errors and the observed convergence rate.

Expected eigenvalue convergence rates:
    - Tri3 (linear):    O(h^2)
    - Tri6 (quadratic): O(h^4)
"""

import logging

import numpy as np
from scipy.optimize import brentq

from .. import config
from ..exceptions import MgdiffError
from ..materials.cross_sections import GroupConstants, ActiveCore, PhysicalParameterTable
from ..mesh.structured import build_rectangle
from ..problems import Problem, bare_slab_problem
from ..solvers.eigenvalue import solve_eigenvalue

log = logging.getLogger(__name__)


def slab_buckling(width, diffusion=1.0, alpha=config.VACUUM_COEFFICIENT,
                  boundary='vacuum'):
    """Fundamental buckling B of a bare slab with Robin faces.

    phi(x) = cos(B x) on [-L/2, L/2]. The vacuum condition
    phi' = -alpha phi at x = L/2 gives

        tan(B L / 2) = alpha / B,        0 < B < pi / L

    and the Marshak condition D phi' = -alpha phi gives

        tan(B L / 2) = alpha / (D B)
    """
    if boundary == 'vacuum':
        coeff = alpha
    elif boundary == 'marshak':
        coeff = alpha / diffusion
    else:
        raise ValueError(f"boundary must be 'vacuum' or 'marshak', got '{boundary}'")
    L = width

    def f(B):
        return np.tan(0.5 * B * L) - coeff / B

    eps = 1e-12 * np.pi / L
    return brentq(f, eps, np.pi / L - eps, xtol=1e-15, rtol=1e-15)


def slab_critical_k(width, diffusion, removal, nu_fission,
                    alpha=config.VACUUM_COEFFICIENT, boundary='vacuum'):
    """One-group bare slab eigenvalue.

        k = nu_Sf / (Sr + D B^2)

    Parameters
    ----------
    width : float
        Slab thickness [cm].
    diffusion, removal, nu_fission : float
    boundary : str
        'vacuum' or 'marshak' faces.

    Returns
    -------
    k : float
    """
    B = slab_buckling(width, diffusion, alpha, boundary)
    return nu_fission / (removal + diffusion * B**2)


def infinite_medium_k(constants):
    """Multigroup eigenvalue of an infinite homogeneous medium.

    Without leakage the group balance is

        Sr_g phi_g - sum_{g' != g} Ss(g'->g) phi_g' = chi_g / k * F

    so with A = diag(Sr) - Ss_offdiag^T:

        k = nu_Sf . A^{-1} chi

    Parameters
    ----------
    constants : GroupConstants

    Returns
    -------
    k : float
    """
    S = np.array(constants.scattering, dtype=np.float64)
    np.fill_diagonal(S, 0.0)
    A = np.diag(constants.removal) - S.T
    return float(constants.nu_fission @ np.linalg.solve(A, constants.chi))


def benchmark_critical_slab(mesh_sizes=None, element_type='tri3', width=30.0,
                            diffusion=1.0, removal=0.02, nu_fission=0.03,
                            tolerance=1e-9, boundary='vacuum'):
    """Benchmark: bare 1-group slab, FE eigenvalue vs the exact one.

    Parameters
    ----------
    mesh_sizes : list of int or None
        Number of elements across the slab. Default [15, 30, 60] for
        Tri3, [4, 8, 16] for Tri6.
    element_type : str
        'tri3' or 'tri6'.
    boundary : str
        'vacuum' or 'marshak' on both faces.

    Returns
    -------
    results : dict
        Keys: 'mesh_sizes', 'keff_numerical', 'keff_analytical', 'errors',
              'iterations', 'convergence_rate'
    """
    if mesh_sizes is None:
        mesh_sizes = [15, 30, 60] if element_type == 'tri3' else [4, 8, 16]

    keff_analytical = slab_critical_k(width, diffusion, removal, nu_fission,
                                      boundary=boundary)
    log.info("Critical slab: L = %g, D = %g, Sr = %g, nuSf = %g -> k = %.8f",
             width, diffusion, removal, nu_fission, keff_analytical)

    keff_numerical = []
    iterations = []
    for n in mesh_sizes:
        problem = bare_slab_problem(width=width, n_intervals=n,
                                    diffusion=diffusion, removal=removal,
                                    nu_fission=nu_fission,
                                    element_type=element_type,
                                    boundary=boundary)
        result = solve_eigenvalue(problem, tolerance=tolerance)
        keff_numerical.append(result.keff)
        iterations.append(result.iterations)

    errors = np.abs(np.array(keff_numerical) - keff_analytical)
    h_sizes = width / np.array(mesh_sizes, dtype=np.float64)
    if len(errors) >= 2 and np.all(errors > 0.0):
        rates = np.log(errors[:-1] / errors[1:]) / np.log(h_sizes[:-1] / h_sizes[1:])
        convergence_rate = float(np.mean(rates))
    else:
        convergence_rate = 0.0

    return {
        'mesh_sizes': list(mesh_sizes),
        'h_sizes': h_sizes.tolist(),
        'element_type': element_type,
        'keff_analytical': keff_analytical,
        'keff_numerical': keff_numerical,
        'errors': errors.tolist(),
        'iterations': iterations,
        'convergence_rate': convergence_rate,
        'benchmark': 'Critical Slab (1 group)',
    }


def benchmark_infinite_medium(constants=None, n_cells=3, tolerance=1e-10):
    """Benchmark: reflecting square of one material, FE vs infinite-medium k.

    Uniform group fluxes lie in the finite element space, so the discrete
    eigenvalue matches the analytical one to iteration accuracy.

    Parameters
    ----------
    constants : GroupConstants or None
        Default: the 4-group core data of config tier 4.
    n_cells : int
        Grid cells per side.
    """
    if constants is None:
        core = config.CORE_4G
        constants = GroupConstants.create(
            diffusion=core['diffusion'],
            removal=config.removal_from_absorption(core['absorption'], core['scattering']),
            scattering=core['scattering'],
            nu=core['nu'], fission=core['fission'], chi=core['chi'],
        )

    pts = np.linspace(0.0, 10.0, n_cells + 1)
    mesh = build_rectangle(pts, pts, region_of=lambda i, j: 1)
    problem = Problem(
        mesh=mesh,
        parameters=PhysicalParameterTable([ActiveCore(1, constants)]),
        boundary_conditions={tag: 'reflecting' for tag in mesh.boundary_edges},
        name='infinite-medium',
    )
    result = solve_eigenvalue(problem, tolerance=tolerance)
    keff_analytical = infinite_medium_k(constants)

    return {
        'n_groups': constants.n_groups,
        'keff_analytical': keff_analytical,
        'keff_numerical': result.keff,
        'error': abs(result.keff - keff_analytical),
        'iterations': result.iterations,
        'benchmark': f'Infinite Medium ({constants.n_groups} groups)',
    }


def run_all_benchmarks():
    """Run all benchmarks and print results table.

    Returns
    -------
    all_results : dict
        Maps benchmark name -> results dict.
    """
    print("=" * 70)
    print("Eigenvalue Validation Benchmarks")
    print("=" * 70)

    all_results = {}

    # --- 1. Critical slab, both element types ---
    for i, element_type in enumerate(('tri3', 'tri6'), start=1):
        print(f"\n{i}. Critical Slab ({element_type}):")
        try:
            res = benchmark_critical_slab(element_type=element_type)
            all_results[f'critical_slab_{element_type}'] = res
            print(f"   keff_analytical = {res['keff_analytical']:.8f}")
            print(f"   Mesh sizes: {res['mesh_sizes']}")
            print(f"   keff:       {[f'{k:.8f}' for k in res['keff_numerical']]}")
            print(f"   Errors:     {[f'{e:.3e}' for e in res['errors']]}")
            print(f"   Convergence rate: {res['convergence_rate']:.2f}")
        except MgdiffError as e:
            print(f"   FAILED: {e}")

    # --- 3. Infinite medium ---
    print("\n3. Infinite Medium (4 groups):")
    try:
        res = benchmark_infinite_medium()
        all_results['infinite_medium'] = res
        print(f"   keff_analytical = {res['keff_analytical']:.8f}")
        print(f"   keff_numerical  = {res['keff_numerical']:.8f}")
        print(f"   |error|         = {res['error']:.3e}")
    except MgdiffError as e:
        print(f"   FAILED: {e}")

    print("\n" + "=" * 70)
    print("Benchmarks complete.")
    return all_results
