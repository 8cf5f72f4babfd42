"""
Top-Level Eigenvalue Driver
============================

Executes one k-eigenvalue calculation:
    1. Build the selected problem (mesh, group constants, boundaries)
    2. Run the power iteration
    3. Print summary results
    4. Save results to output directory (results.json + fluxes.npz)

Usage:
    # From project root:
    python -m mgdiff.run_eigen --problem reactor-4g --refine 2

    # Or programmatically:
    from mgdiff.run_eigen import run_eigen_analysis
    results = run_eigen_analysis(problem='bare-slab', output_dir='results/eigen')
"""

import argparse
import json
import logging
import sys
import time

import numpy as np

from . import config
from .exceptions import MgdiffError
from .materials.cross_sections import PhysicalParameterTable
from .postprocessing.field_output import save_results
from .problems import PROBLEMS, get_problem
from .solvers.eigenvalue import solve_eigenvalue

log = logging.getLogger(__name__)


def run_eigen_analysis(problem='reactor-4g', refinements=None,
                       element_type=config.DEFAULT_ELEMENT_TYPE,
                       tolerance=config.DEFAULT_TOLERANCE,
                       max_iterations=config.DEFAULT_MAX_ITERATIONS,
                       solver=config.DEFAULT_LINEAR_SOLVER,
                       initial_k=config.DEFAULT_INITIAL_K,
                       initial_flux=config.DEFAULT_INITIAL_FLUX,
                       xs_file=None, total_power=None,
                       output_dir='results/eigen'):
    """Run one eigenvalue calculation and write its results.

    Parameters
    ----------
    problem : str
        Registered problem name ('bare-slab', 'reflected-slab', 'reactor-4g').
    refinements : int or None
        Uniform mesh refinements; None keeps the problem's default.
    element_type : str
        'tri3' or 'tri6'.
    xs_file : str or None
        JSON parameter table replacing the problem's group constants.
    total_power : float or None
        Thermal power [W] to normalize the fluxes to.
    output_dir : str

    Returns
    -------
    result : NeutronicsResult
    """
    options = {'element_type': element_type}
    if refinements is not None:
        options['refinements'] = refinements
    prob = get_problem(problem, **options)

    if xs_file is not None:
        with open(xs_file) as f:
            prob = prob.with_parameters(PhysicalParameterTable.from_dict(json.load(f)))
        log.info("Group constants loaded from %s", xs_file)

    mesh = prob.mesh
    print("=" * 70)
    print(f"Multi-group Diffusion Eigenvalue Analysis ({prob.name})")
    print("=" * 70)
    print(f"Groups:    {prob.parameters.n_groups}")
    print(f"Mesh:      {mesh.n_nodes} nodes, {mesh.n_elements} {mesh.element_type} "
          f"elements ({mesh.coord_system})")
    print(f"Solver:    {solver}, tolerance {tolerance:.1e}")
    print(f"Output:    {output_dir}/")
    print()

    t_start = time.time()
    result = solve_eigenvalue(
        prob,
        tolerance=tolerance,
        max_iterations=max_iterations,
        initial_k=initial_k,
        initial_flux=initial_flux,
        solver=solver,
        total_power=total_power,
    )
    t_solve = time.time() - t_start

    print("\n" + "=" * 70)
    print("RESULTS SUMMARY")
    print("=" * 70)
    print(f"  keff:             {result.keff:.6f}")
    print(f"  Converged:        {result.converged}")
    print(f"  Iterations:       {result.iterations}")
    print(f"  Final |dk/k|:     {result.relative_changes[-1]:.3e}")
    for phi in result.fluxes:
        print(f"  Peak flux g{phi.group + 1}:     {phi.max():.4e}")
    if result.power_density is not None:
        print(f"  Peak power den.:  {np.max(result.power_density):.3e} W/cm3")
    print(f"  Solve time:       {t_solve:.2f} s")

    paths = save_results(result, output_dir)
    print(f"\nResults saved to {paths['json']} and {paths['npz']}")
    print("=" * 70)
    return result


def main(argv=None):
    """CLI entry point."""
    parser = argparse.ArgumentParser(
        description='Multi-group neutron diffusion k-eigenvalue solver',
        formatter_class=argparse.RawTextHelpFormatter,
    )
    parser.add_argument(
        '--problem', type=str, default='reactor-4g', choices=sorted(PROBLEMS),
        help='Problem to solve:\n'
             '  bare-slab      = 1-group homogeneous slab\n'
             '  reflected-slab = 2-group reflected slab\n'
             '  reactor-4g     = 4-group reflected r-z core (default)'
    )
    parser.add_argument(
        '--refine', type=int, default=None,
        help=f'Uniform mesh refinements (reactor-4g default: {config.INIT_REF_NUM})'
    )
    parser.add_argument(
        '--element', type=str, default=config.DEFAULT_ELEMENT_TYPE,
        choices=['tri3', 'tri6'],
        help='Element type (default: tri3)'
    )
    parser.add_argument(
        '--tol', type=float, default=config.DEFAULT_TOLERANCE,
        help='Tolerance on the relative eigenvalue change (default: 1e-5)'
    )
    parser.add_argument(
        '--max-iter', type=int, default=None,
        help='Iteration cap (default: iterate until converged)'
    )
    parser.add_argument(
        '--solver', type=str, default=config.DEFAULT_LINEAR_SOLVER,
        choices=['direct', 'gmres', 'bicgstab'],
        help='Linear solver (default: direct)'
    )
    parser.add_argument(
        '--k0', type=float, default=config.DEFAULT_INITIAL_K,
        help='Initial eigenvalue estimate (default: 1.0)'
    )
    parser.add_argument(
        '--flux0', type=float, default=config.DEFAULT_INITIAL_FLUX,
        help='Uniform initial flux in every group (default: 1.0)'
    )
    parser.add_argument(
        '--xs', type=str, default=None, metavar='FILE.json',
        help='JSON parameter table overriding the built-in group constants'
    )
    parser.add_argument(
        '--power', type=float, default=None,
        help='Normalize fluxes to this thermal power in watts'
    )
    parser.add_argument(
        '--output', type=str, default='results/eigen',
        help='Output directory (default: results/eigen)'
    )
    parser.add_argument(
        '--benchmarks', action='store_true',
        help='Run analytical benchmarks instead of a problem'
    )
    parser.add_argument(
        '-v', '--verbose', action='store_true',
        help='Debug logging'
    )

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format='%(levelname)s %(name)s: %(message)s',
    )

    if args.benchmarks:
        from .validation.analytical_benchmarks import run_all_benchmarks
        run_all_benchmarks()
        return 0

    try:
        run_eigen_analysis(
            problem=args.problem,
            refinements=args.refine,
            element_type=args.element,
            tolerance=args.tol,
            max_iterations=args.max_iter,
            solver=args.solver,
            initial_k=args.k0,
            initial_flux=args.flux0,
            xs_file=args.xs,
            total_power=args.power,
            output_dir=args.output,
        )
    except (MgdiffError, KeyError, ValueError, OSError) as e:
        print(f"\nERROR: {e}", file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
