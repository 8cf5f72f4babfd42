"""
Central Configuration for the multi-group diffusion eigenvalue solver.

Parameters are grouped in tiers:
  Tier 1: Iteration defaults (power iteration seeds and stopping rule)
  Tier 2: Discretization defaults (refinement, element type)
  Tier 3: Boundary conditions and physical constants
  Tier 4: Nuclear data for the built-in 4-group reactor problem
  Tier 5: Reactor dimensions for the built-in problems

Lengths are in cm and cross-sections in 1/cm throughout the nuclear data.

Usage:
    from mgdiff import config
    tol = config.DEFAULT_TOLERANCE
"""

import numpy as np


# =============================================================================
# TIER 1: ITERATION DEFAULTS
# =============================================================================

DEFAULT_TOLERANCE = 1e-5          # relative eigenvalue change |dk/k|
DEFAULT_INITIAL_K = 1.0           # seed for the eigenvalue estimate
DEFAULT_INITIAL_FLUX = 1.0        # uniform seed flux in every group
DEFAULT_MAX_ITERATIONS = None     # None -> iterate until converged


# =============================================================================
# TIER 2: DISCRETIZATION DEFAULTS
# =============================================================================

INIT_REF_NUM = 2                  # uniform refinements of the coarse mesh
DEFAULT_ELEMENT_TYPE = 'tri3'     # 'tri3' (linear) or 'tri6' (quadratic)
DEFAULT_LINEAR_SOLVER = 'direct'  # 'direct', 'gmres' or 'bicgstab'
ITERATIVE_RTOL = 1e-10            # Krylov relative residual target
ITERATIVE_MAXITER = 2000


# =============================================================================
# TIER 3: BOUNDARY CONDITIONS AND PHYSICAL CONSTANTS
# =============================================================================

# Vacuum condition: dphi/dn = -VACUUM_COEFFICIENT * phi
# (the Marshak variant uses D * dphi/dn = -VACUUM_COEFFICIENT * phi)
VACUUM_COEFFICIENT = 0.5

ENERGY_PER_FISSION = 200.0e6 * 1.602176634e-19   # J (~200 MeV)


# =============================================================================
# TIER 4: NUCLEAR DATA (4 GROUPS, FAST -> THERMAL)
# =============================================================================

# Homogenized fuel region.
CORE_4G = {
    'diffusion': [2.10, 1.25, 0.95, 0.40],
    'absorption': [0.0010, 0.0030, 0.0150, 0.0900],
    'scattering': [
        [0.0, 0.060, 0.0, 0.0],
        [0.0, 0.0, 0.040, 0.0],
        [0.0, 0.0, 0.0, 0.035],
        [0.0, 0.0, 0.0, 0.0],
    ],
    'nu': [2.49, 2.43, 2.42, 2.42],
    'fission': [0.00060, 0.00082, 0.0074, 0.0413],
    'chi': [0.9675, 0.0325, 0.0, 0.0],
}

# Graphite reflector.
REFLECTOR_4G = {
    'diffusion': [1.50, 1.00, 0.90, 0.85],
    'absorption': [0.0002, 0.0003, 0.0005, 0.0003],
    'scattering': [
        [0.0, 0.050, 0.0, 0.0],
        [0.0, 0.0, 0.045, 0.0],
        [0.0, 0.0, 0.0, 0.040],
        [0.0, 0.0, 0.0, 0.0],
    ],
}


def removal_from_absorption(absorption, scattering):
    """Removal cross-section = absorption + out-scattering to other groups.

    Parameters
    ----------
    absorption : array_like, shape (G,)
    scattering : array_like, shape (G, G)
        Scattering matrix indexed [g_from, g_to].

    Returns
    -------
    removal : ndarray, shape (G,)
    """
    absorption = np.asarray(absorption, dtype=np.float64)
    scattering = np.asarray(scattering, dtype=np.float64)
    out_scatter = scattering.sum(axis=1) - np.diag(scattering)
    return absorption + out_scatter


# =============================================================================
# TIER 5: REACTOR DIMENSIONS (cm)
# =============================================================================

CORE_RADIUS = 80.0
CORE_HALF_HEIGHT = 90.0
REFLECTOR_THICKNESS = 30.0

# Coarse structured divisions before uniform refinement.
NR_CORE = 4
NZ_CORE = 4
NR_REFLECTOR = 2
NZ_REFLECTOR = 2
