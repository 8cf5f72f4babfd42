"""
mgdiff - Multi-group Neutron Diffusion Eigenvalue Solver

Power iteration with a lagged fission source for the k-eigenvalue problem
of G-group neutron diffusion, discretized with triangular finite elements.

Element library:
    - Tri3: 3-node linear triangle
    - Tri6: 6-node quadratic triangle

Coordinate systems:
    - Cartesian (x, y)
    - Axisymmetric (r, z) with 2*pi*r integration

Boundary conditions:
    - Reflecting (zero net current)
    - Vacuum (dphi/dn = -0.5 phi) and Marshak (D dphi/dn = -0.5 phi)
"""

__version__ = "0.1.0"

from .exceptions import (
    MgdiffError,
    SolverFailure,
    DegenerateSourceError,
    NonConvergenceError,
    IterationCancelled,
    EngineStateError,
)
from .mesh.nodes import Mesh, tri3_to_tri6
from .mesh.refinement import refine_uniform, refine_all_elements
from .mesh.structured import build_rectangle, build_slab, build_rz_reactor
from .materials.cross_sections import (
    GroupConstants,
    Reflector,
    ActiveCore,
    PhysicalParameterTable,
)
from .fields.flux import GroupFluxField
from .fields.fission_source import FissionSource, FissionSourceEvaluator
from .fields.integration import RegionIntegrator
from .assembly.boundary_conditions import Reflecting, Vacuum, Marshak
from .assembly.diffusion_system import LinearSystem, MultigroupDiffusionBackend
from .solvers.linear import DirectSolver, IterativeSolver, get_linear_solver
from .solvers.power_iteration import (
    EngineState,
    ConvergenceState,
    IterationResult,
    EigenvalueResult,
    PowerIteration,
)
from .solvers.eigenvalue import NeutronicsResult, solve_eigenvalue
from .problems import Problem, get_problem
