"""
Power iteration for the multigroup k-eigenvalue problem.

Each iteration n:
    1. Assemble A x = b with b built from the fluxes of iteration n-1
       (matrix assembled on the first iteration only, rhs every time)
    2. Solve for the new group fluxes
    3. Integrate the fission source of the new and previous fluxes over
       the active region:
           F_new = integral(S[phi_n]),  F_prev = integral(S[phi_{n-1}])
    4. k_n = k_{n-1} * F_new / F_prev
    5. relative change = |k_n - k_{n-1}| / |k_n|
    6. Commit the new fluxes and k

Nothing is committed before step 6, so after a failure the last good
fluxes and eigenvalue stay available through the accessors.

Engine states:

    UNINITIALIZED --initialize--> READY --step--> ITERATING
    ITERATING --converged--> CONVERGED
    READY/ITERATING --solver failure / degenerate source--> FAILED

CONVERGED and FAILED are terminal. Running out of the iteration budget or
cancelling through ``should_stop`` leaves the engine ITERATING, so ``run``
can be called again to continue.

Usage:
    engine = PowerIteration(backend, DirectSolver(),
                            FissionSourceEvaluator(table),
                            RegionIntegrator(mesh), table.active_region_ids)
    engine.initialize(backend.uniform_fluxes(1.0))
    result = engine.run(tolerance=1e-6)
"""

import enum
import logging
import math
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .. import config
from ..exceptions import (
    SolverFailure,
    DegenerateSourceError,
    NonConvergenceError,
    IterationCancelled,
    EngineStateError,
)

log = logging.getLogger(__name__)


class EngineState(enum.Enum):
    UNINITIALIZED = 'uninitialized'
    READY = 'ready'
    ITERATING = 'iterating'
    CONVERGED = 'converged'
    FAILED = 'failed'


@dataclass(frozen=True)
class ConvergenceState:
    """Snapshot of the iteration progress.

    ``previous_k`` and ``relative_change`` are None before the first step.
    """
    iteration: int
    k: float
    previous_k: Optional[float]
    relative_change: Optional[float]


@dataclass(frozen=True)
class IterationResult:
    """Outcome of a single power iteration."""
    iteration: int
    fluxes: Tuple
    k: float
    relative_change: float


@dataclass
class EigenvalueResult:
    """Outcome of a power iteration run.

    Attributes
    ----------
    k : float
        Final eigenvalue estimate.
    fluxes : tuple of GroupFluxField
        Final group fluxes (unnormalized).
    iterations : int
        Total iterations performed by the engine.
    converged : bool
    relative_changes : list of float
        Relative eigenvalue change of every iteration.
    k_history : list of float
        Seed k followed by the estimate of every iteration.
    """
    k: float
    fluxes: Tuple
    iterations: int
    converged: bool
    relative_changes: List[float]
    k_history: List[float]


class PowerIteration:
    """Power iteration engine with a lagged fission source.

    Parameters
    ----------
    backend : object
        Provides ``n_groups``, ``assemble(previous_fluxes, k,
        full_reassembly)`` returning an object with ``matrix`` and ``rhs``,
        and ``split(solution)``.
    linear_solver : LinearSolver
        ``solve(matrix, rhs) -> ndarray``; raises SolverFailure.
    source_evaluator : callable
        fluxes -> fission source field.
    integrator : RegionIntegrator
    active_region : int or iterable of int
        Region id(s) over which the fission source is integrated.
    """

    def __init__(self, backend, linear_solver, source_evaluator, integrator,
                 active_region):
        self.backend = backend
        self.linear_solver = linear_solver
        self.source_evaluator = source_evaluator
        self.integrator = integrator
        self.active_region = active_region

        self._state = EngineState.UNINITIALIZED
        self._fluxes = None
        self._k = None
        self._previous_k = None
        self._iteration = 0
        self._source_integral = None
        self._relative_changes = []
        self._k_history = []

    # -----------------------------------------------------------------
    #  Accessors
    # -----------------------------------------------------------------

    @property
    def state(self):
        return self._state

    @property
    def k(self):
        return self._k

    @property
    def fluxes(self):
        return self._fluxes

    @property
    def iteration(self):
        return self._iteration

    @property
    def relative_changes(self):
        return list(self._relative_changes)

    @property
    def k_history(self):
        return list(self._k_history)

    @property
    def convergence(self):
        last = self._relative_changes[-1] if self._relative_changes else None
        return ConvergenceState(self._iteration, self._k, self._previous_k, last)

    # -----------------------------------------------------------------
    #  Iteration
    # -----------------------------------------------------------------

    def initialize(self, initial_fluxes=None, initial_k=config.DEFAULT_INITIAL_K):
        """Store the seed fluxes and eigenvalue.

        Parameters
        ----------
        initial_fluxes : sequence of GroupFluxField or None
            One field per group; None seeds every group with
            ``config.DEFAULT_INITIAL_FLUX``.
        initial_k : float
            Seed eigenvalue, must be > 0.

        Raises
        ------
        EngineStateError
            If the engine was already initialized.
        ValueError
            If initial_k is not a positive finite number or the number of
            fields differs from the group count.
        """
        if self._state is not EngineState.UNINITIALIZED:
            raise EngineStateError(
                f"initialize() requires an uninitialized engine, state is {self._state.value}"
            )
        initial_k = float(initial_k)
        if not math.isfinite(initial_k) or initial_k <= 0.0:
            raise ValueError(f"initial_k must be a positive finite number, got {initial_k}")

        if initial_fluxes is None:
            initial_fluxes = self.backend.uniform_fluxes(config.DEFAULT_INITIAL_FLUX)
        initial_fluxes = tuple(initial_fluxes)
        if len(initial_fluxes) != self.backend.n_groups:
            raise ValueError(
                f"Expected {self.backend.n_groups} initial group fluxes, "
                f"got {len(initial_fluxes)}"
            )

        self._fluxes = initial_fluxes
        self._k = initial_k
        self._k_history = [initial_k]
        self._state = EngineState.READY
        log.debug("Power iteration initialized: %d groups, k0 = %g",
                  len(initial_fluxes), initial_k)

    def step(self):
        """Perform one power iteration.

        Returns
        -------
        result : IterationResult

        Raises
        ------
        EngineStateError
            If the engine is uninitialized, converged or failed.
        SolverFailure
            If the linear solve fails (engine -> FAILED).
        DegenerateSourceError
            If the previous or new fission source integral is zero
            (engine -> FAILED).
        """
        if self._state not in (EngineState.READY, EngineState.ITERATING):
            raise EngineStateError(f"step() not allowed in state {self._state.value}")
        self._state = EngineState.ITERATING

        system = self.backend.assemble(self._fluxes, self._k,
                                       full_reassembly=self._iteration == 0)
        try:
            solution = self.linear_solver.solve(system.matrix, system.rhs)
        except SolverFailure:
            self._state = EngineState.FAILED
            log.error("Linear solve failed in iteration %d", self._iteration + 1)
            raise
        new_fluxes = tuple(self.backend.split(solution))

        if self._source_integral is None:
            self._source_integral = self._fission_integral(self._fluxes)
        previous_integral = self._source_integral
        if previous_integral == 0.0:
            self._state = EngineState.FAILED
            raise DegenerateSourceError(
                "Fission source of the previous fluxes integrates to zero over "
                f"region(s) {self.active_region}"
            )
        new_integral = self._fission_integral(new_fluxes)
        if new_integral == 0.0:
            self._state = EngineState.FAILED
            raise DegenerateSourceError(
                "Fission source of the new fluxes integrates to zero over "
                f"region(s) {self.active_region}"
            )

        k_new = self._k * new_integral / previous_integral
        relative_change = abs(k_new - self._k) / abs(k_new)

        self._previous_k = self._k
        self._k = k_new
        self._fluxes = new_fluxes
        self._source_integral = new_integral
        self._iteration += 1
        self._relative_changes.append(relative_change)
        self._k_history.append(k_new)

        log.info("Power iteration %d: k = %.8f, rel. change = %.3e",
                 self._iteration, k_new, relative_change)
        return IterationResult(self._iteration, new_fluxes, k_new, relative_change)

    def run(self, tolerance=config.DEFAULT_TOLERANCE,
            max_iterations=config.DEFAULT_MAX_ITERATIONS, should_stop=None):
        """Iterate until the relative eigenvalue change drops below tolerance.

        Parameters
        ----------
        tolerance : float
            Convergence threshold on |k_n - k_{n-1}| / |k_n|.
        max_iterations : int or None
            Iteration budget of this call; None iterates without limit.
        should_stop : callable or None
            Polled between iterations; a true return cancels the run.

        Returns
        -------
        result : EigenvalueResult

        Raises
        ------
        NonConvergenceError
            If max_iterations steps were taken without converging.
        IterationCancelled
            If should_stop() returned true.
        """
        if tolerance <= 0.0:
            raise ValueError(f"tolerance must be > 0, got {tolerance}")
        if max_iterations is not None and max_iterations < 1:
            raise ValueError(f"max_iterations must be >= 1, got {max_iterations}")

        taken = 0
        while True:
            result = self.step()
            taken += 1
            if result.relative_change < tolerance:
                self._state = EngineState.CONVERGED
                log.info("Converged after %d iterations: k = %.8f",
                         self._iteration, self._k)
                return self.result()
            if max_iterations is not None and taken >= max_iterations:
                log.warning("Iteration budget of %d exhausted (rel. change %.3e)",
                            max_iterations, result.relative_change)
                raise NonConvergenceError(self._iteration, self._k,
                                          result.relative_change)
            if should_stop is not None and should_stop():
                log.info("Power iteration cancelled after %d iterations", self._iteration)
                raise IterationCancelled(
                    f"Cancelled after {self._iteration} iterations (k = {self._k:.8g})"
                )

    def result(self):
        """Current EigenvalueResult snapshot."""
        if self._state is EngineState.UNINITIALIZED:
            raise EngineStateError("Engine has not been initialized")
        return EigenvalueResult(
            k=self._k,
            fluxes=self._fluxes,
            iterations=self._iteration,
            converged=self._state is EngineState.CONVERGED,
            relative_changes=list(self._relative_changes),
            k_history=list(self._k_history),
        )

    def _fission_integral(self, fluxes):
        return self.integrator.integrate(self.source_evaluator(fluxes),
                                         self.active_region)
