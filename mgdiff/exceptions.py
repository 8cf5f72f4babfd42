"""
Error taxonomy for the power iteration.

All errors are raised synchronously by the call that detects them. The
engine never commits partial state before raising, so fluxes and the
eigenvalue from the last successful iteration remain inspectable.
"""


class MgdiffError(Exception):
    """Base class for all solver errors."""


class SolverFailure(MgdiffError):
    """The linear solve did not produce a usable solution.

    Raised for singular systems, non-converged Krylov iterations and
    non-finite solution vectors. Fatal for the current run.
    """


class DegenerateSourceError(MgdiffError):
    """The fission source integral vanished, so k cannot be updated.

    Usually means there is no fissile material in the active region or the
    flux guess is identically zero there.
    """


class NonConvergenceError(MgdiffError):
    """Iteration budget exhausted before the tolerance was met.

    Attributes
    ----------
    iterations : int
        Iterations performed so far.
    k : float
        Last eigenvalue estimate.
    relative_change : float
        Last relative eigenvalue change.
    """

    def __init__(self, iterations, k, relative_change):
        self.iterations = iterations
        self.k = k
        self.relative_change = relative_change
        super().__init__(
            f"No convergence after {iterations} iterations "
            f"(k = {k:.8g}, rel. change = {relative_change:.3e})"
        )


class IterationCancelled(MgdiffError):
    """The caller's stop flag was raised between two iterations."""


class EngineStateError(MgdiffError):
    """Operation not allowed in the engine's current state."""
