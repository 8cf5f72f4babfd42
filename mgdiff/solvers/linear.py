"""
Linear solvers for the assembled group-coupled system A x = b.

Two backends:

1. DirectSolver
   - Sparse LU via scipy.sparse.linalg.splu
   - The factorization is cached per matrix object, so the rhs-only passes
     of the power iteration cost one forward/back substitution each

2. IterativeSolver
   - GMRES or BiCGSTAB from scipy.sparse.linalg
   - Optional incomplete-LU preconditioner (spilu), cached like the LU
   - The previous solution is used as the initial guess

Any failure to produce a finite solution raises SolverFailure.
"""

import logging

import numpy as np
import scipy.sparse.linalg as spla

from .. import config
from ..exceptions import SolverFailure

log = logging.getLogger(__name__)


class LinearSolver:
    """Solves A x = b for one assembled system."""

    name = None

    def solve(self, matrix, rhs):
        """Return x with A x = b.

        Raises
        ------
        SolverFailure
            If the system is singular, the iteration does not converge or
            the solution contains non-finite values.
        """
        raise NotImplementedError

    @staticmethod
    def _check_finite(x):
        if not np.all(np.isfinite(x)):
            raise SolverFailure("Linear solve produced non-finite values")
        return x


class DirectSolver(LinearSolver):
    """Sparse LU with the factorization cached per matrix object."""

    name = 'direct'

    def __init__(self):
        self._matrix = None
        self._lu = None

    def factorize(self, matrix):
        if matrix is self._matrix and self._lu is not None:
            return self._lu
        try:
            lu = spla.splu(matrix.tocsc())
        except RuntimeError as exc:
            raise SolverFailure(f"LU factorization failed: {exc}") from exc
        log.debug("Factorized %d x %d matrix (nnz L+U = %d)",
                  matrix.shape[0], matrix.shape[1], lu.L.nnz + lu.U.nnz)
        self._matrix = matrix
        self._lu = lu
        return lu

    def solve(self, matrix, rhs):
        lu = self.factorize(matrix)
        return self._check_finite(lu.solve(np.asarray(rhs, dtype=np.float64)))


class IterativeSolver(LinearSolver):
    """Preconditioned Krylov solver.

    Parameters
    ----------
    method : str
        'gmres' or 'bicgstab'.
    rtol : float
        Relative residual tolerance.
    maxiter : int
        Maximum Krylov iterations (GMRES: restart cycles).
    ilu : bool
        Precondition with an incomplete LU factorization.
    restart : int or None
        GMRES restart length; ignored by BiCGSTAB.
    """

    _METHODS = {'gmres': spla.gmres, 'bicgstab': spla.bicgstab}

    def __init__(self, method='gmres', rtol=config.ITERATIVE_RTOL,
                 maxiter=config.ITERATIVE_MAXITER, ilu=True, restart=None):
        if method not in self._METHODS:
            raise ValueError(
                f"Unknown Krylov method '{method}'. Available: {sorted(self._METHODS)}"
            )
        if rtol <= 0.0:
            raise ValueError(f"rtol must be > 0, got {rtol}")
        self.name = method
        self.rtol = rtol
        self.maxiter = maxiter
        self.ilu = ilu
        self.restart = restart
        self._matrix = None
        self._preconditioner = None
        self._x0 = None

    def _build_preconditioner(self, matrix):
        if matrix is self._matrix:
            return self._preconditioner
        M = None
        if self.ilu:
            try:
                ilu = spla.spilu(matrix.tocsc())
            except RuntimeError as exc:
                raise SolverFailure(f"ILU preconditioner failed: {exc}") from exc
            M = spla.LinearOperator(matrix.shape, ilu.solve)
        self._matrix = matrix
        self._preconditioner = M
        return M

    def solve(self, matrix, rhs):
        rhs = np.asarray(rhs, dtype=np.float64)
        M = self._build_preconditioner(matrix)
        x0 = self._x0 if self._x0 is not None and self._x0.shape == rhs.shape else None

        kwargs = dict(rtol=self.rtol, maxiter=self.maxiter, M=M, x0=x0)
        if self.name == 'gmres' and self.restart is not None:
            kwargs['restart'] = self.restart
        x, info = self._METHODS[self.name](matrix, rhs, **kwargs)

        if info > 0:
            raise SolverFailure(
                f"{self.name} did not reach rtol={self.rtol:.1e} "
                f"within {info} iterations"
            )
        if info < 0:
            raise SolverFailure(f"{self.name} breakdown (info = {info})")

        x = self._check_finite(x)
        self._x0 = x
        return x


def get_linear_solver(name=config.DEFAULT_LINEAR_SOLVER, **options):
    """Linear solver factory.

    Parameters
    ----------
    name : str
        'direct', 'gmres' or 'bicgstab'.
    **options
        Passed to IterativeSolver.
    """
    if name == DirectSolver.name:
        if options:
            raise ValueError(f"DirectSolver takes no options, got {sorted(options)}")
        return DirectSolver()
    if name in IterativeSolver._METHODS:
        return IterativeSolver(method=name, **options)
    raise ValueError(
        f"Unknown linear solver '{name}'. "
        f"Available: {[DirectSolver.name] + sorted(IterativeSolver._METHODS)}"
    )
