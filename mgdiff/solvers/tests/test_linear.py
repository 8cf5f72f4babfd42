"""Tests for the direct and Krylov linear solvers."""

import unittest

import numpy as np
from scipy.sparse import csc_matrix, diags

from mgdiff.exceptions import SolverFailure
from mgdiff.solvers.linear import DirectSolver, IterativeSolver, get_linear_solver


def _laplacian(n, shift=0.0):
    return diags([-np.ones(n - 1), (2.0 + shift) * np.ones(n), -np.ones(n - 1)],
                 [-1, 0, 1], format='csc')


class TestDirectSolver(unittest.TestCase):
    def test_solve(self):
        A = _laplacian(20, shift=0.1)
        x_exact = np.linspace(1.0, 2.0, 20)
        x = DirectSolver().solve(A, A @ x_exact)
        np.testing.assert_allclose(x, x_exact, rtol=1e-12)

    def test_factorizationCachedPerMatrix(self):
        solver = DirectSolver()
        A = _laplacian(10, shift=0.1)
        lu = solver.factorize(A)
        self.assertIs(solver.factorize(A), lu)
        # an equal but distinct matrix object is factorized again
        self.assertIsNot(solver.factorize(A.copy()), lu)

    def test_singularMatrix(self):
        A = csc_matrix(np.array([[1.0, 1.0], [1.0, 1.0]]))
        with self.assertRaises(SolverFailure):
            DirectSolver().solve(A, np.ones(2))


class TestIterativeSolver(unittest.TestCase):
    def test_gmresAndBicgstab(self):
        A = _laplacian(50, shift=0.05)
        b = np.ones(50)
        expected = DirectSolver().solve(A, b)
        for method in ('gmres', 'bicgstab'):
            for ilu in (True, False):
                solver = IterativeSolver(method, rtol=1e-12, ilu=ilu)
                np.testing.assert_allclose(solver.solve(A, b), expected, rtol=1e-8)

    def test_warmStartReusesPreviousSolution(self):
        A = _laplacian(30, shift=0.1)
        solver = IterativeSolver('gmres', rtol=1e-12)
        x = solver.solve(A, np.ones(30))
        np.testing.assert_allclose(solver.solve(A, np.ones(30)), x, rtol=1e-8)

    def test_notConverged(self):
        solver = IterativeSolver('gmres', rtol=1e-14, maxiter=1, restart=1, ilu=False)
        with self.assertRaises(SolverFailure):
            solver.solve(_laplacian(50), np.ones(50))

    def test_invalidOptions(self):
        with self.assertRaises(ValueError):
            IterativeSolver('cg')
        with self.assertRaises(ValueError):
            IterativeSolver('gmres', rtol=0.0)


class TestFactory(unittest.TestCase):
    def test_getLinearSolver(self):
        self.assertIsInstance(get_linear_solver(), DirectSolver)
        solver = get_linear_solver('bicgstab', rtol=1e-8)
        self.assertIsInstance(solver, IterativeSolver)
        self.assertEqual(solver.name, 'bicgstab')
        self.assertEqual(solver.rtol, 1e-8)

    def test_errors(self):
        with self.assertRaises(ValueError):
            get_linear_solver('umfpack')
        with self.assertRaises(ValueError):
            get_linear_solver('direct', rtol=1e-8)


if __name__ == '__main__':
    unittest.main()
