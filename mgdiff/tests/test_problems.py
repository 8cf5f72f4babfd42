"""Tests for the built-in problem definitions."""

import unittest

import numpy as np

from mgdiff.problems import (
    FUEL_REGION,
    REFLECTOR_REGION,
    PROBLEMS,
    get_problem,
    reactor_4g_table,
)


class TestProblems(unittest.TestCase):
    def test_registry(self):
        self.assertEqual(sorted(PROBLEMS), ['bare-slab', 'reactor-4g', 'reflected-slab'])
        with self.assertRaises(ValueError):
            get_problem('pwr-3d')

    def test_bareSlab(self):
        problem = get_problem('bare-slab', n_intervals=10)
        self.assertEqual(problem.parameters.n_groups, 1)
        self.assertEqual(problem.active_region, [FUEL_REGION])
        self.assertEqual(problem.boundary_conditions['left'], 'vacuum')
        self.assertEqual(problem.mesh.n_elements, 20)

    def test_elementTypeAndRefinement(self):
        problem = get_problem('bare-slab', n_intervals=10, refinements=1,
                              element_type='tri6')
        self.assertEqual(problem.mesh.element_type, 'tri6')
        self.assertEqual(problem.mesh.n_elements, 80)
        with self.assertRaises(ValueError):
            get_problem('bare-slab', element_type='quad4')

    def test_reactor4g(self):
        problem = get_problem('reactor-4g', refinements=1)
        mesh = problem.mesh
        self.assertTrue(mesh.axisymmetric)
        self.assertEqual(problem.parameters.n_groups, 4)
        self.assertEqual(problem.active_region, [FUEL_REGION])
        np.testing.assert_array_equal(np.unique(mesh.region_ids),
                                      [REFLECTOR_REGION, FUEL_REGION])
        self.assertEqual(problem.boundary_conditions['left'], 'reflecting')
        self.assertEqual(problem.boundary_conditions['top'], 'vacuum')
        self.assertEqual(mesh.n_elements, 4 * 2 * 6 * 6)

    def test_reactorTableRemoval(self):
        table = reactor_4g_table()
        # removal = absorption + out-scattering
        self.assertAlmostEqual(table.removal(0, FUEL_REGION), 0.0010 + 0.060)
        self.assertAlmostEqual(table.removal(3, REFLECTOR_REGION), 0.0003)
        self.assertEqual(table.nu_fission(0, REFLECTOR_REGION), 0.0)

    def test_withParameters(self):
        problem = get_problem('reflected-slab', n_core=4, n_reflector=2)
        table = reactor_4g_table()
        other = problem.with_parameters(table)
        self.assertIs(other.mesh, problem.mesh)
        self.assertIs(other.parameters, table)
        self.assertEqual(other.active_region, [FUEL_REGION])


if __name__ == '__main__':
    unittest.main()
