"""Tests for fission density, power normalization and result output."""

import json
import os
import tempfile
import unittest

import numpy as np

from mgdiff.fields.flux import GroupFluxField
from mgdiff.materials.cross_sections import (
    GroupConstants,
    ActiveCore,
    Reflector,
    PhysicalParameterTable,
)
from mgdiff.mesh.nodes import tri3_to_tri6
from mgdiff.mesh.structured import build_rectangle
from mgdiff.postprocessing.field_output import (
    element_volumes,
    element_fission_density,
    normalize_to_power,
    nodal_average,
    extract_line,
    save_results,
)
from mgdiff.problems import bare_slab_problem
from mgdiff.solvers.eigenvalue import solve_eigenvalue


def _table():
    fuel = GroupConstants.create(diffusion=[1.0, 0.5], removal=[0.03, 0.1],
                                 nu=[2.5, 2.5], fission=[0.002, 0.04], chi=[1.0, 0.0])
    refl = GroupConstants.create(diffusion=[1.0, 0.5], removal=[0.01, 0.02])
    return PhysicalParameterTable([ActiveCore(1, fuel), Reflector(2, refl)])


class TestFissionDensity(unittest.TestCase):
    def setUp(self):
        self.mesh = build_rectangle([0.0, 1.0, 2.0], [0.0, 1.0],
                                    region_of=lambda i, j: i + 1)
        self.table = _table()

    def test_volumes(self):
        np.testing.assert_allclose(element_volumes(self.mesh), 0.5)
        rz = build_rectangle([0.0, 1.0, 2.0], [0.0, 1.0], coord_system='axisymmetric')
        self.assertAlmostEqual(element_volumes(rz).sum(), np.pi * 4.0)

    def test_constantFluxes(self):
        fluxes = [GroupFluxField.constant(self.mesh, 2.0, 0),
                  GroupFluxField.constant(self.mesh, 3.0, 1)]
        density = element_fission_density(self.mesh, fluxes, self.table)
        np.testing.assert_allclose(density[:2], 0.002 * 2.0 + 0.04 * 3.0)
        np.testing.assert_array_equal(density[2:], 0.0)

    def test_linearFluxAverage(self):
        mesh6 = tri3_to_tri6(self.mesh)
        phi = GroupFluxField(mesh6, mesh6.nodes[:, 0], 1)
        zero = GroupFluxField.constant(mesh6, 0.0, 0)
        density = element_fission_density(mesh6, [zero, phi], self.table)
        # element average of x is the centroid x
        for e in (0, 1):
            self.assertAlmostEqual(density[e],
                                   0.04 * mesh6.element_coords(e)[:3, 0].mean())

    def test_normalizeToPower(self):
        fluxes = [GroupFluxField.constant(self.mesh, 1.0, 0),
                  GroupFluxField.constant(self.mesh, 1.0, 1)]
        density = element_fission_density(self.mesh, fluxes, self.table)
        scaled, power_density, scale = normalize_to_power(
            self.mesh, fluxes, density, 100.0, energy_per_fission=2.0)
        self.assertAlmostEqual(np.sum(power_density * element_volumes(self.mesh)), 100.0)
        self.assertAlmostEqual(scale, 100.0 / (2.0 * 0.042 * 1.0))
        self.assertAlmostEqual(scaled[1].max(), scale)
        self.assertEqual(scaled[1].group, 1)

    def test_normalizeErrors(self):
        fluxes = [GroupFluxField.constant(self.mesh, 1.0, 0)] * 2
        with self.assertRaises(ValueError):
            normalize_to_power(self.mesh, fluxes, np.ones(4), 0.0)
        with self.assertRaises(ValueError):
            normalize_to_power(self.mesh, fluxes, np.zeros(4), 10.0)


class TestFieldSampling(unittest.TestCase):
    def setUp(self):
        self.mesh = build_rectangle(np.linspace(0.0, 2.0, 3), np.linspace(0.0, 1.0, 2))

    def test_nodalAverage(self):
        values = np.arange(self.mesh.n_elements, dtype=float)
        nodal = nodal_average(self.mesh, values)
        self.assertEqual(nodal.shape, (self.mesh.n_nodes,))
        # node 0 belongs to elements 0 and 1 only
        self.assertAlmostEqual(nodal[0], 0.5)
        stacked = nodal_average(self.mesh, np.column_stack([values, 2.0 * values]))
        np.testing.assert_allclose(stacked[:, 1], 2.0 * nodal)

    def test_extractLine(self):
        phi = GroupFluxField(self.mesh, 3.0 * self.mesh.nodes[:, 0] - self.mesh.nodes[:, 1])
        d, v = extract_line(phi, [0.0, 0.5], [2.0, 0.5], n_points=11)
        self.assertEqual(len(d), 11)
        np.testing.assert_allclose(d, np.linspace(0.0, 2.0, 11))
        np.testing.assert_allclose(v, 3.0 * np.linspace(0.0, 2.0, 11) - 0.5, atol=1e-12)

    def test_extractLineOutsideMesh(self):
        phi = GroupFluxField.constant(self.mesh, 1.0)
        d, v = extract_line(phi, [1.0, 0.5], [5.0, 0.5], n_points=5)
        self.assertEqual(len(d), 2)
        np.testing.assert_allclose(v, 1.0)


class TestSaveResults(unittest.TestCase):
    def test_writesJsonAndNpz(self):
        result = solve_eigenvalue(bare_slab_problem(n_intervals=20), tolerance=1e-5,
                                  total_power=1.0e3)
        with tempfile.TemporaryDirectory() as tmp:
            out = os.path.join(tmp, 'run')
            paths = save_results(result, out)
            with open(paths['json']) as f:
                summary = json.load(f)
            self.assertEqual(summary['problem'], 'bare-slab')
            self.assertEqual(summary['n_groups'], 1)
            self.assertAlmostEqual(summary['keff'], result.keff)
            self.assertTrue(summary['converged'])
            self.assertEqual(len(summary['k_history']), result.iterations + 1)

            with np.load(paths['npz']) as data:
                np.testing.assert_array_equal(data['flux_g1'], result.fluxes[0].coefficients)
                self.assertEqual(data['elements'].shape, result.mesh.elements.shape)
                self.assertIn('power_density', data.files)


if __name__ == '__main__':
    unittest.main()
