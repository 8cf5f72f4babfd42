"""Tests for the command line driver."""

import json
import os
import tempfile
import unittest

import numpy as np

from mgdiff.materials.cross_sections import GroupConstants, ActiveCore, PhysicalParameterTable
from mgdiff.problems import FUEL_REGION
from mgdiff.run_eigen import main, run_eigen_analysis


class TestRunEigen(unittest.TestCase):
    def setUp(self):
        self._tmp = tempfile.TemporaryDirectory()
        self.tmp = self._tmp.name

    def tearDown(self):
        self._tmp.cleanup()

    def test_mainWritesResults(self):
        out = os.path.join(self.tmp, 'slab')
        code = main(['--problem', 'bare-slab', '--tol', '1e-6', '--power', '1e3',
                     '--output', out])
        self.assertEqual(code, 0)
        with open(os.path.join(out, 'results.json')) as f:
            summary = json.load(f)
        self.assertEqual(summary['problem'], 'bare-slab')
        self.assertTrue(summary['converged'])
        self.assertEqual(summary['total_power'], 1e3)
        with np.load(os.path.join(out, 'fluxes.npz')) as data:
            self.assertIn('flux_g1', data.files)
            self.assertIn('power_density', data.files)

    def test_crossSectionOverride(self):
        constants = GroupConstants.create(diffusion=[1.0], removal=[0.02],
                                          nu=[1.0], fission=[0.04], chi=[1.0])
        xs_path = os.path.join(self.tmp, 'xs.json')
        with open(xs_path, 'w') as f:
            json.dump(PhysicalParameterTable([ActiveCore(FUEL_REGION, constants)]).to_dict(), f)

        default = run_eigen_analysis(problem='bare-slab', tolerance=1e-7,
                                     output_dir=os.path.join(self.tmp, 'a'))
        override = run_eigen_analysis(problem='bare-slab', tolerance=1e-7, xs_file=xs_path,
                                      output_dir=os.path.join(self.tmp, 'b'))
        # k scales with nu*Sf at fixed leakage and removal
        self.assertAlmostEqual(override.keff / default.keff, 0.04 / 0.03, places=5)

    def test_errorsReturnNonZero(self):
        out = os.path.join(self.tmp, 'fail')
        self.assertEqual(main(['--problem', 'bare-slab', '--tol', '1e-14',
                               '--max-iter', '1', '--output', out]), 1)
        self.assertEqual(main(['--problem', 'bare-slab', '--output', out,
                               '--xs', os.path.join(self.tmp, 'missing.json')]), 1)
        self.assertEqual(main(['--problem', 'bare-slab', '--output', out,
                               '--k0', '-1']), 1)

        # table without the slab's fuel region
        constants = GroupConstants.create(diffusion=[1.0], removal=[0.02],
                                          nu=[1.0], fission=[0.03], chi=[1.0])
        xs_path = os.path.join(self.tmp, 'region7.json')
        with open(xs_path, 'w') as f:
            json.dump(PhysicalParameterTable([ActiveCore(7, constants)]).to_dict(), f)
        self.assertEqual(main(['--problem', 'bare-slab', '--output', out,
                               '--xs', xs_path]), 1)


if __name__ == '__main__':
    unittest.main()
