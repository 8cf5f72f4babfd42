"""Tests for group constants and the physical parameter table."""

import unittest

import numpy as np

from mgdiff import config
from mgdiff.materials.cross_sections import (
    GroupConstants,
    Reflector,
    ActiveCore,
    PhysicalParameterTable,
)
from mgdiff.mesh.structured import build_rectangle


def _fuel(G=2):
    return GroupConstants.create(
        diffusion=np.linspace(1.0, 0.5, G),
        removal=np.full(G, 0.03),
        scattering=np.diag(np.full(G - 1, 0.01), k=1),
        nu=np.full(G, 2.5),
        fission=np.linspace(0.001, 0.01, G),
        chi=np.eye(G)[0],
    )


class TestGroupConstants(unittest.TestCase):
    def test_createDefaultsAndReadOnly(self):
        c = GroupConstants.create(diffusion=[1.0, 0.4], removal=[0.02, 0.1])
        self.assertEqual(c.n_groups, 2)
        np.testing.assert_array_equal(c.scattering, np.zeros((2, 2)))
        np.testing.assert_array_equal(c.nu_fission, [0.0, 0.0])
        with self.assertRaises(ValueError):
            c.diffusion[0] = 5.0

    def test_validation(self):
        with self.assertRaises(ValueError):
            GroupConstants.create(diffusion=[0.0], removal=[0.1])
        with self.assertRaises(ValueError):
            GroupConstants.create(diffusion=[1.0], removal=[-0.1])
        with self.assertRaises(ValueError):
            GroupConstants.create(diffusion=[1.0, 1.0], removal=[0.1])
        with self.assertRaises(ValueError):
            GroupConstants.create(diffusion=[1.0, 1.0], removal=[0.1, 0.1],
                                  scattering=[[0.0, 0.1]])

    def test_removalFromAbsorption(self):
        removal = config.removal_from_absorption(
            [0.01, 0.1], [[0.5, 0.02], [0.001, 0.7]])
        np.testing.assert_allclose(removal, [0.03, 0.101])


class TestRegions(unittest.TestCase):
    def test_reflectorHasNoFission(self):
        constants = _fuel()
        refl = Reflector(3, constants)
        core = ActiveCore(4, constants, name='fuel')
        np.testing.assert_array_equal(refl.nu_fission(), [0.0, 0.0])
        np.testing.assert_array_equal(refl.chi(), [0.0, 0.0])
        np.testing.assert_allclose(core.nu_fission(), constants.nu * constants.fission)
        self.assertFalse(refl.fissile)
        self.assertTrue(core.fissile)
        self.assertEqual(refl.name, 'reflector-3')
        self.assertEqual(core.name, 'fuel')


class TestPhysicalParameterTable(unittest.TestCase):
    def setUp(self):
        self.table = PhysicalParameterTable([
            ActiveCore(2, _fuel()),
            Reflector(1, GroupConstants.create([1.3, 0.5], [0.02, 0.01],
                                               scattering=[[0.0, 0.015], [0.0, 0.0]])),
        ])

    def test_lookups(self):
        self.assertEqual(self.table.n_groups, 2)
        self.assertEqual(self.table.region_ids, [1, 2])
        self.assertEqual(self.table.active_region_ids, [2])
        self.assertAlmostEqual(self.table.diffusion(0, 1), 1.3)
        self.assertAlmostEqual(self.table.scattering(0, 1, 1), 0.015)
        self.assertAlmostEqual(self.table.scattering(1, 0, 1), 0.0)
        self.assertAlmostEqual(self.table.nu_fission(1, 2), 2.5 * 0.01)
        self.assertEqual(self.table.nu_fission(1, 1), 0.0)
        self.assertEqual(self.table.chi(0, 2), 1.0)

    def test_unknownRegion(self):
        with self.assertRaises(KeyError):
            self.table.region(9)

    def test_constructionErrors(self):
        with self.assertRaises(ValueError):
            PhysicalParameterTable([])
        with self.assertRaises(ValueError):
            PhysicalParameterTable([ActiveCore(1, _fuel()), Reflector(1, _fuel())])
        with self.assertRaises(ValueError):
            PhysicalParameterTable([ActiveCore(1, _fuel(2)), ActiveCore(2, _fuel(3))])

    def test_meshChecks(self):
        mesh = build_rectangle([0.0, 1.0, 2.0], [0.0, 1.0],
                               region_of=lambda i, j: i + 1)
        self.table.check_mesh(mesh)
        np.testing.assert_allclose(self.table.element_values(mesh, 'diffusion', 1),
                                   [0.5, 0.5, 0.5, 0.5])
        np.testing.assert_allclose(self.table.element_values(mesh, 'removal', 0),
                                   [0.02, 0.02, 0.03, 0.03])

        bad = build_rectangle([0.0, 1.0], [0.0, 1.0], region_of=lambda i, j: 7)
        with self.assertRaises(KeyError):
            self.table.check_mesh(bad)

    def test_dictRoundTrip(self):
        data = self.table.to_dict()
        again = PhysicalParameterTable.from_dict(data)
        self.assertEqual(again.to_dict(), data)
        self.assertIsInstance(again.region(1), Reflector)

    def test_fromDictErrors(self):
        entry = {'id': 1, 'diffusion': [1.0], 'removal': [0.1]}
        self.assertIsInstance(
            PhysicalParameterTable.from_dict({'regions': [entry]}).region(1), ActiveCore)
        with self.assertRaises(ValueError):
            PhysicalParameterTable.from_dict({'regions': [dict(entry, kind='blanket')]})
        with self.assertRaises(ValueError):
            PhysicalParameterTable.from_dict({'n_groups': 2, 'regions': [entry]})


if __name__ == '__main__':
    unittest.main()
