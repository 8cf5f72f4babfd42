"""Tests for sparse assembly, boundary conditions and the diffusion backend."""

import unittest

import numpy as np

from mgdiff.assembly.sparse_assembler import (
    assemble_scalar_stiffness,
    assemble_scalar_mass,
    assemble_boundary_mass,
    assemble_global_vector,
)
from mgdiff.assembly.boundary_conditions import (
    Marshak,
    Reflecting,
    Vacuum,
    resolve_boundary_conditions,
)
from mgdiff.assembly.diffusion_system import MultigroupDiffusionBackend
from mgdiff.fields.flux import GroupFluxField
from mgdiff.materials.cross_sections import (
    GroupConstants,
    Reflector,
    ActiveCore,
    PhysicalParameterTable,
)
from mgdiff.mesh.nodes import tri3_to_tri6
from mgdiff.mesh.structured import build_rectangle


def _table():
    fuel = GroupConstants.create(
        diffusion=[1.2, 0.4], removal=[0.03, 0.09],
        scattering=[[0.0, 0.02], [0.0, 0.0]],
        nu=[2.4, 2.4], fission=[0.004, 0.05], chi=[1.0, 0.0],
    )
    refl = GroupConstants.create(
        diffusion=[1.0, 0.3], removal=[0.025, 0.01],
        scattering=[[0.0, 0.024], [0.0, 0.0]],
    )
    return PhysicalParameterTable([ActiveCore(1, fuel), Reflector(2, refl)])


def _mesh(element_type='tri3', coord_system='cartesian'):
    mesh = build_rectangle(np.linspace(0.0, 4.0, 5), np.linspace(0.0, 2.0, 3),
                           region_of=lambda i, j: 1 if i < 2 else 2,
                           coord_system=coord_system)
    return tri3_to_tri6(mesh) if element_type == 'tri6' else mesh


class TestSparseAssembler(unittest.TestCase):
    def test_massAndStiffnessIdentities(self):
        for element_type in ('tri3', 'tri6'):
            mesh = _mesh(element_type)
            ones = np.ones(mesh.n_nodes)
            M = assemble_scalar_mass(mesh, np.full(mesh.n_elements, 2.0))
            K = assemble_scalar_stiffness(mesh, np.full(mesh.n_elements, 3.0))
            self.assertAlmostEqual(ones @ M @ ones, 2.0 * 8.0)
            np.testing.assert_allclose(K @ ones, 0.0, atol=1e-12)
            self.assertAlmostEqual(abs(K - K.T).max(), 0.0)

    def test_axisymmetricMass(self):
        mesh = _mesh('tri3', 'axisymmetric')
        ones = np.ones(mesh.n_nodes)
        M = assemble_scalar_mass(mesh, np.ones(mesh.n_elements))
        # 2*pi * integral(r) over [0, 4] x [0, 2]
        self.assertAlmostEqual(ones @ M @ ones, 2.0 * np.pi * 8.0 * 2.0)

    def test_perElementShape(self):
        with self.assertRaises(ValueError):
            assemble_scalar_mass(_mesh(), np.ones(3))

    def test_boundaryMass(self):
        for element_type in ('tri3', 'tri6'):
            mesh = _mesh(element_type)
            H = assemble_boundary_mass(mesh, 'right', 0.5)
            ones = np.ones(mesh.n_nodes)
            self.assertAlmostEqual(ones @ H @ ones, 0.5 * 2.0)
            # one coefficient per edge
            H = assemble_boundary_mass(mesh, 'right', [0.5, 1.5])
            self.assertAlmostEqual(ones @ H @ ones, 0.5 + 1.5)
        with self.assertRaises(KeyError):
            assemble_boundary_mass(_mesh(), 'outer', 0.5)

    def test_globalVector(self):
        mesh = _mesh()
        f = assemble_global_vector(mesh, lambda e: np.ones(3), elements=[0, 1])
        self.assertEqual(f.sum(), 6.0)
        self.assertEqual(f[mesh.elements[0][0]], 2.0)


class TestBoundaryConditions(unittest.TestCase):
    def test_resolve(self):
        mesh = _mesh()
        bcs = resolve_boundary_conditions(mesh, {'right': 'vacuum', 'top': Vacuum(0.25)})
        self.assertIsInstance(bcs['right'], Vacuum)
        self.assertEqual(bcs['top'].alpha, 0.25)
        self.assertIsInstance(bcs['left'], Reflecting)
        self.assertIsInstance(bcs['bottom'], Reflecting)
        self.assertIsNone(bcs['left'].boundary_matrix(mesh, 'left', np.ones(mesh.n_elements)))
        bcs = resolve_boundary_conditions(mesh, {'top': 'marshak'})
        self.assertIsInstance(bcs['top'], Marshak)
        self.assertEqual(bcs['top'].alpha, 0.5)

    def test_vacuumScalesWithOwnerDiffusion(self):
        mesh = _mesh()
        # top edges: two over region 1 (D = 1.2), two over region 2 (D = 1.0)
        D = _table().element_values(mesh, 'diffusion', 0)
        ones = np.ones(mesh.n_nodes)
        H = Vacuum().boundary_matrix(mesh, 'top', D)
        self.assertAlmostEqual(ones @ H @ ones, 0.5 * (1.2 * 2.0 + 1.0 * 2.0))
        H = Marshak().boundary_matrix(mesh, 'top', D)
        self.assertAlmostEqual(ones @ H @ ones, 0.5 * 4.0)

    def test_resolveErrors(self):
        mesh = _mesh()
        with self.assertRaises(KeyError):
            resolve_boundary_conditions(mesh, {'outer': 'vacuum'})
        with self.assertRaises(ValueError):
            resolve_boundary_conditions(mesh, {'left': 'albedo'})
        with self.assertRaises(ValueError):
            resolve_boundary_conditions(mesh, {'left': 0.5})
        with self.assertRaises(ValueError):
            Vacuum(alpha=0.0)


class TestMultigroupDiffusionBackend(unittest.TestCase):
    def setUp(self):
        self.mesh = _mesh()
        self.table = _table()
        self.backend = MultigroupDiffusionBackend(
            self.mesh, self.table, {'right': 'vacuum', 'top': 'vacuum'})
        self.fluxes = self.backend.uniform_fluxes(1.0)

    def test_sizes(self):
        self.assertEqual(self.backend.n_groups, 2)
        self.assertEqual(self.backend.n_dofs, self.mesh.n_nodes)
        self.assertIsNone(self.backend.matrix)
        system = self.backend.assemble(self.fluxes, 1.0)
        self.assertEqual(system.matrix.shape, (2 * self.mesh.n_nodes,) * 2)
        self.assertEqual(system.rhs.shape, (2 * self.mesh.n_nodes,))

    def test_matrixReusedOnRhsOnlyPass(self):
        first = self.backend.assemble(self.fluxes, 1.0, full_reassembly=True)
        data = first.matrix.data.copy()
        second = self.backend.assemble(self.fluxes, 1.3, full_reassembly=False)
        self.assertIs(second.matrix, first.matrix)
        self.assertFalse(second.full_reassembly)
        np.testing.assert_array_equal(second.matrix.data, data)
        np.testing.assert_allclose(second.rhs, first.rhs / 1.3)

    def test_rhsOnlyWithoutMatrixBuildsIt(self):
        system = self.backend.assemble(self.fluxes, 1.0, full_reassembly=False)
        self.assertTrue(system.full_reassembly)
        self.assertIsNotNone(system.matrix)

    def test_blockStructure(self):
        A = self.backend.assemble(self.fluxes, 1.0).matrix.toarray()
        n = self.mesh.n_nodes
        ss = self.table.element_values(self.mesh, 'scattering', 0, 1)
        M01 = assemble_scalar_mass(self.mesh, ss).toarray()
        np.testing.assert_allclose(A[n:, :n], -M01)
        np.testing.assert_array_equal(A[:n, n:], 0.0)

        D = self.table.element_values(self.mesh, 'diffusion', 0)
        Sr = self.table.element_values(self.mesh, 'removal', 0)
        owner = self.mesh.boundary_edge_elements
        H = (assemble_boundary_mass(self.mesh, 'right', 0.5 * D[owner('right')])
             + assemble_boundary_mass(self.mesh, 'top', 0.5 * D[owner('top')]))
        A00 = (assemble_scalar_stiffness(self.mesh, D)
               + assemble_scalar_mass(self.mesh, Sr) + H).toarray()
        np.testing.assert_allclose(A[:n, :n], A00)

    def test_rhsFromFissionSource(self):
        k = 1.25
        rhs = self.backend.assemble(self.fluxes, k).rhs
        n = self.mesh.n_nodes
        fuel_area = 4.0
        source = 2.4 * 0.004 + 2.4 * 0.05
        self.assertAlmostEqual(rhs[:n].sum(), source * fuel_area / k)
        np.testing.assert_array_equal(rhs[n:], 0.0)
        # nodes strictly inside the reflector get nothing
        refl_only = self.mesh.nodes[:, 0] > 2.0
        np.testing.assert_array_equal(rhs[:n][refl_only], 0.0)

    def test_rhsMatchesElementLoads(self):
        # uniform flux: each fuel element loads S * area / 3 on its corners
        k = 1.1
        source = 2.4 * 0.004 + 2.4 * 0.05
        fuel = self.mesh.region_elements(1)
        expected = assemble_global_vector(
            self.mesh, lambda e: np.full(3, source * self.mesh.element_area(e) / 3.0 / k),
            elements=fuel)
        rhs = self.backend.assemble(self.fluxes, k).rhs
        np.testing.assert_allclose(rhs[:self.mesh.n_nodes], expected, rtol=1e-12)

    def test_rhsIsLinearInFlux(self):
        doubled = [GroupFluxField(phi.mesh, 2.0 * phi.coefficients, phi.group)
                   for phi in self.fluxes]
        r1 = self.backend.assemble(self.fluxes, 1.0).rhs
        r2 = self.backend.assemble(doubled, 1.0, full_reassembly=False).rhs
        np.testing.assert_allclose(r2, 2.0 * r1)

    def test_invalidK(self):
        with self.assertRaises(ValueError):
            self.backend.assemble(self.fluxes, 0.0)

    def test_split(self):
        n = self.mesh.n_nodes
        fields = self.backend.split(np.concatenate([np.full(n, 1.0), np.full(n, 2.0)]))
        self.assertEqual([f.group for f in fields], [0, 1])
        self.assertEqual(fields[1].max(), 2.0)
        with self.assertRaises(ValueError):
            self.backend.split(np.ones(n))

    def test_unknownRegionRejected(self):
        mesh = build_rectangle([0.0, 1.0], [0.0, 1.0], region_of=lambda i, j: 9)
        with self.assertRaises(KeyError):
            MultigroupDiffusionBackend(mesh, self.table, {})


if __name__ == '__main__':
    unittest.main()
