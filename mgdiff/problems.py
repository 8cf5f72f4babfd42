"""
Built-in eigenvalue problems.

A Problem bundles everything one eigenvalue solve consumes: the mesh (with
region ids and boundary tags), the parameter table, the boundary condition
map and the region(s) over which the fission source is integrated.

Problems:
    bare-slab       1 group, homogeneous slab, vacuum faces
    reflected-slab  2 groups, fuel slab between two reflector layers
    reactor-4g      4 groups, reflected cylindrical core in r-z geometry
                    (axis reflecting, outer surfaces vacuum, midplane
                    symmetry)

Usage:
    problem = get_problem('reactor-4g', refinements=1)
"""

import dataclasses
from dataclasses import dataclass
from typing import Dict

from . import config
from .materials.cross_sections import (
    GroupConstants,
    ActiveCore,
    Reflector,
    PhysicalParameterTable,
)
from .mesh.nodes import Mesh, tri3_to_tri6
from .mesh.refinement import refine_all_elements
from .mesh.structured import build_slab, build_rz_reactor


FUEL_REGION = 2
REFLECTOR_REGION = 1


@dataclass
class Problem:
    """Input of one eigenvalue solve.

    Attributes
    ----------
    mesh : Mesh
    parameters : PhysicalParameterTable
    boundary_conditions : dict
        {boundary_tag: 'reflecting' | 'vacuum' | 'marshak' | BoundaryCondition}.
    active_region : int, list of int or None
        Region(s) of the fission source integral; None uses every fissile
        region of the parameter table.
    name : str
    """
    mesh: Mesh
    parameters: PhysicalParameterTable
    boundary_conditions: Dict
    active_region: object = None
    name: str = 'custom'

    def __post_init__(self):
        if self.active_region is None:
            self.active_region = self.parameters.active_region_ids

    def with_parameters(self, parameters):
        """Same geometry with a different parameter table."""
        return dataclasses.replace(self, parameters=parameters, active_region=None)


def _finish_mesh(mesh, refinements, element_type):
    mesh = refine_all_elements(mesh, refinements)
    if element_type == 'tri6':
        mesh = tri3_to_tri6(mesh)
    elif element_type != 'tri3':
        raise ValueError(f"element_type must be 'tri3' or 'tri6', got '{element_type}'")
    return mesh


def bare_slab_problem(width=30.0, n_intervals=120, diffusion=1.0, removal=0.02,
                      nu_fission=0.03, element_type='tri3', refinements=0,
                      boundary='vacuum'):
    """Homogeneous 1-group slab with vacuum (dphi/dn = -0.5 phi) on both faces.

    Parameters
    ----------
    width : float
        Slab thickness [cm].
    n_intervals : int
        Elements across the slab.
    diffusion, removal, nu_fission : float
        Group constants [cm, 1/cm, 1/cm].
    boundary : str
        Condition on both faces, 'vacuum' or 'marshak'.
    """
    constants = GroupConstants.create(
        diffusion=[diffusion], removal=[removal],
        nu=[1.0], fission=[nu_fission], chi=[1.0],
    )
    table = PhysicalParameterTable([ActiveCore(FUEL_REGION, constants, name='fuel')])
    mesh = build_slab([(width, FUEL_REGION)], n_intervals)
    return Problem(
        mesh=_finish_mesh(mesh, refinements, element_type),
        parameters=table,
        boundary_conditions={'left': boundary, 'right': boundary,
                             'top': 'reflecting', 'bottom': 'reflecting'},
        name='bare-slab',
    )


SLAB_FUEL_2G = {
    'diffusion': [1.40, 0.40],
    'absorption': [0.010, 0.080],
    'scattering': [[0.0, 0.020], [0.0, 0.0]],
    'nu': [2.50, 2.45],
    'fission': [0.0030, 0.0500],
    'chi': [1.0, 0.0],
}

SLAB_REFLECTOR_2G = {
    'diffusion': [1.30, 0.50],
    'absorption': [0.0005, 0.0100],
    'scattering': [[0.0, 0.030], [0.0, 0.0]],
}


def _constants(data):
    return GroupConstants.create(
        diffusion=data['diffusion'],
        removal=config.removal_from_absorption(data['absorption'], data['scattering']),
        scattering=data['scattering'],
        nu=data.get('nu'),
        fission=data.get('fission'),
        chi=data.get('chi'),
    )


def reflected_slab_problem(core_width=40.0, reflector_thickness=20.0,
                           n_core=80, n_reflector=40, element_type='tri3',
                           refinements=0):
    """2-group fuel slab between two reflector layers, vacuum outside."""
    table = PhysicalParameterTable([
        ActiveCore(FUEL_REGION, _constants(SLAB_FUEL_2G), name='fuel'),
        Reflector(REFLECTOR_REGION, _constants(SLAB_REFLECTOR_2G), name='reflector'),
    ])
    mesh = build_slab(
        [(reflector_thickness, REFLECTOR_REGION),
         (core_width, FUEL_REGION),
         (reflector_thickness, REFLECTOR_REGION)],
        [n_reflector, n_core, n_reflector],
    )
    return Problem(
        mesh=_finish_mesh(mesh, refinements, element_type),
        parameters=table,
        boundary_conditions={'left': 'vacuum', 'right': 'vacuum',
                             'top': 'reflecting', 'bottom': 'reflecting'},
        name='reflected-slab',
    )


def reactor_4g_table():
    """Parameter table of the built-in 4-group reactor (config tier 4)."""
    return PhysicalParameterTable([
        ActiveCore(FUEL_REGION, _constants(config.CORE_4G), name='core'),
        Reflector(REFLECTOR_REGION, _constants(config.REFLECTOR_4G), name='reflector'),
    ])


def reactor_4g_problem(refinements=config.INIT_REF_NUM,
                       element_type=config.DEFAULT_ELEMENT_TYPE):
    """4-group reflected cylindrical reactor in r-z geometry.

    The coarse structured mesh of config tier 5 is refined uniformly
    ``refinements`` times. Neumann symmetry on the axis and the midplane,
    vacuum on the outer radial and axial surfaces.
    """
    mesh = build_rz_reactor(
        config.CORE_RADIUS, config.CORE_HALF_HEIGHT, config.REFLECTOR_THICKNESS,
        config.NR_CORE, config.NZ_CORE, config.NR_REFLECTOR, config.NZ_REFLECTOR,
        core_region=FUEL_REGION, reflector_region=REFLECTOR_REGION,
    )
    return Problem(
        mesh=_finish_mesh(mesh, refinements, element_type),
        parameters=reactor_4g_table(),
        boundary_conditions={'left': 'reflecting', 'bottom': 'reflecting',
                             'right': 'vacuum', 'top': 'vacuum'},
        name='reactor-4g',
    )


PROBLEMS = {
    'bare-slab': bare_slab_problem,
    'reflected-slab': reflected_slab_problem,
    'reactor-4g': reactor_4g_problem,
}


def get_problem(name, **kwargs):
    """Build a registered problem by name."""
    try:
        builder = PROBLEMS[name]
    except KeyError:
        raise ValueError(
            f"Unknown problem '{name}'. Available: {sorted(PROBLEMS)}"
        ) from None
    return builder(**kwargs)
