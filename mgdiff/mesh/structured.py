"""
Structured mesh builders for the built-in diffusion problems.

Strategy: tensor-product grid of (possibly non-uniform) breakpoints, each
quad split along its diagonal into 2 triangles. Region ids come from a
callback on the (i, j) cell indices, so zone layout stays with the caller.

Boundary tags on every structured mesh:
    'left'   : x = x_min  (r = 0 axis for r-z meshes)
    'right'  : x = x_max
    'bottom' : y = y_min
    'top'    : y = y_max

Builders:
    build_rectangle   : generic tensor grid
    build_slab        : 1D slab as a single strip of triangles
    build_rz_reactor  : cylindrical core + reflector, upper half (r-z)
"""

import numpy as np
from typing import Callable, Sequence

from .nodes import Mesh


def build_rectangle(x_pts: Sequence[float], y_pts: Sequence[float],
                    region_of: Callable[[int, int], int] = None,
                    coord_system: str = 'cartesian') -> Mesh:
    """Build a Tri3 mesh on the tensor grid x_pts x y_pts.

    Parameters
    ----------
    x_pts : array_like, shape (nx+1,)
        Increasing x (or r) breakpoints.
    y_pts : array_like, shape (ny+1,)
        Increasing y (or z) breakpoints.
    region_of : callable or None
        region_of(i, j) -> int for the cell [x_i, x_{i+1}] x [y_j, y_{j+1}].
        Default: every cell in region 0.
    coord_system : str
        'cartesian' or 'axisymmetric'.

    Returns
    -------
    mesh : Mesh
    """
    x_pts = np.asarray(x_pts, dtype=np.float64)
    y_pts = np.asarray(y_pts, dtype=np.float64)
    if len(x_pts) < 2 or len(y_pts) < 2:
        raise ValueError("Need at least two breakpoints in each direction")
    if np.any(np.diff(x_pts) <= 0.0) or np.any(np.diff(y_pts) <= 0.0):
        raise ValueError("Breakpoints must be strictly increasing")
    if coord_system == 'axisymmetric' and x_pts[0] < 0.0:
        raise ValueError(f"Radial coordinate must be >= 0, got r_min={x_pts[0]}")

    nx = len(x_pts) - 1
    ny = len(y_pts) - 1
    nx_nodes = nx + 1

    xx, yy = np.meshgrid(x_pts, y_pts)
    nodes = np.column_stack([xx.ravel(), yy.ravel()])

    def node(i, j):
        return j * nx_nodes + i

    elements = np.empty((2 * nx * ny, 3), dtype=np.int64)
    region_ids = np.empty(2 * nx * ny, dtype=np.int64)

    elem_idx = 0
    for j in range(ny):
        for i in range(nx):
            n00 = node(i, j)
            n10 = node(i + 1, j)
            n01 = node(i, j + 1)
            n11 = node(i + 1, j + 1)

            elements[elem_idx] = [n00, n10, n11]
            elements[elem_idx + 1] = [n00, n11, n01]

            region = 0 if region_of is None else int(region_of(i, j))
            region_ids[elem_idx] = region
            region_ids[elem_idx + 1] = region
            elem_idx += 2

    boundary_edges = {
        'bottom': [(node(i, 0), node(i + 1, 0)) for i in range(nx)],
        'right': [(node(nx, j), node(nx, j + 1)) for j in range(ny)],
        'top': [(node(i + 1, ny), node(i, ny)) for i in range(nx)],
        'left': [(node(0, j + 1), node(0, j)) for j in range(ny)],
    }
    boundary_nodes = {
        tag: np.array(sorted({n for edge in edges for n in edge}), dtype=np.int64)
        for tag, edges in boundary_edges.items()
    }

    return Mesh(
        nodes=nodes,
        elements=elements,
        element_type='tri3',
        region_ids=region_ids,
        boundary_edges=boundary_edges,
        boundary_nodes=boundary_nodes,
        coord_system=coord_system,
    )


def build_slab(segments, n_per_segment, height=None):
    """1D slab made of consecutive x-segments, one element strip high.

    Parameters
    ----------
    segments : sequence of (width, region_id)
        Slab layers from left to right.
    n_per_segment : int or sequence of int
        Number of intervals in each layer.
    height : float or None
        Strip height. Default: the smallest interval width, so the
        triangles stay well shaped.

    Returns
    -------
    mesh : Mesh
        Cartesian Tri3 mesh; 'left'/'right' are the slab faces and
        'top'/'bottom' the transverse (reflecting) sides.
    """
    if np.isscalar(n_per_segment):
        n_per_segment = [int(n_per_segment)] * len(segments)
    if len(n_per_segment) != len(segments):
        raise ValueError(
            f"n_per_segment has {len(n_per_segment)} entries for "
            f"{len(segments)} segments"
        )

    x_pts = [0.0]
    cell_region = []
    for (width, region), n in zip(segments, n_per_segment):
        if width <= 0.0 or n < 1:
            raise ValueError(f"Invalid slab segment: width={width}, n={n}")
        x_pts.extend(np.linspace(x_pts[-1], x_pts[-1] + width, n + 1)[1:])
        cell_region.extend([region] * n)

    if height is None:
        height = float(np.min(np.diff(x_pts)))

    return build_rectangle(x_pts, [0.0, height],
                           region_of=lambda i, j: cell_region[i])


def build_rz_reactor(core_radius, core_half_height, reflector_thickness,
                     nr_core, nz_core, nr_reflector, nz_reflector,
                     core_region=2, reflector_region=1):
    """Upper half of a reflected cylindrical core in r-z geometry.

    Domain:
        r: [0, R_core + t_refl]
        z: [0, H_half + t_refl]   (z = 0 is the core midplane)

    Tags: 'left' is the r = 0 axis, 'bottom' the midplane, 'right' and
    'top' the outer reflector surfaces.

    Parameters
    ----------
    core_radius, core_half_height, reflector_thickness : float
    nr_core, nz_core, nr_reflector, nz_reflector : int
        Interval counts per zone.
    core_region, reflector_region : int
        Region ids written to the mesh.

    Returns
    -------
    mesh : Mesh
        Axisymmetric Tri3 mesh.
    """
    r_pts = np.concatenate([
        np.linspace(0.0, core_radius, nr_core + 1),
        np.linspace(core_radius, core_radius + reflector_thickness,
                    nr_reflector + 1)[1:],
    ])
    z_pts = np.concatenate([
        np.linspace(0.0, core_half_height, nz_core + 1),
        np.linspace(core_half_height, core_half_height + reflector_thickness,
                    nz_reflector + 1)[1:],
    ])

    def region_of(i, j):
        if i < nr_core and j < nz_core:
            return core_region
        return reflector_region

    return build_rectangle(r_pts, z_pts, region_of=region_of,
                           coord_system='axisymmetric')
