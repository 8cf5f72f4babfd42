"""
Uniform mesh refinement.

Each Tri3 element is split into four by its edge midpoints (red
refinement). The refined mesh is conforming, keeps counter-clockwise
orientation, inherits region ids from the parent element and splits
every tagged boundary edge in two.

    2                    2
    |\\                  |\\
    | \\                 5--4
    |  \\       ->       |\\ |\\
    0---1               0--3--1

Conventions:
    - Input/output meshes use 0-indexed node numbering
    - Only Tri3 meshes are refined; convert to Tri6 afterwards
"""

import logging

import numpy as np
from typing import Dict, Tuple

from .nodes import Mesh

log = logging.getLogger(__name__)


def refine_uniform(mesh: Mesh) -> Mesh:
    """Split every element of a Tri3 mesh into four.

    Parameters
    ----------
    mesh : Mesh
        Tri3 mesh.

    Returns
    -------
    refined : Mesh
        Mesh with 4x the elements and the same regions and boundary tags.

    Raises
    ------
    ValueError
        If the mesh is not Tri3.
    """
    if mesh.element_type != 'tri3':
        raise ValueError(
            f"refine_uniform requires a 'tri3' mesh, got '{mesh.element_type}'"
        )

    midnode: Dict[Tuple[int, int], int] = {}
    new_nodes = []
    next_id = mesh.n_nodes

    def mid(a, b):
        nonlocal next_id
        key = (min(a, b), max(a, b))
        if key not in midnode:
            midnode[key] = next_id
            new_nodes.append(0.5 * (mesh.nodes[a] + mesh.nodes[b]))
            next_id += 1
        return midnode[key]

    n_elem = mesh.n_elements
    elements = np.empty((4 * n_elem, 3), dtype=np.int64)
    region_ids = np.repeat(mesh.region_ids, 4)

    for e in range(n_elem):
        v0, v1, v2 = (int(n) for n in mesh.elements[e])
        m01 = mid(v0, v1)
        m12 = mid(v1, v2)
        m20 = mid(v2, v0)
        elements[4 * e] = [v0, m01, m20]
        elements[4 * e + 1] = [m01, v1, m12]
        elements[4 * e + 2] = [m20, m12, v2]
        elements[4 * e + 3] = [m01, m12, m20]

    nodes = np.vstack([mesh.nodes, np.array(new_nodes)]) if new_nodes else mesh.nodes.copy()

    boundary_edges = {}
    boundary_nodes = {}
    for tag, edges in mesh.boundary_edges.items():
        split = []
        node_set = set(mesh.boundary_nodes.get(tag, np.empty(0, dtype=np.int64)).tolist())
        for a, b in edges:
            m = midnode[(min(a, b), max(a, b))]
            split.append((a, m))
            split.append((m, b))
            node_set.update((a, m, b))
        boundary_edges[tag] = split
        boundary_nodes[tag] = np.array(sorted(node_set), dtype=np.int64)

    refined = Mesh(
        nodes=nodes,
        elements=elements,
        element_type='tri3',
        region_ids=region_ids,
        boundary_edges=boundary_edges,
        boundary_nodes=boundary_nodes,
        coord_system=mesh.coord_system,
    )
    log.debug("Refined mesh: %d -> %d elements, %d nodes",
              n_elem, refined.n_elements, refined.n_nodes)
    return refined


def refine_all_elements(mesh: Mesh, times: int) -> Mesh:
    """Apply ``refine_uniform`` repeatedly.

    Parameters
    ----------
    mesh : Mesh
    times : int
        Number of uniform refinements (0 returns the input mesh).

    Returns
    -------
    mesh : Mesh
    """
    if times < 0:
        raise ValueError(f"Number of refinements must be >= 0, got {times}")
    for _ in range(times):
        mesh = refine_uniform(mesh)
    return mesh
