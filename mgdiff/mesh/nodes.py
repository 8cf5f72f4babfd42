"""
Mesh data structures and utilities.

Provides the Mesh dataclass for storing finite element meshes and
Tri3 -> Tri6 conversion.

Mesh conventions:
    - Node numbering: 0-indexed
    - Element connectivity: counter-clockwise node ordering
    - Coordinate systems: 'cartesian' (x, y) or 'axisymmetric' (r, z)
    - Region ids: one integer tag per element (e.g. reflector / active core)
    - Boundary tags: string labels for named boundary groups
"""

import numpy as np
from dataclasses import dataclass, field
from typing import Dict, List, Tuple

from ..elements.mapping import ELEMENT_DEGREE, ELEMENT_NODES


@dataclass
class Mesh:
    """
    Finite element mesh data structure.

    Attributes
    ----------
    nodes : ndarray, shape (N_nodes, 2)
        Nodal coordinates. For cartesian: (x, y). For axisymmetric: (r, z).
    elements : ndarray, shape (N_elem, n_per_elem)
        Element connectivity array (0-indexed node indices).
        n_per_elem = 3 for Tri3, 6 for Tri6.
    element_type : str
        Element type identifier: 'tri3' or 'tri6'.
    region_ids : ndarray, shape (N_elem,)
        Integer region tag of each element. Every element belongs to
        exactly one region.
    boundary_edges : dict
        Mapping from boundary tag (str) to list of edge tuples.
        Each edge is (node_i, node_j); for Tri6 (node_i, node_mid, node_j).
    boundary_nodes : dict
        Mapping from boundary tag (str) to ndarray of unique node indices
        on that boundary.
    coord_system : str
        Coordinate system: 'cartesian' or 'axisymmetric'.
    """
    nodes: np.ndarray
    elements: np.ndarray
    element_type: str
    region_ids: np.ndarray
    boundary_edges: Dict[str, List[Tuple[int, ...]]] = field(default_factory=dict)
    boundary_nodes: Dict[str, np.ndarray] = field(default_factory=dict)
    coord_system: str = 'cartesian'

    def __post_init__(self):
        """Validate mesh data after initialization."""
        self.nodes = np.asarray(self.nodes, dtype=np.float64)
        self.elements = np.asarray(self.elements, dtype=np.int64)
        self.region_ids = np.asarray(self.region_ids, dtype=np.int64)

        if self.nodes.ndim != 2 or self.nodes.shape[1] != 2:
            raise ValueError(
                f"nodes must have shape (N, 2), got {self.nodes.shape}"
            )
        if self.elements.ndim != 2:
            raise ValueError(
                f"elements must be 2D array, got shape {self.elements.shape}"
            )
        if self.element_type not in ELEMENT_NODES:
            raise ValueError(
                f"element_type must be one of {sorted(ELEMENT_NODES)}, "
                f"got '{self.element_type}'"
            )
        n_expected = ELEMENT_NODES[self.element_type]
        if self.elements.shape[1] != n_expected:
            raise ValueError(
                f"{self.element_type} elements must have {n_expected} nodes "
                f"per element, got {self.elements.shape[1]}"
            )
        if len(self.region_ids) != len(self.elements):
            raise ValueError(
                f"region_ids length ({len(self.region_ids)}) must match "
                f"number of elements ({len(self.elements)})"
            )
        if self.coord_system not in ('cartesian', 'axisymmetric'):
            raise ValueError(
                f"coord_system must be 'cartesian' or 'axisymmetric', "
                f"got '{self.coord_system}'"
            )
        max_node = np.max(self.elements)
        if max_node >= len(self.nodes):
            raise ValueError(
                f"Element connectivity references node {max_node}, but mesh "
                f"only has {len(self.nodes)} nodes (0-indexed)"
            )
        if np.min(self.elements) < 0:
            raise ValueError("Element connectivity contains negative node indices")

    @property
    def n_nodes(self):
        """Number of nodes in the mesh."""
        return self.nodes.shape[0]

    @property
    def n_elements(self):
        """Number of elements in the mesh."""
        return self.elements.shape[0]

    @property
    def degree(self):
        """Polynomial degree of the element basis."""
        return ELEMENT_DEGREE[self.element_type]

    @property
    def axisymmetric(self):
        return self.coord_system == 'axisymmetric'

    def element_coords(self, e):
        """
        Get physical coordinates for element e.

        Parameters
        ----------
        e : int
            Element index (0-indexed).

        Returns
        -------
        coords : ndarray, shape (n_per_elem, 2)
        """
        return self.nodes[self.elements[e]]

    def element_area(self, e):
        """
        Area of element e from its corner nodes (positive for CCW).

        Parameters
        ----------
        e : int

        Returns
        -------
        area : float
        """
        conn = self.elements[e]
        x0, y0 = self.nodes[conn[0]]
        x1, y1 = self.nodes[conn[1]]
        x2, y2 = self.nodes[conn[2]]
        return 0.5 * ((x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0))

    def region_elements(self, regions):
        """
        Indices of elements whose region id is in ``regions``.

        Parameters
        ----------
        regions : int, iterable of int, or None
            None selects every element.

        Returns
        -------
        elems : ndarray of int
        """
        if regions is None:
            return np.arange(self.n_elements)
        if np.isscalar(regions):
            regions = [regions]
        mask = np.isin(self.region_ids, np.asarray(list(regions), dtype=np.int64))
        return np.nonzero(mask)[0]

    def boundary_edge_elements(self, boundary_tag):
        """
        Element owning each edge of ``boundary_tag``, in edge order.

        Raises
        ------
        KeyError
            If the tag is unknown or an edge belongs to no element.
        """
        owner = {}
        for e, conn in enumerate(self.elements[:, :3]):
            for a, b in ((conn[0], conn[1]), (conn[1], conn[2]), (conn[2], conn[0])):
                owner[(min(a, b), max(a, b))] = e
        elems = []
        for edge in self.boundary_edges[boundary_tag]:
            a, b = int(edge[0]), int(edge[-1])
            elems.append(owner[(min(a, b), max(a, b))])
        return np.array(elems, dtype=np.int64)


def tri3_to_tri6(mesh):
    """
    Convert a Tri3 mesh to a Tri6 mesh by inserting mid-edge nodes.

    Each edge shared by two elements gets a single mid-edge node (no
    duplicates). Boundary edges and boundary nodes are updated to
    include the new mid-edge nodes.

    Mid-edge node numbering within each element:
        Node 3: midpoint of edge 0-1
        Node 4: midpoint of edge 1-2
        Node 5: midpoint of edge 2-0

    Parameters
    ----------
    mesh : Mesh
        Input Tri3 mesh.

    Returns
    -------
    mesh6 : Mesh
        Tri6 mesh with mid-edge nodes inserted.

    Raises
    ------
    ValueError
        If input mesh is not Tri3.
    """
    if mesh.element_type != 'tri3':
        raise ValueError(
            f"tri3_to_tri6 requires a 'tri3' mesh, got '{mesh.element_type}'"
        )

    # local corner pairs of mid-nodes 3, 4, 5
    local_edges = np.array([[0, 1], [1, 2], [2, 0]])
    pairs = mesh.elements[:, local_edges].reshape(-1, 2)
    keys, inverse = np.unique(np.sort(pairs, axis=1), axis=0, return_inverse=True)
    inverse = np.asarray(inverse).ravel()

    mid_ids = mesh.n_nodes + inverse.reshape(mesh.n_elements, 3)
    elements6 = np.hstack([mesh.elements, mid_ids])
    nodes6 = np.vstack([mesh.nodes,
                        0.5 * (mesh.nodes[keys[:, 0]] + mesh.nodes[keys[:, 1]])])

    midnode = {(int(a), int(b)): mesh.n_nodes + i for i, (a, b) in enumerate(keys)}
    boundary_edges6 = {
        tag: [(a, midnode[(min(a, b), max(a, b))], b) for a, b in edges]
        for tag, edges in mesh.boundary_edges.items()
    }
    boundary_nodes6 = {
        tag: np.unique(np.concatenate(
            [np.asarray(mesh.boundary_nodes.get(tag, []), dtype=np.int64)]
            + [np.asarray(edge, dtype=np.int64) for edge in edges]))
        for tag, edges in boundary_edges6.items()
    }

    return Mesh(
        nodes=nodes6,
        elements=elements6,
        element_type='tri6',
        region_ids=mesh.region_ids.copy(),
        boundary_edges=boundary_edges6,
        boundary_nodes=boundary_nodes6,
        coord_system=mesh.coord_system,
    )
