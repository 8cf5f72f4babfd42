"""
Sparse matrix assembly for finite element global systems.

Assembles element-level matrices and vectors into global sparse systems
using COO (coordinate) format accumulation followed by CSC conversion
for efficient solving.

Strategy:
    1. Loop over all elements
    2. Compute element matrix/vector via element-level routines
    3. Map local DOFs to global DOFs (one scalar DOF per node)
    4. Accumulate (row, col, val) triplets into COO arrays
    5. Convert to CSC for solver compatibility

The COO-to-CSC conversion automatically sums duplicate entries,
which is exactly the finite element assembly operation.
"""

import numpy as np
from scipy.sparse import coo_matrix

from ..elements.tri3 import stiffness_scalar_tri3, mass_tri3, boundary_mass_tri3
from ..elements.tri6 import stiffness_scalar_tri6, mass_tri6, boundary_mass_tri6


_STIFFNESS = {'tri3': stiffness_scalar_tri3, 'tri6': stiffness_scalar_tri6}
_MASS = {'tri3': mass_tri3, 'tri6': mass_tri6}
_BOUNDARY_MASS = {'tri3': boundary_mass_tri3, 'tri6': boundary_mass_tri6}


def assemble_global_matrix(mesh, element_matrix_func, **kwargs):
    """
    Assemble a global sparse matrix from element contributions.

    Parameters
    ----------
    mesh : Mesh
        The finite element mesh.
    element_matrix_func : callable
        element_matrix_func(coords, **kwargs) -> ndarray (n_local, n_local).
    **kwargs
        Passed to element_matrix_func. If a value is an ndarray of length
        N_elem, the e-th element receives the e-th entry.

    Returns
    -------
    K : scipy.sparse.csc_matrix, shape (N_nodes, N_nodes)
    """
    n_elem = mesh.n_elements
    n_local = mesh.elements.shape[1]
    n_nodes = mesh.n_nodes

    nnz_est = n_elem * n_local * n_local
    rows = np.empty(nnz_est, dtype=np.int64)
    cols = np.empty(nnz_est, dtype=np.int64)
    vals = np.empty(nnz_est, dtype=np.float64)

    idx = 0
    for e in range(n_elem):
        elem_kwargs = {}
        for key, val in kwargs.items():
            if isinstance(val, np.ndarray) and val.shape == (n_elem,):
                elem_kwargs[key] = val[e]
            else:
                elem_kwargs[key] = val

        K_e = element_matrix_func(mesh.element_coords(e), **elem_kwargs)
        conn = mesh.elements[e]

        block = slice(idx, idx + n_local * n_local)
        rows[block] = np.repeat(conn, n_local)
        cols[block] = np.tile(conn, n_local)
        vals[block] = K_e.ravel()
        idx += n_local * n_local

    K_coo = coo_matrix((vals[:idx], (rows[:idx], cols[:idx])),
                       shape=(n_nodes, n_nodes))
    return K_coo.tocsc()


def assemble_global_vector(mesh, element_vector_func, elements=None):
    """
    Assemble a global load vector from element contributions.

    Parameters
    ----------
    mesh : Mesh
    element_vector_func : callable
        element_vector_func(e) -> ndarray (n_local,).
    elements : iterable of int or None
        Elements to visit; default all.

    Returns
    -------
    f : ndarray, shape (N_nodes,)
    """
    f = np.zeros(mesh.n_nodes)
    if elements is None:
        elements = range(mesh.n_elements)
    for e in elements:
        np.add.at(f, mesh.elements[e], element_vector_func(e))
    return f


def assemble_scalar_stiffness(mesh, k_per_element):
    """
    Global stiffness matrix of -div(k grad u) for the mesh element type.

    Parameters
    ----------
    mesh : Mesh
    k_per_element : ndarray, shape (N_elem,)
        Diffusion coefficient of each element.

    Returns
    -------
    K : scipy.sparse.csc_matrix, shape (N_nodes, N_nodes)
    """
    k_per_element = _per_element(mesh, k_per_element, 'k_per_element')
    return assemble_global_matrix(
        mesh, _STIFFNESS[mesh.element_type],
        k=k_per_element, axisymmetric=mesh.axisymmetric,
    )


def assemble_scalar_mass(mesh, rho_per_element):
    """
    Global consistent mass matrix weighted by a per-element coefficient.

    Parameters
    ----------
    mesh : Mesh
    rho_per_element : ndarray, shape (N_elem,)

    Returns
    -------
    M : scipy.sparse.csc_matrix, shape (N_nodes, N_nodes)
    """
    rho_per_element = _per_element(mesh, rho_per_element, 'rho_per_element')
    return assemble_global_matrix(
        mesh, _MASS[mesh.element_type],
        rho=rho_per_element, axisymmetric=mesh.axisymmetric,
    )


def assemble_boundary_mass(mesh, boundary_tag, alpha):
    """
    Global Robin boundary matrix alpha * integral(N_i N_j) ds on a tag.

    Parameters
    ----------
    mesh : Mesh
    boundary_tag : str
        Key in mesh.boundary_edges.
    alpha : float or ndarray, shape (N_edges,)
        Robin coefficient, scalar or one value per edge of the tag.

    Returns
    -------
    H : scipy.sparse.csc_matrix, shape (N_nodes, N_nodes)

    Raises
    ------
    KeyError
        If boundary_tag is not found in mesh.boundary_edges.
    """
    if boundary_tag not in mesh.boundary_edges:
        raise KeyError(
            f"Boundary tag '{boundary_tag}' not found in mesh. "
            f"Available tags: {list(mesh.boundary_edges.keys())}"
        )

    edges = mesh.boundary_edges[boundary_tag]
    alpha = np.broadcast_to(np.asarray(alpha, dtype=np.float64), (len(edges),))

    edge_func = _BOUNDARY_MASS[mesh.element_type]
    rows, cols, vals = [], [], []
    for edge, alpha_e in zip(edges, alpha):
        edge_nodes = np.asarray(edge, dtype=np.int64)
        H_e = edge_func(mesh.nodes[edge_nodes], alpha_e,
                        axisymmetric=mesh.axisymmetric)
        n = len(edge_nodes)
        rows.append(np.repeat(edge_nodes, n))
        cols.append(np.tile(edge_nodes, n))
        vals.append(H_e.ravel())

    n_nodes = mesh.n_nodes
    if not vals:
        return coo_matrix((n_nodes, n_nodes)).tocsc()
    H = coo_matrix((np.concatenate(vals),
                    (np.concatenate(rows), np.concatenate(cols))),
                   shape=(n_nodes, n_nodes))
    return H.tocsc()


def _per_element(mesh, values, name):
    values = np.asarray(values, dtype=np.float64)
    if values.shape != (mesh.n_elements,):
        raise ValueError(
            f"{name} shape {values.shape} != ({mesh.n_elements},)"
        )
    return values
