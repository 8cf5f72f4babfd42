"""
Reference-to-physical mapping shared by Tri3 and Tri6 elements.

Both element types are used with straight edges, so the map from the
reference triangle is affine and fixed by the three corner nodes:

    x(xi, eta) = x0 + (x1 - x0) * xi + (x2 - x0) * eta

The Jacobian determinant is constant per element (twice the area).
"""

import numpy as np

from .tri3 import shape_table_tri3
from .tri6 import shape_table_tri6


ELEMENT_DEGREE = {'tri3': 1, 'tri6': 2}
ELEMENT_NODES = {'tri3': 3, 'tri6': 6}

_SHAPE_TABLES = {
    'tri3': shape_table_tri3,
    'tri6': shape_table_tri6,
}


def shape_table(element_type, points):
    """Shape function values of ``element_type`` at reference points.

    Parameters
    ----------
    element_type : str
        'tri3' or 'tri6'.
    points : ndarray, shape (n_qp, 2)

    Returns
    -------
    table : ndarray, shape (n_qp, n_nodes)
    """
    try:
        func = _SHAPE_TABLES[element_type]
    except KeyError:
        raise ValueError(
            f"Unknown element type '{element_type}'. "
            f"Available: {sorted(_SHAPE_TABLES)}"
        ) from None
    return func(points)


def map_to_physical(coords, points):
    """Map reference points into an element and return the area scale.

    Parameters
    ----------
    coords : ndarray, shape (n_nodes, 2)
        Element node coordinates; only the three corners are used.
    points : ndarray, shape (n_qp, 2)
        Reference coordinates (xi, eta).

    Returns
    -------
    xy : ndarray, shape (n_qp, 2)
        Physical coordinates of the points.
    detJ : float
        Absolute Jacobian determinant (2 * element area).
    """
    x0 = coords[0]
    e1 = coords[1] - x0
    e2 = coords[2] - x0
    detJ = abs(e1[0] * e2[1] - e2[0] * e1[1])
    points = np.asarray(points, dtype=np.float64)
    xy = x0 + np.outer(points[:, 0], e1) + np.outer(points[:, 1], e2)
    return xy, detJ


def volume_weight(xy, axisymmetric):
    """Geometry weight at physical points: 2*pi*r or 1.

    Parameters
    ----------
    xy : ndarray, shape (n_qp, 2)
    axisymmetric : bool

    Returns
    -------
    w : ndarray, shape (n_qp,)
    """
    if axisymmetric:
        return 2.0 * np.pi * np.maximum(xy[:, 0], 0.0)
    return np.ones(len(xy))


def weighted_load(table, source_values, weights, detJ, w_geom):
    """Element load vector f_i = sum_q w_q * S_q * N_i(q) * |J| * w_geom(q).

    Parameters
    ----------
    table : ndarray, shape (n_qp, n_nodes)
        Shape functions at the quadrature points.
    source_values : ndarray, shape (n_qp,)
        Source density sampled at the quadrature points.
    weights : ndarray, shape (n_qp,)
        Reference quadrature weights.
    detJ : float
    w_geom : ndarray, shape (n_qp,)

    Returns
    -------
    f_e : ndarray, shape (n_nodes,)
    """
    return table.T @ (weights * source_values * w_geom) * detJ
