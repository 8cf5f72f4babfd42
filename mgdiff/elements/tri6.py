"""
6-node quadratic triangle element for the group diffusion operator.

Node numbering (counter-clockwise, mid-edge nodes follow corners):

    2
    |\\
    5  4
    |    \\
    0--3--1

    Corner nodes: 0, 1, 2
    Mid-edge nodes: 3 (between 0-1), 4 (between 1-2), 5 (between 2-0)

Area coordinates:
    L1 = 1 - xi - eta,  L2 = xi,  L3 = eta

Shape functions (quadratic):
    N0 = L1 * (2*L1 - 1)
    N1 = L2 * (2*L2 - 1)
    N2 = L3 * (2*L3 - 1)
    N3 = 4 * L1 * L2
    N4 = 4 * L2 * L3
    N5 = 4 * L3 * L1

Element matrices are integrated numerically. With straight edges the
mapping is affine, so the rule is chosen from the integrand degree:
    stiffness: grad.grad is degree 2 (+1 for r)  ->  6-point rule
    mass:      N_i N_j is degree 4 (+1 for r)     ->  7-point rule
"""

import numpy as np
from .quadrature import triangle_rule, line_rule


def shape_functions_tri6(xi, eta):
    """
    Evaluate Tri6 shape functions at parametric point (xi, eta).

    Parameters
    ----------
    xi : float or ndarray
    eta : float or ndarray

    Returns
    -------
    N : ndarray, shape (6,) or (6, n_points)
        Shape function values [N0, N1, N2, N3, N4, N5].
    """
    L1 = 1.0 - xi - eta
    L2 = xi
    L3 = eta

    return np.array([
        L1 * (2.0 * L1 - 1.0),
        L2 * (2.0 * L2 - 1.0),
        L3 * (2.0 * L3 - 1.0),
        4.0 * L1 * L2,
        4.0 * L2 * L3,
        4.0 * L3 * L1,
    ])


def shape_table_tri6(points):
    """Shape function values at a set of reference points.

    Parameters
    ----------
    points : ndarray, shape (n_qp, 2)

    Returns
    -------
    table : ndarray, shape (n_qp, 6)
    """
    points = np.asarray(points, dtype=np.float64)
    return shape_functions_tri6(points[:, 0], points[:, 1]).T


def shape_gradients_tri6(xi, eta):
    """
    Evaluate Tri6 shape function gradients in parametric space.

    Parameters
    ----------
    xi : float
    eta : float

    Returns
    -------
    dN_dxi : ndarray, shape (2, 6)
        dN_dxi[0, :] = dN_i/d(xi), dN_dxi[1, :] = dN_i/d(eta).
    """
    L1 = 1.0 - xi - eta
    L2 = xi
    L3 = eta

    dN_dxi = np.zeros((2, 6))

    dN_dxi[0, 0] = -(4.0 * L1 - 1.0)
    dN_dxi[1, 0] = -(4.0 * L1 - 1.0)

    dN_dxi[0, 1] = 4.0 * L2 - 1.0
    dN_dxi[1, 1] = 0.0

    dN_dxi[0, 2] = 0.0
    dN_dxi[1, 2] = 4.0 * L3 - 1.0

    dN_dxi[0, 3] = 4.0 * (L1 - L2)
    dN_dxi[1, 3] = -4.0 * L2

    dN_dxi[0, 4] = 4.0 * L3
    dN_dxi[1, 4] = 4.0 * L2

    dN_dxi[0, 5] = -4.0 * L3
    dN_dxi[1, 5] = 4.0 * (L1 - L3)

    return dN_dxi


def jacobian_tri6(xi, eta, coords):
    """
    Compute the Jacobian matrix and its determinant for a Tri6 element.

    J = dN_dxi @ coords = [[dx/dxi, dy/dxi],
                            [dx/deta, dy/deta]]

    Parameters
    ----------
    xi : float
    eta : float
    coords : ndarray, shape (6, 2)
        Physical coordinates of all 6 nodes.

    Returns
    -------
    J : ndarray, shape (2, 2)
    detJ : float

    Raises
    ------
    ValueError
        If the Jacobian determinant is non-positive.
    """
    dN_dxi = shape_gradients_tri6(xi, eta)
    J = dN_dxi @ coords
    detJ = J[0, 0] * J[1, 1] - J[0, 1] * J[1, 0]

    if detJ <= 0.0:
        raise ValueError(
            f"Non-positive Jacobian determinant: {detJ:.6e}. "
            "Check element node ordering (must be CCW) and mid-node positions."
        )

    return J, detJ


def _radius_weight(coords, N, axisymmetric):
    if not axisymmetric:
        return 1.0
    r = max(float(N @ coords[:, 0]), 0.0)
    return 2.0 * np.pi * r


def stiffness_scalar_tri6(coords, k, axisymmetric=False):
    """
    Element stiffness matrix for scalar diffusion on Tri6.

    K_e = integral(k * dN^T dN * w) dA,  w = 2*pi*r (axisymmetric) or 1

    Parameters
    ----------
    coords : ndarray, shape (6, 2)
    k : float
        Diffusion coefficient.
    axisymmetric : bool, optional

    Returns
    -------
    K_e : ndarray, shape (6, 6)
    """
    gpts, gwts = triangle_rule(3 if axisymmetric else 2)
    K_e = np.zeros((6, 6))

    for (xi, eta), wt in zip(gpts, gwts):
        J, detJ = jacobian_tri6(xi, eta, coords)
        dN = np.linalg.solve(J, shape_gradients_tri6(xi, eta))
        N = shape_functions_tri6(xi, eta)
        K_e += wt * _radius_weight(coords, N, axisymmetric) * detJ * (dN.T @ dN)

    return k * K_e


def mass_tri6(coords, rho=1.0, axisymmetric=False):
    """
    Consistent scalar mass matrix for Tri6.

    M_e = integral(rho * N^T N * w) dA

    Parameters
    ----------
    coords : ndarray, shape (6, 2)
    rho : float, optional
        Reaction coefficient. Default 1.0.
    axisymmetric : bool, optional

    Returns
    -------
    M_e : ndarray, shape (6, 6)
    """
    gpts, gwts = triangle_rule(5 if axisymmetric else 4)
    M_e = np.zeros((6, 6))

    for (xi, eta), wt in zip(gpts, gwts):
        _, detJ = jacobian_tri6(xi, eta, coords)
        N = shape_functions_tri6(xi, eta)
        M_e += wt * _radius_weight(coords, N, axisymmetric) * detJ * np.outer(N, N)

    return rho * M_e


def boundary_mass_tri6(coords_edge, alpha, axisymmetric=False):
    """
    Boundary mass matrix for a Robin condition on a quadratic edge.

    Edge nodes are ordered (a, mid, b) and parameterized by t in [0, 1]:
        N_a = (1 - t)(1 - 2t),  N_mid = 4t(1 - t),  N_b = t(2t - 1)

    Parameters
    ----------
    coords_edge : ndarray, shape (3, 2)
        Coordinates of the edge nodes (a, mid, b); the edge is straight.
    alpha : float
        Robin coefficient.
    axisymmetric : bool, optional

    Returns
    -------
    H_e : ndarray, shape (3, 3)
    """
    a = coords_edge[0]
    b = coords_edge[2]
    L = np.linalg.norm(b - a)

    gp, gw = line_rule(5 if axisymmetric else 4)
    H_e = np.zeros((3, 3))
    for t, w in zip(gp, gw):
        N = np.array([(1.0 - t) * (1.0 - 2.0 * t),
                      4.0 * t * (1.0 - t),
                      t * (2.0 * t - 1.0)])
        if axisymmetric:
            r = max((1.0 - t) * a[0] + t * b[0], 0.0)
            weight = 2.0 * np.pi * r
        else:
            weight = 1.0
        H_e += w * alpha * weight * L * np.outer(N, N)

    return H_e
