"""
3-node linear triangle element for the group diffusion operator.

Node numbering (counter-clockwise):
    2
    |\\
    | \\
    |  \\
    0---1

Parametric coordinates (xi, eta):
    Node 0: (0, 0)  ->  L1 = 1 - xi - eta
    Node 1: (1, 0)  ->  L2 = xi
    Node 2: (0, 1)  ->  L3 = eta

Shape functions:
    N1 = 1 - xi - eta
    N2 = xi
    N3 = eta

For linear triangles, shape function gradients are constant over the
element, so all element matrices are available in closed form.

Axisymmetric mode:
    (x, y) -> (r, z), integrands carry the volume weight 2*pi*r.
    Stiffness: r enters linearly, so the centroid value is exact.
    Mass: r * N_i * N_j is cubic; the exact moment formula is used:
        integral(r L_i L_j) = A/60 * (2 r_i + 2 r_j + r_k)   (i != j)
        integral(r L_i^2)   = A/30 * (3 r_i + r_j + r_k)
"""

import numpy as np
from .quadrature import gauss_line_2pt


def shape_functions_tri3(xi, eta):
    """
    Evaluate Tri3 shape functions at parametric point (xi, eta).

    Parameters
    ----------
    xi : float or ndarray
        First parametric coordinate (0 <= xi <= 1).
    eta : float or ndarray
        Second parametric coordinate (0 <= eta <= 1-xi).

    Returns
    -------
    N : ndarray, shape (3,) or (3, n_points)
        Shape function values [N1, N2, N3].
    """
    return np.array([1.0 - xi - eta, xi, eta])


def shape_table_tri3(points):
    """Shape function values at a set of reference points.

    Parameters
    ----------
    points : ndarray, shape (n_qp, 2)

    Returns
    -------
    table : ndarray, shape (n_qp, 3)
    """
    points = np.asarray(points, dtype=np.float64)
    return shape_functions_tri3(points[:, 0], points[:, 1]).T


def shape_gradients_tri3(coords):
    """
    Compute shape function gradients in physical coordinates for Tri3.

    Derived from the inverse Jacobian mapping:
        J = [[x2-x1, x3-x1],    dN/d(x,y) = J^{-T} * dN/d(xi,eta)
             [y2-y1, y3-y1]]

    Parameters
    ----------
    coords : ndarray, shape (3, 2)
        Physical coordinates of the 3 nodes: [[x0,y0], [x1,y1], [x2,y2]].

    Returns
    -------
    dN : ndarray, shape (2, 3)
        Shape function gradients: dN[0,:] = dN_i/dx, dN[1,:] = dN_i/dy.
    area : float
        Area of the triangle (positive for CCW node ordering).

    Raises
    ------
    ValueError
        If the element has zero area (degenerate triangle).
    """
    x0, y0 = coords[0]
    x1, y1 = coords[1]
    x2, y2 = coords[2]

    # Jacobian determinant = 2 * area
    detJ = (x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0)
    area = 0.5 * detJ

    if abs(detJ) < 1e-30:
        raise ValueError(
            f"Degenerate triangle with near-zero area: {area:.2e}"
        )

    inv_detJ = 1.0 / detJ
    dN = inv_detJ * np.array([
        [y1 - y2, y2 - y0, y0 - y1],
        [x2 - x1, x0 - x2, x1 - x0],
    ])

    return dN, area


def stiffness_scalar_tri3(coords, k, axisymmetric=False):
    """
    Element stiffness matrix for scalar diffusion on Tri3.

    Cartesian:
        K_e = k * A * B^T * B
        where B = dN (2x3 gradient matrix), A = element area

    Axisymmetric (r-z):
        K_e = k * 2*pi*r_c * A * B^T * B
        where r_c = centroid radial coordinate (exact, integrand linear in r)

    Parameters
    ----------
    coords : ndarray, shape (3, 2)
        Node coordinates. In axisymmetric mode: [[r0,z0], [r1,z1], [r2,z2]].
    k : float
        Diffusion coefficient.
    axisymmetric : bool, optional
        If True, include 2*pi*r weighting. Default False.

    Returns
    -------
    K_e : ndarray, shape (3, 3)
        Element stiffness matrix (symmetric positive semi-definite).
    """
    dN, area = shape_gradients_tri3(coords)

    K_e = k * abs(area) * (dN.T @ dN)

    if axisymmetric:
        r_c = max(np.mean(coords[:, 0]), 0.0)
        K_e *= 2.0 * np.pi * r_c

    return K_e


def mass_tri3(coords, rho=1.0, axisymmetric=False):
    """
    Consistent mass matrix for Tri3 element.

    Cartesian:
        M_e = rho * A/12 * [[2, 1, 1],
                             [1, 2, 1],
                             [1, 1, 2]]

    Axisymmetric (exact cubic moments, see module docstring):
        M_e[i, j] = rho * 2*pi * integral(r N_i N_j) dA

    Parameters
    ----------
    coords : ndarray, shape (3, 2)
        Node coordinates.
    rho : float, optional
        Reaction coefficient (cross-section). Default 1.0.
    axisymmetric : bool, optional
        If True, include 2*pi*r weighting. Default False.

    Returns
    -------
    M_e : ndarray, shape (3, 3)
        Consistent mass matrix (symmetric positive definite for rho > 0).
    """
    _, area = shape_gradients_tri3(coords)
    A = abs(area)

    if not axisymmetric:
        return rho * A / 12.0 * np.array([
            [2.0, 1.0, 1.0],
            [1.0, 2.0, 1.0],
            [1.0, 1.0, 2.0],
        ])

    r = np.maximum(coords[:, 0], 0.0)
    r_sum = np.sum(r)
    M_e = np.empty((3, 3))
    for i in range(3):
        for j in range(3):
            if i == j:
                M_e[i, j] = A / 30.0 * (2.0 * r[i] + r_sum)
            else:
                M_e[i, j] = A / 60.0 * (r[i] + r[j] + r_sum)

    return rho * 2.0 * np.pi * M_e


def boundary_mass_tri3(coords_edge, alpha, axisymmetric=False):
    """
    Boundary mass matrix for a Robin condition on a Tri3 edge.

    Robin BC: D * dphi/dn + alpha * phi = 0
    This contributes alpha * integral(N_i * N_j) over the edge to the
    global matrix (alpha = 0.5 * D for the vacuum condition).

    Cartesian:
        H_e = alpha * L/6 * [[2, 1],
                              [1, 2]]
        where L = edge length.

    Axisymmetric:
        2-point Gauss quadrature with 2*pi*r at each point (exact, cubic).

    Parameters
    ----------
    coords_edge : ndarray, shape (2, 2)
        Coordinates of the two edge nodes [[x_a, y_a], [x_b, y_b]].
    alpha : float
        Robin coefficient.
    axisymmetric : bool, optional
        If True, include 2*pi*r factor via numerical integration.

    Returns
    -------
    H_e : ndarray, shape (2, 2)
    """
    dx = coords_edge[1, 0] - coords_edge[0, 0]
    dy = coords_edge[1, 1] - coords_edge[0, 1]
    L = np.sqrt(dx * dx + dy * dy)

    if not axisymmetric:
        return alpha * L / 6.0 * np.array([
            [2.0, 1.0],
            [1.0, 2.0],
        ])

    gp, gw = gauss_line_2pt()
    H_e = np.zeros((2, 2))
    for t, w in zip(gp, gw):
        N = np.array([1.0 - t, t])
        r = (1.0 - t) * coords_edge[0, 0] + t * coords_edge[1, 0]
        r = max(r, 0.0)
        H_e += w * alpha * 2.0 * np.pi * r * L * np.outer(N, N)

    return H_e
