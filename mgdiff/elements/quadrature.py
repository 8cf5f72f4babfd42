"""
Gauss quadrature rules for triangular and line elements.

All triangle rules use the parametric coordinates (xi, eta) where the
area coordinates are:
    L1 = 1 - xi - eta
    L2 = xi
    L3 = eta

The reference triangle has vertices at (0,0), (1,0), (0,1) with area 1/2.
Weights include the 1/2 factor (area of reference triangle), so that:

    integral over ref triangle of f dA = sum_i w_i * f(xi_i, eta_i)

Rule selection by polynomial degree (``triangle_rule``):
    degree <= 1  ->  1-point centroid rule
    degree <= 2  ->  3-point rule
    degree <= 4  ->  6-point Dunavant rule
    degree <= 5  ->  7-point Hammer-Stroud rule
    degree >= 6  ->  collapsed Gauss-Legendre (conical product) rule

Under-integrating the fission source slows down or destabilizes the
eigenvalue iteration, so callers ask for the degree of the full integrand
(field degree + geometry weight degree) rather than a fixed rule.

References:
    - Dunavant, D.A. "High degree efficient symmetrical Gaussian
      quadrature rules for the triangle." IJNME, 21(6), 1985.
    - Hammer, P.C. et al. "Numerical integration over simplexes
      and cones." Math Tables Aids Comput., 10(55), 1956.
    - Stroud, A.H. "Approximate Calculation of Multiple Integrals", 1971.
"""

import numpy as np


def gauss_triangle_1pt():
    """
    1-point Gauss quadrature for triangle (exact for degree 1 polynomials).

    Returns
    -------
    points : ndarray, shape (1, 2)
        Quadrature points in (xi, eta) coordinates.
    weights : ndarray, shape (1,)
        Quadrature weights (include 1/2 factor).
    """
    points = np.array([[1.0 / 3.0, 1.0 / 3.0]])
    weights = np.array([0.5])
    return points, weights


def gauss_triangle_3pt():
    """
    3-point Gauss quadrature for triangle (exact for degree 2 polynomials).

    Points (1/6, 1/6), (2/3, 1/6), (1/6, 2/3), each with weight 1/6.

    Returns
    -------
    points : ndarray, shape (3, 2)
    weights : ndarray, shape (3,)
    """
    points = np.array([
        [1.0 / 6.0, 1.0 / 6.0],
        [2.0 / 3.0, 1.0 / 6.0],
        [1.0 / 6.0, 2.0 / 3.0],
    ])
    weights = np.array([1.0 / 6.0, 1.0 / 6.0, 1.0 / 6.0])
    return points, weights


def gauss_triangle_6pt():
    """
    6-point Dunavant quadrature for triangle (exact for degree 4 polynomials).

    Two symmetry orbits of area coordinates (a, b, b):
        Orbit 1: a1 = 0.108103018168070, w1 = 0.223381589678011
        Orbit 2: a2 = 0.816847572980459, w2 = 0.109951743655322

    Returns
    -------
    points : ndarray, shape (6, 2)
    weights : ndarray, shape (6,)
    """
    a1 = 0.108103018168070
    b1 = 0.445948490915965  # (1 - a1) / 2
    w1 = 0.223381589678011

    a2 = 0.816847572980459
    b2 = 0.091576213509771  # (1 - a2) / 2
    w2 = 0.109951743655322

    points = np.array([
        [b1, b1], [a1, b1], [b1, a1],
        [b2, b2], [a2, b2], [b2, a2],
    ])
    weights = np.array([w1, w1, w1, w2, w2, w2]) * 0.5
    return points, weights


def gauss_triangle_7pt():
    """
    7-point Gauss quadrature for triangle (exact for degree 5 polynomials).

    Hammer-Stroud rule with 3 symmetry orbits (centroid + two orbits),
    coordinates and weights from Dunavant (1985), multiplied by 1/2 for
    the reference triangle area.

    Returns
    -------
    points : ndarray, shape (7, 2)
    weights : ndarray, shape (7,)
    """
    p0 = [1.0 / 3.0, 1.0 / 3.0]
    w0 = 0.225

    a1 = 0.059715871789770
    b1 = 0.470142064105115  # (1 - a1) / 2
    w1 = 0.132394152788506

    a2 = 0.797426985353087
    b2 = 0.101286507323456  # (1 - a2) / 2
    w2 = 0.125939180544827

    points = np.array([p0,
                       [b1, b1], [a1, b1], [b1, a1],
                       [b2, b2], [a2, b2], [b2, a2]])
    weights = np.array([w0, w1, w1, w1, w2, w2, w2]) * 0.5
    return points, weights


def gauss_triangle_collapsed(degree):
    """
    Conical-product rule exact for polynomials of the given degree.

    The unit square (u, v) is collapsed onto the reference triangle by
        xi = u,  eta = (1 - u) * v,  dA = (1 - u) du dv
    A degree-p integrand becomes degree p+1 in u and degree p in v, so
    n = ceil((p + 2) / 2) Gauss-Legendre points per direction suffice.

    Parameters
    ----------
    degree : int
        Polynomial degree to integrate exactly.

    Returns
    -------
    points : ndarray, shape (n*n, 2)
    weights : ndarray, shape (n*n,)
    """
    n = max(1, int(np.ceil((degree + 2) / 2.0)))
    s, w = np.polynomial.legendre.leggauss(n)
    t = 0.5 * (1.0 + s)
    wt = 0.5 * w

    u, v = np.meshgrid(t, t, indexing='ij')
    wu, wv = np.meshgrid(wt, wt, indexing='ij')

    xi = u.ravel()
    eta = ((1.0 - u) * v).ravel()
    weights = (wu * wv * (1.0 - u)).ravel()
    return np.column_stack([xi, eta]), weights


def triangle_rule(degree):
    """Lowest-cost triangle rule that integrates ``degree`` exactly.

    Parameters
    ----------
    degree : int
        Polynomial degree of the integrand in (xi, eta).

    Returns
    -------
    points : ndarray, shape (n_qp, 2)
    weights : ndarray, shape (n_qp,)
    """
    if degree < 0:
        raise ValueError(f"Quadrature degree must be non-negative, got {degree}")
    if degree <= 1:
        return gauss_triangle_1pt()
    if degree <= 2:
        return gauss_triangle_3pt()
    if degree <= 4:
        return gauss_triangle_6pt()
    if degree <= 5:
        return gauss_triangle_7pt()
    return gauss_triangle_collapsed(degree)


def gauss_line_2pt():
    """
    2-point Gauss quadrature on the reference line segment [0, 1].

    On [0, 1]:
        t_i = (1 +/- 1/sqrt(3)) / 2
        w_i = 1/2

    Returns
    -------
    points : ndarray, shape (2,)
    weights : ndarray, shape (2,)
    """
    s = 1.0 / np.sqrt(3.0)
    points = np.array([0.5 * (1.0 - s), 0.5 * (1.0 + s)])
    weights = np.array([0.5, 0.5])
    return points, weights


def line_rule(degree):
    """Gauss-Legendre rule on [0, 1] exact for the given degree.

    Parameters
    ----------
    degree : int

    Returns
    -------
    points : ndarray, shape (n,)
    weights : ndarray, shape (n,)
    """
    if degree <= 3:
        return gauss_line_2pt()
    n = int(np.ceil((degree + 1) / 2.0))
    s, w = np.polynomial.legendre.leggauss(n)
    return 0.5 * (1.0 + s), 0.5 * w
