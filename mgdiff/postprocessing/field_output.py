"""
Post-processing utilities for eigenvalue solutions.

Functions:
    element_volumes:          Element volumes (r-z) or areas (cartesian)
    element_fission_density:  Element-averaged fission rate sum_g Sf_g phi_g
    normalize_to_power:       Scale fluxes and fission density to a thermal power
    nodal_average:            Element-centered values -> node-averaged values
    extract_line:             Sample a group flux along a line segment
    save_results:             JSON summary + NPZ arrays
"""

import json
import logging
import os

import numpy as np

from .. import config
from ..elements.quadrature import triangle_rule
from ..elements.mapping import map_to_physical, volume_weight
from ..fields.flux import GroupFluxField

log = logging.getLogger(__name__)


def element_volumes(mesh):
    """Element volumes [cm^3] in r-z (exact integral of 2*pi*r), areas otherwise.

    Returns
    -------
    volumes : ndarray, shape (N_elem,)
    """
    areas = np.abs([mesh.element_area(e) for e in range(mesh.n_elements)])
    if not mesh.axisymmetric:
        return areas
    r_c = np.array([np.mean(mesh.element_coords(e)[:3, 0])
                    for e in range(mesh.n_elements)])
    return 2.0 * np.pi * np.maximum(r_c, 0.0) * areas


def element_fission_density(mesh, fluxes, parameters):
    """Element-averaged fission rate density F_e = <sum_g Sf_g phi_g>_e.

    The average is volume weighted (2*pi*r in r-z) and exact for the
    polynomial fluxes. Reflector elements return zero.

    Parameters
    ----------
    mesh : Mesh
    fluxes : sequence of GroupFluxField
    parameters : PhysicalParameterTable

    Returns
    -------
    density : ndarray, shape (N_elem,)
        Fissions per unit volume per unit time (in flux units).
    """
    weight_degree = 1 if mesh.axisymmetric else 0
    points, weights = triangle_rule(mesh.degree + weight_degree)

    density = np.zeros(mesh.n_elements)
    for e in range(mesh.n_elements):
        region = parameters.region(mesh.region_ids[e])
        if not region.fissile:
            continue
        sigma_f = region.constants.fission
        values = np.zeros(len(points))
        for g, phi in enumerate(fluxes):
            if sigma_f[g] != 0.0:
                values += sigma_f[g] * phi.evaluate(e, points)

        xy, detJ = map_to_physical(mesh.element_coords(e), points)
        w = weights * detJ * volume_weight(xy, mesh.axisymmetric)
        if w.sum() > 0.0:
            density[e] = (w @ values) / w.sum()
    return density


def normalize_to_power(mesh, fluxes, fission_density, total_power,
                       energy_per_fission=config.ENERGY_PER_FISSION):
    """Scale fluxes so the fission power integrates to ``total_power``.

        P = E_f * sum_e F_e * V_e

    Parameters
    ----------
    mesh : Mesh
    fluxes : sequence of GroupFluxField
    fission_density : ndarray, shape (N_elem,)
        Output of element_fission_density for ``fluxes``.
    total_power : float
        Thermal power [W].
    energy_per_fission : float
        Recoverable energy per fission [J].

    Returns
    -------
    fluxes : list of GroupFluxField
        Scaled fluxes.
    power_density : ndarray, shape (N_elem,)
        Power density per element [W / volume unit].
    scale : float
        Applied flux scale factor.

    Raises
    ------
    ValueError
        If total_power <= 0 or the fission rate is zero.
    """
    if total_power <= 0.0:
        raise ValueError(f"total_power must be > 0, got {total_power}")

    raw_power = energy_per_fission * float(np.sum(fission_density * element_volumes(mesh)))
    if raw_power <= 0.0:
        raise ValueError("Cannot normalize: total fission rate is not positive")

    scale = total_power / raw_power
    scaled = [GroupFluxField(phi.mesh, phi.coefficients * scale, group=phi.group)
              for phi in fluxes]
    power_density = energy_per_fission * fission_density * scale
    log.debug("Flux scale factor for %.4g W: %.6e", total_power, scale)
    return scaled, power_density, scale


def nodal_average(mesh, element_values):
    """Average element-centered values to nodes.

    Every node (corner and mid-edge) receives the mean over the elements
    sharing it.

    Parameters
    ----------
    mesh : Mesh
    element_values : ndarray, shape (N_elem,) or (N_elem, M)

    Returns
    -------
    nodal_values : ndarray, shape (N_nodes,) or (N_nodes, M)
    """
    element_values = np.asarray(element_values, dtype=np.float64)
    is_1d = element_values.ndim == 1
    if is_1d:
        element_values = element_values[:, np.newaxis]

    n_local = mesh.elements.shape[1]
    nodal_sum = np.zeros((mesh.n_nodes, element_values.shape[1]))
    nodal_count = np.zeros(mesh.n_nodes)
    np.add.at(nodal_sum, mesh.elements.ravel(),
              np.repeat(element_values, n_local, axis=0))
    np.add.at(nodal_count, mesh.elements.ravel(), 1.0)

    nodal_values = nodal_sum / np.maximum(nodal_count, 1.0)[:, np.newaxis]
    return nodal_values[:, 0] if is_1d else nodal_values


def extract_line(field, start, end, n_points=100):
    """Sample a group flux along the segment start -> end.

    Parameters
    ----------
    field : GroupFluxField
    start, end : array_like, shape (2,)
        End points [x, y] or [r, z].
    n_points : int

    Returns
    -------
    distances : ndarray, shape (n_found,)
        Arc length from start of the points that fall inside the mesh.
    values : ndarray, shape (n_found,)
    """
    start = np.asarray(start, dtype=np.float64)
    end = np.asarray(end, dtype=np.float64)
    line_vec = end - start
    total_length = np.linalg.norm(line_vec)

    distances = []
    values = []
    for t in np.linspace(0.0, 1.0, n_points):
        located = _locate(field.mesh, start + t * line_vec)
        if located is not None:
            e, ref = located
            distances.append(t * total_length)
            values.append(float(field.evaluate(e, ref[np.newaxis, :])[0]))

    return np.array(distances), np.array(values)


def _locate(mesh, point, tol=1e-9):
    """Element containing ``point`` and its reference coordinates, or None."""
    px, py = point
    for e in range(mesh.n_elements):
        (x0, y0), (x1, y1), (x2, y2) = mesh.element_coords(e)[:3]
        detT = (x1 - x0) * (y2 - y0) - (x2 - x0) * (y1 - y0)
        if abs(detT) < 1e-30:
            continue
        xi = ((y2 - y0) * (px - x0) - (x2 - x0) * (py - y0)) / detT
        eta = (-(y1 - y0) * (px - x0) + (x1 - x0) * (py - y0)) / detT
        if xi >= -tol and eta >= -tol and xi + eta <= 1.0 + tol:
            return e, np.array([xi, eta])
    return None


def save_results(result, output_dir):
    """Write ``results.json`` and ``fluxes.npz`` into output_dir.

    Parameters
    ----------
    result : NeutronicsResult
    output_dir : str

    Returns
    -------
    paths : dict
        {'json': path, 'npz': path}
    """
    os.makedirs(output_dir, exist_ok=True)

    summary = {
        'problem': result.problem,
        'keff': result.keff,
        'iterations': result.iterations,
        'converged': result.converged,
        'n_groups': len(result.fluxes),
        'n_nodes': result.mesh.n_nodes,
        'n_elements': result.mesh.n_elements,
        'element_type': result.mesh.element_type,
        'relative_changes': [float(c) for c in result.relative_changes],
        'k_history': [float(k) for k in result.k_history],
        'peak_flux': [phi.max() for phi in result.fluxes],
        'total_power': result.total_power,
    }
    json_path = os.path.join(output_dir, 'results.json')
    with open(json_path, 'w') as f:
        json.dump(summary, f, indent=2)

    arrays = {
        'nodes': result.mesh.nodes,
        'elements': result.mesh.elements,
        'region_ids': result.mesh.region_ids,
        'fission_density': result.fission_density,
    }
    for phi in result.fluxes:
        arrays[f'flux_g{phi.group + 1}'] = phi.coefficients
    if result.power_density is not None:
        arrays['power_density'] = result.power_density
    npz_path = os.path.join(output_dir, 'fluxes.npz')
    np.savez(npz_path, **arrays)

    log.info("Results written to %s", output_dir)
    return {'json': json_path, 'npz': npz_path}
