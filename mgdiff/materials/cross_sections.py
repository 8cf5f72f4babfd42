"""
Multi-group physical parameter table.

Per-region group constants for the diffusion eigenproblem:

    -div(D_g grad phi_g) + Sr_g phi_g - sum_{g' != g} Ss(g'->g) phi_g'
        = chi_g / k * sum_g' nu_g' Sf_g' phi_g'

Regions come in two variants, resolved once when the table is built:
    Reflector  : no fission; nu * Sf and chi read as zero
    ActiveCore : fissile; the fission source integral is taken here

The scattering matrix is indexed [g_from, g_to]. Within-group scattering
is already folded into the removal cross-section, so its diagonal is
ignored by the assembler.

Usage:
    table = PhysicalParameterTable.from_dict({
        'n_groups': 1,
        'regions': [{'id': 1, 'kind': 'active_core', 'name': 'fuel',
                     'diffusion': [1.0], 'removal': [0.02],
                     'nu': [2.5], 'fission': [0.012], 'chi': [1.0]}],
    })
"""

import numpy as np
from dataclasses import dataclass
from typing import Dict


@dataclass(frozen=True)
class GroupConstants:
    """Group constants of one material region.

    Attributes
    ----------
    diffusion : ndarray, shape (G,)
        Diffusion coefficients D_g [cm].
    removal : ndarray, shape (G,)
        Removal cross-sections Sr_g [1/cm].
    scattering : ndarray, shape (G, G)
        Group transfer cross-sections Ss[g_from, g_to] [1/cm].
    nu : ndarray, shape (G,)
        Neutrons per fission.
    fission : ndarray, shape (G,)
        Fission cross-sections Sf_g [1/cm].
    chi : ndarray, shape (G,)
        Fission spectrum.
    """
    diffusion: np.ndarray
    removal: np.ndarray
    scattering: np.ndarray
    nu: np.ndarray
    fission: np.ndarray
    chi: np.ndarray

    @classmethod
    def create(cls, diffusion, removal, scattering=None, nu=None,
               fission=None, chi=None):
        """Build and validate constants; omitted entries default to zero."""
        diffusion = _as_vector(diffusion, 'diffusion')
        G = len(diffusion)
        removal = _as_vector(removal, 'removal', G)

        if scattering is None:
            scattering = np.zeros((G, G))
        scattering = np.array(scattering, dtype=np.float64)
        if scattering.shape != (G, G):
            raise ValueError(
                f"scattering must have shape ({G}, {G}), got {scattering.shape}"
            )

        nu = np.zeros(G) if nu is None else _as_vector(nu, 'nu', G)
        fission = np.zeros(G) if fission is None else _as_vector(fission, 'fission', G)
        chi = np.zeros(G) if chi is None else _as_vector(chi, 'chi', G)

        if np.any(diffusion <= 0.0):
            raise ValueError(f"diffusion coefficients must be > 0, got {diffusion}")
        for name, arr in (('removal', removal), ('scattering', scattering),
                          ('nu', nu), ('fission', fission), ('chi', chi)):
            if np.any(arr < 0.0):
                raise ValueError(f"{name} must be non-negative, got {arr}")

        for arr in (diffusion, removal, scattering, nu, fission, chi):
            arr.setflags(write=False)
        return cls(diffusion, removal, scattering, nu, fission, chi)

    @property
    def n_groups(self):
        return len(self.diffusion)

    @property
    def nu_fission(self):
        """nu_g * Sf_g, shape (G,)."""
        return self.nu * self.fission


def _as_vector(values, name, n=None):
    arr = np.array(values, dtype=np.float64).ravel()
    if n is not None and arr.shape != (n,):
        raise ValueError(f"{name} must have {n} entries, got {arr.shape[0]}")
    return arr


class Region:
    """A material zone of the problem, identified by its integer region id."""

    kind = None
    fissile = False

    def __init__(self, region_id, constants, name=None):
        self.region_id = int(region_id)
        self.constants = constants
        self.name = name or f"{self.kind}-{self.region_id}"

    def nu_fission(self):
        return np.zeros(self.constants.n_groups)

    def chi(self):
        return np.zeros(self.constants.n_groups)

    def __repr__(self):
        return f"<{type(self).__name__} id={self.region_id} name={self.name!r}>"


class Reflector(Region):
    """Non-multiplying region; contributes no fission source."""

    kind = 'reflector'


class ActiveCore(Region):
    """Fissile region over which the fission source integral is taken."""

    kind = 'active_core'
    fissile = True

    def nu_fission(self):
        return self.constants.nu_fission

    def chi(self):
        return self.constants.chi


REGION_KINDS = {
    Reflector.kind: Reflector,
    ActiveCore.kind: ActiveCore,
}


class PhysicalParameterTable:
    """Read-only group constants keyed by region id.

    Parameters
    ----------
    regions : iterable of Region
        One entry per region id; all must share the same group count.
    """

    def __init__(self, regions):
        self._regions: Dict[int, Region] = {}
        for region in regions:
            if region.region_id in self._regions:
                raise ValueError(f"Duplicate region id {region.region_id}")
            self._regions[region.region_id] = region

        if not self._regions:
            raise ValueError("Parameter table needs at least one region")

        counts = {r.constants.n_groups for r in self._regions.values()}
        if len(counts) != 1:
            raise ValueError(f"Regions disagree on the number of groups: {sorted(counts)}")
        self._n_groups = counts.pop()

    @property
    def n_groups(self):
        return self._n_groups

    @property
    def region_ids(self):
        return sorted(self._regions)

    @property
    def active_region_ids(self):
        """Ids of the fissile regions, sorted."""
        return sorted(rid for rid, r in self._regions.items() if r.fissile)

    def region(self, region_id) -> Region:
        try:
            return self._regions[int(region_id)]
        except KeyError:
            raise KeyError(
                f"Region id {region_id} not in parameter table. "
                f"Available: {self.region_ids}"
            ) from None

    def diffusion(self, g, region_id):
        return float(self.region(region_id).constants.diffusion[g])

    def removal(self, g, region_id):
        return float(self.region(region_id).constants.removal[g])

    def scattering(self, g_from, g_to, region_id):
        return float(self.region(region_id).constants.scattering[g_from, g_to])

    def nu_fission(self, g, region_id):
        return float(self.region(region_id).nu_fission()[g])

    def chi(self, g, region_id):
        return float(self.region(region_id).chi()[g])

    def check_mesh(self, mesh):
        """Raise KeyError if the mesh uses a region id missing from the table."""
        missing = sorted(set(np.unique(mesh.region_ids).tolist()) - set(self._regions))
        if missing:
            raise KeyError(
                f"Mesh region ids {missing} have no entry in the parameter table"
            )

    def element_values(self, mesh, quantity, *indices):
        """Per-element array of one constant, for vectorized assembly.

        Parameters
        ----------
        mesh : Mesh
        quantity : str
            'diffusion', 'removal', 'scattering', 'nu_fission' or 'chi'.
        *indices : int
            Group index (or g_from, g_to for scattering).

        Returns
        -------
        values : ndarray, shape (N_elem,)
        """
        getter = getattr(self, quantity)
        per_region = {rid: getter(*indices, rid) for rid in self._regions}
        return np.array([per_region[int(rid)] for rid in mesh.region_ids])

    # -----------------------------------------------------------------
    #  Serialization
    # -----------------------------------------------------------------

    @classmethod
    def from_dict(cls, data):
        """Build a table from a JSON-style dict (see module docstring)."""
        n_groups = data.get('n_groups')
        regions = []
        for entry in data['regions']:
            kind = entry.get('kind', ActiveCore.kind)
            try:
                region_cls = REGION_KINDS[kind]
            except KeyError:
                raise ValueError(
                    f"Unknown region kind '{kind}'. Available: {sorted(REGION_KINDS)}"
                ) from None
            constants = GroupConstants.create(
                diffusion=entry['diffusion'],
                removal=entry['removal'],
                scattering=entry.get('scattering'),
                nu=entry.get('nu'),
                fission=entry.get('fission'),
                chi=entry.get('chi'),
            )
            if n_groups is not None and constants.n_groups != n_groups:
                raise ValueError(
                    f"Region {entry['id']} has {constants.n_groups} groups, "
                    f"expected {n_groups}"
                )
            regions.append(region_cls(entry['id'], constants, name=entry.get('name')))
        return cls(regions)

    def to_dict(self):
        regions = []
        for rid in self.region_ids:
            r = self._regions[rid]
            c = r.constants
            regions.append({
                'id': rid,
                'kind': r.kind,
                'name': r.name,
                'diffusion': c.diffusion.tolist(),
                'removal': c.removal.tolist(),
                'scattering': c.scattering.tolist(),
                'nu': c.nu.tolist(),
                'fission': c.fission.tolist(),
                'chi': c.chi.tolist(),
            })
        return {'n_groups': self.n_groups, 'regions': regions}
