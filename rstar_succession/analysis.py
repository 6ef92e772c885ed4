"""Post-run analysis of succession trajectories.

Equilibrium predictions from the parameters alone, and descriptive
statistics of a finished trajectory (shares, peaks, succession order).
"""

from __future__ import annotations

import math
from typing import Any, Dict, List, Optional

import numpy as np

from rstar_succession.model import SuccessionResult
from rstar_succession.types import ModelParams


# ═══════════════════════════════════════════════════════════════════════
# EQUILIBRIUM PREDICTIONS
# ═══════════════════════════════════════════════════════════════════════

def equilibrium_population(params: ModelParams, i: int) -> float:
    """Monoculture equilibrium of species i: (R_max - R*_i) / u_i.

    Returns inf when the species consumes nothing (u_i = 0) and has a
    resource surplus, nan when u_i = 0 and R*_i == R_max.
    """
    surplus = params.R_max - params.R_star[i]
    u = params.u[i]
    if u == 0:
        return float('inf') if surplus > 0 else float('nan')
    return float(surplus / u)


def predicted_winner(params: ModelParams) -> int:
    """Species expected to exclude all others: the lowest R* below R_max.

    Returns -1 if no species can persist (every R* >= R_max).
    """
    viable = np.flatnonzero(params.R_star < params.R_max)
    if viable.size == 0:
        return -1
    return int(viable[np.argmin(params.R_star[viable])])


# ═══════════════════════════════════════════════════════════════════════
# TRAJECTORY STATISTICS
# ═══════════════════════════════════════════════════════════════════════

def population_shares(result: SuccessionResult) -> np.ndarray:
    """(T+1, k) fraction of total abundance held by each species.

    Rows with zero total abundance are returned as zeros.
    """
    totals = result.populations.sum(axis=1, keepdims=True)
    shares = np.zeros_like(result.populations)
    np.divide(result.populations, totals, out=shares, where=totals != 0)
    return shares


def dominant_species(result: SuccessionResult) -> int:
    """Index of the most abundant species at the last grid point."""
    return result.dominant_species


def peak_times(result: SuccessionResult) -> np.ndarray:
    """(k,) time at which each species reaches its maximum abundance."""
    return result.times[np.argmax(result.populations, axis=0)]


def succession_order(result: SuccessionResult) -> List[int]:
    """Species indices sorted by the time of their population peak.

    Ties (e.g. several species peaking at the final time) keep index order.
    """
    return [int(i) for i in np.argsort(peak_times(result), kind='stable')]


def _finite_or_none(value: float) -> Optional[float]:
    value = float(value)
    return value if math.isfinite(value) else None


def summarize(result: SuccessionResult, params: ModelParams) -> Dict[str, Any]:
    """JSON-serializable summary of one run.

    Non-finite values (e.g. the equilibrium of a non-consuming species)
    are reported as None so the summary stays strict JSON.
    """
    shares = population_shares(result)
    peaks = peak_times(result)
    species = []
    for i, name in enumerate(result.species_names):
        species.append({
            'name': name,
            'R_star': float(params.R_star[i]),
            'initial': float(result.populations[0, i]),
            'final': float(result.populations[-1, i]),
            'final_share': float(shares[-1, i]),
            'peak': float(result.populations[:, i].max()),
            'peak_time': float(peaks[i]),
            'equilibrium': _finite_or_none(equilibrium_population(params, i)),
        })
    return {
        't_start': float(result.times[0]),
        't_end': float(result.times[-1]),
        'n_snapshots': len(result.times),
        'final_resource': float(result.resource[-1]),
        'min_resource': float(result.resource.min()),
        'dominant_species': result.species_names[result.dominant_species],
        'predicted_winner': (result.species_names[predicted_winner(params)]
                             if predicted_winner(params) >= 0 else None),
        'succession_order': [result.species_names[i]
                             for i in succession_order(result)],
        'species': species,
    }
