"""Core data types for R*-Succession.

  - SimStatus: simulator lifecycle (NOT_STARTED → STEPPING → COMPLETED)
  - ModelParams: per-species parameter vectors compiled from a config
  - SimulationSnapshot: one immutable record per time-grid point
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import IntEnum
from typing import TYPE_CHECKING

import numpy as np

if TYPE_CHECKING:
    from rstar_succession.config import SimulationConfig


# ═══════════════════════════════════════════════════════════════════════
# ENUMERATIONS
# ═══════════════════════════════════════════════════════════════════════

class SimStatus(IntEnum):
    """Simulator lifecycle. Transitions are one-way."""
    NOT_STARTED = 0   # Constructed, no snapshot emitted
    STEPPING    = 1   # At least one snapshot emitted, grid not exhausted
    COMPLETED   = 2   # Last grid point emitted


# ═══════════════════════════════════════════════════════════════════════
# MODEL PARAMETERS
# ═══════════════════════════════════════════════════════════════════════

def _frozen_vector(values) -> np.ndarray:
    arr = np.array(values, dtype=np.float64).reshape(-1)
    arr.flags.writeable = False
    return arr


@dataclass(frozen=True)
class ModelParams:
    """Parameters of the k-species, one-resource model.

    Attributes:
        R_max: Resource level in the absence of consumers.
        R_star: (k,) minimum resource requirement per species.
        m: (k,) growth-rate sensitivity per species.
        u: (k,) per-capita resource consumption per species.
    """
    R_max: float
    R_star: np.ndarray
    m: np.ndarray
    u: np.ndarray

    def __post_init__(self):
        object.__setattr__(self, 'R_max', float(self.R_max))
        for name in ('R_star', 'm', 'u'):
            object.__setattr__(self, name, _frozen_vector(getattr(self, name)))
        lengths = {len(self.R_star), len(self.m), len(self.u)}
        if len(lengths) != 1:
            raise ValueError(
                f"per-species parameter vectors differ in length: "
                f"R_star={len(self.R_star)}, m={len(self.m)}, u={len(self.u)}"
            )
        if len(self.R_star) == 0:
            raise ValueError("at least one species is required")

    @property
    def n_species(self) -> int:
        return len(self.R_star)

    @classmethod
    def from_config(cls, config: 'SimulationConfig') -> 'ModelParams':
        """Compile the species list of a SimulationConfig into arrays."""
        from rstar_succession.config import species_arrays
        arrays = species_arrays(config)
        return cls(
            R_max=config.resource.R_max,
            R_star=arrays['R_star'],
            m=arrays['m'],
            u=arrays['u'],
        )


# ═══════════════════════════════════════════════════════════════════════
# TRAJECTORY RECORDS
# ═══════════════════════════════════════════════════════════════════════

@dataclass(frozen=True)
class SimulationSnapshot:
    """State of the system at one grid point.

    ``resource`` and ``growth_rates`` are derived from ``populations`` at
    recording time; they are not integrated quantities.
    """
    time: float
    populations: np.ndarray    # (k,)
    resource: float
    growth_rates: np.ndarray   # (k,)

    def __post_init__(self):
        object.__setattr__(self, 'time', float(self.time))
        object.__setattr__(self, 'resource', float(self.resource))
        object.__setattr__(self, 'populations', _frozen_vector(self.populations))
        object.__setattr__(self, 'growth_rates', _frozen_vector(self.growth_rates))

    @property
    def n_species(self) -> int:
        return len(self.populations)
