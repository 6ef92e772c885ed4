"""Resource-ratio succession: coupled population ↔ resource dynamics.

k species share one resource. The resource level is not a state variable;
it is re-derived from the population vector at every evaluation:

    R      = R_max - Σ_i u_i N_i
    r_i    = m_i (R - R*_i)
    dN_i/dt = r_i N_i

The population vector is advanced with classical fixed-step RK4 on a
uniform time grid. Each grid point (t_0 included) yields one
SimulationSnapshot with the populations, the derived resource level and
the per-species growth rates evaluated at that state.

Numerical blow-up (NaN/inf) stops the run immediately with a
NumericalDivergenceError naming the step and species.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

from rstar_succession.config import SimulationConfig, default_config
from rstar_succession.growth import percapita_growth
from rstar_succession.types import ModelParams, SimStatus, SimulationSnapshot


# ═══════════════════════════════════════════════════════════════════════
# ERRORS
# ═══════════════════════════════════════════════════════════════════════

class NumericalDivergenceError(ArithmeticError):
    """A population, growth rate or resource level became NaN or infinite."""

    def __init__(self, step: int, time: float, quantity: str,
                 species: Sequence[int] = ()):
        self.step = step
        self.time = time
        self.quantity = quantity
        self.species = tuple(int(s) for s in species)
        where = (f" for species {list(self.species)}" if self.species else "")
        super().__init__(
            f"non-finite {quantity} at step {step} (t={time:g}){where}"
        )


# ═══════════════════════════════════════════════════════════════════════
# DERIVATIVE & RK4
# ═══════════════════════════════════════════════════════════════════════

class Auxiliary(NamedTuple):
    """Quantities recomputed alongside the derivative (not integrated)."""
    growth_rates: np.ndarray   # (k,) per-capita growth r_i
    resource: float            # R = R_max - Σ u_i N_i


def resource_level(N: np.ndarray, params: ModelParams) -> float:
    """Free resource remaining after consumption by the current populations."""
    return params.R_max - float(np.dot(params.u, N))


def derivative(
    t: float,
    N: np.ndarray,
    params: ModelParams,
) -> Tuple[np.ndarray, Auxiliary]:
    """Right-hand side of the population ODE.

    The system is autonomous; ``t`` is accepted for integrator symmetry
    and ignored.

    Args:
        t: Current time (unused).
        N: (k,) population vector.
        params: Model parameters.

    Returns:
        (dN, Auxiliary(growth_rates, resource)).
    """
    R = resource_level(N, params)
    r = percapita_growth(params.m, R, params.R_star)
    return r * N, Auxiliary(growth_rates=r, resource=R)


def rk4_step(
    t: float,
    N: np.ndarray,
    h: float,
    params: ModelParams,
) -> np.ndarray:
    """Advance the population vector by one classical RK4 step of size h."""
    k1, _ = derivative(t, N, params)
    k2, _ = derivative(t + 0.5 * h, N + 0.5 * h * k1, params)
    k3, _ = derivative(t + 0.5 * h, N + 0.5 * h * k2, params)
    k4, _ = derivative(t + h, N + h * k3, params)
    return N + (h / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4)


def time_grid(t_start: float, t_end: float, dt: float) -> np.ndarray:
    """Uniform grid t_start + i*dt, i = 0 .. floor((t_end - t_start)/dt).

    A tiny relative slack keeps e.g. (100 - 0)/0.1 from flooring to 999.
    """
    if not (math.isfinite(t_start) and math.isfinite(t_end)
            and math.isfinite(dt)):
        raise ValueError(
            f"time grid bounds must be finite, got "
            f"t_start={t_start}, t_end={t_end}, dt={dt}"
        )
    if dt <= 0:
        raise ValueError(f"dt must be positive, got {dt}")
    if t_end <= t_start:
        raise ValueError(f"t_start ({t_start}) must be < t_end ({t_end})")
    n_steps = int(math.floor((t_end - t_start) / dt * (1.0 + 1e-9)))
    return t_start + dt * np.arange(n_steps + 1, dtype=np.float64)


# ═══════════════════════════════════════════════════════════════════════
# RESULT
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SuccessionResult:
    """Trajectory of a completed run, stored column-wise.

    Row i of every array corresponds to ``times[i]``.
    """
    times: np.ndarray                  # (T+1,)
    populations: np.ndarray            # (T+1, k)
    resource: np.ndarray               # (T+1,)
    growth_rates: np.ndarray           # (T+1, k)
    species_names: List[str] = field(default_factory=list)

    def __post_init__(self):
        if not self.species_names:
            self.species_names = [
                f"species_{i + 1}" for i in range(self.n_species)
            ]

    @property
    def n_species(self) -> int:
        return self.populations.shape[1]

    @property
    def n_steps(self) -> int:
        """Number of integration steps (snapshots - 1)."""
        return len(self.times) - 1

    @property
    def final_populations(self) -> np.ndarray:
        return self.populations[-1].copy()

    @property
    def dominant_species(self) -> int:
        """Index of the most abundant species at the final time."""
        return int(np.argmax(self.populations[-1]))

    def snapshot(self, i: int) -> SimulationSnapshot:
        return SimulationSnapshot(
            time=self.times[i],
            populations=self.populations[i],
            resource=self.resource[i],
            growth_rates=self.growth_rates[i],
        )

    def snapshots(self) -> List[SimulationSnapshot]:
        return [self.snapshot(i) for i in range(len(self.times))]

    def column_names(self) -> List[str]:
        k = self.n_species
        return (['time']
                + [f"N_{i + 1}" for i in range(k)]
                + [f"r_{i + 1}" for i in range(k)]
                + ['R'])

    def to_table(self) -> np.ndarray:
        """(T+1, 2k+2) array with columns time, N_1..N_k, r_1..r_k, R."""
        return np.column_stack([
            self.times,
            self.populations,
            self.growth_rates,
            self.resource,
        ])

    def save_csv(self, path) -> None:
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        np.savetxt(path, self.to_table(), delimiter=',',
                   header=','.join(self.column_names()), comments='')

    def save(self, path) -> None:
        """Save the trajectory to a compressed npz file."""
        Path(path).parent.mkdir(parents=True, exist_ok=True)
        np.savez_compressed(
            path,
            times=self.times,
            populations=self.populations,
            resource=self.resource,
            growth_rates=self.growth_rates,
            species_names=np.array(self.species_names, dtype=str),
        )

    @classmethod
    def load(cls, path) -> 'SuccessionResult':
        """Load a trajectory written by ``save()``."""
        with np.load(path) as data:
            return cls(
                times=data['times'],
                populations=data['populations'],
                resource=data['resource'],
                growth_rates=data['growth_rates'],
                species_names=[str(s) for s in data['species_names']],
            )


# ═══════════════════════════════════════════════════════════════════════
# SIMULATOR
# ═══════════════════════════════════════════════════════════════════════

class SuccessionSimulator:
    """Fixed-step RK4 driver over a uniform time grid.

    One simulator performs one run. ``iter_snapshots()`` streams
    snapshots in ascending time; ``run()`` collects them into a
    SuccessionResult.

    Usage:
        sim = SuccessionSimulator.from_config(default_config())
        result = sim.run()
    """

    def __init__(
        self,
        params: ModelParams,
        initial_populations: Sequence[float],
        t_start: float = 0.0,
        t_end: float = 100.0,
        dt: float = 0.1,
        species_names: Optional[Sequence[str]] = None,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ):
        """
        Args:
            params: Model parameters (k species).
            initial_populations: (k,) initial abundances, finite and >= 0.
            t_start: First grid time.
            t_end: Grid end; the last point is the largest t_start + i*dt <= t_end.
            dt: Fixed step size (> 0).
            species_names: Optional labels carried into the result.
            progress_callback: Optional callable(step, n_steps) after each snapshot.
        """
        N0 = np.array(initial_populations, dtype=np.float64)
        if N0.ndim != 1 or len(N0) != params.n_species:
            raise ValueError(
                f"initial_populations has shape {N0.shape}, expected "
                f"({params.n_species},) to match the species parameters"
            )
        if not np.all(np.isfinite(N0)):
            raise ValueError(f"initial_populations must be finite, got {N0}")
        if np.any(N0 < 0):
            raise ValueError(f"initial_populations must be >= 0, got {N0}")
        if species_names is not None and len(species_names) != params.n_species:
            raise ValueError(
                f"got {len(species_names)} species names for "
                f"{params.n_species} species"
            )

        self.params = params
        self.dt = float(dt)
        self.times = time_grid(t_start, t_end, dt)
        self.species_names = (list(species_names) if species_names is not None
                              else [f"species_{i + 1}"
                                    for i in range(params.n_species)])
        self.progress_callback = progress_callback
        self.status = SimStatus.NOT_STARTED
        self._N0 = N0

    @classmethod
    def from_config(
        cls,
        config: SimulationConfig,
        progress_callback: Optional[Callable[[int, int], None]] = None,
    ) -> 'SuccessionSimulator':
        sim_cfg = config.simulation
        return cls(
            params=ModelParams.from_config(config),
            initial_populations=[sp.N0 for sp in config.species],
            t_start=sim_cfg.t_start,
            t_end=sim_cfg.t_end,
            dt=sim_cfg.dt,
            species_names=[sp.name for sp in config.species],
            progress_callback=progress_callback,
        )

    @property
    def n_steps(self) -> int:
        return len(self.times) - 1

    @staticmethod
    def _check_finite(step: int, t: float, values: np.ndarray,
                      quantity: str) -> None:
        bad = np.flatnonzero(~np.isfinite(values))
        if bad.size:
            raise NumericalDivergenceError(step, t, quantity, species=bad)

    def _record(self, step: int, t: float, N: np.ndarray) -> SimulationSnapshot:
        _, aux = derivative(t, N, self.params)
        self._check_finite(step, t, aux.growth_rates, 'growth rate')
        if not math.isfinite(aux.resource):
            raise NumericalDivergenceError(step, t, 'resource level')
        return SimulationSnapshot(
            time=t,
            populations=N,
            resource=aux.resource,
            growth_rates=aux.growth_rates,
        )

    def iter_snapshots(self) -> Iterator[SimulationSnapshot]:
        """Yield one snapshot per grid point, t_0 first.

        Raises:
            RuntimeError: If this simulator has already been started.
            NumericalDivergenceError: On the first non-finite value.
        """
        if self.status != SimStatus.NOT_STARTED:
            raise RuntimeError(
                f"simulator already {self.status.name}; create a new one "
                f"for another run"
            )
        self.status = SimStatus.STEPPING

        N = self._N0.copy()
        for step, t in enumerate(self.times):
            if step > 0:
                N = rk4_step(float(self.times[step - 1]), N, self.dt,
                             self.params)
                self._check_finite(step, float(t), N, 'population')
            snap = self._record(step, float(t), N)
            if step == self.n_steps:
                self.status = SimStatus.COMPLETED
            if self.progress_callback is not None:
                self.progress_callback(step, self.n_steps)
            yield snap

    def run(self) -> SuccessionResult:
        """Integrate over the whole grid and return the trajectory."""
        n_points = len(self.times)
        k = self.params.n_species
        populations = np.empty((n_points, k), dtype=np.float64)
        growth_rates = np.empty((n_points, k), dtype=np.float64)
        resource = np.empty(n_points, dtype=np.float64)
        times = np.empty(n_points, dtype=np.float64)

        for i, snap in enumerate(self.iter_snapshots()):
            times[i] = snap.time
            populations[i] = snap.populations
            growth_rates[i] = snap.growth_rates
            resource[i] = snap.resource

        return SuccessionResult(
            times=times,
            populations=populations,
            resource=resource,
            growth_rates=growth_rates,
            species_names=list(self.species_names),
        )


def run_succession(
    config: Optional[SimulationConfig] = None,
    progress_callback: Optional[Callable[[int, int], None]] = None,
) -> SuccessionResult:
    """Run one simulation; uses the reference scenario if config is None."""
    if config is None:
        config = default_config()
    return SuccessionSimulator.from_config(
        config, progress_callback=progress_callback,
    ).run()
