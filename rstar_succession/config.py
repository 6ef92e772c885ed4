"""Configuration system for R*-Succession.

Hierarchical YAML configuration with deep-merge support:
  base.yaml → scenario override → sweep overrides

The reference scenario (``default_config()``) is five species sharing one
resource with R_max = 7, R* = 1..5 and a uniform consumption rate of 0.001.

Design decisions:
  - Structural problems (no species, non-positive step, bad grid) are
    rejected with ValueError before any integration step.
  - Ecological implausibility (m <= 0, R* >= R_max) is only warned about;
    the arithmetic proceeds exactly as configured.
"""

from __future__ import annotations

import dataclasses
import math
import warnings
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import numpy as np
import yaml


# ═══════════════════════════════════════════════════════════════════════
# CONFIGURATION DATACLASSES
# ═══════════════════════════════════════════════════════════════════════

@dataclass
class SimulationSection:
    """Time grid for the integration."""
    t_start: float = 0.0
    t_end: float = 100.0
    dt: float = 0.1             # Fixed RK4 step size


@dataclass
class ResourceSection:
    """Shared limiting resource."""
    R_max: float = 7.0          # Resource level with no consumers present


@dataclass
class SpeciesSpec:
    """One competing species.

    R_star: resource level at which per-capita growth is zero.
    m: sensitivity of per-capita growth to resource surplus.
    u: per-capita resource consumption.
    N0: initial abundance.
    """
    name: str = ""
    R_star: float = 1.0
    m: float = 1.0
    u: float = 0.001
    N0: float = 1.0e-3


@dataclass
class OutputSection:
    """Output control for the runner script."""
    directory: str = "results/"
    save_npz: bool = True
    save_csv: bool = True
    save_plots: bool = False


def _reference_species() -> List[SpeciesSpec]:
    # m grows roughly geometrically (ratio ~1.8); the best competitor
    # (lowest R*) is also the slowest grower.
    m_values = [0.171, 0.308, 0.554, 0.997, 1.8]
    return [
        SpeciesSpec(name=f"species_{i + 1}",
                    R_star=float(i + 1),
                    m=m,
                    u=0.001,
                    N0=10.0 ** -(i + 2))
        for i, m in enumerate(m_values)
    ]


@dataclass
class SimulationConfig:
    """Complete simulation configuration.

    Load from YAML via `load_config()`. Sections map 1:1 to YAML top-level
    keys; ``species`` is a list of per-species mappings.
    """
    simulation: SimulationSection = field(default_factory=SimulationSection)
    resource: ResourceSection = field(default_factory=ResourceSection)
    species: List[SpeciesSpec] = field(default_factory=_reference_species)
    output: OutputSection = field(default_factory=OutputSection)

    @property
    def n_species(self) -> int:
        return len(self.species)


# ═══════════════════════════════════════════════════════════════════════
# YAML LOADING & MERGING
# ═══════════════════════════════════════════════════════════════════════

def deep_merge(base: Dict, override: Dict) -> Dict:
    """Recursively merge override into base. Modifies base in place.

    - Dict values are merged recursively
    - Non-dict values (including the species list) are replaced
    - Keys in override but not base are added

    Returns:
        The merged base dictionary.
    """
    for key, value in override.items():
        if (
            key in base
            and isinstance(base[key], dict)
            and isinstance(value, dict)
        ):
            deep_merge(base[key], value)
        else:
            base[key] = value
    return base


def _dict_to_section(section_cls, data: Dict) -> Any:
    """Convert a dict to a dataclass, ignoring unknown keys."""
    valid_fields = {f.name for f in dataclasses.fields(section_cls)}
    filtered = {k: v for k, v in data.items() if k in valid_fields}
    return section_cls(**filtered)


_SPECIES_NUMERIC = ('R_star', 'm', 'u', 'N0')

# PyYAML reads exponents without a decimal point ("1e-2") as strings
_SECTION_NUMERIC = {
    'simulation': ('t_start', 't_end', 'dt'),
    'resource': ('R_max',),
}


def _coerce_floats(section: Any, attrs, label: str) -> None:
    for attr in attrs:
        value = getattr(section, attr)
        try:
            setattr(section, attr, float(value))
        except (TypeError, ValueError):
            raise ValueError(
                f"{label}.{attr} must be a number, got {value!r}"
            ) from None


def _yaml_to_config(data: Dict) -> SimulationConfig:
    """Convert a merged YAML dict to a SimulationConfig."""
    sections: Dict[str, Any] = {}
    section_map = {
        'simulation': SimulationSection,
        'resource': ResourceSection,
        'output': OutputSection,
    }
    for key, cls in section_map.items():
        if key in data and isinstance(data[key], dict):
            sections[key] = _dict_to_section(cls, data[key])
        else:
            sections[key] = cls()
        if key in _SECTION_NUMERIC:
            _coerce_floats(sections[key], _SECTION_NUMERIC[key], key)

    if 'species' in data:
        if not isinstance(data['species'], list):
            raise ValueError(
                f"species must be a list of mappings, "
                f"got {type(data['species']).__name__}"
            )
        species = []
        for i, sp in enumerate(data['species']):
            if not isinstance(sp, dict):
                raise ValueError(f"species[{i}] must be a mapping, got {sp!r}")
            spec = _dict_to_section(SpeciesSpec, sp)
            _coerce_floats(spec, _SPECIES_NUMERIC, f"species[{i}]")
            if not spec.name:
                spec.name = f"species_{i + 1}"
            species.append(spec)
        sections['species'] = species

    return SimulationConfig(**sections)


def validate_config(config: SimulationConfig) -> None:
    """Validate configuration constraints. Raises ValueError on failure.

    Checks:
      - At least one species, unique names
      - All numeric parameters finite, initial populations non-negative
      - Time grid: dt > 0, t_end > t_start, dt fits in the interval

    Ecologically implausible but computable settings (m <= 0,
    R_star >= R_max, u < 0, R_max <= 0) only raise a UserWarning.
    """
    sim = config.simulation
    for name in ('t_start', 't_end', 'dt'):
        value = getattr(sim, name)
        if not math.isfinite(value):
            raise ValueError(f"simulation.{name} must be finite, got {value}")
    if sim.dt <= 0:
        raise ValueError(f"simulation.dt must be positive, got {sim.dt}")
    if sim.t_end <= sim.t_start:
        raise ValueError(
            f"t_start ({sim.t_start}) must be < t_end ({sim.t_end})"
        )
    if sim.dt > sim.t_end - sim.t_start:
        raise ValueError(
            f"simulation.dt ({sim.dt}) exceeds the simulated interval "
            f"({sim.t_end - sim.t_start})"
        )

    R_max = config.resource.R_max
    if not math.isfinite(R_max):
        raise ValueError(f"resource.R_max must be finite, got {R_max}")

    if not config.species:
        raise ValueError("at least one species is required")

    names = [sp.name for sp in config.species]
    if len(set(names)) != len(names):
        raise ValueError(f"species names must be unique, got {names}")

    for i, sp in enumerate(config.species):
        for attr in _SPECIES_NUMERIC:
            value = getattr(sp, attr)
            if not math.isfinite(value):
                raise ValueError(
                    f"species[{i}].{attr} must be finite, got {value}"
                )
        if sp.N0 < 0:
            raise ValueError(
                f"species[{i}].N0 must be >= 0, got {sp.N0}"
            )

    # Plausibility only; the model runs as written
    if R_max <= 0:
        warnings.warn(
            f"resource.R_max ({R_max}) is not positive; every species "
            f"will decline",
            UserWarning,
            stacklevel=2,
        )
    for i, sp in enumerate(config.species):
        if sp.m <= 0:
            warnings.warn(
                f"species[{i}] ({sp.name}): m = {sp.m} <= 0 inverts the "
                f"growth response to resource",
                UserWarning,
                stacklevel=2,
            )
        if sp.R_star >= R_max:
            warnings.warn(
                f"species[{i}] ({sp.name}): R_star ({sp.R_star}) >= R_max "
                f"({R_max}); species cannot persist",
                UserWarning,
                stacklevel=2,
            )
        if sp.u < 0:
            warnings.warn(
                f"species[{i}] ({sp.name}): negative consumption u = {sp.u} "
                f"adds resource",
                UserWarning,
                stacklevel=2,
            )


def load_config(
    base_path: Union[str, Path],
    scenario_path: Optional[Union[str, Path]] = None,
    sweep_overrides: Optional[Dict] = None,
) -> SimulationConfig:
    """Load and merge hierarchical YAML configuration.

    Merge order: base → scenario → sweep overrides.
    Each layer overrides only the fields it specifies; a ``species`` list
    in a later layer replaces the earlier list wholesale.

    Args:
        base_path: Path to base configuration YAML.
        scenario_path: Optional scenario override YAML.
        sweep_overrides: Optional dict of parameter sweep overrides.

    Returns:
        Validated SimulationConfig.

    Raises:
        FileNotFoundError: If base_path doesn't exist.
        ValueError: If validation fails.
    """
    base_path = Path(base_path)
    if not base_path.exists():
        raise FileNotFoundError(f"Config file not found: {base_path}")

    with open(base_path) as f:
        config_dict = yaml.safe_load(f) or {}

    if scenario_path is not None:
        scenario_path = Path(scenario_path)
        if scenario_path.exists():
            with open(scenario_path) as f:
                scenario = yaml.safe_load(f) or {}
            deep_merge(config_dict, scenario)

    if sweep_overrides is not None:
        deep_merge(config_dict, sweep_overrides)

    config = _yaml_to_config(config_dict)
    validate_config(config)
    return config


def default_config() -> SimulationConfig:
    """Return the reference five-species scenario."""
    config = SimulationConfig()
    validate_config(config)
    return config


def config_to_dict(config: SimulationConfig) -> Dict[str, Any]:
    """Plain-dict form of a config, suitable for ``yaml.safe_dump``."""
    return dataclasses.asdict(config)


def species_arrays(config: SimulationConfig) -> Dict[str, np.ndarray]:
    """Per-species parameters as (k,) float arrays in species order.

    Keys: 'R_star', 'm', 'u', 'N0'.
    """
    return {
        attr: np.array([getattr(sp, attr) for sp in config.species],
                       dtype=np.float64)
        for attr in _SPECIES_NUMERIC
    }
