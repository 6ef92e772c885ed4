"""Tests for rstar_succession.config: configuration loading and validation."""

from pathlib import Path

import numpy as np
import pytest
import yaml

from rstar_succession.config import (
    OutputSection,
    ResourceSection,
    SimulationConfig,
    SimulationSection,
    SpeciesSpec,
    config_to_dict,
    deep_merge,
    default_config,
    load_config,
    species_arrays,
    validate_config,
)


def _write_yaml(path, data):
    with open(path, 'w') as f:
        yaml.dump(data, f)
    return path


# ── deep_merge tests ──────────────────────────────────────────────────

class TestDeepMerge:
    def test_simple_override(self):
        result = deep_merge({'a': 1, 'b': 2}, {'b': 3})
        assert result == {'a': 1, 'b': 3}

    def test_nested_merge(self):
        base = {'x': {'a': 1, 'b': 2}, 'y': 10}
        result = deep_merge(base, {'x': {'b': 3, 'c': 4}})
        assert result == {'x': {'a': 1, 'b': 3, 'c': 4}, 'y': 10}

    def test_list_replaced_wholesale(self):
        base = {'species': [{'name': 'a'}, {'name': 'b'}]}
        result = deep_merge(base, {'species': [{'name': 'c'}]})
        assert result == {'species': [{'name': 'c'}]}

    def test_empty_override(self):
        assert deep_merge({'a': 1}, {}) == {'a': 1}


# ── default_config tests ─────────────────────────────────────────────

class TestDefaultConfig:
    def test_creates_valid_config(self):
        config = default_config()
        assert isinstance(config, SimulationConfig)

    def test_reference_scenario(self):
        config = default_config()
        assert config.n_species == 5
        assert config.resource.R_max == 7.0
        assert [sp.R_star for sp in config.species] == [1.0, 2.0, 3.0, 4.0, 5.0]
        assert all(sp.u == 0.001 for sp in config.species)
        assert config.simulation.t_start == 0.0
        assert config.simulation.t_end == 100.0
        assert config.simulation.dt == 0.1

    def test_m_increases_from_slowest_to_fastest(self):
        m = [sp.m for sp in default_config().species]
        assert m[0] == pytest.approx(0.171)
        assert m[-1] == pytest.approx(1.8)
        assert all(a < b for a, b in zip(m, m[1:]))

    def test_initial_populations_span(self):
        N0 = [sp.N0 for sp in default_config().species]
        assert max(N0) == pytest.approx(1e-2)
        assert min(N0) == pytest.approx(1e-6)

    def test_independent_instances(self):
        a = default_config()
        b = default_config()
        a.species[0].m = 99.0
        assert b.species[0].m == pytest.approx(0.171)


# ── YAML loading tests ───────────────────────────────────────────────

class TestLoadConfig:
    def test_load_from_yaml(self, tmp_path):
        path = _write_yaml(tmp_path / "test.yaml", {
            'simulation': {'t_end': 10.0, 'dt': 0.5},
            'resource': {'R_max': 4.0},
            'species': [
                {'name': 'a', 'R_star': 1.0, 'm': 0.5, 'u': 0.01, 'N0': 1.0},
            ],
        })
        config = load_config(path)
        assert config.simulation.t_end == 10.0
        assert config.simulation.dt == 0.5
        assert config.simulation.t_start == 0.0
        assert config.resource.R_max == 4.0
        assert config.n_species == 1
        assert config.species[0].name == 'a'

    def test_missing_sections_get_defaults(self, tmp_path):
        path = _write_yaml(tmp_path / "test.yaml", {'resource': {'R_max': 8.0}})
        config = load_config(path)
        assert config.resource.R_max == 8.0
        assert config.n_species == 5
        assert config.output.save_npz is True

    def test_unnamed_species_get_names(self, tmp_path):
        path = _write_yaml(tmp_path / "test.yaml", {
            'species': [{'R_star': 1.0}, {'R_star': 2.0}],
        })
        config = load_config(path)
        assert [sp.name for sp in config.species] == ['species_1', 'species_2']

    def test_unknown_keys_ignored(self, tmp_path):
        path = _write_yaml(tmp_path / "test.yaml", {
            'resource': {'R_max': 7.0, 'colour': 'blue'},
            'species': [{'name': 'a', 'R_star': 1.0, 'habitat': 'forest'}],
        })
        config = load_config(path)
        assert not hasattr(config.resource, 'colour')
        assert config.species[0].R_star == 1.0

    def test_numeric_strings_coerced(self, tmp_path):
        """PyYAML reads '1e-3' (no decimal point) as a string."""
        path = tmp_path / "test.yaml"
        path.write_text("species:\n  - {name: a, R_star: 1, N0: 1e-3}\n")
        config = load_config(path)
        assert config.species[0].N0 == pytest.approx(1e-3)
        assert isinstance(config.species[0].R_star, float)

    def test_section_numeric_strings_coerced(self, tmp_path):
        path = tmp_path / "test.yaml"
        path.write_text("simulation:\n  dt: 1e-2\n  t_end: 1e1\n"
                        "resource:\n  R_max: 7e0\n")
        config = load_config(path)
        assert config.simulation.dt == pytest.approx(0.01)
        assert config.simulation.t_end == 10.0
        assert config.resource.R_max == 7.0
        assert isinstance(config.simulation.dt, float)
        assert isinstance(config.resource.R_max, float)

    def test_non_numeric_section_value_rejected(self, tmp_path):
        path = tmp_path / "bad.yaml"
        path.write_text("simulation:\n  dt: fast\n")
        with pytest.raises(ValueError, match="simulation.dt must be a number"):
            load_config(path)

    def test_scenario_override(self, tmp_path):
        base = _write_yaml(tmp_path / "base.yaml", {
            'resource': {'R_max': 7.0},
            'simulation': {'t_end': 100.0},
        })
        scenario = _write_yaml(tmp_path / "scenario.yaml", {
            'simulation': {'t_end': 50.0},
        })
        config = load_config(base, scenario_path=scenario)
        assert config.simulation.t_end == 50.0
        assert config.resource.R_max == 7.0

    def test_missing_scenario_file_is_skipped(self, tmp_path):
        base = _write_yaml(tmp_path / "base.yaml", {'resource': {'R_max': 6.0}})
        config = load_config(base, scenario_path=tmp_path / "nope.yaml")
        assert config.resource.R_max == 6.0

    def test_sweep_overrides(self, tmp_path):
        base = _write_yaml(tmp_path / "base.yaml", {'simulation': {'dt': 0.1}})
        config = load_config(base, sweep_overrides={'simulation': {'dt': 0.05}})
        assert config.simulation.dt == 0.05

    def test_file_not_found(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "nonexistent.yaml")

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "empty.yaml"
        path.write_text("")
        config = load_config(path)
        assert config.n_species == 5

    def test_species_not_a_list(self, tmp_path):
        path = _write_yaml(tmp_path / "bad.yaml", {'species': {'name': 'a'}})
        with pytest.raises(ValueError, match="list"):
            load_config(path)

    def test_invalid_config_rejected_on_load(self, tmp_path):
        path = _write_yaml(tmp_path / "bad.yaml", {'simulation': {'dt': 0.0}})
        with pytest.raises(ValueError, match="dt"):
            load_config(path)

    def test_load_project_default_yaml(self):
        """configs/default.yaml reproduces default_config()."""
        default_path = Path(__file__).parent.parent / "configs" / "default.yaml"
        config = load_config(default_path)
        reference = default_config()
        assert config.n_species == reference.n_species
        assert config.resource.R_max == reference.resource.R_max
        for a, b in zip(config.species, reference.species):
            assert a.name == b.name
            assert a.R_star == pytest.approx(b.R_star)
            assert a.m == pytest.approx(b.m)
            assert a.u == pytest.approx(b.u)
            assert a.N0 == pytest.approx(b.N0)

    def test_round_trip_through_dict(self, tmp_path):
        config = default_config()
        config.resource.R_max = 9.0
        path = tmp_path / "dumped.yaml"
        with open(path, 'w') as f:
            yaml.safe_dump(config_to_dict(config), f)
        loaded = load_config(path)
        assert loaded.resource.R_max == 9.0
        assert [sp.m for sp in loaded.species] == [sp.m for sp in config.species]


# ── Validation tests ─────────────────────────────────────────────────

class TestValidation:
    def _config(self, **species_kw):
        sp = dict(name='a', R_star=1.0, m=1.0, u=0.01, N0=1.0)
        sp.update(species_kw)
        return SimulationConfig(species=[SpeciesSpec(**sp)])

    def test_valid(self):
        validate_config(self._config())

    def test_no_species(self):
        with pytest.raises(ValueError, match="at least one species"):
            validate_config(SimulationConfig(species=[]))

    def test_duplicate_names(self):
        config = SimulationConfig(species=[SpeciesSpec(name='a'),
                                           SpeciesSpec(name='a')])
        with pytest.raises(ValueError, match="unique"):
            validate_config(config)

    def test_negative_initial_population(self):
        with pytest.raises(ValueError, match="N0"):
            validate_config(self._config(N0=-1.0))

    def test_zero_initial_population_ok(self):
        validate_config(self._config(N0=0.0))

    def test_nan_parameter(self):
        with pytest.raises(ValueError, match="m must be finite"):
            validate_config(self._config(m=float('nan')))

    def test_infinite_rmax(self):
        config = self._config()
        config.resource = ResourceSection(R_max=float('inf'))
        with pytest.raises(ValueError, match="R_max"):
            validate_config(config)

    def test_non_positive_dt(self):
        config = self._config()
        for dt in (0.0, -0.1):
            config.simulation = SimulationSection(dt=dt)
            with pytest.raises(ValueError, match="dt must be positive"):
                validate_config(config)

    def test_reversed_interval(self):
        config = self._config()
        config.simulation = SimulationSection(t_start=10.0, t_end=5.0)
        with pytest.raises(ValueError, match="t_start"):
            validate_config(config)

    def test_empty_interval(self):
        config = self._config()
        config.simulation = SimulationSection(t_start=5.0, t_end=5.0)
        with pytest.raises(ValueError):
            validate_config(config)

    def test_dt_longer_than_interval(self):
        config = self._config()
        config.simulation = SimulationSection(t_start=0.0, t_end=1.0, dt=5.0)
        with pytest.raises(ValueError, match="exceeds"):
            validate_config(config)

    def test_dt_equal_to_interval_ok(self):
        config = self._config()
        config.simulation = SimulationSection(t_start=0.0, t_end=1.0, dt=1.0)
        validate_config(config)

    def test_rstar_above_rmax_only_warns(self):
        with pytest.warns(UserWarning, match="cannot persist"):
            validate_config(self._config(R_star=10.0))

    def test_non_positive_m_only_warns(self):
        with pytest.warns(UserWarning, match="m = 0"):
            validate_config(self._config(m=0.0))

    def test_negative_u_only_warns(self):
        with pytest.warns(UserWarning, match="negative consumption"):
            validate_config(self._config(u=-0.01))

    def test_non_positive_rmax_only_warns(self):
        config = self._config(R_star=-1.0)
        config.resource = ResourceSection(R_max=-0.5)
        with pytest.warns(UserWarning, match="not positive"):
            validate_config(config)

    def test_output_section_defaults(self):
        out = OutputSection()
        assert out.directory == "results/"
        assert out.save_plots is False


# ── species_arrays tests ─────────────────────────────────────────────

class TestSpeciesArrays:
    def test_reference_arrays(self):
        arrays = species_arrays(default_config())
        assert set(arrays) == {'R_star', 'm', 'u', 'N0'}
        for values in arrays.values():
            assert values.shape == (5,)
            assert values.dtype == np.float64
        np.testing.assert_array_equal(arrays['R_star'], [1.0, 2.0, 3.0, 4.0, 5.0])
        np.testing.assert_allclose(arrays['N0'], [1e-2, 1e-3, 1e-4, 1e-5, 1e-6])

    def test_follows_species_order(self):
        config = SimulationConfig(species=[
            SpeciesSpec(name='b', R_star=3.0, m=0.2, u=0.05, N0=2.0),
            SpeciesSpec(name='a', R_star=1.0, m=0.7, u=0.01, N0=0.5),
        ])
        arrays = species_arrays(config)
        np.testing.assert_array_equal(arrays['R_star'], [3.0, 1.0])
        np.testing.assert_array_equal(arrays['m'], [0.2, 0.7])
        np.testing.assert_array_equal(arrays['u'], [0.05, 0.01])
        np.testing.assert_array_equal(arrays['N0'], [2.0, 0.5])

    def test_matches_model_params(self):
        from rstar_succession.types import ModelParams
        config = default_config()
        arrays = species_arrays(config)
        params = ModelParams.from_config(config)
        for name in ('R_star', 'm', 'u'):
            np.testing.assert_array_equal(getattr(params, name), arrays[name])
