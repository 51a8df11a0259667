import pytest

from srgm import DEFAULT_CONFIG, SolverConfig


def test_defaults():
    assert DEFAULT_CONFIG.jm_max_iter == 200
    assert DEFAULT_CONFIG.jm_tolerance == 1e-6
    assert DEFAULT_CONFIG.cumulative_rel_tol == 1e-9


def test_from_mapping_coerces_types():
    config = SolverConfig.from_mapping({"jm_max_iter": "50", "go_tolerance": "1e-8"})
    assert config.jm_max_iter == 50
    assert config.go_tolerance == 1e-8
    assert config.to_dict()["jm_max_iter"] == 50


def test_from_mapping_rejects_unknown_keys():
    with pytest.raises(ValueError):
        SolverConfig.from_mapping({"max_iter": 10})


def test_invalid_values():
    with pytest.raises(ValueError):
        SolverConfig(jm_max_iter=0)
    with pytest.raises(ValueError):
        SolverConfig(gm_min_points=2)
