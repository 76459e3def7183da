"""Tests for GeoFusion configuration loading and validation."""
import pytest
import yaml
import sys, os
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from geofusion import (
    AccuracyPriority, AdaptationConfig, ConfigError, FusionConfig, FusionSession,
    load_config, save_config,
)


class TestFusionConfig:
    def test_defaults(self):
        cfg = FusionConfig().validate()
        assert cfg.initial_process_noise == 0.1
        assert cfg.initial_measurement_noise == 0.01
        assert cfg.stale_after_ms == 5000
        assert cfg.adaptation.min_noise == 0.001
        assert cfg.adaptation.max_noise == 10.0
        assert cfg.source.priority is AccuracyPriority.HIGH_ACCURACY
        assert cfg.source.interval_ms == 1000

    def test_from_partial_dict(self):
        cfg = FusionConfig.from_dict({
            'adaptation': {'low_accuracy_threshold': 30},
            'source': {'priority': 'BALANCED_POWER_ACCURACY', 'interval_s': 2.5},
        })
        assert cfg.adaptation.low_accuracy_threshold == 30.0
        assert cfg.adaptation.high_accuracy_threshold == 5.0
        assert cfg.source.priority is AccuracyPriority.BALANCED_POWER_ACCURACY
        assert cfg.source.interval_ms == 2500

    def test_empty_dict(self):
        assert FusionConfig.from_dict(None) == FusionConfig()

    def test_yaml_round_trip(self, tmp_path):
        cfg = FusionConfig(initial_process_noise=0.2, stale_after_ms=3000,
                           adaptation=AdaptationConfig(max_noise=5.0))
        path = str(tmp_path / "geofusion.yaml")
        save_config(cfg, path)
        assert load_config(path) == cfg

    def test_load_yaml_file(self, tmp_path):
        path = tmp_path / "cfg.yaml"
        path.write_text(yaml.safe_dump({
            'filter': {'initial_measurement_noise': 0.05},
            'session': {'stale_after_ms': 10000},
        }))
        cfg = load_config(str(path))
        assert cfg.initial_measurement_noise == 0.05
        assert cfg.stale_after_ms == 10000


class TestConfigValidation:
    @pytest.mark.parametrize("data", [
        {'adaptation': {'min_noise': 0.0}},
        {'adaptation': {'min_noise': 5.0, 'max_noise': 1.0}},
        {'adaptation': {'high_accuracy_threshold': 50.0}},
        {'adaptation': {'low_innovation_threshold': 20.0}},
        {'adaptation': {'innovation_growth': -1.0}},
        {'adaptation': {'not_a_field': 1.0}},
        {'filter': {'initial_process_noise': 50.0}},
        {'session': {'stale_after_ms': -1}},
        {'source': {'interval_s': 0}},
        {'source': {'priority': 'warp_speed'}},
        {'filter': 'nope'},
    ])
    def test_rejected(self, data):
        with pytest.raises(ConfigError):
            FusionConfig.from_dict(data)

    def test_config_error_is_value_error(self):
        with pytest.raises(ValueError):
            FusionConfig.from_dict({'adaptation': {'max_noise': 'lots'}})

    def test_session_validates(self):
        with pytest.raises(ConfigError):
            FusionSession(FusionConfig(initial_measurement_noise=100.0))


def test_example_config_matches_defaults():
    path = os.path.join(os.path.dirname(__file__), '..', 'examples', 'geofusion.yaml')
    assert load_config(path) == FusionConfig()
