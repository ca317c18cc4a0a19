"""Tests for configuration management."""

import json
import logging

import pytest

from wristvitals import config as config_module
from wristvitals.config import (
	AppConfig,
	BloodPressureConfig,
	HeartRateConfig,
	RespiratoryConfig,
	configure_logging,
	get_config,
)


class TestSectionDefaults:
	def test_heart_rate(self):
		cfg = HeartRateConfig()
		assert cfg.sample_rate_hz == 64.0
		assert cfg.window_size == 512
		assert (cfg.low_freq_hz, cfg.high_freq_hz) == (1.0, 2.5)

	def test_respiratory(self):
		cfg = RespiratoryConfig()
		assert cfg.strategy == "extrema_fusion"
		assert cfg.window_size == 1280
		assert (cfg.low_freq_hz, cfg.high_freq_hz) == (0.1, 0.5)

	def test_blood_pressure(self):
		cfg = BloodPressureConfig()
		assert cfg.strategy == "median_pin"
		assert (cfg.low_freq_hz, cfg.high_freq_hz) == (0.8, 4.4)
		assert cfg.user_age == 0


class TestAppConfig:
	def test_defaults_validate(self):
		assert AppConfig().validate() == []

	def test_from_env(self, monkeypatch):
		monkeypatch.setenv("WRISTVITALS_SAMPLE_RATE", "128")
		monkeypatch.setenv("WRISTVITALS_USER_AGE", "33")
		monkeypatch.setenv("WRISTVITALS_RR_STRATEGY", "SPECTRAL")
		monkeypatch.setenv("WRISTVITALS_BP_STRATEGY", "feature_regression")
		monkeypatch.setenv("WRISTVITALS_ERROR_POLICY", "surface")
		monkeypatch.setenv("WRISTVITALS_WORKER_QUEUE", "64")
		monkeypatch.setenv("WRISTVITALS_LOG_LEVEL", "DEBUG")
		cfg = AppConfig.from_env()
		assert cfg.heart_rate.sample_rate_hz == 128.0
		assert cfg.blood_pressure.sample_rate_hz == 128.0
		assert cfg.blood_pressure.user_age == 33
		assert cfg.respiratory.strategy == "spectral"
		assert cfg.blood_pressure.strategy == "feature_regression"
		assert cfg.error_policy == "surface"
		assert cfg.worker.enabled
		assert cfg.worker.max_queue_size == 64
		assert cfg.logging.level == "DEBUG"

	def test_from_file(self, tmp_path):
		path = tmp_path / "config.json"
		path.write_text(json.dumps({
			"heart_rate": {"window_size": 256},
			"blood_pressure": {"user_age": 45, "unknown_key": 1},
			"error_policy": "surface",
		}))
		cfg = AppConfig.from_file(path)
		assert cfg.heart_rate.window_size == 256
		assert cfg.blood_pressure.user_age == 45
		assert not hasattr(cfg.blood_pressure, "unknown_key")
		assert cfg.respiratory.window_size == 1280
		assert cfg.error_policy == "surface"

	def test_to_dict(self):
		d = AppConfig().to_dict()
		assert d["heart_rate"]["window_size"] == 512
		assert d["error_policy"] == "mask"
		assert AppConfig._from_dict(d) == AppConfig()

	def test_set_sample_rate(self):
		cfg = AppConfig()
		cfg.set_sample_rate(100.0)
		assert cfg.respiratory.sample_rate_hz == 100.0


class TestValidation:
	def test_nyquist(self):
		cfg = AppConfig()
		cfg.set_sample_rate(4.0)
		errors = cfg.validate()
		assert any("heart_rate.high_freq_hz" in e for e in errors)
		assert any("blood_pressure.high_freq_hz" in e for e in errors)

	def test_inverted_band(self):
		cfg = AppConfig()
		cfg.heart_rate.low_freq_hz = 3.0
		assert any("heart_rate.low_freq_hz" in e for e in cfg.validate())

	def test_odd_window(self):
		cfg = AppConfig()
		cfg.respiratory.window_size = 1279
		assert any("respiratory.window_size" in e for e in cfg.validate())

	@pytest.mark.parametrize("field,value", [
		("respiratory.strategy", "magic"),
		("blood_pressure.strategy", "cuff"),
		("blood_pressure.user_age", 200),
		("blood_pressure.user_age", -1),
		("features.n_bands", 0),
		("worker.max_queue_size", 0),
	])
	def test_invalid_values(self, field, value):
		cfg = AppConfig()
		section, name = field.split(".")
		setattr(getattr(cfg, section), name, value)
		assert any(field in e for e in cfg.validate())

	def test_invalid_error_policy(self):
		cfg = AppConfig(error_policy="ignore")
		assert any("error_policy" in e for e in cfg.validate())


class TestGetConfig:
	def test_singleton(self, monkeypatch):
		monkeypatch.setattr(config_module, "_config", None)
		assert get_config() is get_config()


class TestConfigureLogging:
	def test_sets_root_level(self):
		configure_logging("DEBUG")
		assert logging.getLogger().level == logging.DEBUG
		configure_logging("WARNING")
		assert logging.getLogger().level == logging.WARNING

	def test_unknown_level_falls_back_to_info(self):
		configure_logging("CHATTY")
		assert logging.getLogger().level == logging.INFO
