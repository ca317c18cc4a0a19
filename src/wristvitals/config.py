"""Centralized configuration for wristvitals.

All configuration can be set via environment variables or config file.
Environment variables take precedence over config file values.
"""
from __future__ import annotations

import json
import logging
import os
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any

import structlog

RR_STRATEGIES = ("extrema_fusion", "spectral")
BP_STRATEGIES = ("median_pin", "feature_regression")
ERROR_POLICIES = ("mask", "surface")


@dataclass
class HeartRateConfig:
	"""Heart rate estimation configuration."""

	sample_rate_hz: float = 64.0
	window_size: int = 512
	low_freq_hz: float = 1.0   # ~60 BPM
	high_freq_hz: float = 2.5  # ~150 BPM
	filter_order: int = 2
	min_peak_value: float | None = 0.0


@dataclass
class RespiratoryConfig:
	"""Respiratory rate estimation configuration."""

	strategy: str = "extrema_fusion"
	sample_rate_hz: float = 64.0
	window_size: int = 1280
	low_freq_hz: float = 0.1   # ~6 breaths/min
	high_freq_hz: float = 0.5  # ~30 breaths/min
	filter_order: int = 2
	refractory_s: float = 0.4
	plausible_min_bpm: float = 12.0
	plausible_max_bpm: float = 50.0


@dataclass
class BloodPressureConfig:
	"""Blood pressure estimation configuration."""

	strategy: str = "median_pin"
	sample_rate_hz: float = 64.0
	window_size: int = 1280  # 20 s at 64 Hz
	low_freq_hz: float = 0.8
	high_freq_hz: float = 4.4
	filter_order: int = 4
	user_age: int = 0
	peak_threshold: float = 0.05  # streaming detector amplitude threshold
	peak_min_interval_ms: int = 300


@dataclass
class FeatureConfig:
	"""Feature extraction configuration."""

	smooth_window: int = 0
	n_bands: int = 3


@dataclass
class WorkerConfig:
	"""Background sample worker configuration."""

	enabled: bool = False
	max_queue_size: int = 1024


@dataclass
class LoggingConfig:
	level: str = "INFO"


@dataclass
class AppConfig:
	"""Complete application configuration."""

	heart_rate: HeartRateConfig = field(default_factory=HeartRateConfig)
	respiratory: RespiratoryConfig = field(default_factory=RespiratoryConfig)
	blood_pressure: BloodPressureConfig = field(default_factory=BloodPressureConfig)
	features: FeatureConfig = field(default_factory=FeatureConfig)
	worker: WorkerConfig = field(default_factory=WorkerConfig)
	logging: LoggingConfig = field(default_factory=LoggingConfig)
	error_policy: str = "mask"

	@classmethod
	def from_env(cls) -> AppConfig:
		"""Load configuration from environment variables."""
		config = cls()
		config.apply_env()
		return config

	def apply_env(self) -> None:
		"""Overlay environment variables onto this configuration."""
		if sample_rate := os.environ.get("WRISTVITALS_SAMPLE_RATE"):
			self.set_sample_rate(float(sample_rate))
		if age := os.environ.get("WRISTVITALS_USER_AGE"):
			self.blood_pressure.user_age = int(age)
		if rr_strategy := os.environ.get("WRISTVITALS_RR_STRATEGY"):
			self.respiratory.strategy = rr_strategy.lower()
		if bp_strategy := os.environ.get("WRISTVITALS_BP_STRATEGY"):
			self.blood_pressure.strategy = bp_strategy.lower()
		if policy := os.environ.get("WRISTVITALS_ERROR_POLICY"):
			self.error_policy = policy.lower()
		if max_queue := os.environ.get("WRISTVITALS_WORKER_QUEUE"):
			self.worker.max_queue_size = int(max_queue)
			self.worker.enabled = True
		self.logging.level = os.environ.get("WRISTVITALS_LOG_LEVEL", self.logging.level)

	@classmethod
	def from_file(cls, path: str | Path) -> AppConfig:
		"""Load configuration from JSON file."""
		with open(path) as f:
			data = json.load(f)
		return cls._from_dict(data)

	@classmethod
	def _from_dict(cls, data: dict[str, Any]) -> AppConfig:
		"""Create config from dictionary."""
		config = cls()

		for section in ("heart_rate", "respiratory", "blood_pressure", "features", "worker", "logging"):
			if section not in data:
				continue
			target = getattr(config, section)
			for key, value in data[section].items():
				if hasattr(target, key):
					setattr(target, key, value)

		if "error_policy" in data:
			config.error_policy = data["error_policy"]

		return config

	def to_dict(self) -> dict[str, Any]:
		return asdict(self)

	def set_sample_rate(self, sample_rate_hz: float) -> None:
		"""Apply one device sample rate to every estimator."""
		self.heart_rate.sample_rate_hz = sample_rate_hz
		self.respiratory.sample_rate_hz = sample_rate_hz
		self.blood_pressure.sample_rate_hz = sample_rate_hz

	def validate(self) -> list[str]:
		"""Validate all configuration values. Returns list of error messages."""
		errors = []

		for name in ("heart_rate", "respiratory", "blood_pressure"):
			section = getattr(self, name)
			if section.sample_rate_hz <= 0:
				errors.append(f"{name}.sample_rate_hz ({section.sample_rate_hz}) must be positive")
			if section.window_size < 4 or section.window_size % 2:
				errors.append(f"{name}.window_size ({section.window_size}) must be an even number >= 4")
			if section.filter_order < 1:
				errors.append(f"{name}.filter_order ({section.filter_order}) must be >= 1")
			if section.low_freq_hz <= 0 or section.low_freq_hz >= section.high_freq_hz:
				errors.append(
					f"{name}.low_freq_hz ({section.low_freq_hz}) must be positive and < "
					f"high_freq_hz ({section.high_freq_hz})"
				)
			elif section.sample_rate_hz > 0 and section.high_freq_hz >= section.sample_rate_hz / 2:
				errors.append(
					f"{name}.high_freq_hz ({section.high_freq_hz}) must be below Nyquist "
					f"({section.sample_rate_hz / 2})"
				)

		if self.respiratory.strategy not in RR_STRATEGIES:
			errors.append(f"respiratory.strategy ({self.respiratory.strategy}) must be one of {RR_STRATEGIES}")
		if self.respiratory.plausible_min_bpm >= self.respiratory.plausible_max_bpm:
			errors.append("respiratory.plausible_min_bpm must be < plausible_max_bpm")
		if self.blood_pressure.strategy not in BP_STRATEGIES:
			errors.append(
				f"blood_pressure.strategy ({self.blood_pressure.strategy}) must be one of {BP_STRATEGIES}"
			)
		if self.blood_pressure.user_age < 0 or self.blood_pressure.user_age > 150:
			errors.append(f"blood_pressure.user_age ({self.blood_pressure.user_age}) must be between 0 and 150")
		if self.features.n_bands < 1:
			errors.append(f"features.n_bands ({self.features.n_bands}) must be >= 1")
		if self.worker.max_queue_size < 1:
			errors.append(f"worker.max_queue_size ({self.worker.max_queue_size}) must be >= 1")
		if self.error_policy not in ERROR_POLICIES:
			errors.append(f"error_policy ({self.error_policy}) must be one of {ERROR_POLICIES}")

		return errors


# Global config instance
_config: AppConfig | None = None


def get_config() -> AppConfig:
	"""Get the global configuration instance."""
	global _config
	if _config is None:
		_config = AppConfig.from_env()
	return _config


def configure_logging(level: str = "INFO") -> None:
	"""Configure structured logging for the application."""
	log_level = getattr(logging, level.upper(), logging.INFO)

	structlog.configure(
		processors=[
			structlog.stdlib.filter_by_level,
			structlog.stdlib.add_logger_name,
			structlog.stdlib.add_log_level,
			structlog.stdlib.PositionalArgumentsFormatter(),
			structlog.processors.TimeStamper(fmt="%Y-%m-%d %H:%M:%S"),
			structlog.processors.StackInfoRenderer(),
			structlog.processors.format_exc_info,
			structlog.processors.UnicodeDecoder(),
			structlog.dev.ConsoleRenderer(),
		],
		wrapper_class=structlog.stdlib.BoundLogger,
		context_class=dict,
		logger_factory=structlog.stdlib.LoggerFactory(),
		cache_logger_on_first_use=True,
	)

	logging.basicConfig(
		format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
		level=log_level,
	)
	logging.getLogger().setLevel(log_level)

	# Reduce noise from third-party libraries
	logging.getLogger("numexpr").setLevel(logging.WARNING)
	logging.getLogger("h5py").setLevel(logging.WARNING)
