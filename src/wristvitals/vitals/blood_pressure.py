"""Blood pressure estimation from BVP waveform regressions.

The regressions are empirical and uncalibrated; they are not clinical
measurements.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from enum import Enum
from typing import NamedTuple

import numpy as np
import structlog

from wristvitals.config import BloodPressureConfig, FeatureConfig
from wristvitals.vitals import features
from wristvitals.vitals.base import ErrorPolicy, WindowedEstimator
from wristvitals.vitals.extrema import StreamingPeakDetector, detect_peaks, detect_troughs
from wristvitals.vitals.features import FeatureExtractor, FeatureVector
from wristvitals.vitals.filters import BandpassFilter
from wristvitals.vitals.window import WindowFull

logger = structlog.get_logger(__name__)


class BloodPressure(NamedTuple):
	systolic: float
	diastolic: float


class BloodPressureStrategy(str, Enum):
	MEDIAN_PIN = "median_pin"
	FEATURE_REGRESSION = "feature_regression"


@dataclass(frozen=True)
class PinRegression:
	"""Linear model on the sum of the systolic and diastolic PINs."""

	systolic_slope: float
	systolic_intercept: float
	diastolic_slope: float
	diastolic_intercept: float

	def apply(self, pin_sum: float) -> BloodPressure:
		return BloodPressure(
			systolic=self.systolic_slope * pin_sum + self.systolic_intercept,
			diastolic=self.diastolic_slope * pin_sum + self.diastolic_intercept,
		)


AGES_20_40 = PinRegression(0.80, 105.79, 0.17, 76.60)
ALL_AGES = PinRegression(-0.41, 115.61, 0.75, 74.66)


def select_regression(age: int) -> PinRegression:
	return AGES_20_40 if 20 <= age <= 40 else ALL_AGES


def estimate_from_pins(pin_systolic: float, pin_diastolic: float, age: int) -> BloodPressure:
	return select_regression(age).apply(pin_systolic + pin_diastolic)


def _default_systolic_weights() -> dict[str, float]:
	return {
		"pulse_transit_time_s": -12.0,
		"heart_rate_bpm": 0.20,
		"amplitude": -0.30,
		"skewness": 1.5,
		"kurtosis": -0.4,
		"pulse_rate_variability": -0.8,
		"band_high": 4.0,
		"age": 0.35,
	}


def _default_diastolic_weights() -> dict[str, float]:
	return {
		"pulse_transit_time_s": -6.0,
		"heart_rate_bpm": 0.12,
		"amplitude": -0.15,
		"skewness": 0.8,
		"kurtosis": -0.2,
		"pulse_rate_variability": -0.4,
		"band_high": 2.0,
		"age": 0.15,
	}


@dataclass
class FeatureRegression:
	"""Linear model over named FeatureVector fields.

	Besides FeatureVector attribute names, weights may use ``band_low``,
	``band_mid`` and ``band_high`` (normalized band powers) and ``age``.
	"""

	systolic_intercept: float = 105.0
	diastolic_intercept: float = 68.0
	systolic_weights: dict[str, float] = field(default_factory=_default_systolic_weights)
	diastolic_weights: dict[str, float] = field(default_factory=_default_diastolic_weights)

	@staticmethod
	def _inputs(vector: FeatureVector, age: int) -> dict[str, float]:
		inputs = {name: float(getattr(vector, name)) for name in vector.__dataclass_fields__ if name != "band_powers"}
		bands = vector.normalized_band_powers()
		for label, value in zip(("band_low", "band_mid", "band_high"), bands):
			inputs[label] = value
		inputs["age"] = float(age)
		return inputs

	def apply(self, vector: FeatureVector, age: int) -> BloodPressure:
		inputs = self._inputs(vector, age)
		systolic = self.systolic_intercept + sum(w * inputs[k] for k, w in self.systolic_weights.items())
		diastolic = self.diastolic_intercept + sum(w * inputs[k] for k, w in self.diastolic_weights.items())
		return BloodPressure(systolic=systolic, diastolic=diastolic)


class PressureStrategy(ABC):
	strategy: BloodPressureStrategy

	def on_sample(self, value: float, timestamp_ms: int) -> None:
		pass

	@abstractmethod
	def estimate(self, window: WindowFull, filtered: np.ndarray, age: int) -> BloodPressure:
		pass

	def reset(self) -> None:
		pass


class MedianPinStrategy(PressureStrategy):
	"""Median peak and median trough values as regression inputs."""

	strategy = BloodPressureStrategy.MEDIAN_PIN

	def estimate(self, window: WindowFull, filtered: np.ndarray, age: int) -> BloodPressure:
		pin_systolic = features.median(filtered[detect_peaks(filtered)])
		pin_diastolic = features.median(filtered[detect_troughs(filtered)])
		logger.debug("blood_pressure_pins", systolic_pin=pin_systolic, diastolic_pin=pin_diastolic, age=age)
		return estimate_from_pins(pin_systolic, pin_diastolic, age)


class FeatureRegressionStrategy(PressureStrategy):
	"""Streaming peak timing plus window features fed to a linear model."""

	strategy = BloodPressureStrategy.FEATURE_REGRESSION

	def __init__(
		self,
		config: BloodPressureConfig,
		feature_config: FeatureConfig,
		model: FeatureRegression | None = None,
	) -> None:
		self.model = model or FeatureRegression()
		self._stream_filter = BandpassFilter(
			sample_rate_hz=config.sample_rate_hz,
			low_freq_hz=config.low_freq_hz,
			high_freq_hz=config.high_freq_hz,
			order=config.filter_order,
		)
		self._detector = StreamingPeakDetector(
			threshold=config.peak_threshold,
			min_interval_ms=config.peak_min_interval_ms,
			history=config.window_size,
		)
		self._extractor = FeatureExtractor(
			smooth_window=feature_config.smooth_window,
			n_bands=feature_config.n_bands,
		)

	def on_sample(self, value: float, timestamp_ms: int) -> None:
		self._detector.update(self._stream_filter.process_sample(value), timestamp_ms)

	def estimate(self, window: WindowFull, filtered: np.ndarray, age: int) -> BloodPressure:
		peak_times = self._detector.peak_times(since_ms=int(window.timestamps_ms[0]))
		vector = self._extractor.extract(
			filtered,
			detect_peaks(filtered),
			detect_troughs(filtered),
			raw=window.samples,
			peak_times_ms=peak_times,
		)
		logger.debug(
			"blood_pressure_features",
			ptt=vector.pulse_transit_time_s,
			peak_hr=vector.heart_rate_bpm,
			peaks=len(peak_times),
		)
		return self.model.apply(vector, age)

	def reset(self) -> None:
		self._stream_filter.reset()
		self._detector.reset()


class BloodPressureEstimator(WindowedEstimator[BloodPressure]):
	"""Systolic/diastolic estimate over 50%-overlap windows (0.8-4.4 Hz band).

	Any failure inside a cycle publishes (0.0, 0.0) and still sets readiness.
	"""

	name = "blood_pressure"

	def __init__(
		self,
		config: BloodPressureConfig | None = None,
		feature_config: FeatureConfig | None = None,
		error_policy: ErrorPolicy | str = ErrorPolicy.MASK,
		model: FeatureRegression | None = None,
	) -> None:
		self.config = config or BloodPressureConfig()
		self.strategy = BloodPressureStrategy(self.config.strategy)
		self._user_age = self.config.user_age
		self._filter = BandpassFilter(
			sample_rate_hz=self.config.sample_rate_hz,
			low_freq_hz=self.config.low_freq_hz,
			high_freq_hz=self.config.high_freq_hz,
			order=self.config.filter_order,
		)
		if self.strategy is BloodPressureStrategy.FEATURE_REGRESSION:
			self._strategy: PressureStrategy = FeatureRegressionStrategy(
				self.config, feature_config or FeatureConfig(), model
			)
		else:
			self._strategy = MedianPinStrategy()
		super().__init__(
			window_size=self.config.window_size,
			sample_rate_hz=self.config.sample_rate_hz,
			error_policy=error_policy,
		)
		logger.info(
			"blood_pressure_estimator_init",
			strategy=self.strategy.value,
			window=self.config.window_size,
			age=self._user_age,
		)

	def set_user_age(self, age: int) -> None:
		if age < 0:
			raise ValueError(f"Age must be non-negative, got {age}")
		self._user_age = int(age)
		logger.info("blood_pressure_age_set", age=self._user_age)

	@property
	def user_age(self) -> int:
		return self._user_age

	def neutral_result(self) -> BloodPressure:
		return BloodPressure(0.0, 0.0)

	def _on_sample(self, value: float, timestamp_ms: int) -> None:
		self._strategy.on_sample(value, timestamp_ms)

	def _compute(self, window: WindowFull) -> BloodPressure:
		filtered = self._filter.process(window.samples)
		result = self._strategy.estimate(window, filtered, self._user_age)
		logger.debug(
			"blood_pressure_computed",
			systolic=round(result.systolic, 2),
			diastolic=round(result.diastolic, 2),
			window=window.sequence,
		)
		return result

	def _reset_state(self) -> None:
		self._strategy.reset()
