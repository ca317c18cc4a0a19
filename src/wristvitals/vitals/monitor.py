"""Vitals monitor: fans one BVP stream out to every estimator."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import structlog

from wristvitals.config import AppConfig
from wristvitals.vitals.base import ErrorPolicy, EstimationError
from wristvitals.vitals.blood_pressure import BloodPressureEstimator
from wristvitals.vitals.heart_rate import HeartRateEstimator
from wristvitals.vitals.respiratory import RespiratoryRateEstimator

if TYPE_CHECKING:
	from wristvitals.sensor.mock import SampleSource

logger = structlog.get_logger(__name__)


@dataclass
class VitalsReading:
	"""Metrics that became ready since the previous poll. Unready metrics are None."""

	timestamp_ms: int = 0
	heart_rate_bpm: float | None = None
	respiratory_rate_bpm: float | None = None
	systolic_mmhg: float | None = None
	diastolic_mmhg: float | None = None

	@property
	def is_empty(self) -> bool:
		return (
			self.heart_rate_bpm is None
			and self.respiratory_rate_bpm is None
			and self.systolic_mmhg is None
		)

	def to_dict(self) -> dict[str, Any]:
		return {
			"timestamp_ms": self.timestamp_ms,
			"heart_rate_bpm": self.heart_rate_bpm,
			"respiratory_rate_bpm": self.respiratory_rate_bpm,
			"systolic_mmhg": self.systolic_mmhg,
			"diastolic_mmhg": self.diastolic_mmhg,
		}


class VitalsMonitor:
	"""Feed BVP samples to the heart rate, respiratory and blood pressure estimators.

	Example:
		monitor = VitalsMonitor(config)
		for value, ts in samples:
			reading = monitor.on_sample(value, ts)
			if reading is not None:
				print(reading.heart_rate_bpm)
	"""

	def __init__(self, config: AppConfig | None = None) -> None:
		self.config = config or AppConfig()
		policy = ErrorPolicy(self.config.error_policy)

		self.heart_rate = HeartRateEstimator(self.config.heart_rate, error_policy=policy)
		self.respiratory = RespiratoryRateEstimator(self.config.respiratory, error_policy=policy)
		self.blood_pressure = BloodPressureEstimator(
			self.config.blood_pressure,
			feature_config=self.config.features,
			error_policy=policy,
		)
		self._listeners: list[Callable[[VitalsReading], None]] = []
		self._sample_count = 0
		self._last_timestamp_ms = 0
		self._last_error: EstimationError | None = None
		logger.info(
			"vitals_monitor_init",
			rr_strategy=self.respiratory.strategy.value,
			bp_strategy=self.blood_pressure.strategy.value,
			error_policy=policy.value,
		)

	def set_user_age(self, age: int) -> None:
		self.blood_pressure.set_user_age(age)

	def on_reading(self, callback: Callable[[VitalsReading], None]) -> None:
		"""Register a callback for every non-empty reading produced by on_sample."""
		self._listeners.append(callback)

	def attach(self, source: SampleSource) -> None:
		"""Subscribe to a sample source's callbacks."""
		source.on_sample(self.on_sample)

	def on_sample(self, value: float, timestamp_ms: int | None = None) -> VitalsReading | None:
		"""Push one sample to every estimator, then poll for ready metrics.

		Never raises on estimator failures: under the ``surface`` policy the
		error is kept in ``last_error`` and the metrics read alongside it are
		still returned and delivered to listeners.
		"""
		if timestamp_ms is None:
			timestamp_ms = int(round(self._sample_count * 1000.0 / self.heart_rate.sample_rate_hz))
		self._sample_count += 1
		self._last_timestamp_ms = timestamp_ms

		self.heart_rate.push(value, timestamp_ms)
		self.respiratory.push(value, timestamp_ms)
		self.blood_pressure.push(value, timestamp_ms)

		try:
			reading = self.poll()
		except EstimationError as e:
			self._last_error = e
			logger.error("vitals_estimation_failed", estimator=e.estimator, kind=e.kind.value)
			reading = e.reading

		if reading is not None:
			for callback in self._listeners:
				try:
					callback(reading)
				except Exception as e:
					logger.error("reading_listener_failed", error=repr(e))
		return reading

	def poll(self) -> VitalsReading | None:
		"""Read every ready estimator once. Returns None when nothing is ready.

		Under the ``surface`` error policy an estimator failure propagates as
		EstimationError after the remaining estimators have been read; the
		metrics that were read are attached as ``error.reading``.
		"""
		reading = VitalsReading(timestamp_ms=self._last_timestamp_ms)
		failure: EstimationError | None = None

		if self.heart_rate.is_ready():
			try:
				reading.heart_rate_bpm = self.heart_rate.read()
			except EstimationError as e:
				failure = e
		if self.respiratory.is_ready():
			try:
				reading.respiratory_rate_bpm = self.respiratory.read()
			except EstimationError as e:
				failure = failure or e
		if self.blood_pressure.is_ready():
			try:
				pressure = self.blood_pressure.read()
				reading.systolic_mmhg = pressure.systolic
				reading.diastolic_mmhg = pressure.diastolic
			except EstimationError as e:
				failure = failure or e

		if failure is not None:
			failure.reading = None if reading.is_empty else reading
			raise failure
		if reading.is_empty:
			return None
		logger.debug("vitals_reading", **reading.to_dict())
		return reading

	def reset(self) -> None:
		self.heart_rate.reset()
		self.respiratory.reset()
		self.blood_pressure.reset()
		self._sample_count = 0
		self._last_timestamp_ms = 0
		self._last_error = None
		logger.info("vitals_monitor_reset")

	@property
	def sample_count(self) -> int:
		return self._sample_count

	@property
	def last_error(self) -> EstimationError | None:
		"""Most recent failure surfaced while polling from on_sample."""
		return self._last_error
