"""Tests for the vitals monitor."""

import pytest

from wristvitals.config import AppConfig
from wristvitals.vitals.base import EstimationError
from wristvitals.vitals.monitor import VitalsMonitor, VitalsReading


class FakeSource:
	def __init__(self):
		self.callbacks = []

	def on_sample(self, callback):
		self.callbacks.append(callback)

	def emit(self, values, timestamps):
		for v, ts in zip(values, timestamps):
			for cb in self.callbacks:
				cb(float(v), int(ts))


def run(monitor, values, timestamps=None):
	readings = []
	for i, v in enumerate(values):
		ts = None if timestamps is None else int(timestamps[i])
		reading = monitor.on_sample(float(v), ts)
		if reading is not None:
			readings.append(reading)
	return readings


class TestVitalsReading:
	def test_empty(self):
		assert VitalsReading().is_empty
		assert not VitalsReading(heart_rate_bpm=70.0).is_empty

	def test_to_dict(self):
		d = VitalsReading(timestamp_ms=1000, systolic_mmhg=120.0, diastolic_mmhg=80.0).to_dict()
		assert d["timestamp_ms"] == 1000
		assert d["heart_rate_bpm"] is None
		assert d["diastolic_mmhg"] == 80.0


class TestVitalsMonitor:
	def test_reading_schedule(self, bvp_window):
		values, timestamps = bvp_window
		monitor = VitalsMonitor()
		readings = run(monitor, values, timestamps)

		# heart rate at 512 and 1024 samples, respiration and pressure at 1280
		assert len(readings) == 3
		assert readings[0].heart_rate_bpm is not None
		assert readings[0].respiratory_rate_bpm is None
		assert readings[1].heart_rate_bpm is not None
		assert readings[2].heart_rate_bpm is None
		assert readings[2].respiratory_rate_bpm is not None
		assert readings[2].systolic_mmhg is not None
		assert readings[2].timestamp_ms == int(timestamps[-1])

	def test_heart_rate_is_plausible(self, bvp_window):
		readings = run(VitalsMonitor(), bvp_window[0])
		assert 60 <= readings[0].heart_rate_bpm <= 85

	def test_poll_returns_none_when_idle(self):
		monitor = VitalsMonitor()
		assert monitor.on_sample(1.0) is None
		assert monitor.poll() is None
		assert monitor.sample_count == 1

	def test_listeners(self, bvp_window):
		monitor = VitalsMonitor()
		received = []
		monitor.on_reading(received.append)
		run(monitor, bvp_window[0])
		assert len(received) == 3

	def test_failing_listener_does_not_stop_stream(self, bvp_window):
		monitor = VitalsMonitor()

		def broken(reading):
			raise RuntimeError("listener failed")

		monitor.on_reading(broken)
		assert len(run(monitor, bvp_window[0])) == 3

	def test_attach(self, bvp_window):
		monitor = VitalsMonitor()
		source = FakeSource()
		monitor.attach(source)
		source.emit(*bvp_window)
		assert monitor.sample_count == 1280

	def test_set_user_age(self):
		monitor = VitalsMonitor()
		monitor.set_user_age(25)
		assert monitor.blood_pressure.user_age == 25

	def test_strategies_from_config(self):
		config = AppConfig()
		config.respiratory.strategy = "spectral"
		config.blood_pressure.strategy = "feature_regression"
		monitor = VitalsMonitor(config)
		assert monitor.respiratory.strategy.value == "spectral"
		assert monitor.blood_pressure.strategy.value == "feature_regression"

	def test_surface_policy_keeps_other_metrics(self, bvp_window, monkeypatch):
		monitor = VitalsMonitor(AppConfig(error_policy="surface"))
		received = []
		monitor.on_reading(received.append)

		def boom(signal):
			raise FloatingPointError("overflow")

		monkeypatch.setattr(monitor.respiratory._filter, "process", boom)
		readings = run(monitor, bvp_window[0])

		assert len(readings) == 3
		assert len(received) == 3
		assert readings[2].respiratory_rate_bpm is None
		assert readings[2].systolic_mmhg is not None
		assert monitor.last_error.estimator == "respiratory_rate"
		assert not monitor.blood_pressure.is_ready()

	def test_surface_policy_only_failure(self, bvp_window, monkeypatch):
		monitor = VitalsMonitor(AppConfig(error_policy="surface"))

		def boom(signal):
			raise FloatingPointError("overflow")

		monkeypatch.setattr(monitor.heart_rate._filter, "process", boom)
		readings = run(monitor, bvp_window[0][:512])
		assert readings == []
		assert monitor.last_error.kind.value == "arithmetic"
		assert not monitor.heart_rate.is_ready()

	def test_poll_attaches_partial_reading(self, bvp_window, monkeypatch):
		monitor = VitalsMonitor(AppConfig(error_policy="surface"))

		def boom(signal):
			raise FloatingPointError("overflow")

		monkeypatch.setattr(monitor.respiratory._filter, "process", boom)
		for v in bvp_window[0]:
			for est in (monitor.heart_rate, monitor.respiratory, monitor.blood_pressure):
				est.push(float(v))

		with pytest.raises(EstimationError) as exc_info:
			monitor.poll()
		partial = exc_info.value.reading
		assert partial.heart_rate_bpm is not None
		assert partial.systolic_mmhg is not None
		assert partial.respiratory_rate_bpm is None

	def test_mask_policy(self, bvp_window, monkeypatch):
		monitor = VitalsMonitor()

		def boom(signal):
			raise FloatingPointError("overflow")

		monkeypatch.setattr(monitor.heart_rate._filter, "process", boom)
		readings = run(monitor, bvp_window[0][:512])
		assert readings[0].heart_rate_bpm == 0.0

	def test_reset(self, bvp_window):
		monitor = VitalsMonitor()
		run(monitor, bvp_window[0][:600])
		monitor.reset()
		assert monitor.sample_count == 0
		assert monitor.heart_rate.window.occupancy == 0
		assert monitor.respiratory.window.occupancy == 0
