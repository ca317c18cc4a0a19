"""Mock BVP sensor for running the pipeline without a wearable.

Generates a synthetic photoplethysmogram:
- Cardiac pulse with a dicrotic component at the configured heart rate
- Respiratory amplitude modulation and baseline wander
- Gaussian sensor noise
"""
from __future__ import annotations

import logging
import math
import time
from collections.abc import Callable, Iterator
from dataclasses import dataclass
from threading import Event, Thread
from typing import Protocol

import numpy as np
from numpy.typing import NDArray

logger = logging.getLogger(__name__)

SampleCallback = Callable[[float, int], object]


class SampleSource(Protocol):
	"""Anything that delivers BVP samples to registered callbacks."""

	def on_sample(self, callback: SampleCallback) -> None: ...


@dataclass
class MockConfig:
	"""Configuration for synthetic BVP generation."""
	sample_rate_hz: float = 64.0
	heart_rate_bpm: float = 72.0
	breathing_rate_bpm: float = 15.0
	pulse_amplitude: float = 50.0
	dicrotic_ratio: float = 0.15
	am_depth: float = 0.2          # respiratory amplitude modulation
	baseline_wander: float = 5.0   # respiratory baseline shift
	noise_std: float = 0.5
	seed: int | None = None


class MockBvpSensor:
	"""Synthetic BVP source with the callback interface of a device connection.

	Usage:
		sensor = MockBvpSensor(MockConfig(heart_rate_bpm=80))
		monitor.attach(sensor)
		sensor.start()
		...
		sensor.stop()
	"""

	def __init__(self, config: MockConfig | None = None) -> None:
		self._config = config or MockConfig()
		self._rng = np.random.default_rng(self._config.seed)
		self._index = 0
		self._callbacks: list[SampleCallback] = []
		self._stop_event = Event()
		self._thread: Thread | None = None
		logger.info("MockBvpSensor initialized (synthetic data mode)")

	@property
	def config(self) -> MockConfig:
		return self._config

	@property
	def is_running(self) -> bool:
		return self._thread is not None and self._thread.is_alive()

	def on_sample(self, callback: SampleCallback) -> None:
		self._callbacks.append(callback)

	def generate(self, n: int) -> tuple[NDArray[np.float32], NDArray[np.int64]]:
		"""Next ``n`` samples and their millisecond timestamps."""
		cfg = self._config
		idx = self._index + np.arange(n)
		t = idx / cfg.sample_rate_hz
		self._index += n

		cardiac = 2 * math.pi * cfg.heart_rate_bpm / 60.0 * t
		breathing = 2 * math.pi * cfg.breathing_rate_bpm / 60.0 * t

		pulse = np.sin(cardiac) + cfg.dicrotic_ratio * np.sin(2 * cardiac - 0.8)
		envelope = 1.0 + cfg.am_depth * np.sin(breathing)
		signal = cfg.pulse_amplitude * envelope * pulse + cfg.baseline_wander * np.sin(breathing)
		if cfg.noise_std > 0:
			signal = signal + self._rng.normal(0.0, cfg.noise_std, n)

		timestamps = np.round(t * 1000.0).astype(np.int64)
		return signal.astype(np.float32), timestamps

	def stream(self, max_samples: int | None = None, realtime: bool = False) -> Iterator[tuple[float, int]]:
		"""Yield (value, timestamp_ms) pairs, optionally paced at the sample rate."""
		period = 1.0 / self._config.sample_rate_hz
		emitted = 0
		while max_samples is None or emitted < max_samples:
			values, timestamps = self.generate(1)
			yield float(values[0]), int(timestamps[0])
			emitted += 1
			if realtime:
				time.sleep(period)

	def start(self, realtime: bool = True) -> None:
		"""Emit samples to callbacks on a background thread until stop()."""
		if self.is_running:
			return
		self._stop_event.clear()
		self._thread = Thread(target=self._run, args=(realtime,), name="mock-bvp", daemon=True)
		self._thread.start()
		logger.info("MockBvpSensor started")

	def _run(self, realtime: bool) -> None:
		period = 1.0 / self._config.sample_rate_hz
		next_time = time.monotonic()
		while not self._stop_event.is_set():
			values, timestamps = self.generate(1)
			for callback in self._callbacks:
				try:
					callback(float(values[0]), int(timestamps[0]))
				except Exception as e:
					logger.error(f"Sample callback error: {e}")
			if realtime:
				next_time += period
				delay = next_time - time.monotonic()
				if delay > 0:
					self._stop_event.wait(delay)

	def stop(self) -> None:
		self._stop_event.set()
		if self._thread and self._thread.is_alive():
			self._thread.join(timeout=2.0)
		self._thread = None
		logger.info("MockBvpSensor stopped")
