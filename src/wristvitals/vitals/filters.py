"""Signal filtering for BVP windows."""

from __future__ import annotations

from abc import ABC, abstractmethod

import numpy as np
import structlog
from numpy.typing import ArrayLike, NDArray
from scipy import signal as sp_signal

logger = structlog.get_logger(__name__)


class Filter(ABC):
	@abstractmethod
	def process(self, signal: ArrayLike) -> NDArray:
		pass

	@abstractmethod
	def reset(self) -> None:
		pass


class BandpassFilter(Filter):
	"""Butterworth bandpass for isolating a physiological frequency band.

	``process`` runs the filter causally over a whole window starting from
	zero state, so the same input always yields the same output. The
	streaming ``process_sample`` path keeps its own state between calls.
	"""

	def __init__(
		self,
		sample_rate_hz: float,
		low_freq_hz: float,
		high_freq_hz: float,
		order: int = 4,
	) -> None:
		if order < 1:
			raise ValueError(f"Filter order must be positive, got {order}")
		if sample_rate_hz <= 0:
			raise ValueError(f"Sample rate must be positive, got {sample_rate_hz}")

		nyquist = sample_rate_hz / 2
		if low_freq_hz <= 0 or low_freq_hz >= high_freq_hz:
			raise ValueError(f"Invalid frequency range: {low_freq_hz}-{high_freq_hz} Hz")
		if high_freq_hz >= nyquist:
			raise ValueError(f"High cutoff {high_freq_hz} Hz must be below Nyquist ({nyquist} Hz)")

		self.sample_rate_hz = sample_rate_hz
		self.low_freq_hz = low_freq_hz
		self.high_freq_hz = high_freq_hz
		self.order = order

		self._sos = sp_signal.butter(
			order, [low_freq_hz, high_freq_hz], btype="band", output="sos", fs=sample_rate_hz
		)
		self._zi: NDArray | None = None

	@property
	def center_hz(self) -> float:
		return (self.low_freq_hz + self.high_freq_hz) / 2

	@property
	def bandwidth_hz(self) -> float:
		return self.high_freq_hz - self.low_freq_hz

	def process(self, signal: ArrayLike) -> NDArray[np.float64]:
		data = np.asarray(signal, dtype=np.float64)
		if data.size == 0:
			return np.zeros(0, dtype=np.float64)
		return sp_signal.sosfilt(self._sos, data)

	def process_sample(self, sample: float) -> float:
		"""Real-time single-sample filtering."""
		if self._zi is None:
			self._zi = sp_signal.sosfilt_zi(self._sos) * sample

		filtered, self._zi = sp_signal.sosfilt(self._sos, [sample], zi=self._zi)
		return float(filtered[0])

	def reset(self) -> None:
		self._zi = None

	def __repr__(self) -> str:
		return (
			f"BandpassFilter({self.low_freq_hz}-{self.high_freq_hz} Hz, "
			f"fs={self.sample_rate_hz}, order={self.order})"
		)


class MovingAverageSmoother(Filter):
	"""Boxcar smoothing; a window of 0 or 1 passes the signal through."""

	def __init__(self, window: int = 0) -> None:
		self.window = window

	def process(self, signal: ArrayLike) -> NDArray[np.float64]:
		result = np.asarray(signal, dtype=np.float64)
		if self.window > 1 and result.size >= self.window:
			kernel = np.ones(self.window) / self.window
			result = np.convolve(result, kernel, mode="same")
		return result

	def reset(self) -> None:
		pass
