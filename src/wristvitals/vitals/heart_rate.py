"""Heart rate estimation from BVP peak intervals."""

from __future__ import annotations

import numpy as np
import structlog
from numpy.typing import ArrayLike

from wristvitals.config import HeartRateConfig
from wristvitals.vitals.base import ErrorPolicy, WindowedEstimator
from wristvitals.vitals.extrema import detect_peaks
from wristvitals.vitals.filters import BandpassFilter
from wristvitals.vitals.window import WindowFull

logger = structlog.get_logger(__name__)


def rate_from_peaks(peaks: ArrayLike, sample_rate_hz: float) -> float:
	"""Beats per minute from the mean peak-to-peak interval (0.0 when undefined)."""
	p = np.asarray(peaks, dtype=np.float64)
	if p.size < 2:
		logger.debug("heart_rate_insufficient_peaks", peaks=int(p.size))
		return 0.0

	mean_interval = float(np.mean(np.diff(p)))
	if mean_interval == 0:
		logger.debug("heart_rate_zero_interval")
		return 0.0
	return sample_rate_hz * 60.0 / mean_interval


class HeartRateEstimator(WindowedEstimator[float]):
	"""Peak-interval heart rate over non-overlapping windows (1.0-2.5 Hz band).

	Each full window is filtered, its positive local maxima are taken as
	beats, and the window is cleared so no sample contributes to two
	consecutive estimates.
	"""

	name = "heart_rate"

	def __init__(
		self,
		config: HeartRateConfig | None = None,
		error_policy: ErrorPolicy | str = ErrorPolicy.MASK,
	) -> None:
		self.config = config or HeartRateConfig()
		self._filter = BandpassFilter(
			sample_rate_hz=self.config.sample_rate_hz,
			low_freq_hz=self.config.low_freq_hz,
			high_freq_hz=self.config.high_freq_hz,
			order=self.config.filter_order,
		)
		super().__init__(
			window_size=self.config.window_size,
			sample_rate_hz=self.config.sample_rate_hz,
			retain=0,
			error_policy=error_policy,
		)
		logger.info("heart_rate_estimator_init", window=self.config.window_size, filter=repr(self._filter))

	def neutral_result(self) -> float:
		return 0.0

	def _compute(self, window: WindowFull) -> float:
		filtered = self._filter.process(window.samples)
		peaks = detect_peaks(filtered, min_value=self.config.min_peak_value)
		heart_rate = rate_from_peaks(peaks, self.sample_rate_hz)
		logger.debug("heart_rate_computed", bpm=round(heart_rate, 2), peaks=int(peaks.size))
		return heart_rate
