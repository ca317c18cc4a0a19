"""Peak and trough detection for filtered BVP signals."""

from __future__ import annotations

from collections import deque
from dataclasses import dataclass, field

import numpy as np
from numpy.typing import ArrayLike, NDArray

REFRACTORY_S = 0.4


@dataclass
class Extrema:
	peaks: NDArray[np.intp] = field(default_factory=lambda: np.zeros(0, dtype=np.intp))
	troughs: NDArray[np.intp] = field(default_factory=lambda: np.zeros(0, dtype=np.intp))


def detect_peaks(signal: ArrayLike, min_value: float | None = None) -> NDArray[np.intp]:
	"""Indices of strict local maxima in ``signal[1:-1]``.

	Args:
		signal: Input samples
		min_value: If given, a peak must also exceed this value

	Returns:
		Strictly increasing peak indices
	"""
	x = np.asarray(signal, dtype=np.float64)
	if x.size < 3:
		return np.zeros(0, dtype=np.intp)

	mid = x[1:-1]
	mask = (mid > x[:-2]) & (mid > x[2:])
	if min_value is not None:
		mask &= mid > min_value
	return np.flatnonzero(mask) + 1


def detect_troughs(signal: ArrayLike) -> NDArray[np.intp]:
	"""Indices of strict local minima in ``signal[1:-1]``."""
	x = np.asarray(signal, dtype=np.float64)
	if x.size < 3:
		return np.zeros(0, dtype=np.intp)

	mid = x[1:-1]
	mask = (mid < x[:-2]) & (mid < x[2:])
	return np.flatnonzero(mask) + 1


def refractory_samples(sample_rate_hz: float, seconds: float = REFRACTORY_S) -> float:
	return seconds * sample_rate_hz


def filter_by_mean(
	signal: ArrayLike,
	indices: ArrayLike,
	is_peak: bool,
	min_interval: float,
) -> NDArray[np.intp]:
	"""Keep extrema on the correct side of the mean and outside the refractory interval.

	A peak must lie above the signal mean (a trough below it) and come more
	than ``min_interval`` samples after the last kept index of its kind.
	"""
	x = np.asarray(signal, dtype=np.float64)
	candidates = np.asarray(indices, dtype=np.intp)
	if x.size == 0 or candidates.size == 0:
		return np.zeros(0, dtype=np.intp)

	mean = float(np.mean(x))
	kept: list[int] = []
	for idx in candidates:
		value = x[idx]
		on_side = value > mean if is_peak else value < mean
		if not on_side:
			continue
		if not kept or idx - kept[-1] > min_interval:
			kept.append(int(idx))
	return np.asarray(kept, dtype=np.intp)


def find_extrema(
	signal: ArrayLike,
	sample_rate_hz: float | None = None,
	refractory_s: float = REFRACTORY_S,
) -> Extrema:
	"""Detect peaks and troughs, applying the mean/refractory filter when a rate is given."""
	peaks = detect_peaks(signal)
	troughs = detect_troughs(signal)
	if sample_rate_hz is not None:
		interval = refractory_samples(sample_rate_hz, refractory_s)
		peaks = filter_by_mean(signal, peaks, is_peak=True, min_interval=interval)
		troughs = filter_by_mean(signal, troughs, is_peak=False, min_interval=interval)
	return Extrema(peaks=peaks, troughs=troughs)


class StreamingPeakDetector:
	"""Single-sample peak detection with amplitude and interval gating.

	Looks at the last three samples; the middle one is accepted as a peak when
	it is a strict local maximum, differs from both neighbours by more than
	``threshold`` and arrives more than ``min_interval_ms`` after the previous
	accepted peak.
	"""

	def __init__(self, threshold: float, min_interval_ms: int, history: int = 64) -> None:
		self.threshold = threshold
		self.min_interval_ms = min_interval_ms
		self._recent: deque[tuple[float, int]] = deque(maxlen=3)
		self._peak_times: deque[int] = deque(maxlen=history)

	def update(self, value: float, timestamp_ms: int) -> int | None:
		"""Feed one sample. Returns the timestamp of a newly accepted peak, if any."""
		self._recent.append((value, timestamp_ms))
		if len(self._recent) < 3:
			return None

		(prev, _), (mid, mid_ts), (nxt, _) = self._recent
		if not (mid > prev and mid > nxt):
			return None
		if abs(mid - prev) <= self.threshold or abs(mid - nxt) <= self.threshold:
			return None
		if self._peak_times and mid_ts - self._peak_times[-1] <= self.min_interval_ms:
			return None

		self._peak_times.append(mid_ts)
		return mid_ts

	def peak_times(self, since_ms: int | None = None) -> list[int]:
		"""Accepted peak timestamps, optionally only those at or after ``since_ms``."""
		if since_ms is None:
			return list(self._peak_times)
		return [t for t in self._peak_times if t >= since_ms]

	@property
	def last_peak_ms(self) -> int | None:
		return self._peak_times[-1] if self._peak_times else None

	def reset(self) -> None:
		self._recent.clear()
		self._peak_times.clear()
