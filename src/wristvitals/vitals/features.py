"""Statistical, modulation and spectral features of BVP windows."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import astuple, dataclass

import numpy as np
from numpy.typing import ArrayLike, NDArray

from wristvitals.vitals.filters import MovingAverageSmoother


@dataclass(frozen=True)
class FeatureVector:
	mean: float = 0.0
	std: float = 0.0
	amplitude: float = 0.0
	pulse_width_variability: float = 0.0
	pulse_rate_variability: float = 0.0
	pulse_transit_time_s: float = 0.0
	heart_rate_bpm: float = 0.0
	skewness: float = 0.0
	kurtosis: float = 0.0
	amplitude_modulation: float = 0.0
	baseline_wander: float = 0.0
	frequency_modulation: float = 0.0
	band_powers: tuple[float, ...] = (0.0, 0.0, 0.0)

	def normalized_band_powers(self) -> tuple[float, ...]:
		"""Band powers as fractions of their total (all zero when the total is zero)."""
		total = sum(self.band_powers)
		if total <= 0:
			return tuple(0.0 for _ in self.band_powers)
		return tuple(p / total for p in self.band_powers)

	def as_array(self) -> NDArray[np.float64]:
		scalars = astuple(self)[:-1]
		return np.asarray([*scalars, *self.band_powers], dtype=np.float64)


def _as_array(values: ArrayLike) -> NDArray[np.float64]:
	return np.asarray(values, dtype=np.float64).ravel()


def mean(values: ArrayLike) -> float:
	x = _as_array(values)
	return float(np.mean(x)) if x.size else 0.0


def std(values: ArrayLike) -> float:
	"""Population standard deviation."""
	x = _as_array(values)
	return float(np.std(x)) if x.size else 0.0


def amplitude(values: ArrayLike) -> float:
	x = _as_array(values)
	return float(np.max(x) - np.min(x)) if x.size else 0.0


def diff_std(values: ArrayLike) -> float:
	"""Standard deviation of inter-sample deltas."""
	x = _as_array(values)
	if x.size < 2:
		return 0.0
	return float(np.std(np.diff(x)))


def skewness(values: ArrayLike) -> float:
	x = _as_array(values)
	if x.size == 0:
		return 0.0
	sigma = np.std(x)
	if sigma == 0:
		return 0.0
	return float(np.sum((x - np.mean(x)) ** 3) / (x.size * sigma**3))


def kurtosis(values: ArrayLike) -> float:
	"""Excess kurtosis (normal distribution gives 0)."""
	x = _as_array(values)
	if x.size == 0:
		return 0.0
	sigma = np.std(x)
	if sigma == 0:
		return 0.0
	return float(np.sum((x - np.mean(x)) ** 4) / (x.size * sigma**4) - 3.0)


def median(values: ArrayLike) -> float:
	"""Median with an empty sequence defined as 0.0."""
	x = np.sort(_as_array(values))
	n = x.size
	if n == 0:
		return 0.0
	if n % 2:
		return float(x[n // 2])
	return float((x[n // 2 - 1] + x[n // 2]) / 2.0)


def percentile_75(values: ArrayLike) -> float:
	"""Nearest-rank 75th percentile: element ``ceil(0.75 n)`` of the sorted values, clamped."""
	x = np.sort(_as_array(values))
	if x.size == 0:
		return 0.0
	index = math.ceil(0.75 * x.size)
	return float(x[min(index, x.size - 1)])


def pulse_transit_time(peak_times_ms: Sequence[int]) -> float:
	"""Seconds between the two most recent peaks."""
	if len(peak_times_ms) < 2:
		return 0.0
	return (peak_times_ms[-1] - peak_times_ms[-2]) / 1000.0


def heart_rate_from_peak_times(peak_times_ms: Sequence[int]) -> float:
	if len(peak_times_ms) < 2:
		return 0.0
	duration_s = (peak_times_ms[-1] - peak_times_ms[0]) / 1000.0
	if duration_s <= 0:
		return 0.0
	return (len(peak_times_ms) - 1) * 60.0 / duration_s


def band_powers(values: ArrayLike, n_bands: int = 3) -> tuple[float, ...]:
	"""Sum of FFT magnitudes over equal contiguous slices of the positive spectrum.

	The signal is zero-padded to the next power of two; bins 1..n/2 are the
	positive frequencies that get split into ``n_bands`` slices.
	"""
	x = _as_array(values)
	if x.size == 0:
		return tuple(0.0 for _ in range(n_bands))

	n_fft = 1 << max(0, (x.size - 1).bit_length())
	magnitude = np.abs(np.fft.rfft(x, n=n_fft))[1:]
	if magnitude.size == 0:
		return tuple(0.0 for _ in range(n_bands))
	return tuple(float(np.sum(band)) for band in np.array_split(magnitude, n_bands))


def _pairs(peaks: ArrayLike, troughs: ArrayLike) -> tuple[NDArray[np.intp], NDArray[np.intp]]:
	p = np.asarray(peaks, dtype=np.intp)
	t = np.asarray(troughs, dtype=np.intp)
	n = min(p.size, t.size)
	return p[:n], t[:n]


def amplitude_modulation(signal: ArrayLike, peaks: ArrayLike, troughs: ArrayLike) -> float:
	x = _as_array(signal)
	p, t = _pairs(peaks, troughs)
	if p.size == 0:
		return 0.0
	return float(np.mean(np.abs(x[p] - x[t])))


def baseline_wander(signal: ArrayLike, peaks: ArrayLike, troughs: ArrayLike) -> float:
	x = _as_array(signal)
	p, t = _pairs(peaks, troughs)
	if p.size == 0:
		return 0.0
	return float(np.mean((x[p] + x[t]) / 2.0))


def frequency_modulation(peaks: ArrayLike) -> float:
	"""Standard deviation of peak-to-peak index intervals."""
	p = np.asarray(peaks, dtype=np.float64)
	if p.size < 2:
		return 0.0
	return float(np.std(np.diff(p)))


class FeatureExtractor:
	"""Build a FeatureVector from one filtered window and its extrema."""

	def __init__(self, smooth_window: int = 0, n_bands: int = 3) -> None:
		self.n_bands = n_bands
		self._smoother = MovingAverageSmoother(smooth_window)

	def extract(
		self,
		filtered: ArrayLike,
		peaks: ArrayLike,
		troughs: ArrayLike,
		raw: ArrayLike | None = None,
		peak_times_ms: Sequence[int] = (),
	) -> FeatureVector:
		"""Compute every feature for one window.

		Args:
			filtered: Band-passed window
			peaks: Peak indices into ``filtered``
			troughs: Trough indices into ``filtered``
			raw: Unfiltered window for the variability features (defaults to ``filtered``)
			peak_times_ms: Accepted peak timestamps for PTT and peak heart rate

		Returns:
			FeatureVector
		"""
		signal = _as_array(filtered)
		smoothed = self._smoother.process(signal)
		raw_signal = signal if raw is None else _as_array(raw)
		variability = diff_std(raw_signal)

		return FeatureVector(
			mean=mean(smoothed),
			std=std(smoothed),
			amplitude=amplitude(signal),
			pulse_width_variability=variability,
			pulse_rate_variability=variability,
			pulse_transit_time_s=pulse_transit_time(peak_times_ms),
			heart_rate_bpm=heart_rate_from_peak_times(peak_times_ms),
			skewness=skewness(signal),
			kurtosis=kurtosis(signal),
			amplitude_modulation=amplitude_modulation(signal, peaks, troughs),
			baseline_wander=baseline_wander(signal, peaks, troughs),
			frequency_modulation=frequency_modulation(peaks),
			band_powers=band_powers(signal, self.n_bands),
		)
