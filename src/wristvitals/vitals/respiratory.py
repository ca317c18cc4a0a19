"""Respiratory rate estimation from BVP modulation features."""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum

import numpy as np
import structlog
from numpy.typing import NDArray

from wristvitals.config import RespiratoryConfig
from wristvitals.vitals import features
from wristvitals.vitals.base import ErrorPolicy, WindowedEstimator
from wristvitals.vitals.extrema import find_extrema
from wristvitals.vitals.filters import BandpassFilter
from wristvitals.vitals.window import WindowFull

logger = structlog.get_logger(__name__)


class RespiratoryStrategy(str, Enum):
	EXTREMA_FUSION = "extrema_fusion"
	SPECTRAL = "spectral"


def count_orig(
	signal: NDArray,
	peaks: NDArray,
	sample_rate_hz: float,
	raw: NDArray | None = None,
) -> float:
	"""Breaths per minute from consecutive peak pairs above 20% of the 75th-percentile peak.

	The percentile is taken over the unfiltered ``raw`` window at the peak
	indices (``signal`` itself when no raw window is given); the pair test
	compares the filtered peak values against it.
	"""
	if peaks.size == 0 or signal.size == 0:
		return 0.0

	reference = signal if raw is None else np.asarray(raw, dtype=np.float64)
	threshold = 0.2 * features.percentile_75(reference[peaks])
	above = signal[peaks] > threshold
	valid_breaths = int(np.count_nonzero(above[1:] & above[:-1]))

	duration_min = signal.size / sample_rate_hz / 60.0
	return valid_breaths / duration_min


class RateStrategy(ABC):
	"""Turns one filtered respiratory-band window into breaths per minute."""

	strategy: RespiratoryStrategy

	def __init__(self, config: RespiratoryConfig) -> None:
		self.config = config

	@abstractmethod
	def estimate(self, filtered: NDArray[np.float64], raw: NDArray | None = None) -> float:
		pass


class ExtremaFusion(RateStrategy):
	"""Weighted fusion of AM, BW, FM and count-orig from refractory-filtered extrema."""

	strategy = RespiratoryStrategy.EXTREMA_FUSION
	weights = (0.5, 0.2, 0.2, 0.1)

	def estimate(self, filtered: NDArray[np.float64], raw: NDArray | None = None) -> float:
		sample_rate = self.config.sample_rate_hz
		extrema = find_extrema(filtered, sample_rate_hz=sample_rate, refractory_s=self.config.refractory_s)

		am = features.amplitude_modulation(filtered, extrema.peaks, extrema.troughs)
		bw = features.baseline_wander(filtered, extrema.peaks, extrema.troughs)
		fm = features.frequency_modulation(extrema.peaks)
		count_rate = count_orig(filtered, extrema.peaks, sample_rate, raw=raw)

		w_am, w_bw, w_fm, w_count = self.weights
		rate = w_am * am + w_bw * bw + w_fm * fm + w_count * count_rate
		logger.debug(
			"respiratory_features",
			strategy=self.strategy.value,
			am=am,
			bw=bw,
			fm=fm,
			count_orig=count_rate,
			peaks=int(extrema.peaks.size),
			troughs=int(extrema.troughs.size),
		)
		return float(rate)


class SpectralDominantFrequency(RateStrategy):
	"""Fusion of whole-window AM/BW/FM with the dominant in-band FFT frequency."""

	strategy = RespiratoryStrategy.SPECTRAL
	weights = (0.3, 0.2, 0.2, 0.3)

	def dominant_rate(self, filtered: NDArray[np.float64]) -> float:
		"""Breaths per minute at the strongest bin within the filter band."""
		n_fft = 1 << max(0, (filtered.size - 1).bit_length())
		magnitude = np.abs(np.fft.rfft(filtered, n=n_fft))
		freqs = np.fft.rfftfreq(n_fft, 1.0 / self.config.sample_rate_hz)

		band = (freqs >= self.config.low_freq_hz) & (freqs <= self.config.high_freq_hz)
		if not np.any(band):
			return 0.0
		band_indices = np.flatnonzero(band)
		peak_idx = band_indices[int(np.argmax(magnitude[band]))]
		return float(freqs[peak_idx] * 60.0)

	def estimate(self, filtered: NDArray[np.float64], raw: NDArray | None = None) -> float:
		am = features.amplitude(filtered)
		bw = features.mean(filtered)
		fm = features.std(filtered)
		spectral_rate = self.dominant_rate(filtered)

		w_am, w_bw, w_fm, w_rate = self.weights
		rate = w_am * am + w_bw * bw + w_fm * fm + w_rate * spectral_rate
		logger.debug("respiratory_features", strategy=self.strategy.value, am=am, bw=bw, fm=fm, spectral=spectral_rate)

		if not self.config.plausible_min_bpm <= rate <= self.config.plausible_max_bpm:
			logger.debug("respiratory_rate_rejected", rate=rate)
			return 0.0
		return float(rate)


STRATEGIES: dict[RespiratoryStrategy, type[RateStrategy]] = {
	RespiratoryStrategy.EXTREMA_FUSION: ExtremaFusion,
	RespiratoryStrategy.SPECTRAL: SpectralDominantFrequency,
}


class RespiratoryRateEstimator(WindowedEstimator[float]):
	"""Respiratory rate over 50%-overlap windows (0.1-0.5 Hz band).

	The estimation strategy is fixed at construction from
	``RespiratoryConfig.strategy`` so results are reproducible.
	"""

	name = "respiratory_rate"

	def __init__(
		self,
		config: RespiratoryConfig | None = None,
		error_policy: ErrorPolicy | str = ErrorPolicy.MASK,
	) -> None:
		self.config = config or RespiratoryConfig()
		self.strategy = RespiratoryStrategy(self.config.strategy)
		self._strategy = STRATEGIES[self.strategy](self.config)
		self._filter = BandpassFilter(
			sample_rate_hz=self.config.sample_rate_hz,
			low_freq_hz=self.config.low_freq_hz,
			high_freq_hz=self.config.high_freq_hz,
			order=self.config.filter_order,
		)
		super().__init__(
			window_size=self.config.window_size,
			sample_rate_hz=self.config.sample_rate_hz,
			error_policy=error_policy,
		)
		logger.info(
			"respiratory_estimator_init",
			strategy=self.strategy.value,
			window=self.config.window_size,
			filter=repr(self._filter),
		)

	def neutral_result(self) -> float:
		return 0.0

	def _compute(self, window: WindowFull) -> float:
		filtered = self._filter.process(window.samples)
		rate = self._strategy.estimate(filtered, raw=window.samples)
		logger.debug("respiratory_rate_computed", rate=round(rate, 2), window=window.sequence)
		return rate
