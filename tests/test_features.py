"""Tests for feature extraction."""

import numpy as np
import pytest
from scipy import stats

from wristvitals.vitals import features
from wristvitals.vitals.features import FeatureExtractor, FeatureVector


class TestMedian:
	def test_even(self):
		assert features.median([1, 3]) == 2.0

	def test_odd(self):
		assert features.median([1, 2, 3]) == 2.0

	def test_empty(self):
		assert features.median([]) == 0.0

	def test_unsorted(self):
		assert features.median([9, 1, 4, 2]) == 3.0


class TestMoments:
	def test_constant_signal(self):
		x = np.full(64, 5.0)
		assert features.skewness(x) == 0.0
		assert features.kurtosis(x) == 0.0
		assert features.std(x) == 0.0

	def test_empty_signal(self):
		assert features.skewness([]) == 0.0
		assert features.kurtosis([]) == 0.0
		assert features.mean([]) == 0.0

	def test_matches_population_formulas(self, random_signal):
		assert features.skewness(random_signal) == pytest.approx(stats.skew(random_signal))
		assert features.kurtosis(random_signal) == pytest.approx(stats.kurtosis(random_signal))
		assert features.std(random_signal) == pytest.approx(np.std(random_signal))

	def test_two_point_kurtosis(self):
		assert features.kurtosis([-1.0, 1.0]) == pytest.approx(-2.0)

	def test_symmetric_skew(self):
		assert features.skewness([-1.0, 0.0, 1.0]) == pytest.approx(0.0)


class TestVariability:
	def test_amplitude(self):
		assert features.amplitude([3.0, -1.0, 2.0]) == 4.0
		assert features.amplitude([]) == 0.0

	def test_diff_std(self):
		# deltas 1, 1, 3 -> population std of [1, 1, 3]
		assert features.diff_std([0, 1, 2, 5]) == pytest.approx(np.std([1, 1, 3]))
		assert features.diff_std([1.0]) == 0.0

	def test_percentile_75(self):
		assert features.percentile_75([4, 1, 3, 2]) == 4.0
		assert features.percentile_75([5]) == 5.0
		assert features.percentile_75([]) == 0.0


class TestPeakTiming:
	def test_pulse_transit_time(self):
		assert features.pulse_transit_time([1000, 1800, 2600]) == pytest.approx(0.8)
		assert features.pulse_transit_time([1000]) == 0.0

	def test_heart_rate_from_peak_times(self):
		assert features.heart_rate_from_peak_times([0, 1000, 2000]) == pytest.approx(60.0)
		assert features.heart_rate_from_peak_times([500]) == 0.0
		assert features.heart_rate_from_peak_times([500, 500]) == 0.0


class TestModulation:
	signal = np.array([0.0, 3.0, -1.0, 4.0, -2.0, 5.0, 0.0])
	peaks = [1, 3, 5]
	troughs = [2, 4]

	def test_amplitude_modulation(self):
		assert features.amplitude_modulation(self.signal, self.peaks, self.troughs) == pytest.approx(5.0)

	def test_baseline_wander(self):
		assert features.baseline_wander(self.signal, self.peaks, self.troughs) == pytest.approx(1.0)

	def test_frequency_modulation(self):
		assert features.frequency_modulation(self.peaks) == 0.0
		assert features.frequency_modulation([0, 10, 30]) == pytest.approx(5.0)

	def test_empty_extrema_are_zero(self):
		assert features.amplitude_modulation(self.signal, [], self.troughs) == 0.0
		assert features.baseline_wander(self.signal, self.peaks, []) == 0.0
		assert features.frequency_modulation([4]) == 0.0


class TestBandPowers:
	def test_three_bands_cover_spectrum(self, random_signal):
		powers = features.band_powers(random_signal[:100])
		spectrum = np.abs(np.fft.rfft(random_signal[:100], n=128))[1:]
		assert len(powers) == 3
		assert sum(powers) == pytest.approx(float(np.sum(spectrum)))

	def test_low_frequency_in_low_band(self):
		x = np.sin(2 * np.pi * 5 * np.arange(128) / 128)
		low, mid, high = features.band_powers(x)
		assert low > mid
		assert low > high

	def test_empty(self):
		assert features.band_powers([]) == (0.0, 0.0, 0.0)


class TestFeatureExtractor:
	def test_extract(self, bvp_window):
		values, timestamps = bvp_window
		extractor = FeatureExtractor()
		peaks = np.array([10, 60, 110])
		troughs = np.array([35, 85])
		vector = extractor.extract(values, peaks, troughs, peak_times_ms=[0, 800, 1600])

		assert vector.amplitude == pytest.approx(float(values.max() - values.min()), rel=1e-6)
		assert vector.pulse_transit_time_s == pytest.approx(0.8)
		assert vector.heart_rate_bpm == pytest.approx(75.0)
		assert vector.frequency_modulation == 0.0
		assert vector.pulse_width_variability == vector.pulse_rate_variability
		assert len(vector.band_powers) == 3

	def test_degenerate_window(self):
		vector = FeatureExtractor().extract(np.zeros(64), [], [])
		assert vector == FeatureVector()

	def test_as_array(self):
		vector = FeatureVector(mean=1.0, band_powers=(1.0, 2.0, 3.0))
		arr = vector.as_array()
		assert arr.shape == (15,)
		assert arr[0] == 1.0
		assert list(arr[-3:]) == [1.0, 2.0, 3.0]

	def test_normalized_band_powers(self):
		assert FeatureVector(band_powers=(1.0, 1.0, 2.0)).normalized_band_powers() == (0.25, 0.25, 0.5)
		assert FeatureVector().normalized_band_powers() == (0.0, 0.0, 0.0)
