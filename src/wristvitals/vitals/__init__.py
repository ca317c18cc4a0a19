"""Vital signs estimation from BVP samples."""

from wristvitals.vitals.base import ErrorKind, ErrorPolicy, EstimationError, WindowedEstimator, classify_error
from wristvitals.vitals.blood_pressure import BloodPressure, BloodPressureEstimator, BloodPressureStrategy
from wristvitals.vitals.extrema import StreamingPeakDetector, detect_peaks, detect_troughs, find_extrema
from wristvitals.vitals.features import FeatureExtractor, FeatureVector
from wristvitals.vitals.filters import BandpassFilter, MovingAverageSmoother
from wristvitals.vitals.heart_rate import HeartRateEstimator
from wristvitals.vitals.monitor import VitalsMonitor, VitalsReading
from wristvitals.vitals.respiratory import RespiratoryRateEstimator, RespiratoryStrategy
from wristvitals.vitals.window import SlidingWindow, WindowFull
from wristvitals.vitals.worker import SampleWorker

__all__ = [
	"VitalsMonitor",
	"VitalsReading",
	"SampleWorker",
	"HeartRateEstimator",
	"RespiratoryRateEstimator",
	"RespiratoryStrategy",
	"BloodPressureEstimator",
	"BloodPressureStrategy",
	"BloodPressure",
	"WindowedEstimator",
	"ErrorPolicy",
	"ErrorKind",
	"EstimationError",
	"classify_error",
	"BandpassFilter",
	"MovingAverageSmoother",
	"FeatureExtractor",
	"FeatureVector",
	"StreamingPeakDetector",
	"detect_peaks",
	"detect_troughs",
	"find_extrema",
	"SlidingWindow",
	"WindowFull",
]
