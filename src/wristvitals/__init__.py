"""Heart rate, respiratory rate and blood pressure from wrist-worn BVP sensors."""
__version__ = "0.1.0"

from wristvitals.config import AppConfig, configure_logging, get_config
from wristvitals.sensor.mock import MockBvpSensor, MockConfig
from wristvitals.vitals.blood_pressure import BloodPressure, BloodPressureEstimator
from wristvitals.vitals.heart_rate import HeartRateEstimator
from wristvitals.vitals.monitor import VitalsMonitor, VitalsReading
from wristvitals.vitals.respiratory import RespiratoryRateEstimator
from wristvitals.vitals.worker import SampleWorker

__all__ = [
	"AppConfig",
	"configure_logging",
	"get_config",
	"MockBvpSensor",
	"MockConfig",
	"VitalsMonitor",
	"VitalsReading",
	"SampleWorker",
	"HeartRateEstimator",
	"RespiratoryRateEstimator",
	"BloodPressureEstimator",
	"BloodPressure",
]
