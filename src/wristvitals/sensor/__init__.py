"""BVP sample sources."""
from .mock import MockBvpSensor, MockConfig, SampleSource

__all__ = [
	"MockBvpSensor",
	"MockConfig",
	"SampleSource",
]
