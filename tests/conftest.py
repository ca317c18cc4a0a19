"""Pytest fixtures."""

import numpy as np
import pytest

from wristvitals.sensor.mock import MockBvpSensor, MockConfig


@pytest.fixture
def mock_sensor() -> MockBvpSensor:
	"""Seeded 64 Hz sensor at 72 BPM / 15 breaths per minute."""
	return MockBvpSensor(MockConfig(seed=7))


@pytest.fixture
def bvp_window(mock_sensor) -> tuple[np.ndarray, np.ndarray]:
	"""20 s of synthetic BVP (1280 samples) with timestamps."""
	return mock_sensor.generate(1280)


@pytest.fixture
def random_signal() -> np.ndarray:
	rng = np.random.default_rng(42)
	return rng.normal(0.0, 1.0, 512)


def sine_train(spacing: int, n: int, amplitude: float = 1.0) -> np.ndarray:
	"""Sine with one peak every ``spacing`` samples."""
	return (amplitude * np.sin(2 * np.pi * np.arange(n) / spacing)).astype(np.float32)
