"""Fixed-capacity sample window with overlap retention."""

from __future__ import annotations

from dataclasses import dataclass
from threading import Lock

import numpy as np
from numpy.typing import NDArray


@dataclass(frozen=True)
class WindowFull:
	"""Snapshot emitted when a window reaches capacity."""

	samples: NDArray[np.float32]
	timestamps_ms: NDArray[np.int64]
	sequence: int

	def __len__(self) -> int:
		return len(self.samples)

	@property
	def duration_s(self) -> float:
		"""Span between the first and last sample timestamps."""
		if len(self.timestamps_ms) < 2:
			return 0.0
		return float(self.timestamps_ms[-1] - self.timestamps_ms[0]) / 1000.0


class SlidingWindow:
	"""Sample buffer that emits a snapshot on fill, then keeps its newest samples.

	By default half the window is retained after each fill (50% overlap), so
	every sample lands in at least one analyzed window. ``retain=0`` gives a
	non-overlapping window that is cleared after each fill.
	"""

	def __init__(self, capacity: int, retain: int | None = None) -> None:
		if capacity < 2:
			raise ValueError(f"Window capacity must be >= 2, got {capacity}")
		if retain is None:
			retain = capacity // 2
		if not 0 <= retain < capacity:
			raise ValueError(f"Retained sample count must be in [0, {capacity}), got {retain}")

		self.capacity = capacity
		self.retain = retain
		self._samples = np.zeros(capacity, dtype=np.float32)
		self._timestamps = np.zeros(capacity, dtype=np.int64)
		self._cursor = 0
		self._sequence = 0
		self._latest: WindowFull | None = None
		self._lock = Lock()

	def push(self, sample: float, timestamp_ms: int | None = None) -> WindowFull | None:
		"""Append one sample. Returns the full-window snapshot when capacity is reached."""
		with self._lock:
			self._samples[self._cursor] = sample
			self._timestamps[self._cursor] = 0 if timestamp_ms is None else timestamp_ms
			self._cursor += 1

			if self._cursor < self.capacity:
				return None

			samples = self._samples.copy()
			timestamps = self._timestamps.copy()
			samples.flags.writeable = False
			timestamps.flags.writeable = False
			self._sequence += 1
			event = WindowFull(samples=samples, timestamps_ms=timestamps, sequence=self._sequence)
			self._latest = event

			if self.retain:
				self._samples[: self.retain] = self._samples[self.capacity - self.retain:]
				self._timestamps[: self.retain] = self._timestamps[self.capacity - self.retain:]
			self._cursor = self.retain
			return event

	def values(self) -> NDArray[np.float32]:
		"""Copy of the samples currently held, oldest first."""
		with self._lock:
			return self._samples[: self._cursor].copy()

	def clear(self) -> None:
		with self._lock:
			self._cursor = 0
			self._latest = None

	@property
	def latest_snapshot(self) -> WindowFull | None:
		"""Most recent completed window, if any."""
		return self._latest

	@property
	def occupancy(self) -> int:
		return self._cursor

	@property
	def fullness(self) -> float:
		"""Fraction of the window filled (0.0 to 1.0)."""
		return self._cursor / self.capacity

	def __len__(self) -> int:
		return self._cursor
