"""Readiness protocol shared by all windowed estimators.

Each estimator accepts samples from a single producer, computes on every
window fill while holding its lock, and publishes an immutable result. The
consumer polls ``is_ready()`` and calls ``read()``, which returns the result
and clears readiness.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from enum import Enum
from threading import Event, Lock
from typing import Any, Generic, TypeVar

import structlog

from wristvitals.vitals.window import SlidingWindow, WindowFull

logger = structlog.get_logger(__name__)

R = TypeVar("R")


class ErrorPolicy(str, Enum):
	MASK = "mask"        # failed cycles publish the neutral result
	SURFACE = "surface"  # failed cycles also raise from the next read()


class ErrorKind(str, Enum):
	ARITHMETIC = "arithmetic"
	NUMERIC = "numeric"
	UNEXPECTED = "unexpected"


class EstimationError(RuntimeError):
	"""A compute cycle failed and the estimator was configured to surface it."""

	def __init__(self, estimator: str, kind: ErrorKind, cause: BaseException) -> None:
		super().__init__(f"{estimator} compute failed ({kind.value}): {cause!r}")
		self.estimator = estimator
		self.kind = kind
		self.cause = cause
		# Set by VitalsMonitor.poll to the metrics read alongside the failure.
		self.reading: Any = None


def classify_error(exc: BaseException) -> ErrorKind:
	"""Map a compute-cycle exception to an ErrorKind."""
	if isinstance(exc, (ZeroDivisionError, OverflowError, FloatingPointError)):
		return ErrorKind.ARITHMETIC
	if isinstance(exc, (ValueError, IndexError, TypeError)):
		return ErrorKind.NUMERIC
	return ErrorKind.UNEXPECTED


class ResultSlot(Generic[R]):
	"""Double-buffered result with an atomic ready flag.

	The producer swaps in a new immutable result before setting the flag, so
	a reader never observes a partially written value.
	"""

	def __init__(self, initial: R) -> None:
		self._latest = initial
		self._ready = Event()

	def publish(self, result: R) -> None:
		self._latest = result
		self._ready.set()

	def is_ready(self) -> bool:
		return self._ready.is_set()

	def peek(self) -> R:
		return self._latest

	def take(self) -> R:
		# Clear before reading: a publish in between stays ready rather than lost.
		self._ready.clear()
		return self._latest

	def reset(self, initial: R) -> None:
		self._ready.clear()
		self._latest = initial


class WindowedEstimator(ABC, Generic[R]):
	"""Base class for estimators fed one sample at a time."""

	name = "estimator"

	def __init__(
		self,
		window_size: int,
		sample_rate_hz: float,
		retain: int | None = None,
		error_policy: ErrorPolicy | str = ErrorPolicy.MASK,
	) -> None:
		self.sample_rate_hz = sample_rate_hz
		self.error_policy = ErrorPolicy(error_policy)
		self._window = SlidingWindow(window_size, retain=retain)
		self._slot: ResultSlot[R] = ResultSlot(self.neutral_result())
		self._lock = Lock()
		self._sample_count = 0
		self._last_error: EstimationError | None = None
		self._pending_error: EstimationError | None = None
		self._hook_failed = False

	@abstractmethod
	def neutral_result(self) -> R:
		"""Value published before the first cycle and after a failed one."""

	@abstractmethod
	def _compute(self, window: WindowFull) -> R:
		pass

	def _on_sample(self, value: float, timestamp_ms: int) -> None:
		"""Per-sample hook, called under the lock before the window append."""

	def push(self, value: float, timestamp_ms: int | None = None) -> bool:
		"""Accept one sample. Returns True when a compute cycle ran."""
		with self._lock:
			if timestamp_ms is None:
				timestamp_ms = int(round(self._sample_count * 1000.0 / self.sample_rate_hz))
			self._sample_count += 1

			try:
				self._on_sample(value, timestamp_ms)
			except Exception as exc:
				self._hook_failed = True
				self._record_failure(exc, self._window.latest_snapshot)
			event = self._window.push(value, timestamp_ms)
			if event is None:
				return False

			if self._hook_failed:
				# The streaming state behind this window is incomplete.
				result = self.neutral_result()
				self._hook_failed = False
			else:
				try:
					result = self._compute(event)
				except Exception as exc:
					result = self.neutral_result()
					self._record_failure(exc, event)
			self._slot.publish(result)
			return True

	def _record_failure(self, exc: Exception, event: WindowFull | None) -> None:
		kind = classify_error(exc)
		error = EstimationError(self.name, kind, exc)
		self._last_error = error
		logger.warning(
			"estimator_compute_failed",
			estimator=self.name,
			kind=kind.value,
			window=event.sequence if event is not None else 0,
			error=repr(exc),
		)
		if self.error_policy is ErrorPolicy.SURFACE:
			self._pending_error = error

	def is_ready(self) -> bool:
		return self._slot.is_ready()

	def read(self) -> R:
		"""Return the latest result and clear readiness.

		Under ``ErrorPolicy.SURFACE`` a failure recorded since the last read
		is raised here instead, after readiness is cleared.
		"""
		result = self._slot.take()
		error, self._pending_error = self._pending_error, None
		if error is not None:
			raise error
		return result

	def peek(self) -> R:
		"""Latest result without touching readiness."""
		return self._slot.peek()

	@property
	def last_error(self) -> EstimationError | None:
		return self._last_error

	@property
	def buffer_fullness(self) -> float:
		return self._window.fullness

	@property
	def window(self) -> SlidingWindow:
		return self._window

	def reset(self) -> None:
		with self._lock:
			self._window.clear()
			self._slot.reset(self.neutral_result())
			self._sample_count = 0
			self._last_error = None
			self._pending_error = None
			self._hook_failed = False
			self._reset_state()
		logger.info("estimator_reset", estimator=self.name)

	def _reset_state(self) -> None:
		"""Clear subclass state; called under the lock."""
