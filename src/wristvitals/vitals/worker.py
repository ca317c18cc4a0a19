"""Background ingestion: hand samples to a dedicated thread through a bounded queue."""

from __future__ import annotations

import queue
from threading import Event, Thread

import structlog

from wristvitals.vitals.monitor import VitalsMonitor

logger = structlog.get_logger(__name__)

_STOP = object()


class SampleWorker:
	"""Runs VitalsMonitor.on_sample on its own thread.

	Samples are consumed in submission order. ``submit`` blocks while the
	queue is full unless called with ``block=False``, in which case the sample
	is dropped and counted.

	Usage:
		worker = SampleWorker(monitor)
		worker.start()
		sensor.on_sample(worker.submit)
		...
		worker.stop()
	"""

	def __init__(self, monitor: VitalsMonitor, max_queue_size: int = 1024) -> None:
		if max_queue_size < 1:
			raise ValueError(f"max_queue_size must be >= 1, got {max_queue_size}")
		self.monitor = monitor
		self._queue: queue.Queue = queue.Queue(maxsize=max_queue_size)
		self._thread: Thread | None = None
		self._running = Event()
		self._processed = 0
		self._dropped = 0

	@property
	def is_running(self) -> bool:
		return self._running.is_set()

	@property
	def processed(self) -> int:
		return self._processed

	@property
	def dropped(self) -> int:
		return self._dropped

	def start(self) -> None:
		if self._thread is not None:
			return
		self._running.set()
		self._thread = Thread(target=self._run, name="wristvitals-worker", daemon=True)
		self._thread.start()
		logger.info("sample_worker_started", max_queue=self._queue.maxsize)

	def submit(
		self,
		value: float,
		timestamp_ms: int | None = None,
		block: bool = True,
		timeout: float | None = None,
	) -> bool:
		"""Queue one sample. Returns False if it was dropped."""
		try:
			self._queue.put((value, timestamp_ms), block=block, timeout=timeout)
			return True
		except queue.Full:
			self._dropped += 1
			if self._dropped == 1 or self._dropped % 100 == 0:
				logger.warning("sample_worker_queue_full", dropped=self._dropped)
			return False

	def _run(self) -> None:
		while True:
			item = self._queue.get()
			try:
				if item is _STOP:
					return
				value, timestamp_ms = item
				self.monitor.on_sample(value, timestamp_ms)
				self._processed += 1
			except Exception as e:
				logger.error("sample_worker_error", error=repr(e))
			finally:
				self._queue.task_done()

	def join(self) -> None:
		"""Block until every queued sample has been processed."""
		self._queue.join()

	def stop(self, drain: bool = True) -> None:
		"""Stop the worker thread, by default after the queue drains."""
		if self._thread is None:
			return
		if drain:
			self._queue.join()
		else:
			while True:
				try:
					self._queue.get_nowait()
					self._queue.task_done()
				except queue.Empty:
					break
		self._queue.put(_STOP)
		self._thread.join()
		self._thread = None
		self._running.clear()
		logger.info("sample_worker_stopped", processed=self._processed, dropped=self._dropped)

	def __enter__(self) -> SampleWorker:
		self.start()
		return self

	def __exit__(self, exc_type, exc_val, exc_tb) -> None:
		self.stop()
