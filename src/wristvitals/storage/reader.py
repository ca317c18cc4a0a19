"""Readers for recorded BVP streams (CSV, Parquet, HDF5)."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterator, NamedTuple

import h5py
import numpy as np
import pandas as pd
import pyarrow.parquet as pq
import structlog
from numpy.typing import NDArray

logger = structlog.get_logger(__name__)

VALUE_COLUMN = "bvp"
TIMESTAMP_COLUMN = "timestamp_ms"


class Sample(NamedTuple):
	value: float
	timestamp_ms: int | None


class RecordingReader:
	"""Read a recorded BVP stream for replay.

	Tabular files need a ``bvp`` column and may carry ``timestamp_ms``.
	HDF5 files store the same names as top-level datasets.
	"""

	def __init__(self, path: str | Path, value_column: str = VALUE_COLUMN) -> None:
		self.path = Path(path)
		if not self.path.exists():
			raise FileNotFoundError(f"Not found: {self.path}")

		suffix = self.path.suffix.lower()
		if suffix in (".csv", ".txt"):
			self.format = "csv"
		elif suffix in (".parquet", ".pq"):
			self.format = "parquet"
		elif suffix in (".h5", ".hdf5"):
			self.format = "hdf5"
		else:
			raise ValueError(f"Unsupported format: {self.path.suffix}")

		self.value_column = value_column
		self._values: NDArray[np.float32] | None = None
		self._timestamps: NDArray[np.int64] | None = None
		logger.info("recording_reader_init", path=str(self.path), format=self.format)

	@property
	def metadata(self) -> dict[str, Any]:
		if self.format == "parquet":
			pf = pq.read_metadata(self.path)
			return {"num_rows": pf.num_rows, "num_columns": pf.num_columns, "format": "parquet"}
		if self.format == "hdf5":
			with h5py.File(self.path, "r") as f:
				attrs = {key: f.attrs[key] for key in f.attrs}
			return {**attrs, "num_rows": len(self), "format": "hdf5"}
		return {"num_rows": len(self), "format": "csv"}

	def _load(self) -> None:
		if self._values is not None:
			return

		if self.format == "hdf5":
			with h5py.File(self.path, "r") as f:
				if self.value_column not in f:
					raise ValueError(f"Dataset '{self.value_column}' missing from {self.path}")
				values = f[self.value_column][:]
				timestamps = f[TIMESTAMP_COLUMN][:] if TIMESTAMP_COLUMN in f else None
		else:
			df = pd.read_csv(self.path) if self.format == "csv" else pd.read_parquet(self.path)
			if self.value_column not in df.columns:
				raise ValueError(f"Column '{self.value_column}' missing from {self.path}")
			values = df[self.value_column].to_numpy()
			timestamps = df[TIMESTAMP_COLUMN].to_numpy() if TIMESTAMP_COLUMN in df.columns else None

		self._values = np.asarray(values, dtype=np.float32)
		self._timestamps = None if timestamps is None else np.asarray(timestamps, dtype=np.int64)

	def values(self) -> NDArray[np.float32]:
		self._load()
		return self._values

	def timestamps(self) -> NDArray[np.int64] | None:
		self._load()
		return self._timestamps

	def iter_samples(self) -> Iterator[Sample]:
		self._load()
		if self._timestamps is None:
			for value in self._values:
				yield Sample(float(value), None)
		else:
			for value, ts in zip(self._values, self._timestamps):
				yield Sample(float(value), int(ts))

	def __len__(self) -> int:
		self._load()
		return len(self._values)

	def __iter__(self) -> Iterator[Sample]:
		return self.iter_samples()
