"""Recorded BVP input for replay."""

from wristvitals.storage.reader import RecordingReader, Sample

__all__ = [
	"RecordingReader",
	"Sample",
]
