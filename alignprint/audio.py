"""Audio sources feeding the fingerprint pipeline.

The generator pulls mono samples at the profile's sampling rate. Decoding,
resampling and down-mixing are delegated to librosa.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Protocol, runtime_checkable

import numpy as np

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Track:
    """Identity of the audio being fingerprinted."""

    path: Path | None = None
    name: str | None = None

    @property
    def label(self) -> str:
        if self.name:
            return self.name
        if self.path is not None:
            return Path(self.path).name
        return "<unnamed>"


@runtime_checkable
class AudioSource(Protocol):
    """Pull-style mono sample stream."""

    @property
    def sample_rate(self) -> int: ...

    @property
    def length(self) -> int: ...

    def has_more(self) -> bool: ...

    def read(self, count: int) -> np.ndarray: ...


class ArraySource:
    """Sample stream over an in-memory mono signal."""

    def __init__(self, samples: np.ndarray, sample_rate: int):
        samples = np.asarray(samples, dtype=np.float32)
        if samples.ndim != 1:
            raise ValueError(f"Expected mono samples, got shape {samples.shape}")
        self._samples = samples
        self._sample_rate = sample_rate
        self._position = 0

    @property
    def sample_rate(self) -> int:
        return self._sample_rate

    @property
    def length(self) -> int:
        """Total number of samples in the stream."""
        return len(self._samples)

    @property
    def position(self) -> int:
        return self._position

    def has_more(self) -> bool:
        return self._position < len(self._samples)

    def read(self, count: int) -> np.ndarray:
        """Read up to ``count`` samples; shorter only at the end of the stream."""
        end = min(self._position + count, len(self._samples))
        chunk = self._samples[self._position:end]
        self._position = end
        return chunk


class FileSource(ArraySource):
    """Decode an audio file to mono at the requested rate.

    Raises:
        FileNotFoundError: If the file does not exist
    """

    def __init__(self, path: str | Path, sample_rate: int):
        import librosa

        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Audio file not found: {path}")

        logger.debug("[FileSource] Decoding %s at %d Hz", path.name, sample_rate)
        y, sr = librosa.load(path, sr=sample_rate, mono=True)
        super().__init__(y, sr)
        self.path = path
