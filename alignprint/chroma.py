"""Chroma feature extraction.

Windows the sample stream, computes a power spectrum per hop and folds the
FFT bins inside the configured frequency band into 12 pitch classes.
"""

from __future__ import annotations

import math
from enum import Enum
from typing import TYPE_CHECKING, Protocol

import numpy as np

from .audio import AudioSource
from .constants import CHROMA_BINS, CHROMAPRINT_REFERENCE_FREQUENCY

if TYPE_CHECKING:
    from .profiles import Profile


class WindowType(str, Enum):
    """Window functions applied before the FFT."""

    HANN = "hann"
    HAMMING = "hamming"
    BLACKMAN = "blackman"
    RECTANGLE = "rectangle"

    @property
    def scipy_name(self) -> str:
        return "boxcar" if self is WindowType.RECTANGLE else self.value


class ChromaMappingMode(str, Enum):
    """How FFT bin frequencies are assigned to pitch classes.

    CHROMAPRINT truncates the fractional octave position relative to A0
    (pitch class 0 is A). PAPER rounds to the nearest equal-tempered
    semitone (pitch class 0 is C).
    """

    CHROMAPRINT = "chromaprint"
    PAPER = "paper"

    def pitch_class(self, frequency: float) -> int:
        if self is ChromaMappingMode.CHROMAPRINT:
            octave = math.log2(frequency / CHROMAPRINT_REFERENCE_FREQUENCY)
            return int(CHROMA_BINS * (octave - math.floor(octave))) % CHROMA_BINS
        midi = round(12 * math.log2(frequency / 440.0)) + 69
        return midi % CHROMA_BINS


class ChromaFrameSource(Protocol):
    """Anything the generator can pull chroma frames from."""

    @property
    def window_count(self) -> int: ...

    def has_next(self) -> bool: ...

    def read_frame(self, out: np.ndarray) -> None: ...


class Chroma:
    """Streaming chroma extractor over an audio source.

    Usage:
        chroma = Chroma(source, window_size=4096, hop_size=1365)
        frame = np.zeros(CHROMA_BINS)
        while chroma.has_next():
            chroma.read_frame(frame)
    """

    bins = CHROMA_BINS

    def __init__(
        self,
        source: AudioSource,
        window_size: int,
        hop_size: int,
        window_type: WindowType = WindowType.HAMMING,
        min_frequency: float = 28.0,
        max_frequency: float = 3520.0,
        mapping_mode: ChromaMappingMode = ChromaMappingMode.CHROMAPRINT,
    ):
        """Initialize extractor.

        Args:
            source: Mono sample stream
            window_size: FFT window length in samples
            hop_size: Samples between consecutive windows (<= window_size)
            window_type: Window function
            min_frequency: Lower edge of the analysed band (Hz)
            max_frequency: Upper edge of the analysed band (Hz)
            mapping_mode: Frequency -> pitch class mapping
        """
        from scipy.signal import get_window

        if window_size < 2 or hop_size < 1:
            raise ValueError(f"Invalid framing: window={window_size}, hop={hop_size}")
        if hop_size > window_size:
            raise ValueError(f"Hop size {hop_size} larger than window size {window_size}")

        self.source = source
        self.window_size = window_size
        self.hop_size = hop_size
        self.window_type = WindowType(window_type)
        self.mapping_mode = ChromaMappingMode(mapping_mode)

        self._window = get_window(self.window_type.scipy_name, window_size, fftbins=False)
        self._bins, self._notes = self._build_note_map(
            source.sample_rate, min_frequency, max_frequency
        )
        self._buffer = np.zeros(window_size, dtype=np.float64)
        self._frames_read = 0

        length = source.length
        self._window_count = 0 if length < window_size else (length - window_size) // hop_size + 1

    @classmethod
    def from_profile(cls, source: AudioSource, profile: Profile) -> Chroma:
        """Build an extractor with a profile's framing and band settings."""
        if source.sample_rate != profile.sampling_rate:
            raise ValueError(
                f"Source rate {source.sample_rate} Hz does not match profile "
                f"'{profile.name}' rate {profile.sampling_rate} Hz"
            )
        return cls(
            source,
            window_size=profile.window_size,
            hop_size=profile.hop_size,
            window_type=profile.window_type,
            min_frequency=profile.chroma_min_frequency,
            max_frequency=profile.chroma_max_frequency,
            mapping_mode=profile.chroma_mapping_mode,
        )

    def _build_note_map(
        self, sample_rate: int, min_frequency: float, max_frequency: float
    ) -> tuple[np.ndarray, np.ndarray]:
        """FFT bin indices inside the band and the pitch class of each."""
        min_index = max(1, round(self.window_size * min_frequency / sample_rate))
        max_index = min(self.window_size // 2, round(self.window_size * max_frequency / sample_rate))
        bins = np.arange(min_index, max(min_index, max_index))
        notes = np.array(
            [self.mapping_mode.pitch_class(i * sample_rate / self.window_size) for i in bins],
            dtype=np.intp,
        )
        return bins, notes

    @property
    def window_count(self) -> int:
        """Total number of frames this extractor will produce."""
        return self._window_count

    @property
    def frames_read(self) -> int:
        return self._frames_read

    def has_next(self) -> bool:
        return self._frames_read < self._window_count

    def read_frame(self, out: np.ndarray) -> None:
        """Compute the next chroma frame into ``out``.

        Raises:
            EOFError: If no frame is left or the source ends early
        """
        if not self.has_next():
            raise EOFError("No chroma frames left")

        if self._frames_read == 0:
            self._fill(self._buffer, self.window_size)
        else:
            hop = self.hop_size
            self._buffer[:-hop] = self._buffer[hop:]
            self._fill(self._buffer[-hop:], hop)
        self._frames_read += 1

        spectrum = np.fft.rfft(self._buffer * self._window)
        energy = spectrum.real**2 + spectrum.imag**2
        out[:] = np.bincount(self._notes, weights=energy[self._bins], minlength=CHROMA_BINS)

    def _fill(self, target: np.ndarray, count: int) -> None:
        if not self.source.has_more():
            raise EOFError("Audio source exhausted before the last chroma frame")
        chunk = self.source.read(count)
        if len(chunk) < count:
            raise EOFError(f"Audio source ended early: wanted {count} samples, got {len(chunk)}")
        target[:] = chunk


class ChromaMatrix:
    """Frame source over precomputed chroma, one row per frame."""

    bins = CHROMA_BINS

    def __init__(self, frames: np.ndarray):
        frames = np.asarray(frames, dtype=np.float64)
        if frames.ndim != 2 or frames.shape[1] != CHROMA_BINS:
            raise ValueError(f"Expected chroma of shape (T, {CHROMA_BINS}), got {frames.shape}")
        self._frames = frames
        self._position = 0

    @property
    def window_count(self) -> int:
        return len(self._frames)

    def has_next(self) -> bool:
        return self._position < len(self._frames)

    def read_frame(self, out: np.ndarray) -> None:
        if not self.has_next():
            raise EOFError("No chroma frames left")
        out[:] = self._frames[self._position]
        self._position += 1
