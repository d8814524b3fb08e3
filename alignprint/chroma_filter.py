"""Temporal FIR filtering and L2 normalization of chroma frames."""

from __future__ import annotations

from collections.abc import Sequence

import numpy as np


def apply_chroma_filter(
    frames: Sequence[np.ndarray],
    coefficients: Sequence[float],
    out: np.ndarray | None = None,
) -> np.ndarray:
    """Convolve a window of chroma frames with an FIR kernel along time.

    Each bin is filtered independently: ``out[b] = sum(frames[i][b] * c[i])``.

    Args:
        frames: The K most recent frames, oldest first
        coefficients: FIR coefficients (length K)
        out: Optional array to write the result into

    Returns:
        The filtered frame (``out`` when given)
    """
    if len(frames) != len(coefficients):
        raise ValueError(
            f"Filter needs {len(coefficients)} frames, got {len(frames)}"
        )
    if out is None:
        out = np.zeros(len(frames[0]), dtype=np.float64)
    else:
        out.fill(0.0)
    for frame, coefficient in zip(frames, coefficients):
        out += np.asarray(frame, dtype=np.float64) * coefficient
    return out


def normalize_frame(frame: np.ndarray, threshold: float) -> np.ndarray:
    """L2-normalize a frame in place.

    Frames whose Euclidean norm is below ``threshold`` are zeroed instead,
    so near-silent audio does not get amplified into noise.

    Returns:
        The same array, normalized
    """
    norm = float(np.sqrt(np.dot(frame, frame)))
    if norm < threshold:
        frame.fill(0.0)
    else:
        frame /= norm
    return frame


class ChromaFilter:
    """FIR filter + normalizer with a reusable output frame."""

    def __init__(self, coefficients: Sequence[float], threshold: float, bins: int):
        self.coefficients = tuple(coefficients)
        self.threshold = threshold
        self._output = np.zeros(bins, dtype=np.float64)

    @property
    def taps(self) -> int:
        return len(self.coefficients)

    def process(self, frames: Sequence[np.ndarray]) -> np.ndarray:
        """Filter and normalize one window of frames.

        The returned array is overwritten by the next call; copy it to keep it.
        """
        apply_chroma_filter(frames, self.coefficients, out=self._output)
        return normalize_frame(self._output, self.threshold)
