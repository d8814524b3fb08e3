"""Pytest configuration and fixtures."""

import numpy as np
import pytest

from alignprint.classifier import classifier
from alignprint.profiles import Profile


@pytest.fixture
def small_profile() -> Profile:
    """Provide a profile with short warm-ups (K=3, W_max=4)."""
    return Profile(
        name="test",
        sampling_rate=8000,
        window_size=256,
        hop_size=128,
        chroma_filter_coefficients=(0.5, 1.0, 0.5),
        chroma_normalization_threshold=0.01,
        classifiers=(
            classifier(0, 0, 3, 4, 0.5, 1.0, 1.5),
            classifier(1, 0, 4, 3, -0.3, 0.0, 0.3),
            classifier(2, 4, 4, 2, -0.1, 0.0, 0.1),
            classifier(3, 6, 4, 4, -0.1, 0.0, 0.1),
            classifier(4, 2, 6, 3, -0.5, -0.2, 0.1),
            classifier(5, 8, 3, 3, -0.5, -0.2, 0.1),
        ),
    )


@pytest.fixture
def random_chroma():
    """Provide a factory for reproducible random chroma matrices."""

    def make(frames: int, seed: int = 0) -> np.ndarray:
        rng = np.random.default_rng(seed)
        return rng.random((frames, 12))

    return make


@pytest.fixture
def sine_audio():
    """Provide a factory for mono sine waves."""

    def make(frequency: float, duration_sec: float, sr: int) -> np.ndarray:
        t = np.arange(int(sr * duration_sec)) / sr
        return (np.sin(2 * np.pi * frequency * t) * 0.5).astype(np.float32)

    return make
