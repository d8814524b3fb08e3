"""Fingerprint profiles: immutable generator configurations.

Two built-in profiles are provided:

- ``default``: identification profile, the Chromaprint reference setup
  (11025 Hz, ~124 ms per subfingerprint).
- ``sync``: alignment profile with a much finer hop (~23 ms per
  subfingerprint) for precise synchronization of recordings.

Custom profiles can be loaded from YAML with ``load_profile()``.
"""

from __future__ import annotations

from pathlib import Path

import yaml
from pydantic import BaseModel, ConfigDict, Field, model_validator

from .chroma import ChromaMappingMode, WindowType
from .classifier import Classifier, classifier
from .constants import MAX_CLASSIFIERS


class Profile(BaseModel):
    """Complete, immutable configuration of one fingerprint generator run."""

    model_config = ConfigDict(frozen=True)

    name: str
    sampling_rate: int = Field(gt=0)
    window_size: int = Field(ge=2)
    hop_size: int = Field(ge=1)
    window_type: WindowType = WindowType.HAMMING
    chroma_min_frequency: float = Field(ge=0, default=28.0)
    chroma_max_frequency: float = Field(gt=0, default=3520.0)
    chroma_mapping_mode: ChromaMappingMode = ChromaMappingMode.CHROMAPRINT
    chroma_filter_coefficients: tuple[float, ...] = Field(min_length=1)
    chroma_normalization_threshold: float = Field(ge=0, default=0.01)
    classifiers: tuple[Classifier, ...] = Field(min_length=1, max_length=MAX_CLASSIFIERS)

    @model_validator(mode="after")
    def _check_consistency(self) -> Profile:
        if self.hop_size > self.window_size:
            raise ValueError(f"Hop size {self.hop_size} larger than window size {self.window_size}")
        if self.chroma_min_frequency >= self.chroma_max_frequency:
            raise ValueError(
                f"Chroma band [{self.chroma_min_frequency}, {self.chroma_max_frequency}] is empty"
            )
        return self

    @property
    def max_filter_width(self) -> int:
        """Widest classifier filter, i.e. the integral image retention."""
        return max(c.width for c in self.classifiers)

    @property
    def hash_time_scale(self) -> float:
        """Seconds between two consecutive subfingerprints."""
        return self.hop_size / self.sampling_rate

    def frame_time(self, index: int) -> float:
        """Start time in seconds of the chroma window behind a subfingerprint index."""
        return index * self.hash_time_scale


CHROMAPRINT_CLASSIFIERS = (
    classifier(0, 4, 3, 15, 1.98215, 2.35817, 2.63523),
    classifier(4, 4, 6, 15, -1.03809, -0.651211, -0.282167),
    classifier(1, 0, 4, 16, -0.298702, 0.119262, 0.558497),
    classifier(3, 8, 2, 12, -0.105439, 0.0153946, 0.135898),
    classifier(3, 4, 4, 8, -0.142891, 0.0258736, 0.200632),
    classifier(4, 0, 3, 5, -0.826319, -0.590612, -0.368214),
    classifier(1, 2, 2, 9, -0.557409, -0.233035, 0.0534525),
    classifier(2, 7, 3, 4, -0.0646826, 0.00620476, 0.0784847),
    classifier(2, 6, 2, 16, -0.192387, -0.029699, 0.215855),
    classifier(2, 1, 3, 2, -0.0397818, -0.00568076, 0.0292026),
    classifier(5, 10, 1, 15, -0.53823, -0.369934, -0.190235),
    classifier(3, 6, 2, 10, -0.124877, 0.0296483, 0.139239),
    classifier(2, 1, 1, 14, -0.101475, 0.0225617, 0.231971),
    classifier(3, 5, 6, 4, -0.0799915, -0.00729616, 0.063262),
    classifier(1, 9, 2, 12, -0.272556, 0.019424, 0.302559),
    classifier(3, 4, 2, 14, -0.164292, -0.0321188, 0.08463),
)

SYNC_CLASSIFIERS = (
    classifier(0, 0, 3, 15, 2.10543, 2.45354, 2.69414),
    classifier(1, 0, 4, 14, -0.345922, 0.0463746, 0.446251),
    classifier(1, 4, 4, 11, -0.392132, 0.0291077, 0.443391),
    classifier(3, 0, 4, 14, -0.192851, 0.00583535, 0.204053),
    classifier(2, 8, 2, 4, -0.0771619, -0.00991999, 0.0575406),
    classifier(5, 6, 2, 15, -0.710437, -0.518954, -0.330402),
    classifier(1, 9, 2, 16, -0.353724, -0.0189719, 0.289768),
    classifier(3, 4, 2, 10, -0.128418, -0.0285697, 0.0591791),
    classifier(3, 9, 2, 16, -0.139052, -0.0228468, 0.0879723),
    classifier(2, 1, 3, 6, -0.133562, 0.00669205, 0.155012),
    classifier(3, 3, 6, 2, -0.0267, 0.00804829, 0.0459773),
    classifier(2, 8, 1, 10, -0.0972417, 0.0152227, 0.129003),
    classifier(3, 4, 4, 14, -0.141434, 0.00374515, 0.149935),
    classifier(5, 4, 2, 15, -0.64035, -0.466999, -0.285493),
    classifier(5, 9, 2, 3, -0.322792, -0.254258, -0.174278),
    classifier(2, 1, 8, 4, -0.0741375, -0.00590933, 0.0600357),
)

DEFAULT_PROFILE = Profile(
    name="default",
    sampling_rate=11025,
    window_size=4096,
    hop_size=4096 // 3,
    window_type=WindowType.HAMMING,
    chroma_min_frequency=28.0,
    chroma_max_frequency=3520.0,
    chroma_mapping_mode=ChromaMappingMode.CHROMAPRINT,
    chroma_filter_coefficients=(0.25, 0.75, 1.0, 0.75, 0.25),
    chroma_normalization_threshold=0.01,
    classifiers=CHROMAPRINT_CLASSIFIERS,
)

SYNC_PROFILE = Profile(
    name="sync",
    sampling_rate=11025,
    window_size=4096,
    hop_size=256,
    window_type=WindowType.HAMMING,
    chroma_min_frequency=28.0,
    chroma_max_frequency=3520.0,
    chroma_mapping_mode=ChromaMappingMode.CHROMAPRINT,
    chroma_filter_coefficients=(0.5, 1.0, 0.5),
    chroma_normalization_threshold=0.01,
    classifiers=SYNC_CLASSIFIERS,
)

_REGISTRY: dict[str, Profile] = {p.name: p for p in (DEFAULT_PROFILE, SYNC_PROFILE)}


def profile_names() -> list[str]:
    return list(_REGISTRY)


def get_profiles() -> tuple[Profile, ...]:
    """All built-in profiles, default first."""
    return tuple(_REGISTRY.values())


def get_profile(name: str) -> Profile:
    """Look up a built-in profile by name.

    Raises:
        KeyError: If no profile has that name
    """
    try:
        return _REGISTRY[name]
    except KeyError:
        raise KeyError(
            f"Unknown profile '{name}' (available: {', '.join(_REGISTRY)})"
        ) from None


def load_profile(path: Path | str) -> Profile:
    """Load a custom profile from a YAML file.

    Raises:
        FileNotFoundError: If the file doesn't exist
        ValueError: If the profile is invalid
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Profile file not found: {path}")

    with open(path) as f:
        data = yaml.safe_load(f)

    if not isinstance(data, dict):
        raise ValueError(f"Profile file {path} does not contain a mapping")
    return Profile(**data)
