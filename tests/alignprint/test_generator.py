"""Tests for the fingerprint generator pipeline."""

from __future__ import annotations

import math
from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from alignprint.audio import ArraySource, Track
from alignprint.chroma import ChromaMatrix
from alignprint.classifier import classifier
from alignprint.constants import GRAY_CODE
from alignprint.generator import FingerprintGenerator
from alignprint.profiles import DEFAULT_PROFILE, SYNC_PROFILE, Profile
from alignprint.sinks import CallbackSink, CollectingSink

TRACK = Track(name="track")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _expected_count(frames: int, profile: Profile) -> int:
    taps = len(profile.chroma_filter_coefficients)
    return max(0, frames - (taps - 1) - (profile.max_filter_width - 1))


def _reference_areas(kind: int, window: np.ndarray) -> tuple[float, float]:
    w, h = window.shape
    if kind == 0:
        return window.sum(), 0.0
    if kind == 1:
        return window[:, h // 2:].sum(), window[:, :h // 2].sum()
    if kind == 2:
        return window[w // 2:].sum(), window[:w // 2].sum()
    if kind == 3:
        w_2, h_2 = w // 2, h // 2
        return (
            window[:w_2, h_2:].sum() + window[w_2:, :h_2].sum(),
            window[:w_2, :h_2].sum() + window[w_2:, h_2:].sum(),
        )
    if kind == 4:
        h_3 = h // 3
        return window[:, h_3:2 * h_3].sum(), window[:, :h_3].sum() + window[:, 2 * h_3:].sum()
    w_3 = w // 3
    return window[w_3:2 * w_3].sum(), window[:w_3].sum() + window[2 * w_3:].sum()


def _reference_hashes(chroma: np.ndarray, profile: Profile) -> list[int]:
    """Whole-matrix implementation of the pipeline, without any streaming state."""
    coefficients = np.array(profile.chroma_filter_coefficients)
    taps = len(coefficients)

    filtered = []
    for t in range(taps - 1, len(chroma)):
        v = coefficients @ chroma[t - taps + 1:t + 1]
        norm = np.linalg.norm(v)
        filtered.append(np.zeros_like(v) if norm < profile.chroma_normalization_threshold else v / norm)
    image = np.array(filtered).reshape(-1, 12)

    hashes = []
    for t in range(profile.max_filter_width - 1, len(image)):
        value = 0
        for c in profile.classifiers:
            f = c.filter
            window = image[t - f.width + 1:t + 1, f.y:f.y + f.height]
            a, b = _reference_areas(f.kind, window)
            level = c.quantizer.quantize(math.log1p(a) - math.log1p(b))
            value = (value << 2) | GRAY_CODE[level]
        hashes.append(value)
    return hashes


class FailingFrames(ChromaMatrix):
    """Frame source whose upstream fails after a number of frames."""

    def __init__(self, frames: np.ndarray, fail_at: int):
        super().__init__(frames)
        self.fail_at = fail_at

    def read_frame(self, out: np.ndarray) -> None:
        if self._position == self.fail_at:
            raise OSError("decode failure")
        super().read_frame(out)


# ---------------------------------------------------------------------------
# Frame-level pipeline
# ---------------------------------------------------------------------------

class TestGenerateFromFrames:
    """Test FingerprintGenerator.generate_from_frames()."""

    @pytest.mark.parametrize("frames", [0, 1, 2, 3, 5, 6, 7, 20])
    def test_count_after_warm_up(self, small_profile: Profile, random_chroma, frames: int) -> None:
        """Both warm-up stages are subtracted from the frame count."""
        sink = CollectingSink()
        generator = FingerprintGenerator(small_profile, sink)

        count = generator.generate_from_frames(TRACK, ChromaMatrix(random_chroma(frames)))

        assert count == _expected_count(frames, small_profile)
        assert [sf.index for sf in sink.sub_fingerprints] == list(range(count))
        assert sink.completed

    def test_matches_reference_implementation(self, small_profile: Profile, random_chroma) -> None:
        """Streaming hashes equal a direct computation over the whole matrix."""
        chroma = random_chroma(200, seed=5)
        sink = CollectingSink()
        FingerprintGenerator(small_profile, sink).generate_from_frames(TRACK, ChromaMatrix(chroma))

        assert sink.hashes == _reference_hashes(chroma, small_profile)

    def test_default_profile_matches_reference(self, random_chroma) -> None:
        """The built-in profile agrees with the reference too."""
        chroma = random_chroma(80, seed=11)
        sink = CollectingSink()
        FingerprintGenerator(DEFAULT_PROFILE, sink).generate_from_frames(TRACK, ChromaMatrix(chroma))

        assert len(sink.hashes) == 80 - 4 - 15
        assert sink.hashes == _reference_hashes(chroma, DEFAULT_PROFILE)

    def test_1025_subfingerprints_in_three_batches(self, random_chroma) -> None:
        """A stream of 1025 subfingerprints is delivered as 512, 512, 1."""
        frames = 1025 + (5 - 1) + (16 - 1)
        events: list[object] = []
        sink = CallbackSink(
            on_batch=lambda batch: events.append(batch),
            on_completed=lambda: events.append("completed"),
        )
        count = FingerprintGenerator(DEFAULT_PROFILE, sink).generate_from_frames(
            TRACK, ChromaMatrix(random_chroma(frames))
        )

        assert count == 1025
        assert events[-1] == "completed"
        batches = events[:-1]
        assert [len(b) for b in batches] == [512, 512, 1]
        assert all(b.total == frames for b in batches)
        assert [b.sub_fingerprints[0].index for b in batches] == [0, 512, 1024]

    def test_hashes_fit_classifier_bits(self, random_chroma) -> None:
        """16 classifiers fill exactly 32 bits."""
        sink = CollectingSink()
        FingerprintGenerator(SYNC_PROFILE, sink).generate_from_frames(TRACK, ChromaMatrix(random_chroma(60)))
        assert sink.hashes
        assert all(0 <= h <= 0xFFFFFFFF for h in sink.hashes)

    def test_deterministic(self, small_profile: Profile, random_chroma) -> None:
        """Identical input and profile yield identical fingerprints."""
        chroma = random_chroma(100, seed=9)
        runs = []
        for _ in range(2):
            sink = CollectingSink()
            FingerprintGenerator(small_profile, sink).generate_from_frames(TRACK, ChromaMatrix(chroma))
            runs.append(sink.sub_fingerprints)
        assert runs[0] == runs[1]

    def test_silence_is_not_an_error(self, small_profile: Profile) -> None:
        """All-zero chroma is zeroed by the normalizer and still hashed."""
        sink = CollectingSink()
        count = FingerprintGenerator(small_profile, sink).generate_from_frames(
            TRACK, ChromaMatrix(np.zeros((30, 12)))
        )
        assert count == _expected_count(30, small_profile)
        assert len(set(sink.hashes)) == 1

    def test_without_sink(self, small_profile: Profile, random_chroma) -> None:
        """Without a sink the run completes and output is dropped."""
        generator = FingerprintGenerator(small_profile)
        assert generator.generate_from_frames(TRACK, ChromaMatrix(random_chroma(30))) == 25

    def test_upstream_failure_propagates(self, small_profile: Profile, random_chroma) -> None:
        """Source errors abort the track; earlier batches stay delivered."""
        sink = CollectingSink()
        generator = FingerprintGenerator(small_profile, sink)
        frames = FailingFrames(random_chroma(1000), fail_at=700)

        with pytest.raises(OSError):
            generator.generate_from_frames(TRACK, frames)

        assert [len(b) for b in sink.batches] == [512]
        assert not sink.completed

    def test_negative_coefficients(self) -> None:
        """A differencing kernel drives areas below -1 without failing."""
        profile = Profile(
            name="difference",
            sampling_rate=8000,
            window_size=256,
            hop_size=128,
            chroma_filter_coefficients=(-1.0, 0.0, 1.0),
            classifiers=(classifier(0, 0, 12, 4, -1.0, 0.5, 1.0),),
        )
        chroma = np.zeros((10, 12))
        chroma[:5] = 1.0
        sink = CollectingSink()

        count = FingerprintGenerator(profile, sink).generate_from_frames(TRACK, ChromaMatrix(chroma))

        # Every window holds a decaying frame, so every area is below -1
        assert count == 5
        assert sink.hashes == [GRAY_CODE[3]] * 5
        assert sink.completed


# ---------------------------------------------------------------------------
# Audio-level pipeline
# ---------------------------------------------------------------------------

class TestGenerate:
    """Test FingerprintGenerator.generate()."""

    def test_from_array_source(self, small_profile: Profile, sine_audio) -> None:
        """Audio goes through chroma extraction before the hash stages."""
        audio = sine_audio(440.0, 1.0, small_profile.sampling_rate)
        sink = CollectingSink()

        count = FingerprintGenerator(small_profile, sink).generate(
            TRACK, ArraySource(audio, small_profile.sampling_rate)
        )

        chroma_frames = (len(audio) - 256) // 128 + 1
        assert count == _expected_count(chroma_frames, small_profile)
        assert sink.batches[0].total == chroma_frames

    def test_deterministic_audio(self, small_profile: Profile) -> None:
        """Byte-identical output for identical audio."""
        rng = np.random.default_rng(1)
        audio = rng.standard_normal(8000).astype(np.float32)
        results = []
        for _ in range(2):
            sink = CollectingSink()
            FingerprintGenerator(small_profile, sink).generate(TRACK, ArraySource(audio, 8000))
            results.append(np.array(sink.hashes, dtype=np.uint32).tobytes())
        assert results[0] == results[1]

    def test_sample_rate_mismatch(self, small_profile: Profile) -> None:
        """Sources must already be at the profile's rate."""
        with pytest.raises(ValueError, match="rate"):
            FingerprintGenerator(small_profile).generate(TRACK, ArraySource(np.zeros(1000), 44100))

    def test_track_without_path(self, small_profile: Profile) -> None:
        """A track without a path needs an explicit source."""
        with pytest.raises(ValueError):
            FingerprintGenerator(small_profile).generate(Track(name="nothing"))

    def test_missing_file(self, small_profile: Profile, tmp_path: Path) -> None:
        """Missing files are fatal for the track."""
        with pytest.raises(FileNotFoundError):
            FingerprintGenerator(small_profile).generate(Track(path=tmp_path / "missing.wav"))

    def test_opens_track_file(self, small_profile: Profile, sine_audio, tmp_path: Path) -> None:
        """Without a source the track file is decoded at the profile rate."""
        path = tmp_path / "take.wav"
        path.touch()
        audio = sine_audio(440.0, 0.5, 8000)
        sink = CollectingSink()

        with patch("librosa.load", return_value=(audio, 8000)) as load:
            count = FingerprintGenerator(small_profile, sink).generate(Track(path=path))

        load.assert_called_once_with(path, sr=8000, mono=True)
        assert count == len(sink.sub_fingerprints)
        assert count > 0


def test_get_profiles() -> None:
    """The generator exposes the profile catalog."""
    names = [p.name for p in FingerprintGenerator.get_profiles()]
    assert names == ["default", "sync"]
