"""Tests for audio sources."""

from pathlib import Path
from unittest.mock import patch

import numpy as np
import pytest

from alignprint.audio import ArraySource, AudioSource, FileSource, Track


class TestTrack:
    """Test Track."""

    def test_label(self) -> None:
        """Tracks are labelled by name, then file name."""
        assert Track(name="Take 1").label == "Take 1"
        assert Track(path=Path("/music/take2.flac")).label == "take2.flac"
        assert Track().label == "<unnamed>"


class TestArraySource:
    """Test ArraySource."""

    def test_reads_in_chunks(self) -> None:
        """Reads advance through the signal, shorter only at the end."""
        source = ArraySource(np.arange(10), 8000)
        assert isinstance(source, AudioSource)
        assert source.length == 10
        np.testing.assert_array_equal(source.read(4), [0, 1, 2, 3])
        np.testing.assert_array_equal(source.read(4), [4, 5, 6, 7])
        assert source.has_more()
        np.testing.assert_array_equal(source.read(4), [8, 9])
        assert not source.has_more()
        assert len(source.read(4)) == 0

    def test_mono_only(self) -> None:
        """Multi-channel arrays must be down-mixed first."""
        with pytest.raises(ValueError):
            ArraySource(np.zeros((2, 100)), 8000)


class TestFileSource:
    """Test FileSource."""

    def test_missing_file(self, tmp_path: Path) -> None:
        """Missing files raise FileNotFoundError."""
        with pytest.raises(FileNotFoundError):
            FileSource(tmp_path / "nope.wav", 11025)

    def test_decodes_with_librosa(self, tmp_path: Path) -> None:
        """Files are decoded to mono at the requested rate."""
        path = tmp_path / "take.flac"
        path.touch()
        with patch("librosa.load", return_value=(np.ones(500, dtype=np.float32), 11025)) as load:
            source = FileSource(path, 11025)

        load.assert_called_once_with(path, sr=11025, mono=True)
        assert source.sample_rate == 11025
        assert source.length == 500
        assert source.path == path

    def test_decode_errors_propagate(self, tmp_path: Path) -> None:
        """Decoder failures are not swallowed."""
        path = tmp_path / "corrupt.mp3"
        path.touch()
        with patch("librosa.load", side_effect=RuntimeError("corrupt")):
            with pytest.raises(RuntimeError):
                FileSource(path, 11025)
