"""Chromaprint-style subfingerprint generation.

Based on the Chromaprint algorithm:
- https://oxygene.sk/2010/07/introducing-chromaprint/
- https://oxygene.sk/2011/01/how-does-chromaprint-work/

Pipeline, one chroma frame at a time on the calling thread:

1. Chroma frame from the audio source
2. Ring buffer of the last K frames (K = FIR taps)
3. FIR filter across time + L2 normalization
4. Rolling integral image (time x pitch class)
5. Classifier ensemble, one 2-bit level each
6. Gray-coded levels packed into a 32-bit hash
7. Batched delivery to the sink
"""

from __future__ import annotations

import logging

import numpy as np

from .audio import AudioSource, FileSource, Track
from .chroma import Chroma, ChromaFrameSource
from .chroma_filter import ChromaFilter
from .constants import CHROMA_BINS
from .hashing import SubFingerprint, assemble_hash
from .integral_image import IntegralImage
from .profiles import Profile, get_profiles
from .ring_buffer import RingBuffer
from .sinks import BatchEmitter, FingerprintSink, NullSink

logger = logging.getLogger(__name__)


class FingerprintGenerator:
    """Turn one audio track into a sequence of subfingerprints.

    Each call to ``generate`` is a self-contained run over one track: all
    pipeline state is created for that run and dropped when it ends. A run
    is not thread-safe.

    Usage:
        sink = CollectingSink()
        generator = FingerprintGenerator(get_profile("sync"), sink)
        generator.generate(Track(path=Path("take1.flac")))
        hashes = sink.hashes
    """

    def __init__(self, profile: Profile, sink: FingerprintSink | None = None):
        """Initialize generator.

        Args:
            profile: Generator configuration
            sink: Receiver of subfingerprint batches (None drops everything)
        """
        self.profile = profile
        self.sink: FingerprintSink = sink if sink is not None else NullSink()

    def generate(self, track: Track, source: AudioSource | None = None) -> int:
        """Fingerprint a track.

        Args:
            track: Track identity, also used to open the file when no source is given
            source: Mono sample stream at the profile's sampling rate

        Returns:
            Number of subfingerprints generated

        Raises:
            FileNotFoundError: If the track file doesn't exist
            ValueError: If the source rate doesn't match the profile
        """
        if source is None:
            if track.path is None:
                raise ValueError("Track has no path and no audio source was given")
            source = FileSource(track.path, self.profile.sampling_rate)

        chroma = Chroma.from_profile(source, self.profile)
        return self.generate_from_frames(track, chroma)

    def generate_from_frames(self, track: Track, frames: ChromaFrameSource) -> int:
        """Run the pipeline over an existing chroma frame source.

        Returns:
            Number of subfingerprints generated
        """
        profile = self.profile
        classifiers = profile.classifiers
        max_filter_width = profile.max_filter_width

        chroma_buffer: RingBuffer[np.ndarray] = RingBuffer(len(profile.chroma_filter_coefficients))
        chroma_filter = ChromaFilter(
            profile.chroma_filter_coefficients,
            profile.chroma_normalization_threshold,
            CHROMA_BINS,
        )
        integral_image = IntegralImage(max_filter_width, CHROMA_BINS)
        emitter = BatchEmitter(track, self.sink, frames.window_count)

        logger.info(
            "[Generator] %s: profile '%s', %d chroma frames expected",
            track.label, profile.name, frames.window_count,
        )

        index = 0
        while frames.has_next():
            # Once the buffer is full, recycle the oldest frame's array
            frame = chroma_buffer[0] if chroma_buffer.is_full else np.zeros(CHROMA_BINS)
            frames.read_frame(frame)
            chroma_buffer.add(frame)
            if not chroma_buffer.is_full:
                continue

            integral_image.add_column(chroma_filter.process(chroma_buffer))
            if integral_image.columns < max_filter_width:
                continue

            hash_value = assemble_hash(c.classify(integral_image) for c in classifiers)
            emitter.add(SubFingerprint(index, hash_value))
            index += 1

        emitter.finish()
        logger.info(
            "[Generator] %s: %d subfingerprints generated (%.1fs)",
            track.label, index, profile.frame_time(index),
        )
        return index

    @staticmethod
    def get_profiles() -> tuple[Profile, ...]:
        return get_profiles()
