"""Shared constants for fingerprint generation."""

CHROMA_BINS = 12
"""Number of pitch classes per chroma frame."""

BATCH_SIZE = 512
"""Number of subfingerprints delivered to a sink per batch."""

MAX_CLASSIFIERS = 16
"""Classifier count that still fits a 32-bit hash (2 bits each)."""

GRAY_CODE = (0, 1, 3, 2)
"""Quantizer level -> hash symbol, adjacent levels differ by one bit."""

CHROMAPRINT_REFERENCE_FREQUENCY = 440.0 / 16.0
"""A0 (27.5 Hz), pitch class 0 of the chromaprint bin mapping."""
