"""Alignprint - Chromaprint-style audio fingerprints for identification and sync.

Turns a mono audio signal into a time-ordered sequence of 32-bit
subfingerprints. Two recordings of the same source produce similar hash
sequences, which makes them usable both to identify a track and to find
the time offset between independently recorded takes of one event.

References:
- Chromaprint: https://oxygene.sk/2011/01/how-does-chromaprint-work/
- "Computer Vision for Music Identification" (Ke, Hoiem, Sukthankar, 2005)
"""

__version__ = "0.1.0"

from .audio import ArraySource, FileSource, Track
from .generator import FingerprintGenerator
from .hashing import SubFingerprint
from .profiles import Profile, get_profile, get_profiles
from .sinks import CallbackSink, CollectingSink, NullSink, QueueSink, SubFingerprintBatch

__all__ = [
    "ArraySource",
    "CallbackSink",
    "CollectingSink",
    "FileSource",
    "FingerprintGenerator",
    "NullSink",
    "Profile",
    "QueueSink",
    "SubFingerprint",
    "SubFingerprintBatch",
    "Track",
    "get_profile",
    "get_profiles",
]
