"""Audio playback and real-time analysis module."""

from .analyzer import SpectralAnalyzer
from .buffer import SharedSampleBuffer
from .player import PlaybackController
from .relay import SampleRelay

__all__ = [
    'PlaybackController',
    'SampleRelay',
    'SharedSampleBuffer',
    'SpectralAnalyzer'
]
