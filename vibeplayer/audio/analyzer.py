"""FFT-based feature extraction over the shared sample buffer."""

import time
import logging
from collections import deque
from typing import Callable

import numpy as np
from scipy.signal import windows

from ..models.audio import AudioFeatures
from .buffer import SharedSampleBuffer

logger = logging.getLogger(__name__)


FFT_SIZE = 2048
RMS_GAIN = 4.0

BASS_BAND = (20.0, 250.0)
MID_BAND = (250.0, 4000.0)
TREBLE_BAND = (4000.0, 16000.0)

# Scale factors tuned so typical music spans most of [0, 1]
BASS_GAIN = 15.0
MID_GAIN = 8.0
TREBLE_GAIN = 20.0

BEAT_HISTORY = 20
BEAT_RATIO = 1.5
BEAT_FLOOR = 0.15
BEAT_COOLDOWN_SECONDS = 0.2


class SpectralAnalyzer:
    """Computes loudness, band energies and beat onsets once per UI tick.
    
    The analyzer only ever copies the most recent window out of the shared
    buffer, so it never blocks the audio callback for longer than the copy.
    Beat detection compares the current bass energy against a rolling
    average, which keeps it independent of per-track loudness.
    """
    
    def __init__(self, buffer: SharedSampleBuffer, sample_rate: int,
                 clock: Callable[[], float] = time.monotonic):
        """Initialize the analyzer.
        
        Args:
            buffer: Shared buffer filled by the sample relay
            sample_rate: Sample rate of the buffered audio in Hz
            clock: Monotonic clock used for the beat cooldown
        """
        self.buffer = buffer
        self.sample_rate = sample_rate
        self.clock = clock
        
        self.window = windows.hann(FFT_SIZE, sym=True).astype(np.float32)
        self.bin_width = sample_rate / FFT_SIZE
        self.nyquist_bins = FFT_SIZE // 2
        
        self.bass_history = deque(maxlen=BEAT_HISTORY)
        self.last_beat = clock() - 1.0
    
    def analyze(self) -> AudioFeatures:
        """Extract features from the latest ``FFT_SIZE`` samples.
        
        Returns:
            Feature snapshot; all zeros if not enough samples are buffered
        """
        samples = self.buffer.latest(FFT_SIZE)
        if samples is None:
            return AudioFeatures.silent()
        
        rms_raw = float(np.sqrt(np.mean(np.square(samples, dtype=np.float64))))
        rms = min(rms_raw * RMS_GAIN, 1.0)
        
        spectrum = np.fft.fft(samples * self.window, n=FFT_SIZE)
        magnitudes = np.abs(spectrum[:self.nyquist_bins]) / FFT_SIZE
        
        bass = min(self._band_energy(magnitudes, *BASS_BAND) * BASS_GAIN, 1.0)
        mid = min(self._band_energy(magnitudes, *MID_BAND) * MID_GAIN, 1.0)
        treble = min(self._band_energy(magnitudes, *TREBLE_BAND) * TREBLE_GAIN, 1.0)
        
        is_beat = self._detect_beat(bass)
        
        return AudioFeatures(rms=rms, bass=bass, mid=mid, treble=treble, is_beat=is_beat)
    
    def _band_bins(self, low_hz: float, high_hz: float):
        start = int(low_hz / self.bin_width)
        end = int(min(high_hz / self.bin_width, self.nyquist_bins))
        return min(start, self.nyquist_bins), min(end, self.nyquist_bins)
    
    def _band_energy(self, magnitudes: np.ndarray, low_hz: float, high_hz: float) -> float:
        start, end = self._band_bins(low_hz, high_hz)
        if start >= end:
            return 0.0
        band = magnitudes[start:end].astype(np.float64)
        return float(np.sqrt(np.sum(band * band)))
    
    def _detect_beat(self, bass: float) -> bool:
        self.bass_history.append(bass)
        average = sum(self.bass_history) / len(self.bass_history)
        now = self.clock()
        
        is_beat = (
            bass > average * BEAT_RATIO
            and bass > BEAT_FLOOR
            and now - self.last_beat > BEAT_COOLDOWN_SECONDS
        )
        if is_beat:
            self.last_beat = now
            logger.debug(f"Beat detected: bass={bass:.3f} avg={average:.3f}")
        return is_beat
