"""Sample relay: taps decoded audio on its way to the output device."""

import logging
from typing import List

import numpy as np

from .buffer import SharedSampleBuffer

logger = logging.getLogger(__name__)


FLUSH_INTERVAL = 512  # Interleaved samples per push into the shared buffer


class SampleRelay:
    """Wraps a decoded frame source and copies every pulled sample into a
    ``SharedSampleBuffer``.

    The source must provide ``read(frames, dtype=..., always_2d=True)`` and
    ``seek(frame)``, which is the ``soundfile.SoundFile`` interface. Frames
    are returned to the caller untouched; the copy is batched locally and
    pushed as mono once ``FLUSH_INTERVAL`` samples have accumulated.
    """
    
    def __init__(self, source, buffer: SharedSampleBuffer, channels: int):
        """Initialize the relay.
        
        Args:
            source: Decoded frame source (e.g. an open soundfile.SoundFile)
            buffer: Shared buffer read by the analyzer
            channels: Number of interleaved channels in the source
        """
        self.source = source
        self.buffer = buffer
        self.channels = channels
        
        self.local_batch: List[np.ndarray] = []
        self.batch_samples = 0
        self.frames_read = 0
    
    def read(self, frames: int) -> np.ndarray:
        """Pull up to ``frames`` frames from the source.
        
        Returns:
            float32 array shaped (n, channels); n < frames at end of stream
        """
        block = self.source.read(frames, dtype="float32", always_2d=True)
        self.frames_read += len(block)
        self.tap(block)
        return block
    
    def tap(self, block: np.ndarray) -> None:
        """Copy a block of frames into the local batch, flushing when full."""
        if block.size == 0:
            return
        self.local_batch.append(block.copy())
        self.batch_samples += block.size
        if self.batch_samples >= FLUSH_INTERVAL:
            self.flush()
    
    def flush(self) -> None:
        """Mix the local batch down to mono and push it to the shared buffer."""
        if not self.local_batch:
            return
        frames = np.concatenate(self.local_batch, axis=0)
        if frames.ndim == 2 and frames.shape[1] > 1:
            mono = frames.mean(axis=1)
        else:
            mono = frames.reshape(-1)
        self.buffer.extend(mono.tolist())
        self.local_batch.clear()
        self.batch_samples = 0
    
    def seek(self, frame: int) -> int:
        """Reposition the source, discarding stale samples on both sides.
        
        Returns:
            The frame position reported by the source
        """
        self.local_batch.clear()
        self.batch_samples = 0
        self.buffer.clear()
        position = self.source.seek(frame)
        self.frames_read = position
        logger.debug(f"Relay repositioned to frame {position}")
        return position
