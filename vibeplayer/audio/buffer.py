"""Shared sample buffer between the audio callback and the spectral analyzer."""

import logging
import threading
from collections import deque
from itertools import islice
from typing import Iterable, Optional

import numpy as np

logger = logging.getLogger(__name__)


MAX_BUFFER_SAMPLES = 16384  # ~0.37s of mono audio at 44.1kHz


class SharedSampleBuffer:
    """Bounded deque of mono float samples guarded by its own lock.

    The writer is the sample relay running on the audio thread, the reader is
    the analyzer running on the playback loop. This lock is independent of
    the session state lock and the two are never held together.
    """
    
    def __init__(self, max_samples: int = MAX_BUFFER_SAMPLES):
        """Initialize the buffer.
        
        Args:
            max_samples: Capacity; the oldest samples are trimmed beyond it
        """
        self.max_samples = max_samples
        self.buffer = deque(maxlen=max_samples)
        self.lock = threading.Lock()
        
        logger.debug(f"SharedSampleBuffer initialized: {max_samples} samples max")
    
    def extend(self, samples: Iterable[float]) -> None:
        """Append mono samples; the deque drops from the front past capacity."""
        with self.lock:
            self.buffer.extend(samples)
    
    def latest(self, count: int) -> Optional[np.ndarray]:
        """Copy out the most recent ``count`` samples.
        
        Returns:
            float32 array of exactly ``count`` samples, or None if fewer are buffered
        """
        with self.lock:
            available = len(self.buffer)
            if available < count:
                return None
            window = list(islice(self.buffer, available - count, available))
        return np.asarray(window, dtype=np.float32)
    
    def clear(self) -> None:
        """Drop every buffered sample."""
        with self.lock:
            self.buffer.clear()
        logger.debug("Sample buffer cleared")
    
    def __len__(self) -> int:
        with self.lock:
            return len(self.buffer)
