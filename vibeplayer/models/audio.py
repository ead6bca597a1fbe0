"""Audio-related data models."""

from dataclasses import dataclass


@dataclass(frozen=True)
class AudioFeatures:
    """Spectral snapshot of the most recent audio window.

    All energies are normalized to [0, 1]. The default instance is the
    all-zero snapshot used for silence or missing data.
    """
    rms: float = 0.0
    bass: float = 0.0
    mid: float = 0.0
    treble: float = 0.0
    is_beat: bool = False

    @classmethod
    def silent(cls) -> "AudioFeatures":
        return cls()
