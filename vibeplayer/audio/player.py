"""Playback controller owning the single active audio output pipeline."""

import logging
import threading
from pathlib import Path
from typing import Optional, Union

import numpy as np
import pyaudio
import soundfile as sf

from ..errors import PlaybackDecodeError, PlaybackDeviceError, PlaybackIOError, SeekError
from ..models.audio import AudioFeatures
from .analyzer import SpectralAnalyzer
from .buffer import SharedSampleBuffer
from .relay import SampleRelay

logger = logging.getLogger(__name__)


class PlaybackController:
    """Transport operations over one decode -> relay -> output pipeline.
    
    Decoding is done by soundfile (libsndfile), output by a PyAudio stream in
    callback mode. The callback pulls frames through a ``SampleRelay`` so the
    analyzer sees exactly what the device plays. Only the playback loop may
    call into this class; the audio callback runs on PortAudio's thread and
    shares the pipeline through ``pipeline_lock``.
    """
    
    def __init__(self, frames_per_buffer: int = 1024, volume: int = 100):
        """Initialize the controller. No device is opened until ``play``.
        
        Args:
            frames_per_buffer: Frames requested per PyAudio callback
            volume: Initial volume, 0-100
        """
        self.frames_per_buffer = frames_per_buffer
        self.gain = 1.0
        self.set_volume(volume)
        
        self.pyaudio_instance: Optional[pyaudio.PyAudio] = None
        self.stream = None
        self.file_handle = None
        self.sound_file: Optional[sf.SoundFile] = None
        self.relay: Optional[SampleRelay] = None
        self.analyzer: Optional[SpectralAnalyzer] = None
        self.duration: Optional[float] = None
        self.sample_rate = 0
        
        self.pipeline_lock = threading.Lock()
        self.is_paused = False
        self.finished = True
    
    def play(self, path: Union[str, Path], duration: Optional[float] = None) -> None:
        """Tear down the current pipeline and start playing ``path``.
        
        Args:
            path: Local audio file
            duration: Known duration in seconds, used when the decoder cannot tell
            
        Raises:
            PlaybackIOError: If the file cannot be opened
            PlaybackDecodeError: If the format is unrecognized or corrupt
            PlaybackDeviceError: If the output device rejects the stream
        """
        logger.info(f"Playing file: {path}")
        self.stop()

        try:
            handle = open(path, "rb")
        except OSError as e:
            raise PlaybackIOError(f"Failed to open audio file {path}: {e}") from e

        try:
            sound_file = sf.SoundFile(handle)
        except (RuntimeError, TypeError, ValueError) as e:
            handle.close()
            raise PlaybackDecodeError(f"Failed to decode audio file {path}: {e}") from e

        buffer = SharedSampleBuffer()
        relay = SampleRelay(sound_file, buffer, sound_file.channels)
        analyzer = SpectralAnalyzer(buffer, sound_file.samplerate)

        # The stream starts inactive; the callback only sees a committed pipeline
        try:
            stream = self._open_stream(sound_file.channels, sound_file.samplerate)
        except OSError as e:
            sound_file.close()
            handle.close()
            raise PlaybackDeviceError(
                f"Audio device rejected {path} ({sound_file.samplerate}Hz, "
                f"{sound_file.channels} channels): {e}") from e

        with self.pipeline_lock:
            self.file_handle = handle
            self.sound_file = sound_file
            self.relay = relay
            self.analyzer = analyzer
            self.sample_rate = sound_file.samplerate
            self.duration = duration if duration else self._decoded_duration(sound_file)
            self.finished = False
            self.is_paused = False

        self.stream = stream
        stream.start_stream()
        logger.info(f"Audio stream opened: {sound_file.samplerate}Hz, "
                    f"{sound_file.channels} channels, format {sound_file.format}")

    def _open_stream(self, channels: int, sample_rate: int):
        if self.pyaudio_instance is None:
            self.pyaudio_instance = pyaudio.PyAudio()
        return self.pyaudio_instance.open(
            format=pyaudio.paFloat32,
            channels=channels,
            rate=sample_rate,
            output=True,
            frames_per_buffer=self.frames_per_buffer,
            stream_callback=self._callback,
            start=False
        )
    
    @staticmethod
    def _decoded_duration(sound_file) -> Optional[float]:
        frames = getattr(sound_file, "frames", 0)
        if frames and sound_file.samplerate:
            return frames / sound_file.samplerate
        return None
    
    def _callback(self, in_data, frame_count, time_info, status):
        """PyAudio output callback - feed the device through the relay."""
        with self.pipeline_lock:
            relay = self.relay
            if relay is None or self.finished:
                return (bytes(frame_count * 4), pyaudio.paComplete)
            
            try:
                block = relay.read(frame_count)
            except RuntimeError as e:
                logger.error(f"Decoder error during playback: {e}")
                block = np.zeros((0, relay.channels), dtype=np.float32)
            
            flag = pyaudio.paContinue
            if len(block) < frame_count:
                relay.flush()
                padding = np.zeros((frame_count - len(block), relay.channels), dtype=np.float32)
                block = np.concatenate([block, padding], axis=0)
                self.finished = True
                flag = pyaudio.paComplete
            
            out = (block * self.gain).astype(np.float32)
        return (out.tobytes(), flag)
    
    def pause(self) -> None:
        if self.stream is None or self.is_paused:
            return
        self.is_paused = True
        if not self.finished:
            self.stream.stop_stream()
        logger.debug("Playback paused")
    
    def resume(self) -> None:
        if self.stream is None or not self.is_paused:
            return
        self.is_paused = False
        if not self.finished:
            self.stream.start_stream()
        logger.debug("Playback resumed")
    
    def stop(self) -> None:
        """Halt and discard the pipeline. ``is_empty`` reports True afterwards."""
        stream = self.stream
        self.stream = None
        if stream is not None:
            try:
                stream.stop_stream()
                stream.close()
            except OSError as e:
                logger.warning(f"Error closing audio stream: {e}")
        
        with self.pipeline_lock:
            sound_file, handle = self.sound_file, self.file_handle
            self.sound_file = None
            self.file_handle = None
            self.relay = None
            self.analyzer = None
            self.duration = None
            self.finished = True
            self.is_paused = False
        
        if sound_file is not None:
            sound_file.close()
            logger.debug("Playback pipeline torn down")
        if handle is not None:
            handle.close()
    
    def set_volume(self, volume: int) -> None:
        """Linear gain from a 0-100 level; out-of-range levels are clamped."""
        level = max(0, min(100, int(volume)))
        self.gain = level / 100.0
    
    def seek(self, position: float) -> None:
        """Best-effort seek to ``position`` seconds.
        
        A failing seek is logged and otherwise ignored; playback continues
        from wherever the decoder ended up.
        """
        try:
            self._seek(position)
        except SeekError as e:
            logger.warning(f"Seek to {position:.1f}s failed: {e}")
    
    def _seek(self, position: float) -> None:
        with self.pipeline_lock:
            if self.relay is None or self.finished:
                raise SeekError("Nothing is playing")
            frame = int(max(0.0, position) * self.sample_rate)
            total = getattr(self.sound_file, "frames", 0)
            if total:
                frame = min(frame, max(total - 1, 0))
            try:
                self.relay.seek(frame)
            except (RuntimeError, ValueError) as e:
                raise SeekError(str(e)) from e
        logger.info(f"Seeked to {position:.1f}s")
    
    def get_position(self) -> float:
        """Seconds of audio handed to the device so far."""
        relay = self.relay
        if relay is None or not self.sample_rate:
            return 0.0
        return relay.frames_read / self.sample_rate
    
    def is_empty(self) -> bool:
        """True when nothing is loaded or the stream has reached its end."""
        return self.relay is None or self.finished
    
    def get_audio_features(self) -> AudioFeatures:
        analyzer = self.analyzer
        if analyzer is None:
            return AudioFeatures.silent()
        return analyzer.analyze()
    
    def close(self) -> None:
        """Stop playback and release PortAudio."""
        self.stop()
        if self.pyaudio_instance is not None:
            self.pyaudio_instance.terminate()
            self.pyaudio_instance = None
    
    def __del__(self):
        """Ensure resources are cleaned up on deletion."""
        if getattr(self, "stream", None) is not None:
            self.stop()
