"""Pytest configuration and fixtures for vibeplayer tests."""

import pytest
import tempfile
import logging
from pathlib import Path
from unittest.mock import Mock, patch
import numpy as np
import soundfile as sf
from pubsub import pub


# Configure logging for tests
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


def pytest_configure(config):
    config.addinivalue_line("markers", "unit: fast tests with no real audio device or network")
    config.addinivalue_line("markers", "integration: tests wiring several components together")


class FakeClock:
    """Manually advanced monotonic clock."""

    def __init__(self, start: float = 1000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


@pytest.fixture(autouse=True)
def reset_pubsub():
    """Drop listeners registered by a test so topics start clean."""
    yield
    pub.unsubAll()


@pytest.fixture
def temp_data_dir():
    """Create temporary directory for test data."""
    with tempfile.TemporaryDirectory() as temp_dir:
        yield temp_dir


@pytest.fixture
def fake_clock():
    return FakeClock()


@pytest.fixture
def tone():
    """Generate a pure sine tone as float32 samples."""
    def generate(freq=440.0, seconds=0.5, sample_rate=44100, amplitude=0.5):
        t = np.arange(int(seconds * sample_rate)) / sample_rate
        return (amplitude * np.sin(2 * np.pi * freq * t)).astype(np.float32)

    return generate


@pytest.fixture
def mock_pyaudio():
    """Mock PyAudio for testing without actual audio hardware."""
    with patch('pyaudio.PyAudio') as mock_pyaudio_class:
        mock_pyaudio_instance = Mock()
        mock_stream = Mock()

        mock_stream.stop_stream.return_value = None
        mock_stream.start_stream.return_value = None
        mock_stream.close.return_value = None

        mock_pyaudio_instance.open.return_value = mock_stream
        mock_pyaudio_instance.terminate.return_value = None

        mock_pyaudio_class.return_value = mock_pyaudio_instance

        yield {
            'class': mock_pyaudio_class,
            'instance': mock_pyaudio_instance,
            'stream': mock_stream
        }


@pytest.fixture
def sample_audio_file(temp_data_dir, tone):
    """Create a one-second stereo WAV file for testing."""
    file_path = Path(temp_data_dir) / "test_audio.wav"
    left = tone(440.0, seconds=1.0, sample_rate=44100)
    right = tone(880.0, seconds=1.0, sample_rate=44100)
    sf.write(str(file_path), np.column_stack([left, right]), 44100)
    return file_path


@pytest.fixture
def mock_controller():
    """Mock PlaybackController that starts out empty."""
    from vibeplayer.models.audio import AudioFeatures

    controller = Mock()
    controller.is_empty.return_value = True
    controller.get_position.return_value = 0.0
    controller.get_audio_features.return_value = AudioFeatures.silent()
    return controller


@pytest.fixture
def mock_fetcher():
    """Mock YouTubeFetcher; tests configure download/search results."""
    return Mock()
