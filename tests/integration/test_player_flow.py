"""Integration tests: session state, real playback controller, playback loop and fetching."""

import pytest
import pyaudio
from pathlib import Path

from vibeplayer.audio.player import PlaybackController
from vibeplayer.errors import FetchError
from vibeplayer.fetch.downloader import FetchResult
from vibeplayer.models import Skip, TrackStatus
from vibeplayer.services import CommandPublisher, FetchOrchestrator, PlaybackService, SessionState
from vibeplayer.storage.library import Library


def drain(controller: PlaybackController) -> None:
    """Pull the stream to its end the way PortAudio would."""
    flag = pyaudio.paContinue
    while flag == pyaudio.paContinue:
        _, flag = controller._callback(None, 4096, None, 0)


@pytest.fixture
def player(mock_pyaudio, mock_fetcher, temp_data_dir, fake_clock):
    state = SessionState(clock=fake_clock)
    controller = PlaybackController()
    playback = PlaybackService(state, controller)
    library = Library(Path(temp_data_dir) / "library.json")
    fetch = FetchOrchestrator(state, library, mock_fetcher, Path(temp_data_dir))
    yield {'state': state, 'controller': controller, 'playback': playback,
           'fetch': fetch, 'library': library}
    playback.shutdown()


def fetch_result(audio_file: Path, video_id: str, title: str) -> FetchResult:
    return FetchResult(file_path=audio_file, title=title, artist="Artist",
                       duration_secs=1.0, video_id=video_id)


@pytest.mark.integration
class TestPlayerFlow:
    """Queue, download, auto-advance and finish with real audio decoding."""

    def test_downloaded_queue_entries_play_in_order(self, player, mock_fetcher, sample_audio_file):
        state, playback, fetch = player['state'], player['playback'], player['fetch']
        mock_fetcher.download.side_effect = lambda url: fetch_result(
            sample_audio_file, url.rsplit("/", 1)[1], f"Song {url[-1]}")

        first = fetch.queue_url("https://youtu.be/a")
        second = fetch.queue_url("https://youtu.be/b")
        assert fetch.wait(timeout=5)

        playback.tick()
        assert state.current.track is first
        assert state.queue == [second]

        drain(player['controller'])
        playback.tick()
        assert first.status == TrackStatus.PLAYED
        assert state.current.track is second
        assert state.queue == []

        drain(player['controller'])
        playback.tick()
        assert state.current is None
        assert second.status == TrackStatus.PLAYED

        assert len(player['library']) == 2
        assert sorted(t.title for t in state.library) == ["Song a", "Song b"]

    def test_failed_download_does_not_block_later_entries(self, player, mock_fetcher,
                                                          sample_audio_file):
        state, playback, fetch = player['state'], player['playback'], player['fetch']

        def download(url):
            if url.endswith("bad"):
                raise FetchError("HTTP Error 403")
            return fetch_result(sample_audio_file, "good", "Good Song")

        mock_fetcher.download.side_effect = download

        bad = fetch.queue_url("https://youtu.be/bad")
        fetch.queue_url("https://youtu.be/good")
        assert fetch.wait(timeout=5)

        playback.tick()

        assert state.current.track.title == "Good Song"
        assert state.queue == [bad]
        assert bad.status == TrackStatus.DOWNLOADING
        assert state.status_message is None

    def test_published_skip_reaches_the_controller(self, player, sample_audio_file):
        state, playback, fetch, library = (player['state'], player['playback'],
                                           player['fetch'], player['library'])
        fetch._persist("https://youtu.be/c", fetch_result(sample_audio_file, "c", "Cached"))

        fetch.play_url("https://youtu.be/c")
        playback.tick()
        assert state.current.track.title == "Cached"
        assert not player['controller'].is_empty()

        CommandPublisher().publish_command(Skip())
        playback.tick()

        assert state.current is None
        assert player['controller'].is_empty()
        assert library.find_by_url("https://youtu.be/c") is not None

    def test_rejected_output_device_keeps_the_loop_running(self, player, mock_pyaudio,
                                                          mock_fetcher, sample_audio_file):
        state, playback, fetch = player['state'], player['playback'], player['fetch']
        mock_fetcher.download.side_effect = lambda url: fetch_result(
            sample_audio_file, url.rsplit("/", 1)[1], f"Song {url[-1]}")
        fetch.queue_url("https://youtu.be/a")
        second = fetch.queue_url("https://youtu.be/b")
        assert fetch.wait(timeout=5)
        mock_pyaudio['instance'].open.side_effect = OSError(-9997, 'Invalid sample rate')

        playback.tick()

        assert state.current is None
        assert state.status_message.startswith("Playback error:")
        assert state.queue == [second]
        assert player['controller'].is_empty()

        mock_pyaudio['instance'].open.side_effect = None
        playback.tick()

        assert state.current.track is second
        assert not player['controller'].is_empty()
