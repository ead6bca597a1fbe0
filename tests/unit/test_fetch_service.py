"""Unit tests for FetchOrchestrator with a mocked fetcher."""

import threading
import pytest
from pathlib import Path
from unittest.mock import Mock

from vibeplayer.errors import FetchError
from vibeplayer.fetch.downloader import FetchResult, SearchResult
from vibeplayer.models import LibraryEntry, PlayFile, TrackStatus
from vibeplayer.services.fetch_service import FetchOrchestrator
from vibeplayer.services.session_state import SessionState
from vibeplayer.storage.library import Library


@pytest.fixture
def cache_dir(temp_data_dir):
    path = Path(temp_data_dir) / "cache"
    path.mkdir()
    return path


@pytest.fixture
def library(temp_data_dir):
    return Library(Path(temp_data_dir) / "library.json")


@pytest.fixture
def publisher():
    return Mock()


@pytest.fixture
def orchestrator(library, mock_fetcher, cache_dir, publisher):
    return FetchOrchestrator(SessionState(), library, mock_fetcher, cache_dir, publisher)


def make_result(cache_dir: Path, video_id: str, title: str = "Song") -> FetchResult:
    file_path = cache_dir / f"{video_id}.mp3"
    file_path.write_bytes(b"audio")
    return FetchResult(file_path=file_path, title=title, artist="Artist",
                       duration_secs=200.0, video_id=video_id)


def add_library_entry(library: Library, cache_dir: Path, video_id: str, create_file: bool = True):
    if create_file:
        (cache_dir / f"{video_id}.mp3").write_bytes(b"audio")
    library.add(LibraryEntry(video_id=video_id, title=f"Cached {video_id}", artist="Artist",
                             url=f"https://youtu.be/{video_id}", duration_secs=90.0,
                             file_path=f"{video_id}.mp3"))


@pytest.mark.unit
class TestQueueUrl:
    """Test cases for queue_url."""

    def test_library_hit_is_ready_without_download(self, orchestrator, library, cache_dir, mock_fetcher):
        add_library_entry(library, cache_dir, "abc")

        track = orchestrator.queue_url("https://youtu.be/abc")

        assert track.status == TrackStatus.READY
        assert track.file_path == cache_dir / "abc.mp3"
        assert orchestrator.state.queue == [track]
        mock_fetcher.download.assert_not_called()

    def test_library_entry_with_missing_file_downloads_again(self, orchestrator, library, cache_dir,
                                                             mock_fetcher):
        add_library_entry(library, cache_dir, "abc", create_file=False)
        # The audio file only appears once the download actually runs
        mock_fetcher.download.side_effect = lambda url: make_result(cache_dir, "abc")
        assert not (cache_dir / "abc.mp3").exists()

        track = orchestrator.queue_url("https://youtu.be/abc")
        assert track.status in (TrackStatus.DOWNLOADING, TrackStatus.READY)

        assert orchestrator.wait(timeout=5)
        mock_fetcher.download.assert_called_once_with("https://youtu.be/abc")
        assert track.status == TrackStatus.READY
        assert (cache_dir / "abc.mp3").exists()

    def test_download_resolves_entry_in_place(self, orchestrator, library, cache_dir,
                                              mock_fetcher, publisher):
        mock_fetcher.download.return_value = make_result(cache_dir, "xyz", title="Real Title")

        placeholder = orchestrator.queue_url("https://youtu.be/xyz", title="Search Title")
        assert placeholder.title == "Search Title"
        assert orchestrator.wait(timeout=5)

        state = orchestrator.state
        assert state.queue == [placeholder]
        assert placeholder.status == TrackStatus.READY
        assert placeholder.title == "Real Title"
        assert placeholder.file_path == cache_dir / "xyz.mp3"

        assert library.find_by_url("https://youtu.be/xyz").file_path == "xyz.mp3"
        assert [t.url for t in state.library] == ["https://youtu.be/xyz"]

        event = publisher.publish_event.call_args.args[0]
        assert event.event_type == "completed"
        assert event.url == "https://youtu.be/xyz"

    def test_failed_download_stays_downloading(self, orchestrator, mock_fetcher, publisher):
        mock_fetcher.download.side_effect = FetchError("HTTP Error 403")

        track = orchestrator.queue_url("https://youtu.be/bad")
        assert orchestrator.wait(timeout=5)

        assert track.status == TrackStatus.DOWNLOADING
        assert orchestrator.state.queue == [track]
        event = publisher.publish_event.call_args.args[0]
        assert event.event_type == "failed"
        assert "403" in event.error

    def test_completion_after_clear_is_noop(self, orchestrator, cache_dir, mock_fetcher):
        release = threading.Event()
        result = make_result(cache_dir, "late")

        def slow_download(url):
            release.wait(5)
            return result

        mock_fetcher.download.side_effect = slow_download

        orchestrator.queue_url("https://youtu.be/late")
        orchestrator.state.clear_queue()
        release.set()
        assert orchestrator.wait(timeout=5)

        assert orchestrator.state.queue == []
        # The song still lands in the library
        assert len(orchestrator.state.library) == 1

    def test_unexpected_exception_does_not_escape_thread(self, orchestrator, mock_fetcher):
        mock_fetcher.download.side_effect = RuntimeError("boom")

        track = orchestrator.queue_url("https://youtu.be/x")

        assert orchestrator.wait(timeout=5)
        assert track.status == TrackStatus.DOWNLOADING


@pytest.mark.unit
class TestPlayUrl:
    """Test cases for play_url."""

    def test_library_hit_enqueues_play_immediately(self, orchestrator, library, cache_dir, mock_fetcher):
        add_library_entry(library, cache_dir, "abc")

        orchestrator.play_url("https://youtu.be/abc")

        commands = orchestrator.state.pending_commands
        assert commands == [PlayFile(path=cache_dir / "abc.mp3", title="Cached abc", artist="Artist",
                                     url="https://youtu.be/abc", duration=90.0)]
        mock_fetcher.download.assert_not_called()

    def test_download_then_play(self, orchestrator, cache_dir, mock_fetcher):
        mock_fetcher.download.return_value = make_result(cache_dir, "new", title="New Song")

        orchestrator.play_url("https://youtu.be/new")
        assert orchestrator.state.status_message == "Downloading..."
        assert orchestrator.wait(timeout=5)

        command = orchestrator.state.pending_commands[0]
        assert isinstance(command, PlayFile)
        assert command.title == "New Song"
        assert command.path == cache_dir / "new.mp3"
        assert orchestrator.state.queue == []

    def test_download_failure_sets_status(self, orchestrator, mock_fetcher, publisher):
        mock_fetcher.download.side_effect = FetchError("video unavailable")

        orchestrator.play_url("https://youtu.be/gone")
        assert orchestrator.wait(timeout=5)

        assert orchestrator.state.pending_commands == []
        assert orchestrator.state.status_message == "Download error: video unavailable"
        assert publisher.publish_event.call_args.args[0].event_type == "failed"


@pytest.mark.unit
class TestSearch:
    """Test cases for search_and_queue and replace_queue."""

    def test_search_and_queue_adds_placeholders(self, orchestrator, mock_fetcher, cache_dir):
        mock_fetcher.search.return_value = [
            SearchResult(title=f"Lofi {i}", url=f"https://youtu.be/l{i}") for i in range(3)
        ]
        mock_fetcher.download.side_effect = lambda url: make_result(cache_dir, url.rsplit("/", 1)[1])

        queued = orchestrator.search_and_queue("lofi beats", count=3)

        mock_fetcher.search.assert_called_once_with("lofi beats", 3)
        assert [t.url for t in queued] == [f"https://youtu.be/l{i}" for i in range(3)]
        assert orchestrator.wait(timeout=5)
        assert all(t.status == TrackStatus.READY for t in orchestrator.state.queue)

    def test_search_failure_propagates(self, orchestrator, mock_fetcher):
        mock_fetcher.search.side_effect = FetchError("network down")

        with pytest.raises(FetchError):
            orchestrator.search_and_queue("anything")
        assert orchestrator.state.queue == []

    def test_replace_queue_clears_and_takes_two_per_query(self, orchestrator, mock_fetcher, cache_dir):
        orchestrator.state.append_to_queue(Mock(url="old"))
        mock_fetcher.search.side_effect = lambda query, count: [
            SearchResult(title=f"{query} {i}", url=f"https://youtu.be/{query}{i}") for i in range(count)
        ]
        mock_fetcher.download.side_effect = FetchError("offline")

        queued = orchestrator.replace_queue(["jazz", "rock"])

        assert [call.args for call in mock_fetcher.search.call_args_list] == [("jazz", 2), ("rock", 2)]
        assert [t.title for t in queued] == ["jazz 0", "jazz 1", "rock 0", "rock 1"]
        assert orchestrator.state.queue == queued
        orchestrator.wait(timeout=5)


@pytest.mark.unit
class TestRestoreLibrary:
    """Test cases for restore_library."""

    def test_restores_only_existing_files(self, orchestrator, library, cache_dir):
        add_library_entry(library, cache_dir, "one")
        add_library_entry(library, cache_dir, "two", create_file=False)

        assert orchestrator.restore_library() == 1
        assert [t.title for t in orchestrator.state.library] == ["Cached one"]
        assert orchestrator.restore_library() == 0
