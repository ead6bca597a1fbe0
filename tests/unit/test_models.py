"""Unit tests for the track state machine, now-playing timer and commands."""

import pytest
from pathlib import Path

from vibeplayer.errors import InvalidTransitionError
from vibeplayer.models import (
    AgentStatus, AudioFeatures, InputState, NowPlaying, Seek, SetVolume,
    Track, TrackStatus, ALLOWED_TRANSITIONS, LibraryEntry
)


@pytest.mark.unit
class TestTrackStatus:
    """Test cases for the track status transition table."""

    @pytest.mark.parametrize("current,target", [
        (TrackStatus.QUEUED, TrackStatus.DOWNLOADING),
        (TrackStatus.QUEUED, TrackStatus.READY),
        (TrackStatus.DOWNLOADING, TrackStatus.READY),
        (TrackStatus.READY, TrackStatus.PLAYING),
        (TrackStatus.PLAYING, TrackStatus.PLAYED),
    ])
    def test_allowed_transitions(self, current, target):
        track = Track("Song", "Artist", "url", status=current)
        track.advance(target)
        assert track.status == target

    @pytest.mark.parametrize("current,target", [
        (TrackStatus.READY, TrackStatus.DOWNLOADING),
        (TrackStatus.READY, TrackStatus.QUEUED),
        (TrackStatus.PLAYING, TrackStatus.READY),
        (TrackStatus.PLAYED, TrackStatus.PLAYING),
        (TrackStatus.DOWNLOADING, TrackStatus.PLAYING),
        (TrackStatus.QUEUED, TrackStatus.PLAYED),
    ])
    def test_rejected_transitions(self, current, target):
        track = Track("Song", "Artist", "url", status=current)
        with pytest.raises(InvalidTransitionError):
            track.advance(target)
        assert track.status == current

    def test_same_status_is_noop(self):
        for status in TrackStatus:
            track = Track("Song", "Artist", "url", status=status)
            track.advance(status)
            assert track.status == status

    def test_table_covers_every_status(self):
        assert set(ALLOWED_TRANSITIONS) == set(TrackStatus)


@pytest.mark.unit
class TestTrack:
    """Test cases for Track constructors and resolution."""

    def test_downloading_placeholder(self):
        track = Track.downloading("https://youtu.be/x")
        assert track.status == TrackStatus.DOWNLOADING
        assert track.title == "Loading..."
        assert track.file_path is None
        assert not track.is_playable

    def test_resolve_fills_metadata(self):
        track = Track.downloading("https://youtu.be/x", title="Search hit")
        track.resolve(Path("/cache/x.mp3"), "Real Title", "Real Artist", 180.0)

        assert track.status == TrackStatus.READY
        assert track.file_path == Path("/cache/x.mp3")
        assert track.title == "Real Title"
        assert track.artist == "Real Artist"
        assert track.duration == 180.0
        assert track.is_playable

    def test_ready_without_file_is_not_playable(self):
        track = Track("Song", "Artist", "url", status=TrackStatus.READY)
        assert not track.is_playable


@pytest.mark.unit
class TestNowPlaying:
    """Test cases for the pause-aware elapsed timer."""

    def test_starts_at_zero_and_marks_playing(self, fake_clock):
        track = Track.ready("Song", "Artist", "url", Path("b.mp3"), 180.0)
        now_playing = NowPlaying(track=track, clock=fake_clock)

        assert now_playing.elapsed() == pytest.approx(0.0)
        assert track.status == TrackStatus.PLAYING

    def test_pause_five_seconds_then_resume(self, fake_clock):
        """The paused interval does not count toward elapsed."""
        track = Track.ready("Song", "Artist", "url", Path("b.mp3"), 180.0)
        now_playing = NowPlaying(track=track, clock=fake_clock)

        fake_clock.advance(12.0)
        now_playing.pause()
        at_pause = now_playing.elapsed()

        fake_clock.advance(5.0)
        assert now_playing.elapsed() == pytest.approx(at_pause)

        now_playing.resume()
        assert now_playing.elapsed() == pytest.approx(at_pause, abs=1e-3)

        fake_clock.advance(1.0)
        assert now_playing.elapsed() == pytest.approx(at_pause + 1.0)

    def test_pause_and_resume_are_idempotent(self, fake_clock):
        track = Track.ready("Song", "Artist", "url", Path("b.mp3"), 180.0)
        now_playing = NowPlaying(track=track, clock=fake_clock)

        fake_clock.advance(2.0)
        now_playing.pause()
        fake_clock.advance(3.0)
        now_playing.pause()
        fake_clock.advance(3.0)
        now_playing.resume()
        now_playing.resume()

        assert now_playing.paused_elapsed == pytest.approx(6.0)
        assert now_playing.elapsed() == pytest.approx(2.0)
        assert not now_playing.is_paused

    def test_finish_marks_played(self, fake_clock):
        track = Track.ready("Song", "Artist", "url", Path("b.mp3"), 180.0)
        NowPlaying(track=track, clock=fake_clock).finish()
        assert track.status == TrackStatus.PLAYED


@pytest.mark.unit
class TestCommandsAndUiModels:
    """Test cases for value objects shared with the UI."""

    @pytest.mark.parametrize("level,expected", [(-20, 0), (0, 0), (55, 55), (100, 100), (250, 100)])
    def test_set_volume_clamps(self, level, expected):
        assert SetVolume(level).level == expected

    def test_seek_never_negative(self):
        assert Seek(-4.0).position == 0.0
        assert Seek(12.5).position == 12.5

    def test_silent_features(self):
        features = AudioFeatures.silent()
        assert (features.rms, features.bass, features.mid, features.treble) == (0.0, 0.0, 0.0, 0.0)
        assert features.is_beat is False

    def test_agent_status_labels(self):
        assert AgentStatus.idle().label == "Idle"
        assert AgentStatus.thinking().label == "Thinking"
        assert AgentStatus.acting("skip").label == "Acting: skip"

    def test_input_state_editing(self):
        state = InputState()
        for char in "lofi":
            state.insert(char)
        state.backspace()
        assert state.text == "lof"
        assert state.submit() == "lof"
        assert state.text == ""
        assert state.cursor == 0

    def test_library_entry_defaults_timestamp(self):
        entry = LibraryEntry(video_id="abc", title="T", artist="A",
                             url="https://youtu.be/abc", file_path="abc.mp3")
        assert entry.duration_secs == 0.0
        assert entry.downloaded_at
