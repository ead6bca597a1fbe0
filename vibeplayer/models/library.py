"""Persistent library record."""

from datetime import datetime, timezone

from pydantic import BaseModel, Field


def _utc_now() -> str:
    return datetime.now(timezone.utc).isoformat()


class LibraryEntry(BaseModel):
    """A previously downloaded song, keyed by its video id."""
    video_id: str
    title: str
    artist: str
    url: str
    duration_secs: float = 0.0
    file_path: str  # Relative to the cache directory
    downloaded_at: str = Field(default_factory=_utc_now)
