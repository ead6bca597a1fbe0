"""Fetch orchestrator: resolves urls to playable tracks in the background."""

import logging
import threading
from pathlib import Path
from typing import List, Optional

from ..errors import FetchError, LibraryError
from ..fetch.downloader import FetchResult, YouTubeFetcher
from ..models.commands import PlayFile
from ..models.events import FetchEvent
from ..models.library import LibraryEntry
from ..models.track import Track
from ..storage.library import Library
from .command_publisher import FetchEventPublisher
from .session_state import SessionState

logger = logging.getLogger(__name__)

REPLACE_RESULTS_PER_QUERY = 2


class FetchOrchestrator:
    """Turns urls and search queries into queue entries and play commands.

    Library hits resolve synchronously. Everything else gets a placeholder
    and a daemon thread; the thread writes its result back into the session
    state by url, so a completion whose entry has since been removed is a
    no-op. Retrievals are never cancelled and failures are not retried.
    """

    def __init__(self,
                 state: SessionState,
                 library: Library,
                 fetcher: YouTubeFetcher,
                 cache_dir: Path,
                 publisher: Optional[FetchEventPublisher] = None):
        """Initialize fetch orchestrator.

        Args:
            state: Shared session state
            library: Persistent library of downloaded songs
            fetcher: Retrieval backend
            cache_dir: Directory library file paths are relative to
            publisher: Receives a FetchEvent for every finished retrieval
        """
        self.state = state
        self.library = library
        self.fetcher = fetcher
        self.cache_dir = Path(cache_dir)
        self.publisher = publisher or FetchEventPublisher()

        self.threads: List[threading.Thread] = []
        self.threads_lock = threading.Lock()

    # Library

    def _cached_track(self, url: str) -> Optional[Track]:
        entry = self.library.find_by_url(url)
        if entry is None:
            return None
        file_path = self.cache_dir / entry.file_path
        if not file_path.exists():
            logger.warning(f"Library entry for {url} points at missing file {file_path}")
            return None
        return Track.ready(entry.title, entry.artist, url, file_path, entry.duration_secs)

    def restore_library(self) -> int:
        """Show every library entry whose file still exists in the library panel.

        Returns:
            Number of songs added to the panel
        """
        restored = 0
        for entry in self.library.entries():
            file_path = self.cache_dir / entry.file_path
            if not file_path.exists():
                logger.debug(f"Skipping library entry with missing file: {file_path}")
                continue
            track = Track.ready(entry.title, entry.artist, entry.url, file_path, entry.duration_secs)
            if self.state.add_to_library(track):
                restored += 1
        logger.info(f"Restored {restored} songs from library")
        return restored

    def _persist(self, url: str, result: FetchResult) -> None:
        """Record a finished download in the library file and panel."""
        try:
            relative_path = result.file_path.relative_to(self.cache_dir)
        except ValueError:
            relative_path = Path(result.file_path.name)

        entry = LibraryEntry(
            video_id=result.video_id,
            title=result.title,
            artist=result.artist,
            url=url,
            duration_secs=result.duration_secs,
            file_path=str(relative_path)
        )
        try:
            self.library.add(entry)
        except LibraryError as e:
            logger.error(f"Failed to persist library entry for {url}: {e}")

        self.state.add_to_library(Track.ready(result.title, result.artist, url,
                                              result.file_path, result.duration_secs))

    # Queue

    def queue_url(self, url: str, title: str = "", artist: str = "") -> Track:
        """Append ``url`` to the queue, downloading it in the background if needed.

        Args:
            url: Source url
            title: Title shown while downloading, if already known
            artist: Artist shown while downloading, if already known

        Returns:
            The queue entry, READY for a library hit and DOWNLOADING otherwise
        """
        track = self._cached_track(url)
        if track is not None:
            logger.info(f"Queued from library: {track.title}")
            self.state.append_to_queue(track)
            return track

        track = Track.downloading(url, title, artist)
        self.state.append_to_queue(track)
        logger.info(f"Queued for download: {url}")
        self._spawn(self._download_to_queue, url)
        return track

    def _download_to_queue(self, url: str) -> None:
        try:
            result = self.fetcher.download(url)
        except FetchError as e:
            logger.error(f"Download failed for queued song {url}: {e}")
            self._publish_failure(url, e)
            return

        self._persist(url, result)
        if self.state.resolve_queued(url, result.file_path, result.title,
                                     result.artist, result.duration_secs):
            logger.info(f"Queue entry ready: {result.title}")
        else:
            logger.info(f"Download finished but {url} is no longer queued")
        self._publish_success(url, result)

    def play_url(self, url: str) -> None:
        """Play ``url`` now, downloading it first if the library lacks it."""
        track = self._cached_track(url)
        if track is not None:
            logger.info(f"Playing from library: {track.title}")
            self._enqueue_play(url, track.file_path, track.title, track.artist, track.duration)
            return

        self.state.set_status_message("Downloading...")
        self._spawn(self._download_and_play, url)

    def _download_and_play(self, url: str) -> None:
        try:
            result = self.fetcher.download(url)
        except FetchError as e:
            logger.error(f"Download failed for {url}: {e}")
            self.state.set_status_message(f"Download error: {e}")
            self._publish_failure(url, e)
            return

        self._persist(url, result)
        self._enqueue_play(url, result.file_path, result.title, result.artist, result.duration_secs)
        self._publish_success(url, result)

    def _enqueue_play(self, url: str, file_path: Path, title: str, artist: str,
                      duration: Optional[float]) -> None:
        self.state.enqueue_command(PlayFile(
            path=file_path,
            title=title,
            artist=artist,
            url=url,
            duration=duration
        ))

    def search_and_queue(self, query: str, count: int = 3) -> List[Track]:
        """Search for ``query`` and queue up to ``count`` results.

        Raises:
            FetchError: If the search itself fails
        """
        results = self.fetcher.search(query, count)
        if not results:
            logger.warning(f"No search results for: {query}")
        return [self.queue_url(result.url, title=result.title) for result in results]

    def replace_queue(self, queries: List[str]) -> List[Track]:
        """Clear the queue and refill it from a list of search queries."""
        self.state.clear_queue()
        queued = []
        for query in queries:
            queued.extend(self.search_and_queue(query, REPLACE_RESULTS_PER_QUERY))
        logger.info(f"Queue replaced: {len(queries)} queries, {len(queued)} songs")
        return queued

    # Threads

    def _spawn(self, target, url: str) -> threading.Thread:
        thread = threading.Thread(target=self._run_retrieval, args=(target, url))
        thread.name = f"fetch_{len(self.threads)}"
        thread.daemon = True
        with self.threads_lock:
            self.threads = [t for t in self.threads if t.is_alive()]
            self.threads.append(thread)
        thread.start()
        return thread

    @staticmethod
    def _run_retrieval(target, url: str) -> None:
        try:
            target(url)
        except Exception as e:
            logger.error(f"Unhandled exception in retrieval of {url}: {e}", exc_info=True)

    def wait(self, timeout: Optional[float] = None) -> bool:
        """Join every in-flight retrieval.

        Returns:
            True if all retrievals finished within ``timeout``
        """
        with self.threads_lock:
            threads = list(self.threads)
        for thread in threads:
            thread.join(timeout)
        return not any(thread.is_alive() for thread in threads)

    # Events

    def _publish_success(self, url: str, result: FetchResult) -> None:
        self.publisher.publish_event(FetchEvent(
            url=url,
            event_type="completed",
            title=result.title,
            file_path=result.file_path
        ))

    def _publish_failure(self, url: str, error: Exception) -> None:
        self.publisher.publish_event(FetchEvent(
            url=url,
            event_type="failed",
            error=str(error)
        ))
