"""YouTube retrieval using yt-dlp."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

import yt_dlp

from ..errors import FetchError

logger = logging.getLogger(__name__)


@dataclass
class SearchResult:
    """One hit from a platform search."""
    title: str
    url: str
    duration_secs: Optional[float] = None


@dataclass
class FetchResult:
    """A retrieved song, extracted to a local audio file."""
    file_path: Path
    title: str
    artist: str
    duration_secs: float
    video_id: str


class YouTubeFetcher:
    """Searches YouTube and extracts audio into the cache directory.
    
    Files are named ``<video_id>.<audio_format>`` so a second request for
    the same video reuses the cached file instead of downloading again.
    """
    
    def __init__(self, cache_dir: Path, audio_format: str = "mp3", audio_quality: str = "5"):
        """Initialize the fetcher.
        
        Args:
            cache_dir: Directory where extracted audio files are stored
            audio_format: Codec passed to the FFmpeg audio extractor
            audio_quality: VBR quality passed to the extractor (0 best - 9 worst)
        """
        self.cache_dir = Path(cache_dir)
        self.audio_format = audio_format
        self.audio_quality = audio_quality
        self.cache_dir.mkdir(parents=True, exist_ok=True)
    
    def _base_options(self) -> Dict[str, Any]:
        return {
            "quiet": True,
            "no_warnings": True,
            "noplaylist": True,
        }
    
    def _extract_info(self, target: str, **extra) -> Dict[str, Any]:
        options = self._base_options()
        options.update(extra)
        try:
            with yt_dlp.YoutubeDL(options) as ydl:
                info = ydl.extract_info(target, download=False)
        except yt_dlp.utils.DownloadError as e:
            raise FetchError(f"yt-dlp failed for {target}: {e}") from e
        if not info:
            raise FetchError(f"yt-dlp returned no metadata for {target}")
        return info
    
    def download(self, url: str) -> FetchResult:
        """Download ``url`` and extract its audio.
        
        Returns:
            FetchResult describing the cached file
            
        Raises:
            FetchError: If metadata lookup or download fails
        """
        logger.info(f"Starting song download: {url}")
        info = self._extract_info(url)
        
        title = info.get("title") or "Unknown"
        artist = info.get("uploader") or info.get("channel") or "Unknown"
        duration = float(info.get("duration") or 0.0)
        video_id = info.get("id")
        if not video_id:
            raise FetchError(f"Could not extract video id from {url}")
        logger.info(f"Metadata parsed: title={title!r} artist={artist!r} "
                    f"id={video_id} duration={duration:.0f}s")
        
        file_path = self.cache_dir / f"{video_id}.{self.audio_format}"
        if file_path.exists():
            logger.info(f"Using cached file: {file_path}")
        else:
            self._download_audio(url)
            if not file_path.exists():
                raise FetchError(f"Download finished but {file_path} is missing")
            logger.info(f"Download complete: {file_path}")
        
        return FetchResult(
            file_path=file_path,
            title=title,
            artist=artist,
            duration_secs=duration,
            video_id=video_id
        )
    
    def _download_audio(self, url: str) -> None:
        options = self._base_options()
        options.update({
            "format": "bestaudio/best",
            "outtmpl": str(self.cache_dir / "%(id)s.%(ext)s"),
            "postprocessors": [{
                "key": "FFmpegExtractAudio",
                "preferredcodec": self.audio_format,
                "preferredquality": self.audio_quality,
            }],
        })
        logger.info(f"Downloading audio: {url}")
        try:
            with yt_dlp.YoutubeDL(options) as ydl:
                ydl.download([url])
        except yt_dlp.utils.DownloadError as e:
            raise FetchError(f"yt-dlp download failed for {url}: {e}") from e
    
    def search(self, query: str, count: int = 3) -> List[SearchResult]:
        """Search YouTube and return up to ``count`` results."""
        search_query = f"ytsearch{count}:{query}"
        logger.info(f"Searching YouTube: {search_query}")
        info = self._extract_info(search_query, extract_flat=True)
        
        results = []
        for entry in info.get("entries") or []:
            if not entry:
                continue
            url = entry.get("webpage_url") or entry.get("url")
            if not url and entry.get("id"):
                url = f"https://www.youtube.com/watch?v={entry['id']}"
            if not url:
                logger.warning(f"Unparseable search result: {entry}")
                continue
            duration = entry.get("duration")
            results.append(SearchResult(
                title=entry.get("title") or url,
                url=url,
                duration_secs=float(duration) if duration else None
            ))
        
        logger.info(f"Search complete: {search_query} -> {len(results)} results")
        for i, result in enumerate(results):
            logger.debug(f"Search result {i}: {result.title} ({result.url})")
        return results
