"""Retrieval of audio from the video platform."""

from .downloader import FetchResult, SearchResult, YouTubeFetcher

__all__ = ["FetchResult", "SearchResult", "YouTubeFetcher"]
