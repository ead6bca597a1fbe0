"""JSON-backed library of previously downloaded songs."""

import json
import logging
import threading
from pathlib import Path
from typing import List, Optional

from pydantic import ValidationError

from ..errors import LibraryError
from ..models.library import LibraryEntry

logger = logging.getLogger(__name__)


class Library:
    """Key-value store of library entries, persisted as a JSON array.
    
    Lookups are by source url, upserts by video id. The store has its own
    lock so fetch threads can persist without touching the session lock.
    """
    
    def __init__(self, path: Path, entries: Optional[List[LibraryEntry]] = None):
        self.path = Path(path)
        self._entries: List[LibraryEntry] = list(entries or [])
        self.lock = threading.RLock()
    
    @classmethod
    def load(cls, path: Path) -> "Library":
        """Load the library from ``path``; a missing file gives an empty library.
        
        Raises:
            LibraryError: If the file exists but cannot be read or parsed
        """
        path = Path(path)
        if not path.exists():
            logger.debug(f"Library file not found, starting empty: {path}")
            return cls(path)
        
        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
            entries = [LibraryEntry(**item) for item in data]
        except (OSError, json.JSONDecodeError, TypeError, ValidationError) as e:
            raise LibraryError(f"Failed to load library {path}: {e}") from e
        
        logger.info(f"Library loaded from disk: {len(entries)} entries")
        return cls(path, entries)
    
    def save(self) -> None:
        """Write every entry to disk.
        
        Raises:
            LibraryError: If the file cannot be written
        """
        with self.lock:
            data = [entry.model_dump() for entry in self._entries]
            try:
                self.path.parent.mkdir(parents=True, exist_ok=True)
                with open(self.path, 'w', encoding='utf-8') as f:
                    json.dump(data, f, indent=2)
            except OSError as e:
                raise LibraryError(f"Failed to write library {self.path}: {e}") from e
        logger.debug(f"Library saved: {self.path} ({len(data)} entries)")
    
    def add(self, entry: LibraryEntry) -> None:
        """Insert or replace the entry with the same video id, then save."""
        with self.lock:
            for i, existing in enumerate(self._entries):
                if existing.video_id == entry.video_id:
                    logger.info(f"Updating existing library entry: {entry.video_id}")
                    self._entries[i] = entry
                    break
            else:
                logger.info(f"Adding new library entry: {entry.video_id} ({entry.title})")
                self._entries.append(entry)
        self.save()
    
    def find_by_url(self, url: str) -> Optional[LibraryEntry]:
        with self.lock:
            for entry in self._entries:
                if entry.url == url:
                    return entry
        return None
    
    def entries(self) -> List[LibraryEntry]:
        with self.lock:
            return list(self._entries)
    
    def __len__(self) -> int:
        with self.lock:
            return len(self._entries)
