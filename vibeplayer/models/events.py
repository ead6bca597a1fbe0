"""Event models published over pypubsub."""

from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Optional


@dataclass
class FetchEvent:
    """Outcome of a background retrieval."""
    url: str
    event_type: str  # "completed" | "failed"
    title: Optional[str] = None
    file_path: Optional[Path] = None
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def succeeded(self) -> bool:
        return self.event_type == "completed"
