"""vibeplayer: a terminal music player driven by keys or natural language."""

__version__ = "0.1.0"
