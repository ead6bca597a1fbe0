"""Persistent storage for vibeplayer."""

from .library import Library

__all__ = ["Library"]
