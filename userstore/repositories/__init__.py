"""
Persistence adapters.

These modules encapsulate how users are stored/retrieved (today a JSON file).
Services depend on the repository operations rather than touching the file.
"""

from .base import UserRepository
from .json_storage import UserFileRepository

__all__ = ["UserRepository", "UserFileRepository"]
