"""
Storage package for threadrank.

``Store`` is the persistence seam; ``InMemoryStore`` backs tests and the CLI.
"""

from .memory_store import InMemoryStore, load_fixture
from .store import Store

__all__ = ["InMemoryStore", "Store", "load_fixture"]
