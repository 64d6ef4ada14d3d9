"""
Shared hashing and caching utilities (used by both client and server)
"""

from .hashing import content_hash
from .cache import TranslationCache

__all__ = ["content_hash", "TranslationCache"]
