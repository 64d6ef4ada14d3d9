"""
Server-side translation: providers, bounded work queue, request dedup
"""

from .provider import TranslationProvider, OpenAIProvider, EchoProvider, create_provider
from .work_queue import BoundedWorkQueue
from .dedup import RequestDeduplicator

__all__ = [
    "TranslationProvider",
    "OpenAIProvider",
    "EchoProvider",
    "create_provider",
    "BoundedWorkQueue",
    "RequestDeduplicator",
]
