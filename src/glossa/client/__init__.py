"""
Client-side live document translation pipeline
"""

from .classifier import TRANSLATION_MARKER, is_translatable
from .coalescer import ChangeCoalescer, LoopTimer, ManualTimer
from .document import DocumentAdapter, Location, TextKind, TranslatableItem
from .extractor import LocationExtractor
from .pending import PendingMultiplexer
from .pipeline import TranslationPipeline
from .soup import SoupDocument
from .transport import ConnectionState, TransportClient

__all__ = [
    "TRANSLATION_MARKER",
    "is_translatable",
    "ChangeCoalescer",
    "LoopTimer",
    "ManualTimer",
    "DocumentAdapter",
    "Location",
    "TextKind",
    "TranslatableItem",
    "LocationExtractor",
    "PendingMultiplexer",
    "TranslationPipeline",
    "SoupDocument",
    "ConnectionState",
    "TransportClient",
]
