"""
Glossa: incremental, hash-deduplicated translation of live documents
"""

__version__ = "1.0.0"
