"""
Content hashing for translation dedup.

The target language is part of the hashed payload, so switching language
moves every lookup into a new key space without invalidating anything.
"""

import hashlib


def content_hash(text: str, target_lang: str) -> str:
    """
    Compute the stable identifier for a (text, language) pair.

    Args:
        text: Source text (already trimmed, never empty)
        target_lang: Target language tag

    Returns:
        64-character lowercase hex SHA-256 digest
    """
    payload = f"{text}|{target_lang}".encode("utf-8")
    return hashlib.sha256(payload).hexdigest()
