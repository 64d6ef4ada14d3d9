# protocol.py
"""
Wire protocol shared by the pipeline client and the translation server.

All messages are JSON objects with a "type" field:
- translation_request (client -> server): {"type", "payload": [{text, hash, targetLang}, ...]}
- ack                 (server -> client): {"type", "count", "message"}
- translation_result  (server -> client): {"type", "hash", "original", "translated"}
"""

import json
from typing import Any

TRANSLATION_REQUEST = "translation_request"
ACK = "ack"
TRANSLATION_RESULT = "translation_result"

REQUEST_FIELDS = ("text", "hash", "targetLang")


class ProtocolError(ValueError):
    """Raised when an inbound message cannot be decoded or is malformed."""


def request_record(text: str, hash_: str, target_lang: str) -> dict[str, str]:
    return {"text": text, "hash": hash_, "targetLang": target_lang}


def build_request(records: list[dict[str, str]]) -> dict[str, Any]:
    return {"type": TRANSLATION_REQUEST, "payload": records}


def build_ack(count: int, message: str = "Items received for translation") -> dict[str, Any]:
    return {"type": ACK, "count": count, "message": message}


def build_result(hash_: str, original: str, translated: str) -> dict[str, Any]:
    return {
        "type": TRANSLATION_RESULT,
        "hash": hash_,
        "original": original,
        "translated": translated,
    }


def decode(raw: str | bytes) -> dict[str, Any]:
    """
    Decode one inbound frame.

    Args:
        raw: Text (or UTF-8 bytes) frame

    Returns:
        Message dict with a string "type"

    Raises:
        ProtocolError: If the frame is not a JSON object with a type
    """
    try:
        data = json.loads(raw)
    except (TypeError, ValueError) as e:
        raise ProtocolError(f"Invalid JSON frame: {e}") from e

    if not isinstance(data, dict) or not isinstance(data.get("type"), str):
        raise ProtocolError("Message must be an object with a string 'type'")
    return data


def request_items(message: dict[str, Any]) -> tuple[list[dict[str, str]], list[str]]:
    """
    Split a translation_request payload into valid records and rejection reasons.

    A malformed item never invalidates the rest of the batch.

    Returns:
        (valid_records, errors)
    """
    payload = message.get("payload")
    if not isinstance(payload, list):
        raise ProtocolError("translation_request payload must be a list")

    valid = []
    errors = []
    for index, item in enumerate(payload):
        if not isinstance(item, dict):
            errors.append(f"item {index}: not an object")
            continue
        missing = [f for f in REQUEST_FIELDS if not isinstance(item.get(f), str) or not item.get(f)]
        if missing:
            errors.append(f"item {index}: missing {', '.join(missing)}")
            continue
        valid.append(request_record(item["text"], item["hash"], item["targetLang"]))
    return valid, errors


def parse_result(message: dict[str, Any]) -> tuple[str, str]:
    """
    Extract (hash, translated) from a translation_result message.

    Raises:
        ProtocolError: If either field is missing
    """
    hash_ = message.get("hash")
    translated = message.get("translated")
    if not isinstance(hash_, str) or not isinstance(translated, str):
        raise ProtocolError("translation_result requires string 'hash' and 'translated'")
    return hash_, translated
