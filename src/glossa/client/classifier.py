"""
Default "is this text worth translating" policy.

Rejects numbers, codes, dates, contact details and similar non-prose content.
The pipeline accepts any Callable[[str], bool] in its place.
"""

import re

# Zero-width space: invisible prefix marking text the pipeline already wrote
TRANSLATION_MARKER = "\u200b"

MIN_TEXT_LENGTH = 2

# Digits are ASCII only; other scripts' numerals count as text
ASCII_DIGITS = frozenset("0123456789")

NON_PROSE_PATTERNS = [
    re.compile(r"^[0-9\s,.\-/]+$"),                                       # pure numbers
    re.compile(r"^\([0-9]+\)$"),                                          # (3), (999)
    re.compile(r"^\[[0-9]+\]$"),                                          # [1], [42]
    re.compile(r"^\+?[0-9\s()\-.]{7,}$"),                                 # phone numbers
    re.compile(r"^[0-9]{1,4}[\-/.][0-9]{1,2}[\-/.][0-9]{1,4}$"),          # dates
    re.compile(r"^[0-9]{1,2}:[0-9]{2}(:[0-9]{2})?(\s*(AM|PM))?$", re.I),  # times
    re.compile(r"^[A-Z]{0,4}[0-9][0-9\-_#]*$", re.I),                     # codes / ids
    re.compile(r"^[0-9]+(\.[0-9]+)?%$"),                                  # percentages
    re.compile(r"^[$€£¥₹][0-9,.\s]+$"),                                   # currency
    re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$"),                            # email
    re.compile(r"^(https?://|www\.)", re.I),                              # urls
    re.compile(r"^v?[0-9]+\.[0-9]+(\.[0-9]+)?$", re.I),                   # versions
    re.compile(
        r"^[0-9.,]+\s*(lbs|kg|g|mg|mcg|oz|lb|in|cm|mm|ft|m|km|mmHg|bpm|F|C|K|%"
        r"|years|y/o|days|weeks|months|hr|min|sec|mL|L)$",
        re.I,
    ),                                                                    # measurements
    re.compile(r"^[0-9]+\s*/\s*[0-9]+(\s*[a-zA-Z]+)?$"),                  # ratios, 120/80
    re.compile(r"^[0-9]+['\"]\s*[0-9]+['\"]?$"),                          # heights, 5'9"
]

MONTH_DATE = re.compile(
    r"^(Jan|Feb|Mar|Apr|May|Jun|Jul|Aug|Sep|Oct|Nov|Dec)[a-z]*[\s,]+[0-9]{1,2}[\s,]+[0-9]{2,4}$",
    re.I,
)
FILE_NAME = re.compile(r"\.(jpg|jpeg|png|gif|pdf|doc|docx|xls|xlsx|zip|txt|csv)$", re.I)
HAS_LETTER = re.compile(r"[a-zA-Z]")


def is_translatable(text: str) -> bool:
    """
    Decide whether text looks like translatable prose.

    Args:
        text: Raw text (whitespace is trimmed here)

    Returns:
        True if the text should be sent for translation
    """
    trimmed = text.strip()

    if len(trimmed) < MIN_TEXT_LENGTH:
        return False

    if trimmed.startswith(TRANSLATION_MARKER):
        return False

    # Short and letterless: icons, counters, symbols
    if len(trimmed) < 5 and not HAS_LETTER.search(trimmed):
        return False

    if any(p.search(trimmed) for p in NON_PROSE_PATTERNS):
        return False

    digits = sum(1 for c in trimmed if c in ASCII_DIGITS)
    if digits / len(trimmed) > 0.7:
        return False

    if MONTH_DATE.search(trimmed):
        return False

    if FILE_NAME.search(trimmed):
        return False

    return True
