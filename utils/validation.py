"""
Validation and normalization utilities for record fields and user input.
"""
from typing import Any, Optional
import math
import re

from config import (
    KNOWN_LEAD_STATUSES,
    KNOWN_STUDENT_STATUSES,
    QUALIFIES_NO,
    QUALIFIES_YES,
    UNKNOWN_BUCKET,
)


def field_text(record: dict, key: str) -> str:
    """Field value as a stripped string; missing or None becomes ''."""
    value = record.get(key)
    if value is None:
        return ""
    return str(value).strip()


def bucket_name(value: Any) -> str:
    """Group-by key for open string fields; blank goes to the Unknown bucket."""
    text = "" if value is None else str(value).strip()
    return text or UNKNOWN_BUCKET


def normalize_qualifies(value: Any) -> str:
    """Trimmed, case-folded Qualifies value ('si', 'no' or anything else)."""
    if value is None:
        return ""
    return str(value).strip().casefold()


def is_qualified(value: Any) -> bool:
    return normalize_qualifies(value) == QUALIFIES_YES


def is_not_qualified(value: Any) -> bool:
    return normalize_qualifies(value) == QUALIFIES_NO


def parse_amount(value: Any) -> float:
    """
    Parse a money amount from the sheet. Never raises: anything that is not a
    finite number counts as 0.
    Accepts '1500', '1500.50', '1.500,50', '1,500.50' and '€ 300'.
    """
    if value is None or isinstance(value, bool):
        return 0.0

    if isinstance(value, (int, float)):
        try:
            amount = float(value)
        except OverflowError:
            return 0.0
        return amount if math.isfinite(amount) else 0.0

    text = re.sub(r"[^\d,.\-]", "", str(value))
    if not text:
        return 0.0

    if "," in text and "." in text:
        # The right-most separator is the decimal one
        if text.rfind(",") > text.rfind("."):
            text = text.replace(".", "").replace(",", ".")
        else:
            text = text.replace(",", "")
    elif "," in text:
        text = text.replace(",", ".")

    try:
        amount = float(text)
    except (OverflowError, ValueError):
        return 0.0

    return amount if math.isfinite(amount) else 0.0


def parse_hour(time_str: Any) -> Optional[int]:
    """Hour component of an HH:MM[:SS] string, or None if missing or out of 0-23."""
    if time_str is None:
        return None

    head = str(time_str).split(":", 1)[0].strip()
    if not (head.isascii() and head.isdigit()):
        return None

    hour = int(head)
    if 0 <= hour <= 23:
        return hour
    return None


def is_known_lead_status(status: str) -> bool:
    """Whether status is one of the documented lead statuses."""
    return status in KNOWN_LEAD_STATUSES


def is_known_student_status(status: str) -> bool:
    return status in KNOWN_STUDENT_STATUSES


def sanitize_input(text: str, max_length: int = 1000) -> str:
    """Sanitize user input text."""
    if not text:
        return ""
    # Remove excessive whitespace and limit length
    text = " ".join(text.split())
    return text[:max_length].strip()


def clean_note_text(text: str, max_length: int) -> str:
    """Trim a note, keeping its line breaks but dropping trailing spaces on each line."""
    if not text:
        return ""
    lines = [line.rstrip() for line in text.strip().splitlines()]
    return "\n".join(lines)[:max_length].strip()


def validate_email(email: str) -> bool:
    """Basic email validation."""
    if not email:
        return False
    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))
