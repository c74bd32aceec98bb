"""Small helpers shared across services"""

import re
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

_NON_DIGITS = re.compile(r"\D")
_LEADING_INT = re.compile(r"\s*([+-]?\d+)")


def now_ms() -> int:
    """Current time as epoch milliseconds"""
    return int(time.time() * 1000)


def parse_optional_time(value: Optional[str]) -> Optional[int]:
    """ISO-8601 timestamp as epoch ms; None when blank or unparseable"""
    if not is_non_empty(value):
        return None
    text = value.strip()
    if text.endswith(("Z", "z")):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return int(parsed.timestamp() * 1000)


def to_optional_int(value: Optional[str], fallback: Optional[int]) -> Optional[int]:
    """Leading non-negative integer of a query value, else the fallback"""
    if not is_non_empty(value):
        return fallback
    match = _LEADING_INT.match(value)
    if match is None:
        return fallback
    parsed = int(match.group(1))
    return parsed if parsed >= 0 else fallback


def is_non_empty(value) -> bool:
    return isinstance(value, str) and len(value.strip()) > 0


def normalize_phone(value: Optional[str]) -> str:
    """Strip everything except digits"""
    return _NON_DIGITS.sub("", str(value or ""))


def phone_last10(value: Optional[str]) -> str:
    """Last ten digits, tolerating country-code prefixes"""
    digits = normalize_phone(value)
    return digits if len(digits) <= 10 else digits[-10:]


def mask_phone(value: Optional[str]) -> str:
    return normalize_phone(value)[-4:]


def generate_numeric_otp() -> str:
    """4-digit code in 1000-9999"""
    return str(1000 + secrets.randbelow(9000))
