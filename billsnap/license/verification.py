"""Offline license key verification helpers.

Keys look like ``BILLSNAP-AB12-CD34-EF56-XXXX`` where the last group is a
checksum over the three middle groups. The checksum only catches typos; it is
trivially forgeable and is not a security boundary.
"""

from __future__ import annotations

import random
import re
import string
from typing import Optional, Tuple

LICENSE_KEY_PREFIX = "BILLSNAP"
CHECKSUM_MULTIPLIER = 7919
CHECKSUM_MODULUS = 65536
SEGMENT_LENGTH = 4

_BASE36_DIGITS = string.digits + string.ascii_uppercase
_SEGMENT_RE = re.compile(r"[A-Z0-9]{4}")


def _to_base36(value: int) -> str:
    if value == 0:
        return "0"
    digits = []
    while value:
        value, rem = divmod(value, 36)
        digits.append(_BASE36_DIGITS[rem])
    return "".join(reversed(digits))


def normalize_key(value: str) -> str:
    return value.strip().upper()


def calculate_checksum(value: str) -> str:
    """Return the 4-character checksum group for the concatenated body groups."""
    total = sum(ord(ch) for ch in value)
    check = _to_base36((total * CHECKSUM_MULTIPLIER) % CHECKSUM_MODULUS)
    return check.rjust(SEGMENT_LENGTH, "0")[:SEGMENT_LENGTH]


def check_key_format(key: object) -> Tuple[bool, str]:
    """Validate an offline key and return (ok, reason)."""
    if not key or not isinstance(key, str):
        return False, "Empty key"

    parts = key.upper().split("-")
    if len(parts) != 5:
        return False, "Malformed key"
    if parts[0] != LICENSE_KEY_PREFIX:
        return False, "Wrong product prefix"
    for part in parts[1:]:
        if not _SEGMENT_RE.fullmatch(part):
            return False, "Malformed key"

    if parts[4] != calculate_checksum("".join(parts[1:4])):
        return False, "Checksum mismatch"
    return True, "OK"


def validate_key(key: object) -> bool:
    ok, _reason = check_key_format(key)
    return ok


def _random_segment(rng: random.Random) -> str:
    return "".join(rng.choice(_BASE36_DIGITS) for _ in range(SEGMENT_LENGTH))


def generate_sample_key(rng: Optional[random.Random] = None) -> str:
    """Return a random key that passes :func:`validate_key`."""
    rng = rng or random.Random()
    body = [_random_segment(rng) for _ in range(3)]
    checksum = calculate_checksum("".join(body))
    return "-".join([LICENSE_KEY_PREFIX, *body, checksum])
