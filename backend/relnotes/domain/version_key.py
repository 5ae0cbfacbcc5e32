from __future__ import annotations

# Largest signed 32-bit value; keys are stored as its complement.
MAX_VERSION_NUMBER = 2**31 - 1


def parse_version_number(version: str) -> int | None:
    digits = (version or "").replace(".", "")
    if not digits or not digits.isascii() or not digits.isdigit():
        return None
    value = int(digits)
    if value > MAX_VERSION_NUMBER:
        return None
    return value


def encode_version_key(version: str) -> str:
    """Map a dotted numeric version to a row key where ascending key order is newest first.

    Unparseable input collapses to number 0, which is the oldest possible key.
    Keys are not zero-padded, so versions with a different digit count may not
    sort numerically when the keys are compared as strings.
    """
    numeric_version = parse_version_number(version)
    if numeric_version is None:
        numeric_version = 0
    return str(MAX_VERSION_NUMBER - numeric_version)
