"""
Access key tools

An access key is the only capability a citizen holds for their report:
12 characters over a 32-symbol alphabet without I, O, 0 and 1.
Keys are displayed as XXXX-XXXX-XXXX; dashes and case are ignored on input.
"""
import secrets
from typing import Optional

ACCESS_KEY_ALPHABET = "ABCDEFGHJKLMNPQRSTUVWXYZ23456789"
ACCESS_KEY_LENGTH = 12


class AccessKeyError(ValueError):
    """Raised with a user-facing message when an access key is rejected"""


def generate_access_key() -> str:
    """
    Generate a 12-character access key

    Each character is an independent uniform draw from the alphabet.
    Uniqueness is not checked here; the reports.access_key unique
    constraint rejects collisions at insert time.
    """
    return ''.join(secrets.choice(ACCESS_KEY_ALPHABET) for _ in range(ACCESS_KEY_LENGTH))


def normalize_access_key(key: Optional[str]) -> str:
    """Uppercase and strip dashes: 'abcd-efgh-jklm' -> 'ABCDEFGHJKLM'"""
    if not key:
        return ""
    return key.strip().upper().replace("-", "")


def validate_access_key(key: Optional[str]) -> bool:
    """
    Validate access key format

    Rules (after normalizing):
    - exactly 12 characters
    - every character in ABCDEFGHJKLMNPQRSTUVWXYZ23456789

    Examples:
    - ABCD-EFGH-JKLM ✓
    - abcdefghjklm ✓ (normalized to upper case)
    - ABCDEFGHIJKL ✗ (contains I)
    - ABCDEFGH ✗ (8 characters)
    """
    normalized = normalize_access_key(key)
    if len(normalized) != ACCESS_KEY_LENGTH:
        return False
    return all(c in ACCESS_KEY_ALPHABET for c in normalized)


def parse_access_key(key: Optional[str]) -> str:
    """Return the normalized key or raise AccessKeyError with the reason"""
    if not key:
        raise AccessKeyError("Kode akses diperlukan")

    normalized = normalize_access_key(key)
    if len(normalized) != ACCESS_KEY_LENGTH:
        raise AccessKeyError("Kode akses harus 12 karakter")

    if any(c not in ACCESS_KEY_ALPHABET for c in normalized):
        raise AccessKeyError("Kode akses tidak valid")

    return normalized


def format_access_key(key: str) -> str:
    """Insert display dashes: ABCDEFGHJKLM -> ABCD-EFGH-JKLM"""
    if len(key) != ACCESS_KEY_LENGTH:
        return key
    return f"{key[0:4]}-{key[4:8]}-{key[8:12]}"
