# mailtrust/verifier/syntax_engine.py
import re
from typing import Tuple

from ..errors import InputError

# RFC-light regex (practical)
EMAIL_REGEX = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


def is_syntax_valid(addr: str) -> bool:
    if not addr or "@" not in addr:
        return False
    return EMAIL_REGEX.match(addr) is not None


def normalize_email(addr: str) -> str:
    if not addr:
        return ""
    return addr.strip().lower()


def split_email(addr: str) -> Tuple[str, str]:
    """
    Split an address into (username, domain), both lowercased.
    Raises InputError when the address has no single '@' with text on both sides.
    """
    if not addr or "@" not in addr:
        raise InputError(f"Invalid email format: {addr!r}")
    username, _, domain = normalize_email(addr).partition("@")
    if not username or not domain or "@" in domain:
        raise InputError(f"Invalid email format: {addr!r}")
    return username, domain
