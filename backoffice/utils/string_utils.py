"""
String helpers
"""

import re

_CAMEL_BOUNDARY = re.compile(r"(?<!^)(?=[A-Z])")


def to_snake_case(value: str) -> str:
    """createdAt -> created_at"""
    return _CAMEL_BOUNDARY.sub("_", value).lower()


def alpha_prefix(value: str, length: int = 3, fallback: str = "CRS") -> str:
    """Uppercase leading letters of a name, used for generated codes"""
    letters = re.sub(r"[^A-Za-z]", "", value or "")
    prefix = letters[:length].upper()
    return prefix if len(prefix) == length else (prefix + fallback)[:length]
