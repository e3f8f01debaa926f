import html
import re
from typing import Any, Optional

CONTROL_CHARS = re.compile(r"[\x00-\x08\x0B\x0C\x0E-\x1F\x7F]")


def clean_text(value: Optional[str]) -> Optional[str]:
    """
    Normalize user text before it is stored: drop control characters and
    surrounding whitespace. The length validated by the schema is the length
    that gets stored.
    """
    if value is None or not isinstance(value, str):
        return value
    return CONTROL_CHARS.sub("", value).strip()


def clean_fields(data: dict[str, Any], fields: list[str]) -> dict[str, Any]:
    """Return a copy of ``data`` with the named string (or list of string) fields cleaned"""
    cleaned = dict(data)
    for key in fields:
        if isinstance(cleaned.get(key), str):
            cleaned[key] = clean_text(cleaned[key])
        elif isinstance(cleaned.get(key), list):
            cleaned[key] = [clean_text(item) if isinstance(item, str) else item for item in cleaned[key]]
    return cleaned


def sanitize_string(value: Optional[str]) -> Optional[str]:
    """
    Sanitize a string for output by escaping HTML special characters to prevent XSS.
    Returns None if input is None.
    """
    if value is None:
        return None
    if not isinstance(value, str):
        return value
    return html.escape(clean_text(value), quote=True)


def sanitize_list(values: Optional[list]) -> list:
    return [sanitize_string(v) for v in values or []]
