"""
Parsing of externally supplied identifiers.
"""

from typing import Optional, Union
from uuid import UUID


def parse_identifier(value: Union[str, UUID, None]) -> Optional[UUID]:
    """
    Parse an event or ticket id as received from a caller or a QR scan.

    Surrounding whitespace is ignored. Returns None for empty or malformed
    input so callers can treat it the same as an unknown id.
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    text = str(value).strip()
    if not text:
        return None
    try:
        return UUID(text)
    except ValueError:
        return None
