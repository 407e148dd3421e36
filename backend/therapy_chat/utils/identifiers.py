"""
Identifier helpers.

Account and session ids reach the code as str, UUID, or bytes depending on
where they came from (token claim, stored document, URL path). Comparisons
go through ``canonical_id`` so that equal ids always compare equal.
"""

import uuid
from typing import Any


def canonical_id(value: Any) -> str:
    """
    Return the canonical string form of an identifier.

    UUIDs in any accepted spelling (braces, upper case, no hyphens) collapse
    to the lowercase hyphenated form; anything else is stripped text.
    """
    if isinstance(value, uuid.UUID):
        return str(value)
    if isinstance(value, bytes):
        if len(value) == 16:
            return str(uuid.UUID(bytes=value))
        value = value.decode("utf-8")
    text = str(value).strip()
    try:
        return str(uuid.UUID(text))
    except ValueError:
        return text


def same_id(left: Any, right: Any) -> bool:
    """Compare two identifiers by canonical form."""
    if left is None or right is None:
        return False
    return canonical_id(left) == canonical_id(right)


def is_uuid(value: str) -> bool:
    try:
        uuid.UUID(str(value))
    except ValueError:
        return False
    return True


def new_id() -> str:
    return str(uuid.uuid4())
