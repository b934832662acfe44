"""
Record identity helpers.

Records may carry two identities: ``_id``, assigned by the store, and ``id``,
a store-independent token assigned by the service so records stay addressable
if they are ever moved to a different store.
"""

import re
import secrets
from typing import Any

from bson import ObjectId


NATIVE_ID_FIELD = "_id"
INDEPENDENT_ID_FIELD = "id"

# 32 random bytes, URL-safe base64 without padding
INDEPENDENT_ID_BYTES = 32
INDEPENDENT_ID_LENGTH = 43
NATIVE_ID_STRING_LENGTH = 24

_INDEPENDENT_ID_PATTERN = re.compile(r"^[A-Za-z0-9_-]{43}$")


def generate_independent_id() -> str:
    """
    Generate a store-independent record ID.
    
    Returns:
        str: 256-bit random token, always 43 characters
    """
    return secrets.token_urlsafe(INDEPENDENT_ID_BYTES)


def is_independent_id(value: Any) -> bool:
    """Check whether a value has the shape of a generated independent ID."""
    return isinstance(value, str) and bool(_INDEPENDENT_ID_PATTERN.match(value))


def is_native_id_string(value: Any) -> bool:
    """
    Check whether a value is the 24-character hex encoding of an ObjectId.
    
    Args:
        value: Candidate identifier
        
    Returns:
        bool: True if the value can be converted with ``to_native_id``
    """
    return (
        isinstance(value, str)
        and len(value) == NATIVE_ID_STRING_LENGTH
        and ObjectId.is_valid(value)
    )


def to_native_id(value: str) -> ObjectId:
    """
    Convert an encoded native ID to an ObjectId.
    
    Raises:
        ValueError: If the value is not a 24-character hex string
    """
    if not is_native_id_string(value):
        raise ValueError(f"Not an encoded native id: {value!r}")
    return ObjectId(value)
