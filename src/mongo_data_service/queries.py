"""
ID query normalization.

Turns whatever a caller uses to point at records (a filter, a single id, or a
collection of ids) into a filter the store understands.
"""

from collections.abc import Mapping
from typing import Any, Dict

from .ids import INDEPENDENT_ID_FIELD, NATIVE_ID_FIELD, is_native_id_string, to_native_id


def create_id_query(id_or_query: Any, use_independent_ids: bool = True) -> Dict[str, Any]:
    """
    Create a store query selecting records by ID.

    Args:
        id_or_query: A filter mapping (returned unchanged), a single
            identifier, or a list/tuple/set of identifiers
        use_independent_ids: Let string identifiers also match the
            independent ``id`` field

    Returns:
        Dict: Store filter

    Example:
        create_id_query("5f1d7f3e9b1e8a3c4d5e6f70")
        # {'$or': [{'_id': ObjectId('5f1d7f3e9b1e8a3c4d5e6f70')},
        #          {'id': '5f1d7f3e9b1e8a3c4d5e6f70'}]}
    """
    if id_or_query is None:
        return {}

    if isinstance(id_or_query, Mapping):
        return id_or_query

    if isinstance(id_or_query, (list, tuple, set, frozenset)):
        if not id_or_query:
            # An empty $or is rejected by the server
            return match_nothing()
        return {
            "$or": [create_id_query(single_id, use_independent_ids) for single_id in id_or_query]
        }

    if isinstance(id_or_query, str):
        if is_native_id_string(id_or_query):
            query = {NATIVE_ID_FIELD: to_native_id(id_or_query)}
        else:
            query = {NATIVE_ID_FIELD: id_or_query}

        if use_independent_ids:
            query = {"$or": [query, {INDEPENDENT_ID_FIELD: id_or_query}]}
        return query

    # ObjectId, numbers, UUIDs and other scalars: literal native id match
    return {NATIVE_ID_FIELD: id_or_query}


def match_nothing() -> Dict[str, Any]:
    """Return a fresh query that selects no records."""
    return {NATIVE_ID_FIELD: {"$in": []}}


def native_id_of(record: Mapping) -> Any:
    """Return the record's native identity, or None if it has not been stored yet."""
    value = record.get(NATIVE_ID_FIELD)
    if value is None or (isinstance(value, str) and not value):
        return None
    return value
