"""Translate semantic page parameters into Confluence query parameters."""

from typing import Any, List, Mapping, Optional, Tuple


# Semantic key -> wire key, for keys the API spells differently
WIRE_KEYS = {
    "space_id": "space-id",
    "body_format": "body-format",
}


def build_query_params(params: Optional[Mapping[str, Any]]) -> List[Tuple[str, str]]:
    """
    Build ordered query pairs from a parameter mapping.

    List values (space ids, statuses, page ids) are comma-joined, everything
    else is stringified. Unknown keys are sent as-is and None values skipped.

    Args:
        params: Semantic parameters, e.g. {"space_id": [1, 2], "limit": 25}

    Returns:
        List of (key, value) string pairs in input order
    """
    query = []
    for key, value in (params or {}).items():
        if value is None:
            continue
        query.append((WIRE_KEYS.get(key, key), _stringify(value)))
    return query


def _stringify(value: Any) -> str:
    if isinstance(value, (list, tuple)):
        return ",".join(str(v) for v in value)
    return str(value)
