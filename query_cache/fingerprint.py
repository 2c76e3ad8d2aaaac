"""
Deterministic fingerprints for query descriptors.
"""

import hashlib
import json
from datetime import date, datetime, time
from decimal import Decimal
from enum import Enum
from typing import Any, Dict, Mapping
from uuid import UUID

from .query import QueryDescriptor


TYPE_TAG = "$type"


def _escape_key(key: str) -> str:
    """Keep user keys from colliding with the type tag (``$type`` -> ``$$type``)."""
    if key.startswith("$") and key.lstrip("$") == "type":
        return "$" + key
    return key


def _tagged(type_name: str, value: Any) -> Dict[str, Any]:
    return {TYPE_TAG: type_name, "value": value}


def _sorted_json(items):
    return sorted(items, key=lambda item: json.dumps(item, sort_keys=True))


def canonicalize(value: Any) -> Any:
    """Reduce a predicate value to plain JSON types with a stable layout.

    Mapping keys are sorted at dump time and sets are sorted. Lists and
    tuples keep their order. Mappings with non-string keys and values with
    no JSON form are wrapped as ``{"$type": ..., "value": ...}`` so they
    never match a plain string or string-keyed mapping.
    """
    if isinstance(value, Enum):
        return canonicalize(value.value)
    if value is None or isinstance(value, (bool, int, float, str)):
        return value
    if isinstance(value, Mapping):
        if all(isinstance(key, str) for key in value):
            return {_escape_key(key): canonicalize(item) for key, item in value.items()}
        pairs = [[canonicalize(key), canonicalize(item)] for key, item in value.items()]
        return _tagged("map", _sorted_json(pairs))
    if isinstance(value, (set, frozenset)):
        return _sorted_json(canonicalize(item) for item in value)
    if isinstance(value, (list, tuple)):
        return [canonicalize(item) for item in value]
    if isinstance(value, (datetime, date, time)):
        return value.isoformat()
    if isinstance(value, (UUID, Decimal)):
        return str(value)
    if isinstance(value, bytes):
        return value.hex()
    if hasattr(value, "model_dump"):
        return canonicalize(value.model_dump(mode="json"))
    # ObjectId and friends are identified by type and string form
    return _tagged(type(value).__name__, str(value))


def canonical_form(descriptor: QueryDescriptor) -> Dict[str, Any]:
    """The semantic content of a descriptor, ready for ordered serialization."""
    return {
        "collection": descriptor.collection,
        "filter": canonicalize(descriptor.filter),
        "projection": sorted(set(descriptor.projection)),
        # Sort key order changes results, so it is kept as built
        "sort": [[name, direction] for name, direction in descriptor.sort],
        "limit": descriptor.limit,
        "skip": descriptor.skip,
        "single": descriptor.single,
    }


def fingerprint(descriptor: QueryDescriptor) -> str:
    """Cache key for ``descriptor`` within a namespace: ``<collection>:<sha256>``."""
    encoded = json.dumps(
        canonical_form(descriptor),
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
    )
    digest = hashlib.sha256(encoded.encode("utf-8")).hexdigest()
    return f"{descriptor.collection}:{digest}"
