"""
Payload encoding for cached query results.

Results are stored as compact JSON. A sequence result becomes a JSON array
and a single record a JSON object, and that shape decides how the payload
is rehydrated on the way back out.
"""

import json
from collections.abc import Mapping, Sequence
from typing import Any, Optional, Type

from pydantic import ValidationError
from pydantic_core import PydanticSerializationError, to_jsonable_python

from .shared.errors import SerializationError


def to_plain(record: Any, model: Optional[Type[Any]] = None) -> Any:
    """Plain JSON-compatible representation of a single record.

    With a ``model`` every record must be an instance of it, and without one
    only plain mappings are accepted, so a cached payload always rehydrates
    to the same type the executor returned.
    """
    if record is None:
        return None
    if model is not None:
        if not isinstance(record, model):
            raise SerializationError(
                "Query result does not match the record model",
                {"model": getattr(model, "__name__", str(model)), "result_type": type(record).__name__}
            )
    elif not isinstance(record, Mapping):
        raise SerializationError(
            "Query results without a record model must be mappings",
            {"result_type": type(record).__name__}
        )
    if hasattr(record, "model_dump"):
        return record.model_dump(mode="json", by_alias=True)
    if isinstance(record, Mapping):
        return to_jsonable_python(dict(record))
    raise SerializationError(
        "Query results must be records or mappings",
        {"result_type": type(record).__name__}
    )


def serialize_result(result: Any, model: Optional[Type[Any]] = None) -> bytes:
    """Encode an executor result as a storage payload."""
    try:
        if isinstance(result, Sequence) and not isinstance(result, (str, bytes, bytearray)):
            plain = [to_plain(record, model) for record in result]
        else:
            plain = to_plain(result, model)
        return json.dumps(plain, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    except SerializationError:
        raise
    except (PydanticSerializationError, TypeError, ValueError) as exc:
        raise SerializationError(f"Result could not be serialized: {exc}") from exc


def _hydrate(model: Type[Any], document: Any) -> Any:
    if not isinstance(document, dict):
        raise SerializationError(
            "Cached record is not an object",
            {"model": getattr(model, "__name__", str(model)), "document_type": type(document).__name__}
        )
    try:
        if hasattr(model, "model_validate"):
            return model.model_validate(document)
        return model(**document)
    except (ValidationError, TypeError, ValueError) as exc:
        raise SerializationError(
            f"Cached record could not be rehydrated: {exc}",
            {"model": getattr(model, "__name__", str(model))}
        ) from exc


def rehydrate_result(payload: bytes, model: Optional[Type[Any]] = None) -> Any:
    """Decode a payload back into the data-access layer's record type.

    Without a model the plain decoded structure is returned.
    """
    try:
        data = json.loads(payload)
    except (UnicodeDecodeError, ValueError) as exc:
        raise SerializationError(f"Cached payload is not valid JSON: {exc}") from exc

    if data is None or model is None:
        return data
    if isinstance(data, list):
        return [_hydrate(model, document) for document in data]
    return _hydrate(model, data)
