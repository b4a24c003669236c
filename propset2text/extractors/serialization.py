import base64
import datetime
import typing
import uuid
from dataclasses import fields, is_dataclass

# Type marker key added to every serialized dataclass
_TYPE_KEY = "_type"


def _bytes_to_base64(data: bytes | bytearray) -> str:
    return base64.b64encode(bytes(data)).decode("utf-8")


def _serialize_for_json(value: typing.Any, include_binary: bool) -> typing.Any:
    if isinstance(value, (bytes, bytearray)):
        # Thumbnails can be large; only emit them on request
        return {"_bytes": _bytes_to_base64(value)} if include_binary else None
    if isinstance(value, (datetime.datetime, datetime.date)):
        return value.isoformat()
    if isinstance(value, uuid.UUID):
        return str(value)
    if is_dataclass(value) and not isinstance(value, type):
        result = {
            _TYPE_KEY: type(value).__name__,
        }
        for item in fields(value):
            result[item.name] = _serialize_for_json(
                getattr(value, item.name), include_binary
            )
        return result
    if isinstance(value, dict):
        return {
            str(key): _serialize_for_json(val, include_binary)
            for key, val in value.items()
        }
    if isinstance(value, (list, tuple, set)):
        return [_serialize_for_json(item, include_binary) for item in value]
    return value


def serialize_extraction(value: typing.Any, *, include_binary: bool = False) -> dict:
    """
    Convert an extraction result into JSON-compatible data.

    Binary payloads become ``{"_bytes": <base64>}`` when ``include_binary``
    is set and None otherwise.
    """
    serialized = _serialize_for_json(value, include_binary)
    if isinstance(serialized, dict):
        return serialized
    return {"value": serialized}
