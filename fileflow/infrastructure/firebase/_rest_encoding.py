"""Convert record values to and from the Firestore REST ``Value`` format."""

import base64
from datetime import UTC, datetime
from typing import Any


def encode_value(v: Any) -> dict:
    """Python value -> Firestore Value. Naive datetimes are taken as UTC."""
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        return {"doubleValue": v}
    if isinstance(v, datetime):
        if v.tzinfo is not None:
            v = v.astimezone(UTC)
        return {"timestampValue": v.strftime("%Y-%m-%dT%H:%M:%S.%fZ")}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, list | tuple):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v).__name__}")


def encode_fields(data: dict[str, Any]) -> dict:
    """Record dict -> Document body ``{"fields": {...}}``."""
    return {"fields": {k: encode_value(v) for k, v in data.items()}}


def decode_value(obj: dict) -> Any:
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return datetime.fromisoformat(obj["timestampValue"].replace("Z", "+00:00"))
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "arrayValue" in obj:
        values = obj["arrayValue"].get("values") or []
        return [decode_value(x) for x in values]
    if "mapValue" in obj:
        fields = obj["mapValue"].get("fields") or {}
        return {k: decode_value(x) for k, x in fields.items()}
    return None


def decode_fields(fields: dict | None) -> dict:
    """Document ``fields`` map -> record dict."""
    if not fields:
        return {}
    return {k: decode_value(v) for k, v in fields.items()}


def document_id(name: str) -> str:
    """Last path segment of a full document resource name."""
    return name.rsplit("/", 1)[-1] if name else ""
