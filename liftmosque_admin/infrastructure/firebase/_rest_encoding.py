"""Encode/decode Python values to/from Firestore REST API Value objects."""

import base64
import math
from datetime import datetime
from typing import Any

from liftmosque_admin.shared.utils.datetime import parse_rfc3339, to_rfc3339


def encode_value(v: Any) -> dict:
    """Encode one Python value as a Firestore Value."""
    if v is None:
        return {"nullValue": None}
    if isinstance(v, bool):
        return {"booleanValue": v}
    if isinstance(v, int):
        return {"integerValue": str(v)}
    if isinstance(v, float):
        if math.isnan(v):
            return {"doubleValue": "NaN"}
        if math.isinf(v):
            return {"doubleValue": "Infinity" if v > 0 else "-Infinity"}
        return {"doubleValue": v}
    if isinstance(v, datetime):
        return {"timestampValue": to_rfc3339(v)}
    if isinstance(v, str):
        return {"stringValue": v}
    if isinstance(v, bytes):
        return {"bytesValue": base64.standard_b64encode(v).decode("ascii")}
    if isinstance(v, (list, tuple)):
        return {"arrayValue": {"values": [encode_value(x) for x in v]}}
    if isinstance(v, dict):
        return {"mapValue": {"fields": {k: encode_value(x) for k, x in v.items()}}}
    raise TypeError(f"Unsupported Firestore value type: {type(v)}")


def encode_fields(data: dict[str, Any]) -> dict:
    """Convert a Python dict to a Firestore REST Document body ({"fields": ...})."""
    return {"fields": {k: encode_value(v) for k, v in data.items()}}


def decode_value(obj: dict) -> Any:
    """Decode one Firestore Value. GeoPoints become {"latitude", "longitude"} dicts."""
    if "nullValue" in obj:
        return None
    if "booleanValue" in obj:
        return obj["booleanValue"]
    if "integerValue" in obj:
        return int(obj["integerValue"])
    if "doubleValue" in obj:
        # JSON cannot carry NaN/Infinity, Firestore sends them as strings.
        return float(obj["doubleValue"])
    if "timestampValue" in obj:
        return parse_rfc3339(obj["timestampValue"])
    if "stringValue" in obj:
        return obj["stringValue"]
    if "bytesValue" in obj:
        return base64.standard_b64decode(obj["bytesValue"])
    if "referenceValue" in obj:
        return obj["referenceValue"]
    if "geoPointValue" in obj:
        point = obj["geoPointValue"] or {}
        return {
            "latitude": float(point.get("latitude", 0.0)),
            "longitude": float(point.get("longitude", 0.0)),
        }
    if "arrayValue" in obj:
        vals = (obj.get("arrayValue") or {}).get("values") or []
        return [decode_value(x) for x in vals]
    if "mapValue" in obj:
        fields = (obj.get("mapValue") or {}).get("fields") or {}
        return {k: decode_value(x) for k, x in fields.items()}
    return None


def decode_fields(document: dict | None) -> dict:
    """Convert a Firestore REST Document resource to its decoded fields dict."""
    if not document:
        return {}
    return {k: decode_value(v) for k, v in (document.get("fields") or {}).items()}


def document_id(document: dict) -> str:
    """Last path segment of a Document resource name."""
    name = document.get("name", "")
    return name.rsplit("/", 1)[-1] if name else ""


def document_update_time(document: dict) -> datetime | None:
    """Document resource updateTime as a UTC datetime, if present."""
    raw = document.get("updateTime")
    return parse_rfc3339(raw) if raw else None
