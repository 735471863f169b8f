"""Uniform response envelopes for resources and tools.

Success:  ``{"uri": ..., "success": True, "data": {...}}``
Failure:  ``{"uri": ..., "success": False, "error": "...", "code": "..."}``

Tool envelopes have the same shape without ``uri``.
"""

import datetime
import decimal
import json
from dataclasses import asdict, is_dataclass
from typing import Any, Dict, Optional

Envelope = Dict[str, Any]


def success_response(uri: Optional[str], data: Any) -> Envelope:
    envelope: Envelope = {"success": True, "data": data}
    if uri is not None:
        envelope = {"uri": uri, **envelope}
    return envelope


def error_response(uri: Optional[str], message: str, code: str) -> Envelope:
    envelope: Envelope = {"success": False, "error": message, "code": code}
    if uri is not None:
        envelope = {"uri": uri, **envelope}
    return envelope


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime.datetime, datetime.date, datetime.time)):
        return value.isoformat()
    if isinstance(value, decimal.Decimal):
        return str(value)
    if isinstance(value, (bytes, bytearray, memoryview)):
        return bytes(value).hex()
    if is_dataclass(value) and not isinstance(value, type):
        return asdict(value)
    return str(value)


def to_json(envelope: Envelope) -> str:
    """Serialize an envelope; values JSON cannot encode natively fall back to text."""
    return json.dumps(envelope, default=_json_default, indent=2)
