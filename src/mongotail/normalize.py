"""
Conversion of BSON documents into plain, JSON-safe mappings.

Driver-specific scalars are rendered in canonical extended JSON; every other
leaf becomes a string so downstream consumers never see driver types.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from typing import Any, Union

import bson
from bson import json_util
from bson.binary import Binary
from bson.code import Code
from bson.max_key import MaxKey
from bson.min_key import MinKey
from bson.objectid import ObjectId
from bson.raw_bson import RawBSONDocument
from bson.regex import Regex
from bson.timestamp import Timestamp

NormalizedValue = Union[str, dict[str, Any]]

_EXTENDED_JSON_TYPES = (Binary, bytes, Code, MaxKey, MinKey, Timestamp, Regex, re.Pattern)


def _extended_json(value: Any) -> dict[str, Any]:
    return json.loads(json_util.dumps(value, json_options=json_util.CANONICAL_JSON_OPTIONS))


def normalize_value(value: Any) -> NormalizedValue:
    if isinstance(value, Mapping):
        return normalize(value)
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, _EXTENDED_JSON_TYPES):
        return _extended_json(value)
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def normalize(document: Mapping[str, Any]) -> dict[str, NormalizedValue]:
    """Recursively convert a document, keeping key order."""
    return {str(key): normalize_value(value) for key, value in document.items()}


def message_size(document: Mapping[str, Any]) -> int:
    """Size in bytes of the document's BSON encoding."""
    if isinstance(document, RawBSONDocument):
        return len(document.raw)
    return len(bson.encode(document))
