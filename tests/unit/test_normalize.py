"""
Unit tests for BSON document normalization.
"""

import re
from collections import OrderedDict
from datetime import datetime, timezone

import bson
from bson import SON
from bson.binary import Binary
from bson.code import Code
from bson.max_key import MaxKey
from bson.min_key import MinKey
from bson.objectid import ObjectId
from bson.raw_bson import RawBSONDocument
from bson.regex import Regex
from bson.timestamp import Timestamp

from mongotail import message_size, normalize


def test_object_id_becomes_hex_string():
    oid = ObjectId("5f1b2c3d4e5f6a7b8c9d0e1f")
    out = normalize({"a": {"b": {"_id": oid}}})
    assert out["a"]["b"]["_id"] == "5f1b2c3d4e5f6a7b8c9d0e1f"
    assert out["a"]["b"]["_id"] == str(oid)


def test_nested_depth_three_keeps_all_keys():
    doc = {"l1": {"l2a": {"l3": "x", "l3b": "y"}, "l2b": "z"}, "top": "t"}
    out = normalize(doc)
    assert out == doc
    assert list(out["l1"]["l2a"]) == ["l3", "l3b"]


def test_key_order_preserved():
    doc = SON([("z", 1), ("a", 2), ("m", {"y": 1, "b": 2})])
    out = normalize(doc)
    assert list(out) == ["z", "a", "m"]
    assert list(out["m"]) == ["y", "b"]


def test_scalars_are_stringified():
    ts = datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc)
    out = normalize({"i": 42, "f": 1.5, "b": True, "d": ts, "s": "str", "n": None})
    assert out == {"i": "42", "f": "1.5", "b": "true", "d": str(ts), "s": "str", "n": ""}


def test_lists_are_stringified_whole():
    out = normalize({"tags": ["a", "b"]})
    assert out["tags"] == str(["a", "b"])


def test_driver_types_use_extended_json():
    doc = OrderedDict(
        [
            ("bin", Binary(b"\x01\x02", 5)),
            ("code", Code("function() {}")),
            ("scoped", Code("return x", {"x": 1})),
            ("min", MinKey()),
            ("max", MaxKey()),
            ("ts", Timestamp(1700000000, 3)),
            ("regex", Regex("^ab", "i")),
            ("pattern", re.compile("^cd")),
        ]
    )
    out = normalize(doc)
    assert out["bin"] == {"$binary": {"base64": "AQI=", "subType": "05"}}
    assert out["code"] == {"$code": "function() {}"}
    assert out["scoped"]["$code"] == "return x"
    assert out["min"] == {"$minKey": 1}
    assert out["max"] == {"$maxKey": 1}
    assert out["ts"] == {"$timestamp": {"t": 1700000000, "i": 3}}
    assert out["regex"] == {"$regularExpression": {"pattern": "^ab", "options": "i"}}
    assert out["pattern"]["$regularExpression"]["pattern"] == "^cd"


def test_non_string_keys_stringified():
    assert normalize({1: "a"}) == {"1": "a"}


def test_normalize_does_not_mutate_input():
    oid = ObjectId()
    doc = {"_id": oid, "n": {"x": 1}}
    normalize(doc)
    assert doc == {"_id": oid, "n": {"x": 1}}


def test_message_size_is_bson_length():
    doc = {"_id": ObjectId(), "msg": "hello"}
    assert message_size(doc) == len(bson.encode(doc))


def test_message_size_of_raw_document():
    raw = RawBSONDocument(bson.encode({"a": 1}))
    assert message_size(raw) == len(raw.raw)
    assert normalize(raw) == {"a": "1"}
