"""
Deterministic canonical encoding for identifier derivation.

Pool and asset identifiers are hashes over canonical JSON, so the same
inputs produce the same id on every machine and Python version.
"""

from __future__ import annotations

import hashlib
import json
from typing import Any


def _reject_floats(value: Any) -> None:
    # Float repr differs across encoders; ids must only hash ints and strings.
    if isinstance(value, float):
        raise TypeError("floats are not allowed in canonical encoding")
    if isinstance(value, dict):
        for k, v in value.items():
            if not isinstance(k, str):
                raise TypeError("dict keys must be str for canonical encoding")
            _reject_floats(v)
    elif isinstance(value, (list, tuple)):
        for item in value:
            _reject_floats(item)


def canonical_json_bytes(value: Any) -> bytes:
    """UTF-8 JSON with sorted keys, no whitespace, no NaN, no floats."""
    _reject_floats(value)
    text = json.dumps(
        value,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        allow_nan=False,
    )
    return text.encode("utf-8")


def domain_sep_bytes(label: str, version: int = 1) -> bytes:
    """ASCII, NUL-terminated domain prefix so concatenations stay unambiguous."""
    if not isinstance(label, str) or not label:
        raise TypeError("label must be a non-empty str")
    if "\x00" in label:
        raise ValueError("label must not contain NUL")
    if not isinstance(version, int) or isinstance(version, bool) or version <= 0:
        raise ValueError("version must be a positive int")
    return b"launchpad:" + label.encode("ascii") + b":v" + str(version).encode("ascii") + b"\x00"


def sha256_hex(data: bytes) -> str:
    return "0x" + hashlib.sha256(data).hexdigest()


def derive_id(label: str, payload: Any) -> str:
    """sha256(domain_sep(label) || canonical_json(payload)) as 0x-hex."""
    return sha256_hex(domain_sep_bytes(label) + canonical_json_bytes(payload))
