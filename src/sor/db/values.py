"""SQL value codec — SQLite storage classes to and from JSON.

SQLite values are dynamically typed: INTEGER, REAL, TEXT, BLOB or NULL.
``sqlite3`` maps these onto ``int``, ``float``, ``str``, ``bytes`` and ``None``,
and JSON covers all of them except BLOB. Blobs travel as a tagged object::

    {"$blob": "<base64>"}

which is produced for result values and accepted for bound parameters.
"""

from __future__ import annotations

import base64
import binascii
from typing import Any, Union

SqlValue = Union[int, float, str, bytes, None]

BLOB_TAG = "$blob"

# SQLite INTEGER is a signed 64-bit value
INTEGER_MIN = -(2**63)
INTEGER_MAX = 2**63 - 1


class ParameterError(ValueError):
    """A request parameter cannot be bound as a SQL value."""


def encode_value(value: SqlValue) -> Any:
    """Convert a value read from SQLite into its JSON form."""
    if isinstance(value, (bytes, bytearray, memoryview)):
        return {BLOB_TAG: base64.b64encode(bytes(value)).decode("ascii")}
    return value


def encode_row(row: dict[str, SqlValue]) -> dict[str, Any]:
    return {key: encode_value(value) for key, value in row.items()}


def decode_param(value: Any) -> Any:
    """Convert a JSON parameter into a value ``sqlite3`` can bind.

    Only the tagged blob form is rewritten. Integers outside SQLite's range
    are rejected. Anything else is passed through unchanged so the engine
    reports unsupported types itself.
    """
    if isinstance(value, int) and not isinstance(value, bool) and not INTEGER_MIN <= value <= INTEGER_MAX:
        raise ParameterError(f"Integer parameter out of range: {value}")
    if isinstance(value, dict) and set(value) == {BLOB_TAG}:
        encoded = value[BLOB_TAG]
        if not isinstance(encoded, str):
            raise ParameterError(f"{BLOB_TAG} value must be a base64 string")
        try:
            return base64.b64decode(encoded, validate=True)
        except binascii.Error as e:
            raise ParameterError(f"Invalid base64 in {BLOB_TAG} parameter: {e}") from e
    return value


def decode_params(values: list[Any]) -> tuple[Any, ...]:
    return tuple(decode_param(v) for v in values)
