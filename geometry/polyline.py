"""
Purpose: Encoded polyline codec (precision 1e-5).
What it does:
- decode: encoded string -> ordered list of Coordinate
- encode: ordered coordinates -> encoded string (used for synthesized fallback routes)

Encoding reference:
https://developers.google.com/maps/documentation/utilities/polylinealgorithm

Each value is a zig-zag signed delta, split into 5-bit chunks, least significant
first; every chunk except the last carries the 0x20 continuation bit and the
result is offset by 63 into printable ASCII. Values come in (lat, lon) pairs.
"""
from __future__ import annotations

from typing import List, Sequence

from routing.errors import DecodeError
from routing.models import Coordinate

PRECISION = 1e5

_MIN_CHAR = 63   # '?'
_MAX_CHAR = 126  # '~'
# 7 chunks (35 bits) hold any coordinate delta at 1e-5 precision
_MAX_VALUE_SHIFT = 35


def decode(encoded: str) -> List[Coordinate]:
    """
    Decode an encoded polyline into coordinates.

    An empty string decodes to []. Raises DecodeError when the string ends in
    the middle of a value, when it holds a latitude without its longitude,
    when it contains a character outside the polyline alphabet, or when a
    value runs longer than any coordinate delta can be. A point that
    decodes outside the valid range raises InvalidCoordinate.
    """
    if not encoded:
        return []

    values = _decode_values(encoded)
    if len(values) % 2 != 0:
        raise DecodeError(
            f"polyline holds {len(values)} values; expected latitude/longitude pairs"
        )

    points: List[Coordinate] = []
    lat = 0
    lon = 0
    for index in range(0, len(values), 2):
        lat += values[index]
        lon += values[index + 1]
        points.append(Coordinate(latitude=lat / PRECISION, longitude=lon / PRECISION))
    return points


def encode(coordinates: Sequence[Coordinate]) -> str:
    """
    Encode coordinates into a polyline string. Values are rounded to 1e-5,
    so decode(encode(points)) reproduces points to within that precision.
    """
    chunks: List[str] = []
    prev_lat = 0
    prev_lon = 0
    for point in coordinates:
        lat = int(round(point.latitude * PRECISION))
        lon = int(round(point.longitude * PRECISION))
        chunks.append(_encode_value(lat - prev_lat))
        chunks.append(_encode_value(lon - prev_lon))
        prev_lat, prev_lon = lat, lon
    return "".join(chunks)


# -------------------------
# Internal helpers
# -------------------------

def _decode_values(encoded: str) -> List[int]:
    """Split the string into signed integer deltas."""
    values: List[int] = []
    result = 0
    shift = 0
    in_value = False

    for position, char in enumerate(encoded):
        code = ord(char)
        if code < _MIN_CHAR or code > _MAX_CHAR:
            raise DecodeError(f"invalid polyline character {char!r} at position {position}")

        if shift >= _MAX_VALUE_SHIFT:
            raise DecodeError(f"polyline value too long at position {position}")

        chunk = code - _MIN_CHAR
        result |= (chunk & 0x1F) << shift
        shift += 5
        in_value = True

        if chunk < 0x20:
            # last chunk of this value: undo the zig-zag sign folding
            values.append(~(result >> 1) if result & 1 else result >> 1)
            result = 0
            shift = 0
            in_value = False

    if in_value:
        raise DecodeError("polyline ends inside an unterminated value")
    return values


def _encode_value(value: int) -> str:
    value = ~(value << 1) if value < 0 else value << 1
    out = []
    while value >= 0x20:
        out.append(chr((0x20 | (value & 0x1F)) + _MIN_CHAR))
        value >>= 5
    out.append(chr(value + _MIN_CHAR))
    return "".join(out)
