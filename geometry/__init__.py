"""
Geometry package: distance primitives, polyline codec and route densification.

Public API:
- haversine_distance, point_to_segment_distance_approx, interpolate, path_length
- decode, encode (polyline codec)
- densify
"""
from .geomath import haversine_distance, point_to_segment_distance_approx, interpolate, path_length
from .polyline import decode, encode
from .densify import densify, DEFAULT_MAX_SEGMENT_M

__all__ = [
    "haversine_distance",
    "point_to_segment_distance_approx",
    "interpolate",
    "path_length",
    "decode",
    "encode",
    "densify",
    "DEFAULT_MAX_SEGMENT_M",
]
