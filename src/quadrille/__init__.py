"""
Quadrille - keyframe choreography for equestrian drill teams.

Riders are placed on an arena plan at a series of keyframes; playback
carries each rider between keyframes on a smooth path that starts and ends
along their heading.

Usage:
    from quadrille import Point
    from quadrille.choreography import load_drill, resolve_entities

    drill = load_drill("opening.json")
    for rider in resolve_entities(drill.keyframes, 3.0):
        print(rider.label, rider.position)
"""
from .base import (
    Point,
    ORIGIN,
    TWO_PI,
    deg2rad,
    rad2deg,
    normalize_angle,
    wrap_angle,
    angle_difference,
    lerp_angle,
    centroid,
)

__version__ = "0.1.0"

__all__ = [
    "Point",
    "ORIGIN",
    "TWO_PI",
    "deg2rad",
    "rad2deg",
    "normalize_angle",
    "wrap_angle",
    "angle_difference",
    "lerp_angle",
    "centroid",
]
