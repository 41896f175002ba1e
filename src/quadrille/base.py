"""
Geometry primitives shared by the choreography engine.

This module contains the small value types and angle helpers used everywhere:
- Point dataclass (meters from the arena origin)
- deg2rad/rad2deg helpers
- angle normalization and shortest-arc interpolation
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Iterable, Optional

TWO_PI = 2.0 * math.pi


def deg2rad(degrees: float) -> float:
    """Convert degrees to radians."""
    return degrees * math.pi / 180.0


def rad2deg(radians: float) -> float:
    """Convert radians to degrees."""
    return radians * 180.0 / math.pi


@dataclass(frozen=True)
class Point:
    """A 2D coordinate (or vector) in meters."""
    x: float
    y: float

    def __add__(self, other: Point) -> Point:
        return Point(self.x + other.x, self.y + other.y)

    def __sub__(self, other: Point) -> Point:
        return Point(self.x - other.x, self.y - other.y)

    def __mul__(self, factor: float) -> Point:
        return Point(self.x * factor, self.y * factor)

    __rmul__ = __mul__

    def __neg__(self) -> Point:
        return Point(-self.x, -self.y)

    def dot(self, other: Point) -> float:
        return self.x * other.x + self.y * other.y

    def length(self) -> float:
        return math.hypot(self.x, self.y)

    def distance_to(self, other: Point) -> float:
        return math.hypot(other.x - self.x, other.y - self.y)

    def normalized(self) -> Point:
        """Unit vector in the same direction; the zero vector stays zero."""
        mag = self.length()
        if mag == 0.0:
            return Point(0.0, 0.0)
        return Point(self.x / mag, self.y / mag)

    def angle(self) -> float:
        """Direction of this vector in [0, 2π)."""
        return normalize_angle(math.atan2(self.y, self.x))

    def rotated(self, angle: float, about: Optional[Point] = None) -> Point:
        """Rotate counter-clockwise by ``angle`` radians around ``about`` (origin by default)."""
        cx, cy = (about.x, about.y) if about is not None else (0.0, 0.0)
        dx = self.x - cx
        dy = self.y - cy
        cos = math.cos(angle)
        sin = math.sin(angle)
        return Point(cx + dx * cos - dy * sin, cy + dx * sin + dy * cos)


ORIGIN = Point(0.0, 0.0)


def heading_vector(angle: float) -> Point:
    """Unit vector pointing along ``angle`` (0 = +x, π/2 = +y)."""
    return Point(math.cos(angle), math.sin(angle))


def centroid(points: Iterable[Point]) -> Point:
    """Arithmetic mean of ``points``; the origin for an empty input."""
    sum_x = 0.0
    sum_y = 0.0
    count = 0
    for p in points:
        sum_x += p.x
        sum_y += p.y
        count += 1
    if count == 0:
        return ORIGIN
    return Point(sum_x / count, sum_y / count)


def normalize_angle(angle: float) -> float:
    """Map any angle into [0, 2π)."""
    result = math.fmod(angle, TWO_PI)
    if result < 0.0:
        result += TWO_PI
    # -1e-17 + 2π rounds up to exactly 2π
    if result >= TWO_PI:
        result -= TWO_PI
    return result


def wrap_angle(angle: float) -> float:
    """Map any angle into (-π, π]."""
    result = normalize_angle(angle)
    if result > math.pi:
        result -= TWO_PI
    return result


def angle_difference(start: float, end: float) -> float:
    """Signed shortest rotation from ``start`` to ``end``, in (-π, π]."""
    return wrap_angle(normalize_angle(end) - normalize_angle(start))


def lerp_angle(start: float, end: float, t: float) -> float:
    """
    Interpolate between two headings along the shortest arc.

    Args:
        start: Starting heading in radians (any range)
        end: Ending heading in radians (any range)
        t: Interpolation factor in [0, 1]

    Returns:
        Interpolated heading in [0, 2π)
    """
    start_norm = normalize_angle(start)
    return normalize_angle(start_norm + angle_difference(start_norm, end) * t)
