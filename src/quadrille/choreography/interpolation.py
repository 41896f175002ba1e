"""
Timeline interpolation.

Maps a playback time onto the bracketing keyframe pair and a local phase,
and provides the scalar/point interpolation and easing helpers used by the
path builder.
"""
from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Sequence

from ..base import Point
from .script import Keyframe


class EasingType(Enum):
    """Easing function types for motion profiles."""
    NONE = "none"
    EASE_IN_OUT = "ease_in_out"


def linear_interpolate(start: float, end: float, t: float) -> float:
    """
    Linear interpolation between two values.

    Args:
        start: Starting value
        end: Ending value
        t: Interpolation factor in [0, 1]

    Returns:
        Interpolated value
    """
    return start + (end - start) * t


def lerp_point(start: Point, end: Point, t: float) -> Point:
    """Linear interpolation between two points."""
    return Point(linear_interpolate(start.x, end.x, t), linear_interpolate(start.y, end.y, t))


def apply_easing(t: float, easing: EasingType) -> float:
    """
    Apply easing function to interpolation factor.

    Uses a cubic ease-in-out for smooth acceleration and deceleration.

    Args:
        t: Linear interpolation factor in [0, 1]
        easing: Type of easing to apply

    Returns:
        Eased interpolation factor in [0, 1]
    """
    if easing == EasingType.EASE_IN_OUT:
        if t < 0.5:
            return 4 * t * t * t
        t1 = -2 * t + 2
        return 1 - t1 * t1 * t1 / 2
    return t


@dataclass(frozen=True)
class FramePosition:
    """Where a playback time falls in the keyframe sequence."""
    index: int
    next_index: Optional[int]
    phase: float  # progress from keyframe ``index`` towards ``next_index``, in [0, 1]


def locate(keyframes: Sequence[Keyframe], time: float) -> Optional[FramePosition]:
    """
    Find the keyframe containing ``time`` and the local phase within it.

    A keyframe covers [timestamp, timestamp + duration). Times before the
    first keyframe clamp to its start; times past the end clamp to the last
    keyframe at phase 1. Never extrapolates.

    Args:
        keyframes: Keyframes ordered by timestamp
        time: Playback time in seconds

    Returns:
        FramePosition, or None for an empty sequence
    """
    if not keyframes:
        return None
    if len(keyframes) == 1:
        return FramePosition(0, None, 0.0)

    last = len(keyframes) - 1
    if time < keyframes[0].timestamp:
        return FramePosition(0, 1, 0.0)

    for i, kf in enumerate(keyframes):
        if kf.timestamp <= time < kf.timestamp + kf.duration:
            phase = (time - kf.timestamp) / kf.duration if kf.duration > 0 else 0.0
            next_index = i + 1 if i < last else None
            return FramePosition(i, next_index, max(0.0, min(1.0, phase)))

    return FramePosition(last, None, 1.0)
