"""
Keyframe pacing from gait speeds.

Derives how long a keyframe should last from how far its entities travel
to the next keyframe and how fast their gait lets them go.
"""
from __future__ import annotations

from typing import Optional

from .script import GAIT_SPEEDS_MPS, Keyframe

MIN_DURATION_S = 0.5
MAX_DURATION_S = 120.0


def max_distance_moved(from_kf: Keyframe, to_kf: Keyframe) -> float:
    """
    Largest distance (meters) any entity travels from ``from_kf`` to ``to_kf``.

    Entities are matched by label. Returns 0 when nothing matches.
    """
    max_dist = 0.0
    for entity in to_kf.entities:
        origin = from_kf.find(entity.label)
        if origin is None:
            continue
        max_dist = max(max_dist, origin.position.distance_to(entity.position))
    return max_dist


def compute_duration(
    keyframe: Keyframe,
    next_keyframe: Optional[Keyframe],
    speed_multiplier: float = 1.0,
) -> float:
    """
    Duration for ``keyframe`` so the slowest entity arrives on time.

    Each matched entity needs distance / (gait speed x multiplier) seconds;
    the longest of those wins, clamped to [MIN_DURATION_S, MAX_DURATION_S].

    Args:
        keyframe: Keyframe whose duration is being fitted
        next_keyframe: Following keyframe (None for the last one)
        speed_multiplier: Scales every gait speed (1.0 = nominal)

    Returns:
        Duration in seconds; the current duration for the last keyframe,
        a non-positive multiplier, or when no matched entity moves
    """
    if next_keyframe is None or speed_multiplier <= 0:
        return keyframe.duration

    longest = 0.0
    moved = False
    for entity in keyframe.entities:
        target = next_keyframe.find(entity.label)
        if target is None:
            continue
        dist = entity.position.distance_to(target.position)
        if dist == 0.0:
            continue
        moved = True
        speed = GAIT_SPEEDS_MPS[entity.speed_class] * speed_multiplier
        longest = max(longest, dist / speed)

    if not moved:
        return keyframe.duration
    return max(MIN_DURATION_S, min(MAX_DURATION_S, longest))
