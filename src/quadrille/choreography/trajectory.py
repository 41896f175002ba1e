"""
Path building and playback resolution.

Turns pairs of oriented keyframe poses into cubic Bezier paths whose end
tangents follow the entity's heading, samples them at constant speed along
true arc length, and resolves what every entity looks like at a playback
time. Also compiles whole drills into fixed-interval waypoints and path
previews.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, replace
from typing import Iterator, List, Optional, Sequence

import numpy as np

from ..base import Point, angle_difference, heading_vector, lerp_angle, normalize_angle
from .interpolation import EasingType, apply_easing, lerp_point, locate
from .script import Drill, Entity, Keyframe, Label


@dataclass(frozen=True)
class PathConfig:
    """Tuning for path shape and sampling."""
    curve_factor: float = 0.4       # control arm length as a fraction of the chord
    curve_cap_m: float = 10.0       # longest control arm before the turn boost
    turn_boost: float = 0.5         # extra arm length for a full reversal
    samples_per_curve: int = 32
    heading_threshold_m: float = 4.0  # below this, headings lerp instead of following the tangent
    ease_gait_changes: bool = True


DEFAULT_PATH_CONFIG = PathConfig()


@dataclass(frozen=True)
class BezierCurve:
    """Cubic Bezier curve given by its four control points."""
    p0: Point
    p1: Point
    p2: Point
    p3: Point

    def control_points(self) -> np.ndarray:
        return np.array([[p.x, p.y] for p in (self.p0, self.p1, self.p2, self.p3)], dtype=float)

    def point_at(self, t: float) -> Point:
        mt = 1.0 - t
        a = mt * mt * mt
        b = 3 * mt * mt * t
        c = 3 * mt * t * t
        d = t * t * t
        return Point(
            a * self.p0.x + b * self.p1.x + c * self.p2.x + d * self.p3.x,
            a * self.p0.y + b * self.p1.y + c * self.p2.y + d * self.p3.y,
        )

    def derivative_at(self, t: float) -> Point:
        mt = 1.0 - t
        return (
            (self.p1 - self.p0) * (3 * mt * mt)
            + (self.p2 - self.p1) * (6 * mt * t)
            + (self.p3 - self.p2) * (3 * t * t)
        )


def curve_strength(
    from_pos: Point,
    from_heading: float,
    to_pos: Point,
    to_heading: float,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> float:
    """Control arm length: a share of the chord, capped, then boosted by how sharply the entity turns."""
    base = min(from_pos.distance_to(to_pos) * config.curve_factor, config.curve_cap_m)
    turn = abs(angle_difference(from_heading, to_heading))
    return base * (1.0 + (turn / math.pi) * config.turn_boost)


def build_curve(
    from_pos: Point,
    from_heading: float,
    to_pos: Point,
    to_heading: float,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> BezierCurve:
    """
    Build the path between two oriented poses.

    The curve leaves ``from_pos`` along ``from_heading`` and arrives at
    ``to_pos`` along ``to_heading``. Coincident endpoints give a valid
    zero-length curve.

    Args:
        from_pos: Starting position
        from_heading: Starting heading in radians
        to_pos: Ending position
        to_heading: Ending heading in radians
        config: Path tuning

    Returns:
        BezierCurve with p0 = from_pos and p3 = to_pos
    """
    strength = curve_strength(from_pos, from_heading, to_pos, to_heading, config)
    return BezierCurve(
        p0=from_pos,
        p1=from_pos + heading_vector(from_heading) * strength,
        p2=to_pos - heading_vector(to_heading) * strength,
        p3=to_pos,
    )


@dataclass(frozen=True)
class PathSample:
    """Position and unit direction of travel at one point on a path."""
    position: Point
    tangent: Point


class SampledPath:
    """
    A curve evaluated at evenly spaced parameter values.

    Behaves as an ordered sequence of PathSample and keeps the cumulative
    chord lengths needed to walk the path by distance.
    """

    def __init__(self, positions: np.ndarray, tangents: np.ndarray):
        if len(positions) < 2:
            raise ValueError("A sampled path needs at least 2 samples")
        self.positions = positions
        self.tangents = tangents
        segments = np.hypot(*np.diff(positions, axis=0).T)
        self.cumulative = np.concatenate(([0.0], np.cumsum(segments)))
        self.length = float(self.cumulative[-1])

    def __len__(self) -> int:
        return len(self.positions)

    def __getitem__(self, index: int) -> PathSample:
        x, y = self.positions[index]
        tx, ty = self.tangents[index]
        return PathSample(Point(float(x), float(y)), Point(float(tx), float(ty)))

    def __iter__(self) -> Iterator[PathSample]:
        for i in range(len(self)):
            yield self[i]

    def remap(self, phase: float) -> PathSample:
        """
        Sample at a fraction of the total path length.

        Equal steps in ``phase`` cover equal distances regardless of how the
        curve's parametrization bunches samples together.

        Args:
            phase: Fraction of total length in [0, 1]; clamped, never wrapped

        Returns:
            PathSample interpolated within the segment containing ``phase``
        """
        if phase <= 0.0:
            return self[0]
        if phase >= 1.0:
            return self[-1]
        if self.length == 0.0:
            return self[0]

        fractions = self.cumulative / self.length
        i = int(np.searchsorted(fractions, phase, side="right")) - 1
        i = min(max(i, 0), len(self) - 2)
        lo = fractions[i]
        hi = fractions[i + 1]
        local = float((phase - lo) / (hi - lo)) if hi > lo else 0.0

        position = lerp_point(self[i].position, self[i + 1].position, local)
        tangent = lerp_point(self[i].tangent, self[i + 1].tangent, local).normalized()
        return PathSample(position, tangent)


def sample_curve(curve: BezierCurve, n: int = DEFAULT_PATH_CONFIG.samples_per_curve) -> SampledPath:
    """
    Evaluate ``curve`` at ``n + 1`` evenly spaced parameter values.

    Tangents are unit length, or zero where the derivative vanishes.
    """
    n = max(1, int(n))
    t = np.linspace(0.0, 1.0, n + 1)[:, None]
    mt = 1.0 - t
    p = curve.control_points()

    positions = mt ** 3 * p[0] + 3 * mt ** 2 * t * p[1] + 3 * mt * t ** 2 * p[2] + t ** 3 * p[3]
    derivatives = 3 * mt ** 2 * (p[1] - p[0]) + 6 * mt * t * (p[2] - p[1]) + 3 * t ** 2 * (p[3] - p[2])

    norms = np.hypot(derivatives[:, 0], derivatives[:, 1])[:, None]
    tangents = np.divide(derivatives, norms, out=np.zeros_like(derivatives), where=norms > 0)
    return SampledPath(positions, tangents)


def remap(path: SampledPath, phase: float) -> PathSample:
    """Arc-length sample of ``path`` at ``phase`` (see :meth:`SampledPath.remap`)."""
    return path.remap(phase)


def resolve_heading(
    from_heading: float,
    to_heading: float,
    phase: float,
    distance: float,
    tangent: Point,
    threshold: float = DEFAULT_PATH_CONFIG.heading_threshold_m,
) -> float:
    """
    Heading of an entity part-way through a transition.

    Short moves (turns on the spot) lerp the heading along the shortest arc,
    since the path tangent is noise there. Longer moves face the direction
    of travel.

    Args:
        from_heading: Heading at the start keyframe
        to_heading: Heading at the end keyframe
        phase: Progress in [0, 1]
        distance: Straight-line distance between the two positions
        tangent: Path tangent at ``phase``
        threshold: Distance below which the shortest-arc lerp is used

    Returns:
        Heading in [0, 2π)
    """
    if distance < threshold or (tangent.x == 0.0 and tangent.y == 0.0):
        return lerp_angle(from_heading, to_heading, phase)
    return normalize_angle(math.atan2(tangent.y, tangent.x))


def interpolate_entity(
    current: Entity,
    target: Optional[Entity],
    phase: float,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> Entity:
    """
    Pose of one entity between its current and next keyframe instance.

    Keyframe poses are returned untouched at the boundaries and when the
    entity has no next instance (it holds its position).
    """
    if target is None or phase <= 0.0:
        return current
    if phase >= 1.0:
        return replace(current, position=target.position, heading=target.heading)

    t = phase
    if config.ease_gait_changes and current.speed_class != target.speed_class:
        t = apply_easing(t, EasingType.EASE_IN_OUT)

    curve = build_curve(current.position, current.heading, target.position, target.heading, config)
    sample = sample_curve(curve, config.samples_per_curve).remap(t)
    heading = resolve_heading(
        current.heading,
        target.heading,
        t,
        current.position.distance_to(target.position),
        sample.tangent,
        config.heading_threshold_m,
    )
    return replace(current, position=sample.position, heading=heading)


def resolve_entities(
    keyframes: Sequence[Keyframe],
    time: float,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> List[Entity]:
    """
    Every entity's displayed pose at playback ``time``.

    Entities are matched across keyframes by label. Only the current
    keyframe's entities are rendered: one missing from the next keyframe
    holds its position, and one that only exists in the next keyframe stays
    hidden until playback reaches that keyframe.
    """
    position = locate(keyframes, time)
    if position is None:
        return []

    current = keyframes[position.index]
    following = keyframes[position.next_index] if position.next_index is not None else None
    if following is None:
        return list(current.entities)

    return [
        interpolate_entity(origin, following.find(origin.label), position.phase, config)
        for origin in current.entities
    ]


def build_path_preview(
    drill: Drill,
    label: Label,
    samples_per_segment: int = 16,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> List[Point]:
    """
    Polyline along the path one entity rides through the whole drill.

    Points are spaced evenly by distance within each keyframe transition.
    Transitions where the entity is missing on either side are skipped.
    """
    points: List[Point] = []
    for kf, nxt in zip(drill.keyframes, drill.keyframes[1:]):
        origin = kf.find(label)
        target = nxt.find(label)
        if origin is None or target is None:
            continue
        curve = build_curve(origin.position, origin.heading, target.position, target.heading, config)
        path = sample_curve(curve, config.samples_per_curve)
        segment = [path.remap(i / samples_per_segment).position for i in range(samples_per_segment + 1)]
        if points and points[-1] == segment[0]:
            segment = segment[1:]
        points.extend(segment)

    if not points:
        for kf in drill.keyframes:
            entity = kf.find(label)
            if entity is not None:
                return [entity.position]
    return points


@dataclass
class Waypoint:
    """Resolved poses of all entities at one playback time."""
    time_s: float
    entities: List[Entity]


@dataclass
class Trajectory:
    """Compiled drill playback at fixed intervals."""
    waypoints: List[Waypoint]
    interval_ms: int
    total_duration_s: float

    def __len__(self) -> int:
        return len(self.waypoints)


def compile_trajectory(
    drill: Drill,
    *,
    interval_ms: int = 100,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> Trajectory:
    """
    Resolve the drill at fixed intervals from 0 to its total duration.

    The last waypoint always lands exactly on the end of the drill.

    Args:
        drill: Drill to compile
        interval_ms: Time between waypoints
        config: Path tuning

    Returns:
        Trajectory with waypoints
    """
    if interval_ms <= 0:
        raise ValueError(f"interval_ms must be positive (got {interval_ms})")

    end_time = drill.total_duration
    interval_s = interval_ms / 1000.0

    waypoints: List[Waypoint] = []
    step = 0
    while step * interval_s <= end_time:
        current_time = step * interval_s
        waypoints.append(Waypoint(current_time, resolve_entities(drill.keyframes, current_time, config)))
        step += 1

    if abs(waypoints[-1].time_s - end_time) > 0.001:
        waypoints.append(Waypoint(end_time, resolve_entities(drill.keyframes, end_time, config)))

    return Trajectory(waypoints=waypoints, interval_ms=interval_ms, total_duration_s=end_time)
