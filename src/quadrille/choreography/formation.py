"""
Formation geometry for groups of selected entities.

One-shot operations (align, distribute on a line or circle) and continuous
gestures (translate, rotate, scale) all read a snapshot of the selection
and return EntityUpdate lists; nothing here mutates a drill.

Gestures capture their pivot and the pre-gesture poses once, at start, and
compute every frame from that baseline so that many small pointer moves
never accumulate error.
"""
from __future__ import annotations

import math
from abc import ABC, abstractmethod
from dataclasses import dataclass, replace
from typing import Dict, Generic, List, Optional, Sequence, Tuple, TypeVar

import numpy as np
from scipy.optimize import linear_sum_assignment

from ..base import ORIGIN, TWO_PI, Point, angle_difference, centroid, normalize_angle, wrap_angle
from .script import Entity

EPSILON = 1e-9
RING_PHASE_STARTS = 36
MAX_RING_REFINEMENTS = 50


@dataclass(frozen=True)
class EntityUpdate:
    """New pose for one entity, with its change relative to the snapshot it came from."""
    entity_id: str
    position: Optional[Point] = None  # None = unchanged
    heading: Optional[float] = None   # None = unchanged
    position_delta: Point = ORIGIN
    heading_delta: float = 0.0

    @classmethod
    def between(
        cls,
        entity: Entity,
        position: Optional[Point] = None,
        heading: Optional[float] = None,
    ) -> EntityUpdate:
        position_delta = position - entity.position if position is not None else ORIGIN
        heading_delta = angle_difference(entity.heading, heading) if heading is not None else 0.0
        return cls(entity.id, position, heading, position_delta, heading_delta)

    def apply_to(self, entity: Entity) -> Entity:
        changes = {}
        if self.position is not None:
            changes["position"] = self.position
        if self.heading is not None:
            changes["heading"] = self.heading
        return replace(entity, **changes) if changes else entity


def circumcenter(points: Sequence[Point]) -> Optional[Point]:
    """
    Point equidistant from exactly three points.

    Returns None for any other count or when the points are collinear.
    """
    if len(points) != 3:
        return None
    a, b, c = points
    d = 2 * (a.x * (b.y - c.y) + b.x * (c.y - a.y) + c.x * (a.y - b.y))
    if abs(d) < EPSILON:
        return None

    a_sq = a.x * a.x + a.y * a.y
    b_sq = b.x * b.x + b.y * b.y
    c_sq = c.x * c.x + c.y * c.y
    ux = (a_sq * (b.y - c.y) + b_sq * (c.y - a.y) + c_sq * (a.y - b.y)) / d
    uy = (a_sq * (c.x - b.x) + b_sq * (a.x - c.x) + c_sq * (b.x - a.x)) / d
    return Point(ux, uy)


def group_pivot(points: Sequence[Point], use_circumcenter: bool = False) -> Point:
    """Centroid of ``points``, or their circumcenter when asked for and defined."""
    if use_circumcenter:
        center = circumcenter(points)
        if center is not None:
            return center
    return centroid(points)


def align_horizontally(selected: Sequence[Entity]) -> List[EntityUpdate]:
    """Put every selected entity on the mean Y of the selection."""
    if len(selected) < 2:
        return []
    avg_y = sum(e.position.y for e in selected) / len(selected)
    return [EntityUpdate.between(e, position=Point(e.position.x, avg_y)) for e in selected]


def align_vertically(selected: Sequence[Entity]) -> List[EntityUpdate]:
    """Put every selected entity on the mean X of the selection."""
    if len(selected) < 2:
        return []
    avg_x = sum(e.position.x for e in selected) / len(selected)
    return [EntityUpdate.between(e, position=Point(avg_x, e.position.y)) for e in selected]


def _most_separated(selected: Sequence[Entity]) -> Tuple[int, int, float]:
    best = (0, 1, -1.0)
    for i in range(len(selected)):
        for j in range(i + 1, len(selected)):
            dist = selected[i].position.distance_to(selected[j].position)
            if dist > best[2]:
                best = (i, j, dist)
    return best


def distribute_on_line(selected: Sequence[Entity]) -> List[EntityUpdate]:
    """
    Space the selection evenly between its two most separated members.

    Those two stay put; everyone else is ordered by their projection onto
    the line between them and placed at equal intervals. Needs at least 3
    entities; coincident selections are left alone.
    """
    if len(selected) < 3:
        return []

    first, last, length = _most_separated(selected)
    if length == 0.0:
        return []

    start = selected[first].position
    end = selected[last].position
    unit = (end - start).normalized()

    def sort_key(i: int) -> Tuple[float, int]:
        # the fixed endpoints win ties with coincident entities
        rank = 0 if i == first else (2 if i == last else 1)
        return ((selected[i].position - start).dot(unit), rank)

    order = sorted(range(len(selected)), key=sort_key)
    span = end - start
    count = len(order)

    updates: List[EntityUpdate] = []
    for slot, i in enumerate(order):
        if slot == 0:
            target = start
        elif slot == count - 1:
            target = end
        else:
            target = start + span * (slot / (count - 1))
        updates.append(EntityUpdate.between(selected[i], position=target))
    return updates


def _tangential_heading(entity: Entity, old_angle: float, new_angle: float) -> float:
    # carry the heading around with the entity, then snap to the nearer tangent
    carried = entity.heading + wrap_angle(new_angle - old_angle)
    ccw = normalize_angle(new_angle + math.pi / 2)
    cw = normalize_angle(new_angle - math.pi / 2)
    if abs(angle_difference(carried, cw)) < abs(angle_difference(carried, ccw)):
        return cw
    return ccw


def _ring_phase(z: np.ndarray, slots: np.ndarray, radius: float, fallback: float) -> float:
    # For a fixed assignment, the displacement-minimizing rotation is the
    # argument of sum(z_k * exp(-i * slot_k)).
    w = complex(np.sum(z * np.exp(-1j * slots)))
    if abs(w) > EPSILON * len(z) * radius:
        return math.atan2(w.imag, w.real)
    return fallback


def _slot_costs(z: np.ndarray, slots: np.ndarray, radius: float, phase: float) -> np.ndarray:
    targets = radius * np.exp(1j * (phase + slots))
    return np.abs(z[:, None] - targets[None, :]) ** 2


def _settle_ring(
    z: np.ndarray,
    slots: np.ndarray,
    radius: float,
    assignment: np.ndarray,
    phase: float,
) -> Tuple[float, float, np.ndarray]:
    """Alternate best phase and best assignment until the cost stops falling."""
    rows = np.arange(len(z))
    for _ in range(MAX_RING_REFINEMENTS):
        phase = _ring_phase(z, slots[assignment], radius, phase)
        costs = _slot_costs(z, slots, radius, phase)
        total = float(costs[rows, assignment].sum())
        _, better = linear_sum_assignment(costs)
        if float(costs[rows, better].sum()) >= total - EPSILON:
            return total, phase, assignment
        assignment = better
    phase = _ring_phase(z, slots[assignment], radius, phase)
    return float(_slot_costs(z, slots, radius, phase)[rows, assignment].sum()), phase, assignment


def distribute_on_circle(
    selected: Sequence[Entity],
    orient_tangentially: bool = True,
) -> List[EntityUpdate]:
    """
    Place the selection at equal angles around a circle.

    The circle is centered on the selection's centroid with the mean
    distance to it as radius. Both the slot each entity takes and the
    phase of the ring are chosen to minimize total squared displacement,
    so a group already on a circle barely moves and a straight line folds
    onto the nearest slots rather than being walked around in angular order.

    Args:
        selected: At least 2 entities
        orient_tangentially: Turn each heading to the circle tangent nearest
            its current direction; False leaves headings untouched

    Returns:
        One update per entity; empty for fewer than 2 or coincident entities
    """
    if len(selected) < 2:
        return []

    center = centroid(e.position for e in selected)
    offsets = np.array([[e.position.x - center.x, e.position.y - center.y] for e in selected])
    dists = np.hypot(offsets[:, 0], offsets[:, 1])
    radius = float(dists.mean())
    if radius == 0.0:
        return []

    angles = np.mod(np.arctan2(offsets[:, 1], offsets[:, 0]), TWO_PI)
    count = len(selected)
    order = sorted(range(count), key=lambda i: (float(angles[i]), float(dists[i]), i))
    slots = TWO_PI * np.arange(count) / count
    z = offsets[:, 0] + 1j * offsets[:, 1]

    # angular order first, then a sweep of starting phases across one slot gap
    in_order = np.empty(count, dtype=int)
    in_order[order] = np.arange(count)
    best = _settle_ring(z, slots, radius, in_order, float(angles[order[0]]))
    for start in np.linspace(0.0, TWO_PI / count, RING_PHASE_STARTS, endpoint=False):
        _, assignment = linear_sum_assignment(_slot_costs(z, slots, radius, float(start)))
        candidate = _settle_ring(z, slots, radius, assignment, float(start))
        if candidate[0] < best[0] - EPSILON:
            best = candidate
    _, phase, assignment = best

    updates: List[EntityUpdate] = []
    for i in order:
        entity = selected[i]
        new_angle = phase + float(slots[assignment[i]])
        position = Point(center.x + radius * math.cos(new_angle), center.y + radius * math.sin(new_angle))
        heading = _tangential_heading(entity, float(angles[i]), new_angle) if orient_tangentially else None
        updates.append(EntityUpdate.between(entity, position=position, heading=heading))
    return updates


T = TypeVar("T")


class GestureSession(ABC, Generic[T]):
    """
    State for one continuous pointer interaction over a selection.

    Created at gesture start and discarded at release. ``update`` returns
    transient updates for the live frame; the store's commit uses
    ``restore`` and ``final_updates`` to record a single undoable change.
    Deltas in the returned updates are relative to the pre-gesture pose.
    """

    identity: T

    def __init__(
        self,
        keyframe_id: str,
        selected: Sequence[Entity],
        pivot: Optional[Point] = None,
    ):
        self.keyframe_id = keyframe_id
        self.baseline: Dict[str, Entity] = {e.id: e for e in selected}
        self.pivot = pivot if pivot is not None else centroid(e.position for e in selected)
        self.value: T = self.identity

    @property
    def entity_ids(self) -> List[str]:
        return list(self.baseline)

    @abstractmethod
    def _transform(self, entity: Entity, value: T) -> Tuple[Point, Optional[float]]:
        """New position and heading (None = unchanged) for a baseline entity."""

    def updates_for(self, value: T) -> List[EntityUpdate]:
        return [EntityUpdate.between(e, *self._transform(e, value)) for e in self.baseline.values()]

    def update(self, value: T) -> List[EntityUpdate]:
        """Live updates for the cumulative gesture ``value`` since start."""
        self.value = value
        return self.updates_for(value)

    def restore(self) -> List[EntityUpdate]:
        """Updates that put every entity back on its pre-gesture pose."""
        return [EntityUpdate.between(e, e.position, e.heading) for e in self.baseline.values()]

    def final_updates(self) -> List[EntityUpdate]:
        return self.updates_for(self.value)

    @abstractmethod
    def track_pointer(self, pointer: Point) -> List[EntityUpdate]:
        """Live updates from a raw pointer position in scene coordinates."""


class TranslateSession(GestureSession[Point]):
    """Drag the selection by an offset."""

    identity = ORIGIN

    def __init__(self, keyframe_id: str, selected: Sequence[Entity], pivot: Optional[Point] = None):
        super().__init__(keyframe_id, selected, pivot)
        self._anchor: Optional[Point] = None

    def _transform(self, entity: Entity, value: Point) -> Tuple[Point, Optional[float]]:
        return entity.position + value, None

    def track_pointer(self, pointer: Point) -> List[EntityUpdate]:
        """Offset from the first tracked pointer position."""
        if self._anchor is None:
            self._anchor = pointer
        return self.update(pointer - self._anchor)


class RotateSession(GestureSession[float]):
    """Rotate the selection about a fixed pivot; headings turn with it."""

    identity = 0.0

    def __init__(self, keyframe_id: str, selected: Sequence[Entity], pivot: Optional[Point] = None):
        super().__init__(keyframe_id, selected, pivot)
        self._last_pointer_angle: Optional[float] = None

    def _transform(self, entity: Entity, value: float) -> Tuple[Point, Optional[float]]:
        return entity.position.rotated(value, self.pivot), normalize_angle(entity.heading + value)

    def track_pointer(self, pointer: Point) -> List[EntityUpdate]:
        """
        Rotate by how far the pointer has swept around the pivot.

        Per-move deltas are wrapped, so sweeping past ±π keeps accumulating
        instead of jumping a full turn.
        """
        offset = pointer - self.pivot
        if offset.x == 0.0 and offset.y == 0.0:
            return self.update(self.value)
        angle = math.atan2(offset.y, offset.x)
        if self._last_pointer_angle is None:
            self._last_pointer_angle = angle
            return self.update(self.value)
        delta = wrap_angle(angle - self._last_pointer_angle)
        self._last_pointer_angle = angle
        return self.update(self.value + delta)


class ScaleSession(GestureSession[float]):
    """Spread or tighten the selection about a fixed pivot; headings are kept."""

    identity = 1.0

    def __init__(self, keyframe_id: str, selected: Sequence[Entity], pivot: Optional[Point] = None):
        super().__init__(keyframe_id, selected, pivot)
        self._start_distance: Optional[float] = None

    def _transform(self, entity: Entity, value: float) -> Tuple[Point, Optional[float]]:
        factor = max(0.0, value)
        return self.pivot + (entity.position - self.pivot) * factor, None

    def track_pointer(self, pointer: Point) -> List[EntityUpdate]:
        """Scale by the pointer's distance from the pivot relative to where it started."""
        dist = pointer.distance_to(self.pivot)
        if self._start_distance is None:
            if dist == 0.0:
                return self.update(self.value)
            self._start_distance = dist
        return self.update(dist / self._start_distance)
