"""
Drill data structures and loading.

Supports:
- Entities (riders) with a stable cross-keyframe label
- Keyframes whose timestamps are derived from the duration chain
- Drill documents from JSON, with validation warnings for arena bounds and gait speed
"""
from __future__ import annotations

import json
import math
import uuid
from dataclasses import dataclass, field, replace
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..base import Point, deg2rad, normalize_angle, rad2deg

Label = Union[str, int]

DEFAULT_DURATION_S = 5.0

# Standard show arena, coordinates in meters from the arena center
ARENA_LENGTH_M = 80.0  # along x
ARENA_WIDTH_M = 40.0   # along y


class SpeedClass(Enum):
    """Gait of an entity."""
    WALK = "walk"
    TROT = "trot"
    CANTER = "canter"


GAIT_SPEEDS_MPS: Dict[SpeedClass, float] = {
    SpeedClass.WALK: 1.0,
    SpeedClass.TROT: 2.0,
    SpeedClass.CANTER: 3.0,
}


def generate_id() -> str:
    """Fresh per-instance identifier."""
    return uuid.uuid4().hex[:12]


@dataclass(frozen=True)
class Entity:
    """One rider at one keyframe."""
    id: str
    label: Label  # stable identity across keyframes
    position: Point
    heading: float = 0.0  # radians, 0 = +x, π/2 = +y
    speed_class: SpeedClass = SpeedClass.WALK

    def __post_init__(self):
        object.__setattr__(self, "heading", normalize_angle(self.heading))

    def copy(self) -> Entity:
        """Same pose and label under a new instance id."""
        return replace(self, id=generate_id())


@dataclass
class Keyframe:
    """Authoritative pose of every entity at one point in the drill."""
    id: str
    index: int
    timestamp: float  # seconds from start, derived from prior durations
    duration: float = DEFAULT_DURATION_S  # seconds until the next keyframe
    entities: List[Entity] = field(default_factory=list)
    name: Optional[str] = None  # maneuver name, e.g. "Circle left"

    @property
    def end_time(self) -> float:
        return self.timestamp + self.duration

    def find(self, label: Label) -> Optional[Entity]:
        """Entity with ``label``, or None."""
        for entity in self.entities:
            if entity.label == label:
                return entity
        return None

    def find_by_id(self, entity_id: str) -> Optional[Entity]:
        """Entity with instance id ``entity_id``, or None."""
        for entity in self.entities:
            if entity.id == entity_id:
                return entity
        return None

    def labels(self) -> List[Label]:
        return [e.label for e in self.entities]

    def snapshot(self) -> Keyframe:
        """Shallow copy safe to keep while the original is edited."""
        return replace(self, entities=list(self.entities))


@dataclass
class Drill:
    """Complete drill: ordered keyframes plus metadata."""
    name: str
    keyframes: List[Keyframe]
    metadata: Dict[str, Any] = field(default_factory=dict)
    warnings: List[str] = field(default_factory=list)

    @classmethod
    def new(cls, name: str, duration: float = DEFAULT_DURATION_S) -> Drill:
        """Drill with a single empty keyframe."""
        return cls(name=name, keyframes=[Keyframe(id=generate_id(), index=0, timestamp=0.0, duration=duration)])

    @property
    def total_duration(self) -> float:
        return sum(kf.duration for kf in self.keyframes)

    def reindex(self) -> None:
        """Make indices contiguous and recompute timestamps from durations."""
        timestamp = 0.0
        for index, keyframe in enumerate(self.keyframes):
            keyframe.index = index
            keyframe.timestamp = timestamp
            timestamp += keyframe.duration

    def keyframe(self, keyframe_id: str) -> Keyframe:
        """Keyframe with ``keyframe_id``; raises ValueError when unknown."""
        for keyframe in self.keyframes:
            if keyframe.id == keyframe_id:
                return keyframe
        raise ValueError(f"Keyframe '{keyframe_id}' not found in drill '{self.name}'")

    def position_of(self, keyframe_id: str) -> int:
        """List position of the keyframe with ``keyframe_id``."""
        return self.keyframes.index(self.keyframe(keyframe_id))


def _parse_entity(data: Dict[str, Any], where: str) -> Entity:
    if "label" not in data:
        raise ValueError(f"{where}: entity is missing 'label'")

    if "heading_deg" in data:
        heading = deg2rad(float(data["heading_deg"]))
    else:
        heading = float(data.get("heading", 0.0))

    speed = data.get("speed", SpeedClass.WALK.value)
    try:
        speed_class = SpeedClass(speed)
    except ValueError:
        raise ValueError(
            f"{where}: unknown speed '{speed}'. "
            f"Available: {', '.join(s.value for s in SpeedClass)}"
        ) from None

    return Entity(
        id=str(data.get("id") or generate_id()),
        label=data["label"],
        position=Point(float(data["x"]), float(data["y"])),
        heading=heading,
        speed_class=speed_class,
    )


def drill_from_dict(data: Dict[str, Any]) -> Drill:
    """
    Build a drill from its plain dict form.

    Expected format:
    {
      "name": "Opening",
      "keyframes": [
        {"duration": 5.0, "name": "Line abreast",
         "entities": [{"label": 1, "x": -10, "y": 0, "heading_deg": 90, "speed": "trot"}, ...]},
        ...
      ]
    }

    Raises:
        ValueError: On structural problems (no keyframes, bad duration, duplicate labels)
    """
    raw_keyframes = data.get("keyframes", [])
    if not raw_keyframes:
        raise ValueError("Drill has no keyframes")

    keyframes: List[Keyframe] = []
    for index, raw in enumerate(raw_keyframes):
        duration = float(raw.get("duration", DEFAULT_DURATION_S))
        if duration <= 0:
            raise ValueError(f"Keyframe {index}: duration must be positive (got {duration})")

        entities: List[Entity] = []
        seen = set()
        for raw_entity in raw.get("entities", []):
            entity = _parse_entity(raw_entity, f"Keyframe {index}")
            if entity.label in seen:
                raise ValueError(f"Keyframe {index}: duplicate label '{entity.label}'")
            seen.add(entity.label)
            entities.append(entity)

        keyframes.append(Keyframe(
            id=str(raw.get("id") or generate_id()),
            index=index,
            timestamp=0.0,
            duration=duration,
            entities=entities,
            name=raw.get("name"),
        ))

    drill = Drill(
        name=data.get("name", "Untitled"),
        keyframes=keyframes,
        metadata=dict(data.get("metadata", {})),
    )
    drill.reindex()
    return drill


def drill_to_dict(drill: Drill) -> Dict[str, Any]:
    """Plain dict form of ``drill``, readable by :func:`drill_from_dict`."""
    return {
        "name": drill.name,
        "metadata": dict(drill.metadata),
        "keyframes": [
            {
                "id": kf.id,
                "duration": kf.duration,
                "name": kf.name,
                "entities": [
                    {
                        "id": e.id,
                        "label": e.label,
                        "x": e.position.x,
                        "y": e.position.y,
                        "heading_deg": round(rad2deg(e.heading), 6),
                        "speed": e.speed_class.value,
                    }
                    for e in kf.entities
                ],
            }
            for kf in drill.keyframes
        ],
    }


def validate_drill(drill: Drill) -> List[str]:
    """
    Collect soft problems that do not prevent playback.

    Checks that entities stay inside the arena and that nobody has to move
    faster than their gait allows between consecutive keyframes.
    """
    warnings: List[str] = []
    half_length = ARENA_LENGTH_M / 2
    half_width = ARENA_WIDTH_M / 2

    for kf in drill.keyframes:
        for e in kf.entities:
            if abs(e.position.x) > half_length or abs(e.position.y) > half_width:
                warnings.append(
                    f"Arena bounds: keyframe {kf.index} entity '{e.label}' at "
                    f"({e.position.x:.1f}, {e.position.y:.1f}) outside "
                    f"{ARENA_LENGTH_M:.0f}m x {ARENA_WIDTH_M:.0f}m"
                )

    for prev, curr in zip(drill.keyframes, drill.keyframes[1:]):
        for e in prev.entities:
            nxt = curr.find(e.label)
            if nxt is None:
                continue
            speed = e.position.distance_to(nxt.position) / prev.duration
            max_speed = GAIT_SPEEDS_MPS[e.speed_class]
            if speed > max_speed and not math.isclose(speed, max_speed):
                warnings.append(
                    f"Speed limit: entity '{e.label}' keyframe {prev.index}->{curr.index} "
                    f"{speed:.1f} m/s > {max_speed} m/s ({e.speed_class.value})"
                )

    return warnings


def load_drill(path: Path | str) -> Drill:
    """
    Load a drill from JSON.

    Structural problems raise ValueError; soft problems land in ``Drill.warnings``.
    """
    path = Path(path)
    data = json.loads(path.read_text(encoding="utf-8"))
    drill = drill_from_dict(data)
    drill.warnings = validate_drill(drill)
    return drill
