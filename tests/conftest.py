"""Shared builders for drills and entities."""

from typing import List, Sequence, Tuple

import pytest

from quadrille import Point
from quadrille.choreography import Drill, Entity, Keyframe, SpeedClass, generate_id


def build_entity(label, x=0.0, y=0.0, heading=0.0, speed=SpeedClass.WALK) -> Entity:
    return Entity(id=generate_id(), label=label, position=Point(x, y), heading=heading, speed_class=speed)


def build_drill(frames: Sequence[Tuple[float, List[Entity]]], name: str = "Test") -> Drill:
    keyframes = [
        Keyframe(id=generate_id(), index=i, timestamp=0.0, duration=duration, entities=list(entities))
        for i, (duration, entities) in enumerate(frames)
    ]
    drill = Drill(name=name, keyframes=keyframes)
    drill.reindex()
    return drill


@pytest.fixture
def make_entity():
    """Factory for entities with fresh ids."""
    return build_entity


@pytest.fixture
def make_drill():
    """Factory for drills from (duration, entities) pairs."""
    return build_drill


@pytest.fixture
def line_abreast():
    """Two keyframes: four riders in a line, then the same riders moved 10 m along +x."""
    first = [build_entity(i, x=0.0, y=-6.0 + 4.0 * i) for i in range(4)]
    second = [build_entity(i, x=10.0, y=-6.0 + 4.0 * i) for i in range(4)]
    return build_drill([(5.0, first), (5.0, second)], name="Line abreast")
