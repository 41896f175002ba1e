"""
Editable drill state with undo/redo.

All edits go through one mutation path. A transient mutation changes the
drill and nothing else (live drag feedback); a durable one also records a
single undoable command built from before/after snapshots of the keyframe
list, so undo and redo restore exact states.

Usage:
    store = DrillStore(load_drill("opening.json"))
    kf = store.current_keyframe
    session = RotateSession(kf.id, store.selection(kf.id, ids))
    store.drag(session, 0.3)          # per pointer move
    store.commit(session, "Rotate")   # on release
    store.undo()
"""
from __future__ import annotations

from dataclasses import replace
from typing import Callable, Dict, List, Optional, Sequence, TypeVar

from ..base import ORIGIN, Point
from .formation import EntityUpdate, GestureSession
from .history import Command, History
from .pacing import compute_duration
from .script import DEFAULT_DURATION_S, Drill, Entity, Keyframe, Label, SpeedClass, generate_id

T = TypeVar("T")


class DrillStore:
    """Single owner of a drill being edited."""

    def __init__(
        self,
        drill: Optional[Drill] = None,
        history: Optional[History] = None,
        verbose: bool = False,
    ):
        self.drill = drill if drill is not None else Drill.new("Untitled")
        self.history = history if history is not None else History()
        self.verbose = verbose
        self.current_index = 0

    def _log(self, msg: str):
        if self.verbose:
            print(f"[Drill] {msg}")

    # ---- snapshots and the mutation path ----

    def _capture(self) -> List[Keyframe]:
        return [kf.snapshot() for kf in self.drill.keyframes]

    def _restore(self, keyframes: List[Keyframe]) -> None:
        self.drill.keyframes = [kf.snapshot() for kf in keyframes]
        self.drill.reindex()
        self.current_index = min(self.current_index, len(self.drill.keyframes) - 1)

    def _mutate(self, description: str, change: Callable[[], T], transient: bool = False) -> T:
        if transient:
            result = change()
            self.drill.reindex()
            return result

        before = self._capture()
        result = change()
        self.drill.reindex()
        after = self._capture()
        self.history.push(Command(
            description=description,
            undo=lambda: self._restore(before),
            redo=lambda: self._restore(after),
        ))
        self._log(description)
        return result

    def set_drill(self, drill: Drill) -> None:
        """Replace the drill being edited; history starts over."""
        self.drill = drill
        self.drill.reindex()
        self.history.clear()
        self.current_index = 0
        self._log(f"Loaded '{drill.name}' ({len(drill.keyframes)} keyframes)")

    def undo(self) -> Optional[Command]:
        command = self.history.undo()
        if command is not None:
            self._log(f"Undo: {command.description}")
        return command

    def redo(self) -> Optional[Command]:
        command = self.history.redo()
        if command is not None:
            self._log(f"Redo: {command.description}")
        return command

    # ---- editor cursor ----

    @property
    def current_keyframe(self) -> Keyframe:
        return self.drill.keyframes[self.current_index]

    def set_current(self, index: int) -> None:
        """Move the editor cursor; out-of-range indices are ignored."""
        if 0 <= index < len(self.drill.keyframes):
            self.current_index = index

    # ---- entities ----

    def selection(self, keyframe_id: str, entity_ids: Sequence[str]) -> List[Entity]:
        """Entities of a keyframe by instance id, in the order given."""
        keyframe = self.drill.keyframe(keyframe_id)
        selected = []
        for entity_id in entity_ids:
            entity = keyframe.find_by_id(entity_id)
            if entity is None:
                raise ValueError(f"Entity '{entity_id}' not found in keyframe {keyframe.index}")
            selected.append(entity)
        return selected

    def update_entities(
        self,
        keyframe_id: str,
        updates: Sequence[EntityUpdate],
        *,
        transient: bool = False,
        description: str = "Move entities",
    ) -> None:
        """Apply a batch of pose updates as one mutation."""
        keyframe = self.drill.keyframe(keyframe_id)
        by_id: Dict[str, EntityUpdate] = {u.entity_id: u for u in updates}
        missing = set(by_id) - {e.id for e in keyframe.entities}
        if missing:
            raise ValueError(f"Entities {sorted(missing)} not found in keyframe {keyframe.index}")

        def change():
            keyframe.entities = [
                by_id[e.id].apply_to(e) if e.id in by_id else e
                for e in keyframe.entities
            ]

        self._mutate(description, change, transient)

    def update_entity(
        self,
        keyframe_id: str,
        entity_id: str,
        *,
        position: Optional[Point] = None,
        heading: Optional[float] = None,
        speed_class: Optional[SpeedClass] = None,
        label: Optional[Label] = None,
        transient: bool = False,
    ) -> None:
        keyframe = self.drill.keyframe(keyframe_id)
        entity = self.selection(keyframe_id, [entity_id])[0]
        if label is not None and label != entity.label and keyframe.find(label) is not None:
            raise ValueError(f"Label '{label}' already used in keyframe {keyframe.index}")

        changes = {
            name: value
            for name, value in (("position", position), ("heading", heading),
                                ("speed_class", speed_class), ("label", label))
            if value is not None
        }
        if not changes:
            return
        updated = replace(entity, **changes)

        def change():
            keyframe.entities = [updated if e.id == entity_id else e for e in keyframe.entities]

        self._mutate(f"Edit entity '{entity.label}'", change, transient)

    def add_entity(self, keyframe_id: str, entity: Entity, *, transient: bool = False) -> None:
        keyframe = self.drill.keyframe(keyframe_id)
        if keyframe.find(entity.label) is not None:
            raise ValueError(f"Label '{entity.label}' already used in keyframe {keyframe.index}")

        def change():
            keyframe.entities = keyframe.entities + [entity]

        self._mutate(f"Add entity '{entity.label}'", change, transient)

    def remove_entity(self, keyframe_id: str, entity_id: str, *, transient: bool = False) -> None:
        keyframe = self.drill.keyframe(keyframe_id)
        entity = self.selection(keyframe_id, [entity_id])[0]

        def change():
            keyframe.entities = [e for e in keyframe.entities if e.id != entity_id]

        self._mutate(f"Remove entity '{entity.label}'", change, transient)

    # ---- keyframes ----

    def add_keyframe(self, duration: float = DEFAULT_DURATION_S) -> Keyframe:
        """Append a keyframe carrying over the last keyframe's entities under fresh ids."""
        if duration <= 0:
            raise ValueError(f"Keyframe duration must be positive (got {duration})")
        last = self.drill.keyframes[-1]
        keyframe = Keyframe(
            id=generate_id(),
            index=len(self.drill.keyframes),
            timestamp=last.end_time,
            duration=duration,
            entities=[e.copy() for e in last.entities],
        )

        def change():
            self.drill.keyframes = self.drill.keyframes + [keyframe]

        self._mutate("Add keyframe", change)
        self.current_index = keyframe.index
        return keyframe

    def duplicate_keyframe(self, keyframe_id: str) -> Keyframe:
        """Insert a copy of a keyframe right after it."""
        source = self.drill.keyframe(keyframe_id)
        position = self.drill.position_of(keyframe_id)
        keyframe = replace(
            source,
            id=generate_id(),
            entities=[e.copy() for e in source.entities],
        )

        def change():
            keyframes = list(self.drill.keyframes)
            keyframes.insert(position + 1, keyframe)
            self.drill.keyframes = keyframes

        self._mutate(f"Duplicate keyframe {source.index}", change)
        self.current_index = keyframe.index
        return keyframe

    def delete_keyframe(self, keyframe_id: str) -> bool:
        """
        Remove a keyframe and close the gap in the timeline.

        Returns False (and changes nothing) when it is the only keyframe.
        """
        position = self.drill.position_of(keyframe_id)
        if len(self.drill.keyframes) <= 1:
            return False

        def change():
            self.drill.keyframes = [kf for kf in self.drill.keyframes if kf.id != keyframe_id]

        self._mutate(f"Delete keyframe {position}", change)
        self.current_index = min(self.current_index, len(self.drill.keyframes) - 1)
        return True

    def set_duration(self, keyframe_id: str, duration: float, *, transient: bool = False) -> None:
        if duration <= 0:
            raise ValueError(f"Keyframe duration must be positive (got {duration})")
        keyframe = self.drill.keyframe(keyframe_id)

        def change():
            keyframe.duration = duration

        self._mutate(f"Set keyframe {keyframe.index} duration to {duration:.2f}s", change, transient)

    def rename_keyframe(self, keyframe_id: str, name: Optional[str]) -> None:
        keyframe = self.drill.keyframe(keyframe_id)

        def change():
            keyframe.name = name

        self._mutate(f"Rename keyframe {keyframe.index}", change)

    def fit_duration(self, keyframe_id: str, speed_multiplier: float = 1.0) -> float:
        """Set a keyframe's duration from gait speeds; returns the new duration."""
        position = self.drill.position_of(keyframe_id)
        keyframe = self.drill.keyframes[position]
        next_keyframe = self.drill.keyframes[position + 1] if position + 1 < len(self.drill.keyframes) else None
        duration = compute_duration(keyframe, next_keyframe, speed_multiplier)
        if duration != keyframe.duration:
            self.set_duration(keyframe_id, duration)
        return duration

    # ---- gestures and formation operations ----

    def drag(self, session: GestureSession[T], value: T) -> List[EntityUpdate]:
        """Live gesture frame: move the selection without recording history."""
        updates = session.update(value)
        self.update_entities(session.keyframe_id, updates, transient=True)
        return updates

    def track(self, session: GestureSession, pointer: Point) -> List[EntityUpdate]:
        """Live gesture frame driven by a raw pointer position."""
        updates = session.track_pointer(pointer)
        self.update_entities(session.keyframe_id, updates, transient=True)
        return updates

    def commit(self, session: GestureSession, description: str) -> bool:
        """
        Finish a gesture as one undoable change.

        Puts the baseline back without recording, then applies the final
        transform durably, so undo returns to the pre-gesture poses.
        Returns False when the gesture ended where it started.
        """
        final = session.final_updates()
        self.update_entities(session.keyframe_id, session.restore(), transient=True)
        if all(u.position_delta == ORIGIN and u.heading_delta == 0.0 for u in final):
            return False
        self.update_entities(session.keyframe_id, final, description=description)
        return True

    def apply(self, keyframe_id: str, updates: Sequence[EntityUpdate], description: str) -> bool:
        """Durably apply the output of a one-shot formation operation."""
        if not updates:
            return False
        self.update_entities(keyframe_id, updates, description=description)
        return True
