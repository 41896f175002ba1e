"""Tests for the editable drill store."""

import math

import pytest

from quadrille import Point
from quadrille.choreography import (
    DrillStore,
    RotateSession,
    ScaleSession,
    SpeedClass,
    TranslateSession,
    align_horizontally,
)


@pytest.fixture
def store(make_entity, make_drill):
    drill = make_drill([
        (5.0, [make_entity("a", 0.0, 0.0), make_entity("b", 4.0, 2.0), make_entity("c", -4.0, 4.0)]),
        (3.0, [make_entity("a", 10.0, 0.0), make_entity("b", 14.0, 2.0)]),
    ])
    return DrillStore(drill)


def _poses(keyframe):
    return {e.label: (e.position, e.heading) for e in keyframe.entities}


def _assert_timestamps_consistent(drill):
    expected = 0.0
    for index, kf in enumerate(drill.keyframes):
        assert kf.index == index
        assert kf.timestamp == pytest.approx(expected)
        expected += kf.duration


class TestMutationPath:
    """Test transient versus durable edits."""

    def test_transient_skips_history(self, store):
        kf = store.drill.keyframes[0]
        entity = kf.find("a")
        store.update_entity(kf.id, entity.id, position=Point(1.0, 1.0), transient=True)
        assert store.drill.keyframes[0].find("a").position == Point(1.0, 1.0)
        assert len(store.history) == 0

    def test_durable_pushes_one_command(self, store):
        kf = store.drill.keyframes[0]
        store.update_entities(kf.id, align_horizontally(kf.entities), description="Align")
        assert len(store.history) == 1
        assert store.history.undo_description == "Align"

    def test_undo_redo_restore_exact_state(self, store):
        kf_id = store.drill.keyframes[0].id
        before = _poses(store.drill.keyframe(kf_id))
        store.update_entities(kf_id, align_horizontally(store.drill.keyframe(kf_id).entities))
        after = _poses(store.drill.keyframe(kf_id))

        store.undo()
        assert _poses(store.drill.keyframe(kf_id)) == before
        store.redo()
        assert _poses(store.drill.keyframe(kf_id)) == after

    def test_unknown_keyframe(self, store):
        with pytest.raises(ValueError, match="not found"):
            store.update_entities("missing", [])

    def test_unknown_entity(self, store):
        kf = store.drill.keyframes[0]
        with pytest.raises(ValueError, match="not found"):
            store.selection(kf.id, ["missing"])


class TestGestures:
    """Test drag and commit."""

    def test_drag_then_commit_is_one_undoable_step(self, store):
        kf = store.current_keyframe
        baseline = _poses(kf)
        session = RotateSession(kf.id, kf.entities)
        for step in range(1, 31):
            store.drag(session, step * math.pi / 60)
        assert len(store.history) == 0

        assert store.commit(session, "Rotate") is True
        assert len(store.history) == 1
        rotated = _poses(store.drill.keyframe(kf.id))

        store.undo()
        assert _poses(store.drill.keyframe(kf.id)) == baseline
        store.redo()
        assert _poses(store.drill.keyframe(kf.id)) == rotated

    def test_scale_commit_undo_redo(self, store):
        kf = store.current_keyframe
        baseline = _poses(kf)
        session = ScaleSession(kf.id, kf.entities)
        for factor in (1.1, 1.4, 0.8, 1.7, 2.0):
            store.drag(session, factor)
        assert len(store.history) == 0

        assert store.commit(session, "Scale") is True
        assert len(store.history) == 1
        scaled = _poses(store.drill.keyframe(kf.id))
        assert scaled["a"] == (Point(0.0, -2.0), 0.0)
        assert scaled["b"] == (Point(8.0, 2.0), 0.0)
        assert scaled["c"] == (Point(-8.0, 6.0), 0.0)

        store.undo()
        assert _poses(store.drill.keyframe(kf.id)) == baseline
        store.redo()
        assert _poses(store.drill.keyframe(kf.id)) == scaled

    def test_committed_pose_matches_final_transform(self, store):
        kf = store.current_keyframe
        entity = kf.find("b")
        session = TranslateSession(kf.id, [entity])
        store.drag(session, Point(1.0, 0.0))
        store.drag(session, Point(2.5, -1.0))
        store.commit(session, "Move")
        assert store.drill.keyframe(kf.id).find("b").position == Point(6.5, 1.0)

    def test_track_pointer(self, store):
        kf = store.current_keyframe
        session = TranslateSession(kf.id, [kf.find("a")])
        store.track(session, Point(3.0, 3.0))
        store.track(session, Point(4.0, 5.0))
        assert store.drill.keyframe(kf.id).find("a").position == Point(1.0, 2.0)

    def test_commit_without_movement(self, store):
        kf = store.current_keyframe
        session = TranslateSession(kf.id, kf.entities)
        assert store.commit(session, "Move") is False
        assert len(store.history) == 0

    def test_apply_empty_is_noop(self, store):
        assert store.apply(store.current_keyframe.id, [], "Align") is False
        assert len(store.history) == 0


class TestEntities:
    """Test entity CRUD."""

    def test_add_and_undo(self, store, make_entity):
        kf = store.drill.keyframes[1]
        store.add_entity(kf.id, make_entity("c", 1.0, 1.0))
        assert store.drill.keyframe(kf.id).labels() == ["a", "b", "c"]
        store.undo()
        assert store.drill.keyframe(kf.id).labels() == ["a", "b"]

    def test_add_duplicate_label(self, store, make_entity):
        with pytest.raises(ValueError, match="already used"):
            store.add_entity(store.drill.keyframes[0].id, make_entity("a"))

    def test_remove(self, store):
        kf = store.drill.keyframes[0]
        store.remove_entity(kf.id, kf.find("c").id)
        assert store.drill.keyframe(kf.id).find("c") is None

    def test_update_fields(self, store):
        kf = store.drill.keyframes[0]
        entity_id = kf.find("a").id
        store.update_entity(kf.id, entity_id, heading=-math.pi / 2, speed_class=SpeedClass.CANTER, label="z")
        updated = store.drill.keyframe(kf.id).find_by_id(entity_id)
        assert updated.label == "z"
        assert updated.heading == pytest.approx(3 * math.pi / 2)
        assert updated.speed_class == SpeedClass.CANTER

    def test_relabel_collision(self, store):
        kf = store.drill.keyframes[0]
        with pytest.raises(ValueError, match="already used"):
            store.update_entity(kf.id, kf.find("a").id, label="b")


class TestKeyframes:
    """Test keyframe CRUD and timeline consistency."""

    def test_add_copies_last_with_fresh_ids(self, store):
        last = store.drill.keyframes[-1]
        added = store.add_keyframe(duration=2.0)
        assert added.labels() == last.labels()
        assert {e.id for e in added.entities}.isdisjoint({e.id for e in last.entities})
        assert added.timestamp == pytest.approx(8.0)
        assert store.current_index == 2
        _assert_timestamps_consistent(store.drill)

    def test_duplicate_inserts_after(self, store):
        first = store.drill.keyframes[0]
        copy = store.duplicate_keyframe(first.id)
        assert store.drill.keyframes[1] is copy
        assert copy.timestamp == pytest.approx(5.0)
        assert store.drill.keyframes[2].timestamp == pytest.approx(10.0)
        assert store.drill.total_duration == pytest.approx(13.0)
        _assert_timestamps_consistent(store.drill)

    def test_delete_and_undo(self, store):
        first_id = store.drill.keyframes[0].id
        assert store.delete_keyframe(first_id) is True
        assert len(store.drill.keyframes) == 1
        assert store.drill.keyframes[0].timestamp == 0.0
        store.undo()
        assert [kf.id for kf in store.drill.keyframes][0] == first_id
        _assert_timestamps_consistent(store.drill)

    def test_never_deletes_last_keyframe(self, store):
        store.delete_keyframe(store.drill.keyframes[1].id)
        assert store.delete_keyframe(store.drill.keyframes[0].id) is False
        assert len(store.drill.keyframes) == 1

    def test_set_duration_shifts_later_keyframes(self, store):
        store.set_duration(store.drill.keyframes[0].id, 2.0)
        assert store.drill.keyframes[1].timestamp == pytest.approx(2.0)
        store.undo()
        assert store.drill.keyframes[1].timestamp == pytest.approx(5.0)

    def test_set_duration_rejects_non_positive(self, store):
        with pytest.raises(ValueError, match="positive"):
            store.set_duration(store.drill.keyframes[0].id, 0.0)

    def test_rename(self, store):
        kf = store.drill.keyframes[0]
        store.rename_keyframe(kf.id, "Opening line")
        assert store.drill.keyframe(kf.id).name == "Opening line"

    def test_fit_duration_from_gait(self, store):
        # "a" and "b" walk 10 m at 1 m/s
        assert store.fit_duration(store.drill.keyframes[0].id) == pytest.approx(10.0)
        assert store.drill.keyframes[1].timestamp == pytest.approx(10.0)


class TestCursor:
    """Test the editor's current keyframe."""

    def test_set_current(self, store):
        store.set_current(1)
        assert store.current_keyframe is store.drill.keyframes[1]

    def test_out_of_range_ignored(self, store):
        store.set_current(5)
        store.set_current(-1)
        assert store.current_index == 0

    def test_cursor_clamped_after_undoing_add(self, store):
        store.add_keyframe()
        assert store.current_index == 2
        store.undo()
        assert store.current_index == 1

    def test_logs_when_verbose(self, store, capsys):
        store.verbose = True
        store.rename_keyframe(store.drill.keyframes[0].id, "Start")
        store.undo()
        out = capsys.readouterr().out
        assert "[Drill] Rename keyframe 0" in out
        assert "[Drill] Undo: Rename keyframe 0" in out
