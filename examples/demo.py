#!/usr/bin/env python3
"""
Quadrille Demo

Builds a small drill in code, shapes it with formation tools, and plays it.
"""
from quadrille import Point, deg2rad
from quadrille.choreography import (
    DrillStore,
    Entity,
    RotateSession,
    compile_trajectory,
    distribute_on_circle,
    generate_id,
    run_playback,
)


def main():
    print("=== Quadrille Demo ===")
    print()

    store = DrillStore(verbose=True)
    first = store.current_keyframe
    for i in range(6):
        store.add_entity(first.id, Entity(
            id=generate_id(),
            label=i + 1,
            position=Point(-15.0 + 6.0 * i, -10.0),
            heading=deg2rad(90),
        ))
    print()

    print("--- Keyframe 2: circle ---")
    circle = store.add_keyframe(duration=8.0)
    store.apply(circle.id, distribute_on_circle(circle.entities), "Distribute on circle")
    print()

    print("--- Keyframe 3: quarter turn ---")
    turn = store.add_keyframe(duration=6.0)
    session = RotateSession(turn.id, turn.entities)
    for step in range(1, 10):
        store.drag(session, deg2rad(10 * step))
    store.commit(session, "Rotate 90°")
    store.fit_duration(circle.id)
    print()

    print("--- Undo / redo ---")
    store.undo()
    store.redo()
    print()

    trajectory = compile_trajectory(store.drill, interval_ms=250)
    print(f"Compiled {len(trajectory)} waypoints over {trajectory.total_duration_s:.1f}s")
    print()

    run_playback(store.drill, fps=10, playback_speed=2.0)

    print()
    print("=== Demo Complete ===")


if __name__ == "__main__":
    main()
