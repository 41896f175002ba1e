#!/usr/bin/env python3
"""
CLI entry point for inspecting and playing drills.

Summary and warnings:
    python -m quadrille.choreography --drill opening.json

Poses at a point in time:
    python -m quadrille.choreography --drill opening.json --at 12.5

Path of one rider through the whole drill:
    python -m quadrille.choreography --drill opening.json --path 3

Fixed-interval waypoints:
    python -m quadrille.choreography --drill opening.json --compile --interval 250

Real-time playback:
    python -m quadrille.choreography --drill opening.json --play --speed 2
"""
import argparse
import sys
from pathlib import Path
from typing import List

from ..base import rad2deg
from .runner import DEFAULT_FPS, PLAYBACK_SPEEDS, run_playback
from .script import Drill, Entity, Keyframe, load_drill
from .trajectory import build_path_preview, compile_trajectory, resolve_entities


def format_timestamp(time_s: float) -> str:
    """Format a playback time as MM:SS.mmm."""
    total_ms = int(round(time_s * 1000))
    mins, rem = divmod(total_ms, 60000)
    secs, ms = divmod(rem, 1000)
    return f"{mins:02d}:{secs:02d}.{ms:03d}"


def format_entity(entity: Entity) -> str:
    return (
        f"{str(entity.label):>6}  ({entity.position.x:7.2f}, {entity.position.y:7.2f})  "
        f"{rad2deg(entity.heading):6.1f}°  {entity.speed_class.value}"
    )


def format_keyframe(kf: Keyframe) -> str:
    name = f" {kf.name}" if kf.name else ""
    return f"  {format_timestamp(kf.timestamp)} #{kf.index}{name} ({kf.duration:.1f}s, {len(kf.entities)} riders)"


def print_entities(entities: List[Entity]) -> None:
    for entity in entities:
        print(f"  {format_entity(entity)}")


def parse_label(drill: Drill, raw: str):
    """Labels are ints or strings in JSON; match whichever the drill uses."""
    labels = {label for kf in drill.keyframes for label in kf.labels()}
    if raw in labels:
        return raw
    try:
        as_int = int(raw)
    except ValueError:
        as_int = None
    if as_int is not None and as_int in labels:
        return as_int
    raise ValueError(f"No entity labelled '{raw}' in drill '{drill.name}'")


def main():
    parser = argparse.ArgumentParser(
        description="Inspect and play equestrian drills",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )

    parser.add_argument(
        "--drill",
        required=True,
        help="Path to drill JSON file",
    )

    # Actions
    parser.add_argument(
        "--at",
        type=float,
        metavar="SECONDS",
        help="Print every rider's pose at this playback time",
    )
    parser.add_argument(
        "--path",
        metavar="LABEL",
        help="Print the path one rider follows through the drill",
    )
    parser.add_argument(
        "--compile",
        action="store_true",
        help="Compile the drill to fixed-interval waypoints",
    )
    parser.add_argument(
        "--play",
        action="store_true",
        help="Play the drill in real time",
    )

    # Options
    parser.add_argument(
        "--interval",
        type=int,
        default=100,
        metavar="MS",
        help="Waypoint interval in milliseconds for --compile (default: 100)",
    )
    parser.add_argument(
        "--samples",
        type=int,
        default=16,
        help="Points per keyframe transition for --path (default: 16)",
    )
    parser.add_argument(
        "--speed",
        type=float,
        default=1.0,
        help=f"Playback speed for --play, one of {', '.join(str(s) for s in PLAYBACK_SPEEDS)} (default: 1.0)",
    )
    parser.add_argument(
        "--fps",
        type=int,
        default=DEFAULT_FPS,
        help=f"Frames per second for --play (default: {DEFAULT_FPS})",
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Reduce output verbosity",
    )

    args = parser.parse_args()

    if args.interval <= 0:
        parser.error("--interval must be positive")
    if args.samples <= 0:
        parser.error("--samples must be positive")
    if args.fps <= 0:
        parser.error("--fps must be positive")

    verbose = not args.quiet
    drill_path = Path(args.drill)

    if not drill_path.exists():
        print(f"Error: Drill file not found: {drill_path}", file=sys.stderr)
        sys.exit(1)

    try:
        run(args, drill_path, verbose)
    except KeyboardInterrupt:
        print("\n[Choreography] Interrupted by user")
        sys.exit(130)
    except Exception as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def run(args, drill_path: Path, verbose: bool):
    drill = load_drill(drill_path)

    if verbose:
        print(f"[Choreography] Loaded '{drill.name}': {len(drill.keyframes)} keyframes, "
              f"{drill.total_duration:.1f}s")
        for kf in drill.keyframes:
            print(format_keyframe(kf))
        if drill.warnings:
            print("[Choreography] Warnings:")
            for w in drill.warnings:
                print(f"  - {w}")

    if args.at is not None:
        print(f"\n[Choreography] Poses at {format_timestamp(max(0.0, args.at))}:")
        print_entities(resolve_entities(drill.keyframes, args.at))

    if args.path is not None:
        label = parse_label(drill, args.path)
        points = build_path_preview(drill, label, samples_per_segment=args.samples)
        print(f"\n[Choreography] Path of '{label}' ({len(points)} points):")
        for p in points:
            print(f"  ({p.x:7.2f}, {p.y:7.2f})")

    if args.compile:
        trajectory = compile_trajectory(drill, interval_ms=args.interval)
        print(f"\n[Trajectory] {len(trajectory)} waypoints at {args.interval}ms intervals "
              f"over {trajectory.total_duration_s:.1f}s")
        if verbose:
            for wp in trajectory.waypoints[::max(1, len(trajectory) // 10)]:
                print(f"  {format_timestamp(wp.time_s)}")
                print_entities(wp.entities)

    if args.play:
        run_playback(drill, fps=args.fps, playback_speed=args.speed, verbose=verbose)


if __name__ == "__main__":
    main()
