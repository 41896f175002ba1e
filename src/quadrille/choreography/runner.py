"""
Drill playback - a clock over the drill timeline and a real-time loop driving it.
"""
from __future__ import annotations

import time
from enum import Enum
from typing import Callable, List, Optional

from .interpolation import locate
from .script import Drill, Entity
from .trajectory import DEFAULT_PATH_CONFIG, PathConfig, resolve_entities

PLAYBACK_SPEEDS = (0.5, 1.0, 1.5, 2.0)
DEFAULT_FPS = 30

FrameCallback = Callable[[float, List[Entity]], None]


class PlaybackState(Enum):
    STOPPED = "stopped"
    PLAYING = "playing"
    PAUSED = "paused"


def snap_speed(speed: float) -> float:
    """Nearest supported playback speed."""
    return min(PLAYBACK_SPEEDS, key=lambda s: abs(s - speed))


class Playback:
    """
    Playback clock for a drill.

    Time only moves forward while playing, scaled by the playback speed,
    and stops at the drill's total duration. Seeking is allowed in any state.
    """

    def __init__(self, drill: Drill, playback_speed: float = 1.0):
        self.drill = drill
        self.state = PlaybackState.STOPPED
        self.current_time = 0.0
        self.playback_speed = snap_speed(playback_speed)

    @property
    def is_playing(self) -> bool:
        return self.state == PlaybackState.PLAYING

    def play(self) -> None:
        if self.current_time >= self.drill.total_duration:
            self.current_time = 0.0
        self.state = PlaybackState.PLAYING

    def pause(self) -> None:
        if self.state == PlaybackState.PLAYING:
            self.state = PlaybackState.PAUSED

    def stop(self) -> None:
        """Stop and rewind to the start."""
        self.state = PlaybackState.STOPPED
        self.current_time = 0.0

    def seek(self, time_s: float) -> None:
        self.current_time = max(0.0, time_s)

    def set_speed(self, speed: float) -> float:
        self.playback_speed = snap_speed(speed)
        return self.playback_speed

    def advance(self, dt: float) -> float:
        """
        Move the clock forward by ``dt`` wall-clock seconds.

        Reaching the end of the drill stops playback there (without rewinding).

        Returns:
            Current playback time
        """
        if self.state != PlaybackState.PLAYING or dt <= 0:
            return self.current_time

        total = self.drill.total_duration
        new_time = self.current_time + dt * self.playback_speed
        if new_time >= total:
            self.state = PlaybackState.STOPPED
            new_time = total
        self.current_time = new_time
        return new_time

    def current_keyframe_index(self) -> Optional[int]:
        position = locate(self.drill.keyframes, self.current_time)
        return position.index if position is not None else None

    def entities(self, config: PathConfig = DEFAULT_PATH_CONFIG) -> List[Entity]:
        """Displayed poses at the current time."""
        return resolve_entities(self.drill.keyframes, self.current_time, config)


def run_playback(
    drill: Drill,
    *,
    fps: int = DEFAULT_FPS,
    playback_speed: float = 1.0,
    on_frame: Optional[FrameCallback] = None,
    verbose: bool = True,
    config: PathConfig = DEFAULT_PATH_CONFIG,
) -> Playback:
    """
    Play a drill in real time from start to end.

    Resolves every entity once per frame using high-resolution timing and
    hands the result to ``on_frame(time_s, entities)``.

    Args:
        drill: Drill to play
        fps: Frames per second
        playback_speed: Speed multiplier, snapped to a supported value
        on_frame: Called once per frame, including the final one
        verbose: Print status messages
        config: Path tuning

    Returns:
        The finished playback clock
    """
    if fps <= 0:
        raise ValueError(f"fps must be positive (got {fps})")

    playback = Playback(drill, playback_speed)
    frame_s = 1.0 / fps

    if verbose:
        print(f"[Playback] '{drill.name}': {len(drill.keyframes)} keyframes over {drill.total_duration:.1f}s")
        print(f"[Playback] {fps} fps at {playback.playback_speed}x")

    playback.play()
    start_time = time.perf_counter()
    last_tick = start_time
    last_print_time = 0.0
    last_index = None
    frames = 0

    while True:
        now = time.perf_counter()
        playback.advance(now - last_tick)
        last_tick = now

        if on_frame is not None:
            on_frame(playback.current_time, playback.entities(config))
        frames += 1

        index = playback.current_keyframe_index()
        if verbose and index != last_index:
            name = drill.keyframes[index].name if index is not None else None
            print(f"[{playback.current_time:6.1f}s] Keyframe {index}" + (f" - {name}" if name else ""))
            last_index = index
        elif verbose and playback.current_time - last_print_time >= 1.0:
            print(f"[{playback.current_time:6.1f}s] (elapsed: {now - start_time:.2f}s)")
            last_print_time = playback.current_time

        if not playback.is_playing:
            break

        wait_time = frame_s - (time.perf_counter() - now)
        if wait_time > 0:
            time.sleep(wait_time)

    if verbose:
        total = time.perf_counter() - start_time
        print(f"[Playback] Completed {frames} frames in {total:.2f}s")
    return playback
