"""
Choreography module for equestrian drills.

Usage:
    from quadrille.choreography import load_drill, resolve_entities, compile_trajectory

    drill = load_drill("opening.json")
    riders = resolve_entities(drill.keyframes, 12.5)
    trajectory = compile_trajectory(drill, interval_ms=100)

    # Editing with undo/redo:
    store = DrillStore(drill)
    kf = store.current_keyframe
    store.apply(kf.id, distribute_on_circle(kf.entities), "Circle")
    store.undo()

CLI:
    python -m quadrille.choreography --drill opening.json --at 12.5
    python -m quadrille.choreography --drill opening.json --play --speed 2
"""
from .script import (
    Drill,
    Entity,
    Keyframe,
    SpeedClass,
    Label,
    generate_id,
    load_drill,
    drill_from_dict,
    drill_to_dict,
    validate_drill,
    DEFAULT_DURATION_S,
    ARENA_LENGTH_M,
    ARENA_WIDTH_M,
    GAIT_SPEEDS_MPS,
)
from .interpolation import (
    EasingType,
    FramePosition,
    linear_interpolate,
    lerp_point,
    apply_easing,
    locate,
)
from .trajectory import (
    PathConfig,
    DEFAULT_PATH_CONFIG,
    BezierCurve,
    PathSample,
    SampledPath,
    Trajectory,
    Waypoint,
    build_curve,
    curve_strength,
    sample_curve,
    remap,
    resolve_heading,
    interpolate_entity,
    resolve_entities,
    build_path_preview,
    compile_trajectory,
)
from .formation import (
    EntityUpdate,
    GestureSession,
    TranslateSession,
    RotateSession,
    ScaleSession,
    circumcenter,
    group_pivot,
    align_horizontally,
    align_vertically,
    distribute_on_line,
    distribute_on_circle,
)
from .history import (
    Command,
    History,
)
from .store import DrillStore
from .pacing import (
    MIN_DURATION_S,
    MAX_DURATION_S,
    compute_duration,
    max_distance_moved,
)
from .runner import (
    Playback,
    PlaybackState,
    PLAYBACK_SPEEDS,
    run_playback,
    snap_speed,
)

__all__ = [
    # Data structures
    "Drill",
    "Entity",
    "Keyframe",
    "SpeedClass",
    "Label",
    "FramePosition",
    "EntityUpdate",
    "Trajectory",
    "Waypoint",
    "EasingType",
    "PathConfig",
    # Loading/compiling
    "load_drill",
    "drill_from_dict",
    "drill_to_dict",
    "validate_drill",
    "generate_id",
    "compile_trajectory",
    "build_path_preview",
    # Interpolation and paths
    "locate",
    "linear_interpolate",
    "lerp_point",
    "apply_easing",
    "BezierCurve",
    "PathSample",
    "SampledPath",
    "build_curve",
    "curve_strength",
    "sample_curve",
    "remap",
    "resolve_heading",
    "interpolate_entity",
    "resolve_entities",
    "DEFAULT_PATH_CONFIG",
    # Formations and gestures
    "circumcenter",
    "group_pivot",
    "align_horizontally",
    "align_vertically",
    "distribute_on_line",
    "distribute_on_circle",
    "GestureSession",
    "TranslateSession",
    "RotateSession",
    "ScaleSession",
    # Editing
    "Command",
    "History",
    "DrillStore",
    # Pacing
    "compute_duration",
    "max_distance_moved",
    "GAIT_SPEEDS_MPS",
    "MIN_DURATION_S",
    "MAX_DURATION_S",
    # Playback
    "Playback",
    "PlaybackState",
    "run_playback",
    "snap_speed",
    "PLAYBACK_SPEEDS",
    # Constants
    "DEFAULT_DURATION_S",
    "ARENA_LENGTH_M",
    "ARENA_WIDTH_M",
]
