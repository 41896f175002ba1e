"""Tests for timeline lookup and easing."""

import numpy as np
import pytest

from quadrille import Point
from quadrille.choreography import EasingType, FramePosition, apply_easing, lerp_point, linear_interpolate, locate


class TestLocate:
    """Test mapping playback time onto keyframes."""

    def test_empty(self):
        assert locate([], 1.0) is None

    def test_single_keyframe(self, make_drill):
        drill = make_drill([(5.0, [])])
        assert locate(drill.keyframes, 3.0) == FramePosition(0, None, 0.0)

    def test_phase_within_keyframe(self, make_drill):
        drill = make_drill([(5.0, []), (5.0, []), (2.0, [])])
        assert locate(drill.keyframes, 0.0) == FramePosition(0, 1, 0.0)
        assert locate(drill.keyframes, 2.5) == FramePosition(0, 1, 0.5)
        assert locate(drill.keyframes, 7.5) == FramePosition(1, 2, 0.5)

    def test_boundary_belongs_to_next_keyframe(self, make_drill):
        """Ranges are half-open, so t = 5 starts the second keyframe."""
        drill = make_drill([(5.0, []), (5.0, [])])
        assert locate(drill.keyframes, 5.0) == FramePosition(1, None, 0.0)

    def test_past_end_clamps(self, make_drill):
        drill = make_drill([(5.0, []), (5.0, [])])
        assert locate(drill.keyframes, 10.0) == FramePosition(1, None, 1.0)
        assert locate(drill.keyframes, 99.0) == FramePosition(1, None, 1.0)

    def test_negative_time_clamps_to_start(self, make_drill):
        drill = make_drill([(5.0, []), (5.0, [])])
        assert locate(drill.keyframes, -1.0) == FramePosition(0, 1, 0.0)

    def test_monotonic(self, make_drill):
        """Non-decreasing times never move back to an earlier keyframe."""
        drill = make_drill([(1.5, []), (0.5, []), (3.0, []), (2.0, [])])
        last_index = -1
        for t in np.linspace(-1.0, 9.0, 400):
            index = locate(drill.keyframes, float(t)).index
            assert index >= last_index
            last_index = index

    def test_idempotent(self, make_drill):
        drill = make_drill([(1.0, []), (1.0, [])])
        assert locate(drill.keyframes, 0.3) == locate(drill.keyframes, 0.3)


class TestEasing:
    """Test easing curves."""

    @pytest.mark.parametrize("easing", list(EasingType))
    def test_endpoints_fixed(self, easing):
        assert apply_easing(0.0, easing) == pytest.approx(0.0)
        assert apply_easing(1.0, easing) == pytest.approx(1.0)

    def test_ease_in_out_symmetric(self):
        assert apply_easing(0.5, EasingType.EASE_IN_OUT) == pytest.approx(0.5)
        assert apply_easing(0.25, EasingType.EASE_IN_OUT) < 0.25
        assert apply_easing(0.75, EasingType.EASE_IN_OUT) > 0.75

    def test_none_is_linear(self):
        assert apply_easing(0.3, EasingType.NONE) == 0.3


class TestLinear:
    """Test scalar and point interpolation."""

    def test_linear_interpolate(self):
        assert linear_interpolate(2.0, 4.0, 0.25) == 2.5

    def test_lerp_point(self):
        assert lerp_point(Point(0.0, 0.0), Point(10.0, -4.0), 0.5) == Point(5.0, -2.0)
