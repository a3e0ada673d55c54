import math
from dataclasses import astuple

import pytest

from hyperdesk.monitor_layout import (
    ANGULAR_STEP_RADIANS,
    DEPTH,
    MAX_MONITORS,
    MonitorLayout,
)
from hyperdesk.vecmath import Pose, Quat, Vec2, Vec3, yaw_quat


def approx_tuple(obj, abs_tol=1e-6):
    return pytest.approx(astuple(obj), abs=abs_tol)


def anchored_layout():
    layout = MonitorLayout()
    layout.anchor_primary_to_head_pose(Pose())
    return layout


def test_new_layout_monitors_are_unbound_and_inactive():
    layout = MonitorLayout()
    monitors = layout.all_monitors()
    assert len(monitors) == MAX_MONITORS
    assert [m.index for m in monitors] == list(range(MAX_MONITORS))
    assert all(m.rdp_surface_id is None and not m.active for m in monitors)
    assert layout.active_count == 0


def test_default_layout_orientations_follow_arc():
    layout = MonitorLayout()
    layout.build_default_layout()
    for i, monitor in enumerate(layout.all_monitors()):
        yaw = -i * ANGULAR_STEP_RADIANS
        assert astuple(monitor.world_pose.orientation) == approx_tuple(yaw_quat(yaw))
        assert astuple(monitor.forward_normal) == approx_tuple(
            Vec3(math.sin(yaw), 0.0, math.cos(yaw))
        )
        assert monitor.size_meters == Vec2(1.92, 1.08)
        assert monitor.world_pose.position == Vec3()


def test_single_active_monitor_without_anchor_sits_at_depth():
    layout = MonitorLayout()
    layout.set_active_count(1)
    assert layout.get_monitor(0).world_pose.position == Vec3(0.0, 0.0, DEPTH)
    assert layout.is_monitor_active(0)
    assert not layout.is_monitor_active(1)
    assert layout.active_count == 1


def test_active_count_is_capped():
    layout = MonitorLayout()
    layout.set_active_count(40)
    assert layout.active_count == MAX_MONITORS
    assert all(m.active for m in layout.all_monitors())


def test_negative_active_count_rejected():
    with pytest.raises(ValueError):
        MonitorLayout().set_active_count(-1)


def test_set_all_active_matches_maximum():
    layout = MonitorLayout()
    layout.set_all_active()
    assert layout.active_count == MAX_MONITORS


def test_set_monitor_active_updates_count_and_flag():
    layout = MonitorLayout()
    layout.set_active_count(3)
    layout.set_monitor_active(1, False)
    assert layout.active_count == 2
    assert not layout.get_monitor(1).active
    layout.set_monitor_active(7, True)
    assert layout.active_count == 3
    assert layout.is_monitor_active(7)
    layout.set_monitor_active(MAX_MONITORS, True)
    assert layout.active_count == 3
    assert not layout.is_monitor_active(MAX_MONITORS)


def test_get_monitor_out_of_range():
    with pytest.raises(IndexError):
        MonitorLayout().get_monitor(MAX_MONITORS)


def test_bind_surface():
    layout = MonitorLayout()
    layout.bind_surface(2, 17)
    layout.bind_surface(MAX_MONITORS, 5)
    assert layout.get_monitor(2).rdp_surface_id == 17
    assert all(
        m.rdp_surface_id is None for m in layout.all_monitors() if m.index != 2
    )


def test_split_rows_offsets_alternate_rows():
    layout = MonitorLayout()
    layout.set_split_rows(True)
    assert layout.split_rows
    assert layout.get_monitor(0).world_pose.position == Vec3(0.0, 0.60, 0.0)
    assert layout.get_monitor(1).world_pose.position == Vec3(0.0, -0.60, 0.0)
    # Both monitors of a column share the same yaw.
    assert layout.get_monitor(2).world_pose.orientation == layout.get_monitor(3).world_pose.orientation


def test_split_rows_keeps_active_flags():
    layout = MonitorLayout()
    layout.set_active_count(4)
    layout.set_split_rows(True)
    assert [m.active for m in layout.all_monitors()][:5] == [True, True, True, True, False]


def test_anchor_to_head_pose_keeps_wall_upright():
    pitch = 0.4
    pitch_quat = Quat(math.sin(pitch / 2), 0.0, 0.0, math.cos(pitch / 2))
    head = Pose(Vec3(1.0, 2.0, 3.0), yaw_quat(0.5) * pitch_quat)
    layout = MonitorLayout()
    layout.anchor_primary_to_head_pose(head)
    primary = layout.get_monitor(0)
    assert primary.world_pose.position == Vec3(1.0, 2.0, 3.0)
    assert astuple(primary.world_pose.orientation) == approx_tuple(yaw_quat(0.5))


def test_anchored_forward_normals_match_arc():
    layout = anchored_layout()
    for i, monitor in enumerate(layout.all_monitors()):
        yaw = -i * ANGULAR_STEP_RADIANS
        assert astuple(monitor.forward_normal) == approx_tuple(
            Vec3(math.sin(yaw), 0.0, math.cos(yaw))
        )


def test_nudge_anchor_moves_primary_in_local_frame():
    layout = MonitorLayout()
    layout.build_default_layout()
    layout.nudge_anchor(1.0, 0.5, 0.25)
    assert layout.has_anchor
    assert astuple(layout.get_monitor(0).world_pose.position) == approx_tuple(
        Vec3(1.0, 0.5, 0.25)
    )


def test_rotate_anchor_yaw_turns_primary():
    layout = anchored_layout()
    layout.rotate_anchor_yaw(0.3)
    assert astuple(layout.get_monitor(0).world_pose.orientation) == approx_tuple(yaw_quat(0.3))


def test_rotate_around_pivot_preserves_distance():
    layout = anchored_layout()
    pivot = Vec3(1.0, 0.0, 0.0)
    before = (layout.get_monitor(0).world_pose.position - pivot).length()
    layout.rotate_anchor_yaw_around_pivot(0.7, pivot)
    after = (layout.get_monitor(0).world_pose.position - pivot).length()
    assert after == pytest.approx(before)
    assert astuple(layout.get_monitor(0).world_pose.orientation) == approx_tuple(yaw_quat(0.7))


def test_carousel_converges_to_comfort_boundary():
    layout = MonitorLayout()
    layout.build_default_layout()
    for _ in range(300):
        layout.update_carousel(5)
    effective = -5 * ANGULAR_STEP_RADIANS + layout.scroll_yaw
    assert effective == pytest.approx(-math.pi / 3, abs=1e-6)
    assert astuple(layout.get_monitor(5).world_pose.orientation) == approx_tuple(
        yaw_quat(effective)
    )


def test_carousel_never_scrolls_past_primary():
    layout = MonitorLayout()
    layout.build_default_layout()
    for _ in range(50):
        layout.update_carousel(0)
    assert layout.scroll_yaw == 0.0


def test_reveal_monitor_brings_it_into_view():
    layout = MonitorLayout()
    layout.build_default_layout()
    assert not layout.is_monitor_in_view(5)
    layout.reveal_monitor(5)
    assert layout.is_monitor_in_view(5)
    assert layout.is_monitor_in_view(0)
    scroll = layout.scroll_yaw
    layout.reveal_monitor(1)
    assert layout.scroll_yaw == scroll


def test_reset_scroll():
    layout = MonitorLayout()
    layout.reveal_monitor(8)
    assert layout.scroll_yaw > 0.0
    layout.reset_scroll()
    assert layout.scroll_yaw == 0.0
    assert astuple(layout.get_monitor(1).world_pose.orientation) == approx_tuple(
        yaw_quat(-ANGULAR_STEP_RADIANS)
    )


def test_is_monitor_in_view_out_of_range():
    assert not MonitorLayout().is_monitor_in_view(MAX_MONITORS)


def test_head_scroll_requires_anchor():
    layout = MonitorLayout()
    layout.update_head_scroll(Pose(Vec3(), yaw_quat(-math.pi / 2)))
    assert layout.scroll_yaw == 0.0


def test_head_scroll_at_right_angle_uses_full_speed():
    layout = anchored_layout()
    layout.update_head_scroll(Pose(Vec3(), yaw_quat(-math.pi / 2)))
    assert layout.scroll_yaw == pytest.approx(0.06, abs=1e-6)


def test_head_scroll_ignores_small_turns_and_clamps_at_zero():
    layout = anchored_layout()
    layout.update_head_scroll(Pose(Vec3(), yaw_quat(-0.5)))
    assert layout.scroll_yaw == 0.0
    layout.update_head_scroll(Pose(Vec3(), yaw_quat(math.pi / 2)))
    assert layout.scroll_yaw == 0.0


def test_toolbar_pose_without_anchor_is_primary_pose():
    layout = MonitorLayout()
    layout.build_default_layout()
    assert layout.toolbar_anchor_pose() == layout.get_monitor(0).world_pose


def test_toolbar_pose_ignores_scroll_and_follows_split_rows():
    layout = anchored_layout()
    layout.set_split_rows(True)
    layout.reveal_monitor(10)
    pose = layout.toolbar_anchor_pose()
    assert astuple(pose.position) == approx_tuple(Vec3(0.0, 0.60, 0.0))
    assert pose.orientation == Quat()