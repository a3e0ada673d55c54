"""Placement of the virtual monitors on a curved wall around the viewer."""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field

from hyperdesk.vecmath import Pose, Quat, Vec2, Vec3, yaw_quat

__all__ = [
    "MAX_MONITORS",
    "ANGULAR_STEP_RADIANS",
    "DEPTH",
    "MonitorDescriptor",
    "MonitorLayout",
]

log = logging.getLogger(__name__)

MAX_MONITORS = 16
GRID_COLS = 16
GRID_ROWS = 1
# Horizontal angular spacing between adjacent monitor columns (36 degrees).
ANGULAR_STEP_RADIANS = 0.62831853
# Physical spacing between monitor centres, in metres.
H_SPACING = 2.0
V_SPACING = 1.15
# Distance from the stage origin to the monitor plane (negative = in front).
DEPTH = -2.5

_ARC_RADIUS = 1.6
_SPLIT_ROW_OFFSET_Y = 0.60
_MONITOR_SIZE = Vec2(1.92, 1.08)
_FORWARD = Vec3(0.0, 0.0, -1.0)

_SCROLL_THRESHOLD = 1.0471975  # 60 degrees
_SCROLL_SMOOTHING = 0.12
_HEAD_THRESHOLD = 1.3089969  # 75 degrees
_HEAD_RANGE = 1.5707963 - _HEAD_THRESHOLD
_MAX_HEAD_SCROLL_SPEED = 0.06  # radians per update at 90 degrees and beyond
_MAX_VIEW_ANGLE = 2.0943951  # 120 degrees


@dataclass
class MonitorDescriptor:
    """One virtual monitor: its pose, physical size and bound RDP surface."""

    index: int
    rdp_surface_id: int | None = None
    world_pose: Pose = field(default_factory=Pose)
    size_meters: Vec2 = field(default_factory=Vec2)
    forward_normal: Vec3 = field(default_factory=Vec3)
    active: bool = False


def _in_range(index: int) -> bool:
    return 0 <= index < MAX_MONITORS


def _monitor_base_yaw(index: int, split_rows: bool) -> float:
    column = index // 2 if split_rows else index
    return -float(column) * ANGULAR_STEP_RADIANS


def _canonical_position(index: int, split_rows: bool) -> Vec3:
    if not split_rows:
        return Vec3()
    offset = _SPLIT_ROW_OFFSET_Y if index % 2 == 0 else -_SPLIT_ROW_OFFSET_Y
    return Vec3(0.0, offset, 0.0)


def _head_forward(orientation: Quat) -> Vec3:
    return orientation.rotate(_FORWARD)


def _horizontal(v: Vec3) -> Vec3:
    return Vec3(v.x, 0.0, v.z).normalized(_FORWARD)


def _yaw_only_orientation(horizontal_forward: Vec3) -> Quat:
    fwd = horizontal_forward.normalized(_FORWARD)
    return yaw_quat(math.atan2(-fwd.x, -fwd.z))


class MonitorLayout:
    """Poses of up to sixteen monitors arranged along an arc, with carousel scroll."""

    MAX_MONITORS = MAX_MONITORS
    GRID_COLS = GRID_COLS
    GRID_ROWS = GRID_ROWS
    ANGULAR_STEP_RADIANS = ANGULAR_STEP_RADIANS
    H_SPACING = H_SPACING
    V_SPACING = V_SPACING
    DEPTH = DEPTH

    def __init__(self) -> None:
        self._monitors = [MonitorDescriptor(index=i) for i in range(MAX_MONITORS)]
        self._anchor_position = Vec3()
        self._anchor_orientation = Quat()
        self._has_anchor = False
        self._split_rows = False
        self._active_mask = 0
        self._active_count = 0
        self._scroll_yaw = 0.0

    # ── Read-only state ──────────────────────────────────────────────────

    @property
    def active_count(self) -> int:
        return self._active_count

    @property
    def split_rows(self) -> bool:
        return self._split_rows

    @property
    def scroll_yaw(self) -> float:
        """Current carousel scroll in radians (positive = wall shifted left)."""
        return self._scroll_yaw

    @property
    def has_anchor(self) -> bool:
        return self._has_anchor

    # ── Layout ───────────────────────────────────────────────────────────

    def _yaw(self, index: int) -> float:
        return _monitor_base_yaw(index, self._split_rows) + self._scroll_yaw

    def build_default_layout(self) -> None:
        """Recompute every monitor pose from the anchor, split mode and scroll."""
        for i, monitor in enumerate(self._monitors):
            yaw = self._yaw(i)
            monitor.index = i
            monitor.world_pose = Pose(_canonical_position(i, self._split_rows), yaw_quat(yaw))
            monitor.size_meters = _MONITOR_SIZE
            monitor.forward_normal = Vec3(math.sin(yaw), 0.0, math.cos(yaw))
        self._apply_primary_anchor()
        log.debug(
            "arc layout (%d panels max, R=%.2f, step=%.1f deg)",
            MAX_MONITORS, _ARC_RADIUS, math.degrees(ANGULAR_STEP_RADIANS),
        )

    def _apply_primary_anchor(self) -> None:
        if not self._has_anchor:
            return
        canonical_primary = _canonical_position(0, self._split_rows)
        for i, monitor in enumerate(self._monitors):
            relative = _canonical_position(i, self._split_rows) - canonical_primary
            position = self._anchor_position + self._anchor_orientation.rotate(relative)
            orientation = self._anchor_orientation * yaw_quat(self._yaw(i))
            monitor.world_pose = Pose(position, orientation)
            monitor.forward_normal = orientation.rotate(Vec3(0.0, 0.0, 1.0))

    def _ensure_anchor(self) -> None:
        if not self._has_anchor:
            primary = self._monitors[0].world_pose
            self._anchor_position = primary.position
            self._anchor_orientation = primary.orientation
            self._has_anchor = True

    def anchor_primary_to_head_pose(self, head_pose: Pose) -> None:
        """Anchor monitor 0 to the head's heading, keeping the wall upright."""
        had_anchor = self._has_anchor
        previous = self._anchor_position

        forward = _horizontal(_head_forward(head_pose.orientation))
        self._anchor_orientation = _yaw_only_orientation(forward)
        self._anchor_position = head_pose.position
        self._has_anchor = True

        self.build_default_layout()

        move = self._anchor_position - previous
        if not had_anchor or move.dot(move) > 0.0025:
            p = self._anchor_position
            log.info("primary anchored to heading at (%.2f, %.2f, %.2f)", p.x, p.y, p.z)

    # ── Monitors ─────────────────────────────────────────────────────────

    def get_monitor(self, index: int) -> MonitorDescriptor:
        """Return the descriptor of monitor `index`."""
        if not _in_range(index):
            raise IndexError(f"monitor index {index} out of range")
        return self._monitors[index]

    def all_monitors(self) -> tuple[MonitorDescriptor, ...]:
        """All monitor descriptors, in index order."""
        return tuple(self._monitors)

    def bind_surface(self, monitor_index: int, rdp_surface_id: int) -> None:
        """Record the RDP surface shown on a monitor; out-of-range indices are ignored."""
        if not _in_range(monitor_index):
            return
        self._monitors[monitor_index].rdp_surface_id = rdp_surface_id
        log.info("monitor %d bound to RDP surface %d", monitor_index, rdp_surface_id)

    def set_active_count(self, count: int) -> None:
        """Mark the first `count` monitors active (capped at the maximum)."""
        if count < 0:
            raise ValueError("monitor count cannot be negative")
        capped = min(count, MAX_MONITORS)
        self._active_mask = (1 << capped) - 1
        self._active_count = capped

        self.build_default_layout()

        if capped == 1 and not self._has_anchor:
            primary = self._monitors[0]
            primary.world_pose = Pose(Vec3(0.0, 0.0, DEPTH), primary.world_pose.orientation)

        self._refresh_active_flags()
        p = self._monitors[0].world_pose.position
        log.info(
            "%d monitor(s) active primary=(%.2f, %.2f, %.2f) anchored=%d",
            capped, p.x, p.y, p.z, int(self._has_anchor),
        )

    def set_monitor_active(self, index: int, active: bool) -> None:
        """Activate or deactivate a single monitor; out-of-range indices are ignored."""
        if not _in_range(index):
            return
        if active:
            self._active_mask |= 1 << index
        else:
            self._active_mask &= ~(1 << index)
        self._active_count = bin(self._active_mask).count("1")
        self._monitors[index].active = active

    def is_monitor_active(self, index: int) -> bool:
        if not _in_range(index):
            return False
        return bool(self._active_mask & (1 << index))

    def set_all_active(self) -> None:
        self.set_active_count(MAX_MONITORS)

    def _refresh_active_flags(self) -> None:
        for i, monitor in enumerate(self._monitors):
            monitor.active = bool(self._active_mask & (1 << i))

    def set_split_rows(self, enabled: bool) -> None:
        """Switch between one row (False) and two rows (True) of monitors."""
        if self._split_rows == enabled:
            return
        self._split_rows = enabled
        self.build_default_layout()
        self._refresh_active_flags()
        log.info("split rows %s", "enabled" if enabled else "disabled")

    # ── Anchor manipulation ──────────────────────────────────────────────

    def nudge_anchor(
        self, right_meters: float, up_meters: float, toward_viewer_meters: float
    ) -> None:
        """Move the wall in its own local frame."""
        self._ensure_anchor()
        q = self._anchor_orientation
        right = q.rotate(Vec3(1.0, 0.0, 0.0))
        up = q.rotate(Vec3(0.0, 1.0, 0.0))
        toward_viewer = q.rotate(Vec3(0.0, 0.0, 1.0))
        self._anchor_position = self._anchor_position + (
            right * right_meters + up * up_meters + toward_viewer * toward_viewer_meters
        )
        self._apply_primary_anchor()

    def rotate_anchor_yaw(self, yaw_radians: float) -> None:
        """Turn the wall about the vertical axis through its anchor."""
        self._ensure_anchor()
        if abs(yaw_radians) <= 1e-6:
            return
        self._anchor_orientation = yaw_quat(yaw_radians) * self._anchor_orientation
        self._apply_primary_anchor()

    def rotate_anchor_yaw_around_pivot(self, yaw_radians: float, pivot_position: Vec3) -> None:
        """Turn the wall about the vertical axis through `pivot_position`."""
        self._ensure_anchor()
        if abs(yaw_radians) <= 1e-6:
            return
        rotation = yaw_quat(yaw_radians)
        relative = self._anchor_position - pivot_position
        self._anchor_position = pivot_position + rotation.rotate(relative)
        self._anchor_orientation = rotation * self._anchor_orientation
        self._apply_primary_anchor()

    # ── Carousel ─────────────────────────────────────────────────────────

    def update_carousel(self, cursor_monitor_idx: int) -> None:
        """Scroll smoothly so the cursor's monitor stays within +/-60 degrees."""
        if not _in_range(cursor_monitor_idx):
            return
        base_yaw = _monitor_base_yaw(cursor_monitor_idx, self._split_rows)
        effective = base_yaw + self._scroll_yaw

        target = self._scroll_yaw
        if effective < -_SCROLL_THRESHOLD:
            target = -_SCROLL_THRESHOLD - base_yaw
        elif effective > _SCROLL_THRESHOLD:
            target = _SCROLL_THRESHOLD - base_yaw
        target = max(0.0, target)

        previous = self._scroll_yaw
        self._scroll_yaw += (target - self._scroll_yaw) * _SCROLL_SMOOTHING
        if abs(target - self._scroll_yaw) < 0.001:
            self._scroll_yaw = target

        if self._scroll_yaw != previous:
            self.build_default_layout()

    def update_head_scroll(self, head_pose: Pose) -> None:
        """Scroll when the head turns more than 75 degrees away from the wall."""
        if not self._has_anchor:
            return
        head_fwd = _horizontal(_head_forward(head_pose.orientation))
        anchor_fwd = _horizontal(self._anchor_orientation.rotate(_FORWARD))

        dot = head_fwd.dot(anchor_fwd)
        cross_y = anchor_fwd.x * head_fwd.z - anchor_fwd.z * head_fwd.x
        angle = math.atan2(cross_y, dot)

        if abs(angle) <= _HEAD_THRESHOLD:
            return

        t = min((abs(angle) - _HEAD_THRESHOLD) / _HEAD_RANGE, 1.0)
        speed = _MAX_HEAD_SCROLL_SPEED * t * t

        previous = self._scroll_yaw
        self._scroll_yaw += speed if angle > 0.0 else -speed
        self._scroll_yaw = max(0.0, self._scroll_yaw)

        if self._scroll_yaw != previous:
            self.build_default_layout()

    def reveal_monitor(self, index: int) -> None:
        """Scroll just enough that monitor `index` lies fully within +/-120 degrees."""
        if not _in_range(index):
            return
        base_yaw = _monitor_base_yaw(index, self._split_rows)
        min_effective = -_MAX_VIEW_ANGLE + ANGULAR_STEP_RADIANS * 0.5
        required = min_effective - base_yaw
        if required > self._scroll_yaw:
            self._scroll_yaw = required
            self.build_default_layout()

    def is_monitor_in_view(self, index: int) -> bool:
        """True if the monitor's centre, with scroll, is within +/-120 degrees."""
        if not _in_range(index):
            return False
        return abs(self._yaw(index)) <= _MAX_VIEW_ANGLE

    def reset_scroll(self) -> None:
        self._scroll_yaw = 0.0
        self.build_default_layout()

    def toolbar_anchor_pose(self) -> Pose:
        """The unscrolled primary pose, where the toolbar sits."""
        if not self._has_anchor:
            return self._monitors[0].world_pose
        position = self._anchor_position
        if self._split_rows:
            position = position + self._anchor_orientation.rotate(
                Vec3(0.0, _SPLIT_ROW_OFFSET_Y, 0.0)
            )
        return Pose(position, self._anchor_orientation)