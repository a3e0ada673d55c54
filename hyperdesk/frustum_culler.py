"""Field-of-view culling that pauses the decoders of monitors out of sight."""

from __future__ import annotations

import logging
import math
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from hyperdesk.monitor_layout import MAX_MONITORS, MonitorLayout
from hyperdesk.vecmath import Pose, Quat, Vec3

__all__ = [
    "HALF_FOV_DEGREES",
    "HYSTERESIS_FRAMES",
    "Decoder",
    "CullResult",
    "FrustumCuller",
]

log = logging.getLogger(__name__)

# Approximate horizontal half field of view of the headset.
HALF_FOV_DEGREES = 55.0
# Frames a monitor must stay out of view before its decoder is paused.
HYSTERESIS_FRAMES = 2

_FALLBACK_FORWARD = Vec3(0.0, 0.0, -1.0)


class Decoder(Protocol):
    """A video decoder that can be paused while its monitor is out of view."""

    @property
    def running(self) -> bool: ...

    def pause(self) -> None: ...

    def resume(self) -> None: ...


@dataclass(frozen=True)
class CullResult:
    """Outcome of a visibility test."""

    visible: bool
    dot_product: float


def _normalize(v: Vec3) -> Vec3:
    length = v.length()
    if length < 1e-6:
        return _FALLBACK_FORWARD
    return v * (1.0 / length)


def _forward(q: Quat) -> Vec3:
    x, y, z, w = q.x, q.y, q.z, q.w
    return Vec3(
        2.0 * (x * z + w * y),
        2.0 * (y * z - w * x),
        -(1.0 - 2.0 * (x * x + y * y)),
    )


def _cyclops_view(views: Sequence[Pose]) -> tuple[Vec3, Vec3]:
    if len(views) != 2:
        raise ValueError("expected a stereo pair of views")
    left, right = views
    eye = (left.position + right.position) * 0.5
    return eye, _forward(left.orientation)


class FrustumCuller:
    """Dot-product visibility test against a cone around the view direction."""

    def __init__(self, fov_slack_radians: float = 0.15) -> None:
        half_fov = math.radians(HALF_FOV_DEGREES)
        self._cos_threshold = math.cos(half_fov + fov_slack_radians)
        self._hysteresis = [HYSTERESIS_FRAMES] * MAX_MONITORS
        log.info(
            "cos threshold=%.4f (half fov=%.1f deg + slack=%.3f rad)",
            self._cos_threshold, HALF_FOV_DEGREES, fov_slack_radians,
        )

    @property
    def cos_threshold(self) -> float:
        return self._cos_threshold

    def _dot_to(self, eye: Vec3, forward: Vec3, position: Vec3) -> float:
        return forward.dot(_normalize(position - eye))

    def test_monitor(self, views: Sequence[Pose], monitor_position: Vec3) -> CullResult:
        """Test whether a monitor centre lies within the view cone of a stereo pair."""
        eye, forward = _cyclops_view(views)
        dp = self._dot_to(eye, forward, monitor_position)
        return CullResult(dp >= self._cos_threshold, dp)

    def update_all(
        self,
        views: Sequence[Pose],
        layout: MonitorLayout,
        decoders: Sequence[Decoder | None],
    ) -> None:
        """Pause decoders of monitors out of view and resume those back in view."""
        eye, forward = _cyclops_view(views)
        for i, decoder in enumerate(decoders[:MAX_MONITORS]):
            if decoder is None:
                continue
            position = layout.get_monitor(i).world_pose.position
            dp = self._dot_to(eye, forward, position)
            if dp >= self._cos_threshold:
                self._hysteresis[i] = HYSTERESIS_FRAMES
                if not decoder.running:
                    decoder.resume()
                    log.debug("monitor %d resumed (dp=%.3f)", i, dp)
            elif self._hysteresis[i] > 0:
                self._hysteresis[i] -= 1
            elif decoder.running:
                decoder.pause()
                log.debug("monitor %d paused (dp=%.3f)", i, dp)