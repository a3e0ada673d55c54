"""Negotiation of the monitor layout over the display control channel."""

from __future__ import annotations

import logging
from collections.abc import Callable, Sequence
from dataclasses import dataclass
from typing import Protocol

from hyperdesk.monitor_layout import MAX_MONITORS, MonitorLayout

__all__ = [
    "DEFAULT_MONITOR_COUNT",
    "MONITOR_PRIMARY",
    "ORIENTATION_LANDSCAPE",
    "MONITOR_WIDTH_PX",
    "MONITOR_HEIGHT_PX",
    "PHYSICAL_WIDTH_MM",
    "PHYSICAL_HEIGHT_MM",
    "DisplayControlError",
    "MonitorLayoutEntry",
    "DisplayChannel",
    "build_layout",
    "DisplayControl",
]

log = logging.getLogger(__name__)

DEFAULT_MONITOR_COUNT = 3
MONITOR_PRIMARY = 0x00000001
ORIENTATION_LANDSCAPE = 0
MONITOR_WIDTH_PX = 1920
MONITOR_HEIGHT_PX = 1080
# Physical size of a notional 24-inch display at 96 DPI.
PHYSICAL_WIDTH_MM = 527
PHYSICAL_HEIGHT_MM = 296
_SCALE_FACTOR = 100


class DisplayControlError(Exception):
    """The monitor layout could not be sent."""


@dataclass(frozen=True)
class MonitorLayoutEntry:
    """One monitor of a monitor layout request."""

    flags: int
    left: int
    top: int
    width: int
    height: int
    physical_width: int
    physical_height: int
    orientation: int
    desktop_scale_factor: int
    device_scale_factor: int

    @property
    def primary(self) -> bool:
        return bool(self.flags & MONITOR_PRIMARY)


class DisplayChannel(Protocol):
    """The display control channel of a session."""

    def send_monitor_layout(self, entries: Sequence[MonitorLayoutEntry]) -> None:
        """Send a layout; raises DisplayControlError on failure."""
        ...


def _desktop_left(monitor_idx: int) -> int:
    # Monitor i occupies desktop x in [i*1920, (i+1)*1920); the primary sits at 0.
    return monitor_idx * MONITOR_WIDTH_PX


def _clamp_count(monitor_count: int) -> int:
    return max(1, min(monitor_count, MAX_MONITORS))


def build_layout(monitor_count: int) -> list[MonitorLayoutEntry]:
    """Layout entries for up to `monitor_count` monitors, left to right."""
    if monitor_count < 0:
        raise ValueError("monitor count cannot be negative")
    capped = min(monitor_count, MAX_MONITORS)
    ordered = sorted(((_desktop_left(i), i) for i in range(capped)))
    return [
        MonitorLayoutEntry(
            flags=MONITOR_PRIMARY if idx == 0 else 0,
            left=left,
            top=0,
            width=MONITOR_WIDTH_PX,
            height=MONITOR_HEIGHT_PX,
            physical_width=PHYSICAL_WIDTH_MM,
            physical_height=PHYSICAL_HEIGHT_MM,
            orientation=ORIENTATION_LANDSCAPE,
            desktop_scale_factor=_SCALE_FACTOR,
            device_scale_factor=_SCALE_FACTOR,
        )
        for left, idx in ordered
    ]


class DisplayControl:
    """Requests a monitor layout from the server and applies it to the scene."""

    def __init__(
        self,
        layout: MonitorLayout,
        on_config_applied: Callable[[int], None] | None = None,
    ) -> None:
        self._layout = layout
        self._channel: DisplayChannel | None = None
        self._max_monitors = 0
        self._requested = DEFAULT_MONITOR_COUNT
        self.on_config_applied = on_config_applied

    @property
    def attached(self) -> bool:
        return self._channel is not None

    @property
    def max_monitors(self) -> int:
        """Monitor limit announced by the server, 0 until its capabilities arrive."""
        return self._max_monitors

    @property
    def requested_monitor_count(self) -> int:
        return self._requested

    def attach(self, channel: DisplayChannel) -> None:
        """Use `channel`; the server limit is forgotten until new capabilities arrive."""
        self._channel = channel
        self._max_monitors = 0
        log.info("display control channel attached")

    def on_caps(
        self,
        max_num_monitors: int,
        max_monitor_area_factor_a: int,
        max_monitor_area_factor_b: int,
    ) -> None:
        """Handle the server's capabilities by sending the requested layout."""
        self._max_monitors = max_num_monitors
        log.info(
            "caps received: max monitors=%d max area=%d",
            max_num_monitors, max_monitor_area_factor_a,
        )
        requested = _clamp_count(self._requested)
        count = min(max_num_monitors, requested)
        if count == 0:
            log.error("server reports zero monitors")
            self.activate_monitor_count(0)
            return
        if max_num_monitors < requested:
            log.warning(
                "server caps monitor count to %d (requested=%d)", max_num_monitors, requested
            )
        elif requested < MAX_MONITORS:
            log.info("applying initial monitor request %d/%d", requested, MAX_MONITORS)
        self.send_monitor_layout(count)

    def send_monitor_layout(self, monitor_count: int) -> None:
        """Send a layout of `monitor_count` monitors and activate them."""
        if self._channel is None:
            raise DisplayControlError("monitor layout sent before a channel was attached")
        entries = build_layout(monitor_count)
        if not entries:
            raise DisplayControlError("no monitor layout entries to send")
        self._channel.send_monitor_layout(entries)
        log.info("layout sent (%d monitors)", len(entries))
        self.activate_monitor_count(len(entries))

    def activate_monitor_count(self, monitor_count: int) -> None:
        """Show `monitor_count` monitors (between 1 and the maximum)."""
        capped = _clamp_count(monitor_count)
        self._requested = capped
        self._layout.set_active_count(capped)
        if self.on_config_applied is not None:
            self.on_config_applied(capped)

    def request_monitor_count(self, monitor_count: int) -> bool:
        """Ask for `monitor_count` monitors; False if capped by the server or not sent."""
        requested = _clamp_count(monitor_count)
        server_cap = self._max_monitors or MAX_MONITORS
        capped = min(requested, server_cap)
        self._requested = capped

        if capped != requested:
            log.warning(
                "requested %d monitor(s), capped to %d by server", requested, capped
            )
            self.activate_monitor_count(capped)
            return False

        if self._channel is None:
            self.activate_monitor_count(capped)
            return True

        try:
            self.send_monitor_layout(capped)
        except DisplayControlError as exc:
            log.error("sending monitor layout failed: %s", exc)
            return False
        return True

    def set_requested_monitor_count(self, monitor_count: int) -> None:
        """Set the count sent once the server's capabilities arrive."""
        self._requested = _clamp_count(monitor_count)