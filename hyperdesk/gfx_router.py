"""Routing of graphics-pipeline surfaces and frames to virtual monitors."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from enum import IntEnum
from typing import Protocol

from hyperdesk.display_control import MONITOR_WIDTH_PX
from hyperdesk.monitor_layout import MAX_MONITORS

__all__ = [
    "GfxCodec",
    "FrameSink",
    "codec_name",
    "monitor_from_desktop_origin_x",
    "SurfaceRouter",
]

log = logging.getLogger(__name__)

_BYTES_PER_PIXEL = 4


class GfxCodec(IntEnum):
    """Codec identifiers of graphics-pipeline surface commands."""

    UNCOMPRESSED = 0x0000
    CAVIDEO = 0x0003
    CLEARCODEC = 0x0008
    CAPROGRESSIVE = 0x0009
    PLANAR = 0x000A
    AVC420 = 0x000B
    ALPHA = 0x000C
    CAPROGRESSIVE_V2 = 0x000D
    AVC444 = 0x000E
    AVC444v2 = 0x000F


class FrameSink(Protocol):
    """A virtual monitor that accepts compressed or software-decoded frames."""

    def submit_frame(self, data: bytes, presentation_time_us: int) -> None: ...

    def submit_software_frame(
        self, bgra: memoryview, width: int, height: int, stride: int
    ) -> None: ...


def codec_name(codec_id: int) -> str:
    """Readable name of a codec identifier, or "UNKNOWN"."""
    try:
        return GfxCodec(codec_id).name
    except ValueError:
        return "UNKNOWN"


def monitor_from_desktop_origin_x(x: int) -> int:
    """Monitor index whose desktop column contains `x` (monitors are laid out left to right)."""
    if x < 0:
        return 0
    return min(x // MONITOR_WIDTH_PX, MAX_MONITORS - 1)


class SurfaceRouter:
    """Maps remote surfaces to monitors and hands frames to those monitors."""

    def __init__(
        self,
        monitors: Sequence[FrameSink | None],
        monitor_count: int | None = None,
    ) -> None:
        self._monitors: list[FrameSink | None] = list(monitors[:MAX_MONITORS])
        self._monitors += [None] * (MAX_MONITORS - len(self._monitors))
        count = len(monitors) if monitor_count is None else monitor_count
        self._monitor_count = max(0, min(count, MAX_MONITORS))
        self._surface_ids: list[int | None] = []
        self._surface_to_monitor: list[int | None] = []
        self._frame_counts: list[int] = []
        self._next_monitor = 0
        self._fallback_active = False
        self._fallback_pending = False
        self._fallback_logged = False
        self.reset()

    @property
    def monitor_count(self) -> int:
        return self._monitor_count

    @property
    def software_fallback_active(self) -> bool:
        """True once a surface command arrived in a codec other than AVC420."""
        return self._fallback_active

    @property
    def frame_counts(self) -> tuple[int, ...]:
        """Frames handed to each monitor since the last reset."""
        return tuple(self._frame_counts)

    def reset(self) -> None:
        """Forget every surface mapping, frame count and fallback state."""
        self._surface_ids = [None] * MAX_MONITORS
        self._surface_to_monitor = [None] * MAX_MONITORS
        self._frame_counts = [0] * MAX_MONITORS
        self._next_monitor = 0
        self._fallback_active = False
        self._fallback_pending = False
        self._fallback_logged = False

    def _slot_of(self, surface_id: int) -> int | None:
        try:
            return self._surface_ids.index(surface_id)
        except ValueError:
            return None

    def create_surface(self, surface_id: int, width: int, height: int) -> int | None:
        """Bind a new surface to a monitor; returns its monitor index or None."""
        slot = self._slot_of(surface_id)
        if slot is None:
            try:
                slot = self._surface_ids.index(None)
            except ValueError:
                log.error("surface table full, dropping %d", surface_id)
                return None

        monitor_idx = self._surface_to_monitor[slot]
        if monitor_idx is None:
            if self._next_monitor >= self._monitor_count:
                log.warning("no free monitor slot for surface %d", surface_id)
                return None
            monitor_idx = self._next_monitor
            self._next_monitor += 1

        self._surface_ids[slot] = surface_id
        self._surface_to_monitor[slot] = monitor_idx
        log.info("surface %d -> monitor[%d] %dx%d", surface_id, monitor_idx, width, height)
        return monitor_idx

    def delete_surface(self, surface_id: int) -> bool:
        """Drop a surface's mapping; returns whether it was known."""
        slot = self._slot_of(surface_id)
        if slot is None:
            return False
        self._surface_ids[slot] = None
        self._surface_to_monitor[slot] = None
        log.warning("surface %d deleted", surface_id)
        return True

    def map_surface_to_output(self, surface_id: int, origin_x: int, origin_y: int) -> int:
        """Remap a surface by its desktop origin; returns the monitor index chosen."""
        monitor_idx = (
            0 if self._monitor_count <= 1 else monitor_from_desktop_origin_x(origin_x)
        )
        slot = self._slot_of(surface_id)
        if slot is not None:
            previous = self._surface_to_monitor[slot]
            self._surface_to_monitor[slot] = monitor_idx
            if previous != monitor_idx:
                log.info(
                    "surface %d remapped: monitor[%s] -> monitor[%d] @ (%d,%d)",
                    surface_id, previous, monitor_idx, origin_x, origin_y,
                )
        log.info(
            "surface %d @ (%d,%d) -> monitor[%d]", surface_id, origin_x, origin_y, monitor_idx
        )
        return monitor_idx

    def monitor_for_surface(self, surface_id: int) -> int | None:
        """Monitor index a surface is mapped to, or None."""
        slot = self._slot_of(surface_id)
        return None if slot is None else self._surface_to_monitor[slot]

    def surface_command(self, surface_id: int, codec_id: int, data: bytes) -> bool:
        """Handle a surface command; returns whether a frame reached a monitor."""
        if codec_id != GfxCodec.AVC420:
            log.warning(
                "codec=%s(%d) surface=%d bytes=%d",
                codec_name(codec_id), codec_id, surface_id, len(data),
            )
            self._fallback_active = True
            self._fallback_pending = True
            if not self._fallback_logged:
                self._fallback_logged = True
                log.warning("software fallback (non-H.264 codec)")
            return False

        if not data:
            log.warning("AVC420 stream missing data")
            return False
        return self.dispatch_frame(surface_id, data, 0)

    def dispatch_frame(self, surface_id: int, data: bytes, presentation_time_us: int) -> bool:
        """Hand a compressed frame to the surface's monitor; False if it has none."""
        monitor_idx = self.monitor_for_surface(surface_id)
        if monitor_idx is None or monitor_idx >= self._monitor_count:
            log.warning("no monitor mapped for surface %d", surface_id)
            return False
        monitor = self._monitors[monitor_idx]
        if monitor is None:
            log.warning("no monitor at index %d for surface %d", monitor_idx, surface_id)
            return False

        self._frame_counts[monitor_idx] += 1
        if self._frame_counts[monitor_idx] == 1:
            log.info("monitor[%d] first H264 frame (%d bytes)", monitor_idx, len(data))
        monitor.submit_frame(data, presentation_time_us)
        return True

    def end_frame(self, buffer: bytes, width: int, height: int, stride: int) -> bool:
        """Finish a frame; pushes the software framebuffer if fallback frames are pending."""
        if not (self._fallback_active and self._fallback_pending):
            return False
        self.push_software_frame(buffer, width, height, stride)
        self._fallback_pending = False
        return True

    def push_software_frame(self, buffer: bytes, width: int, height: int, stride: int) -> int:
        """Crop each monitor's column out of a BGRA framebuffer; returns monitors fed."""
        if not buffer or width <= 0 or height <= 0 or stride <= 0:
            log.error("software frame unavailable")
            return 0

        view = memoryview(buffer)
        fed = 0
        for monitor_idx in range(self._monitor_count):
            monitor = self._monitors[monitor_idx]
            if monitor is None:
                continue
            offset_x = monitor_idx * MONITOR_WIDTH_PX
            if offset_x + MONITOR_WIDTH_PX > width:
                continue
            region = view[offset_x * _BYTES_PER_PIXEL:]
            monitor.submit_software_frame(region, MONITOR_WIDTH_PX, height, stride)
            fed += 1
            self._frame_counts[monitor_idx] += 1
            if self._frame_counts[monitor_idx] == 1:
                log.info(
                    "monitor[%d] first software frame (crop x=%d %dx%d)",
                    monitor_idx, offset_x, MONITOR_WIDTH_PX, height,
                )
        return fed