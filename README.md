# hyperdesk

The core of a virtual multi-monitor desktop. Up to 16 remote-desktop monitors are placed on a curved wall around the viewer. The package has these modules:

- **`hyperdesk.vecmath`** holds the small geometry types: `Vec2`, `Vec3`, `Quat`, `Pose` and `yaw_quat`.
- **`hyperdesk.monitor_layout`** provides `MonitorLayout` and `MonitorDescriptor`.
  - `MonitorLayout` places the monitors along an arc.
  - It can anchor monitor 0 to a head pose (`anchor_primary_to_head_pose`).
  - It can split the monitors into two rows (`set_split_rows`).
  - It can nudge or rotate the wall (`nudge_anchor`, `rotate_anchor_yaw`, `rotate_anchor_yaw_around_pivot`).
  - It scrolls the wall like a carousel (`update_carousel`, `update_head_scroll`, `reveal_monitor`, `reset_scroll`).
  - It tracks which monitors are active (`set_active_count`, `set_monitor_active`, `is_monitor_active`).
- **`hyperdesk.frustum_culler`** provides `FrustumCuller`.
  - `test_monitor` checks whether a monitor centre lies in the view cone of a stereo pair of views.
  - `update_all` pauses the decoder of each monitor that is out of view, and resumes it when the monitor comes back into view. A monitor must stay out of view for a short hysteresis before it is paused.
  - Decoders are any objects that follow the `Decoder` protocol.
- **`hyperdesk.display_control`** provides `DisplayControl`, which negotiates the monitor count with a server over a `DisplayChannel`.
  - It handles the server's capabilities in `on_caps`.
  - A count can be asked for with `request_monitor_count`, or set for the next capabilities with `set_requested_monitor_count`.
  - The chosen count is applied to a `MonitorLayout`.
  - `build_layout` returns the `MonitorLayoutEntry` list for a given monitor count. The entries run left to right, and monitor 0 is primary at x=0.
  - Send failures raise `DisplayControlError`.
- **`hyperdesk.gfx_router`** provides `SurfaceRouter`.
  - It maps graphics-pipeline surfaces to monitors by creation order (`create_surface`) or by desktop origin (`map_surface_to_output`).
  - It hands AVC420 (H.264) payloads to the mapped monitor (`surface_command`, `dispatch_frame`).
  - When another codec is seen, it switches to a software fallback. At `end_frame` it then crops each monitor's 1920-pixel column out of a BGRA framebuffer.
  - It also provides `codec_name` and `monitor_from_desktop_origin_x`.

## Installation

```
pip install .
```

The package has no runtime dependencies.

## Example

```python
from hyperdesk.monitor_layout import MonitorLayout
from hyperdesk.display_control import DisplayControl, build_layout

layout = MonitorLayout()
layout.set_active_count(3)
print(layout.get_monitor(1).world_pose)

control = DisplayControl(layout)
control.request_monitor_count(2)   # no channel attached yet: applied locally
print([entry.left for entry in build_layout(2)])   # [0, 1920]
```

## What the package does not do

The package covers layout, culling, layout negotiation and frame routing only. It does not cover:

- **Connections.** It opens no remote-desktop session and makes no network connection. `DisplayChannel` is a protocol that the caller implements.
- **Decoding and rendering.** Monitors and decoders are supplied by the caller as objects that follow the `FrameSink` and `Decoder` protocols.
- **Input.** The package does not read keyboard or mouse input and does not forward it to a server.
- **Command-line tool.** It offers no command.

## Running the tests

```
pip install .[test]
pytest
```