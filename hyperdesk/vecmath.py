"""Small vector, quaternion and pose types for placing monitors in 3D space."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

__all__ = ["Vec2", "Vec3", "Quat", "Pose", "yaw_quat"]


@dataclass(frozen=True)
class Vec2:
    """A 2D vector."""

    x: float = 0.0
    y: float = 0.0


@dataclass(frozen=True)
class Vec3:
    """A 3D vector."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0

    def __add__(self, other: Vec3) -> Vec3:
        return Vec3(self.x + other.x, self.y + other.y, self.z + other.z)

    def __sub__(self, other: Vec3) -> Vec3:
        return Vec3(self.x - other.x, self.y - other.y, self.z - other.z)

    def __mul__(self, s: float) -> Vec3:
        return Vec3(self.x * s, self.y * s, self.z * s)

    __rmul__ = __mul__

    def __neg__(self) -> Vec3:
        return Vec3(-self.x, -self.y, -self.z)

    def dot(self, other: Vec3) -> float:
        """Dot product."""
        return self.x * other.x + self.y * other.y + self.z * other.z

    def cross(self, other: Vec3) -> Vec3:
        """Cross product."""
        return Vec3(
            self.y * other.z - self.z * other.y,
            self.z * other.x - self.x * other.z,
            self.x * other.y - self.y * other.x,
        )

    def length(self) -> float:
        return math.sqrt(self.dot(self))

    def normalized(self, fallback: Vec3 | None = None) -> Vec3:
        """Unit vector in this direction; `fallback` (default -Z) when nearly zero."""
        length_sq = self.dot(self)
        if length_sq <= 1e-6:
            return fallback if fallback is not None else Vec3(0.0, 0.0, -1.0)
        inv = 1.0 / math.sqrt(length_sq)
        return Vec3(self.x * inv, self.y * inv, self.z * inv)


@dataclass(frozen=True)
class Quat:
    """A rotation quaternion (x, y, z, w); the default is the identity."""

    x: float = 0.0
    y: float = 0.0
    z: float = 0.0
    w: float = 1.0

    def __mul__(self, b: Quat) -> Quat:
        a = self
        return Quat(
            a.w * b.x + a.x * b.w + a.y * b.z - a.z * b.y,
            a.w * b.y - a.x * b.z + a.y * b.w + a.z * b.x,
            a.w * b.z + a.x * b.y - a.y * b.x + a.z * b.w,
            a.w * b.w - a.x * b.x - a.y * b.y - a.z * b.z,
        )

    def rotate(self, v: Vec3) -> Vec3:
        """Rotate vector `v` by this quaternion."""
        u = Vec3(self.x, self.y, self.z)
        cross_uv = u.cross(v)
        cross_u_cross_uv = u.cross(cross_uv)
        return v + cross_uv * (2.0 * self.w) + cross_u_cross_uv * 2.0


@dataclass(frozen=True)
class Pose:
    """A position and orientation."""

    position: Vec3 = field(default_factory=Vec3)
    orientation: Quat = field(default_factory=Quat)


def yaw_quat(yaw: float) -> Quat:
    """Rotation of `yaw` radians about the vertical (Y) axis."""
    half = yaw * 0.5
    return Quat(0.0, math.sin(half), 0.0, math.cos(half))