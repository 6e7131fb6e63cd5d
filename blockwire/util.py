"""Usernames, chunk view distances, direction angles and ray/box geometry."""

import math
import string
from dataclasses import dataclass
from typing import Iterator, Optional, Sequence, Tuple

Vec3 = Tuple[float, float, float]

EXTRA_RADIUS = 3
"""Chunks this far beyond the view distance are still considered visible."""

_USERNAME_CHARS = frozenset(string.ascii_letters + string.digits + "_")


@dataclass(frozen=True, order=True, slots=True)
class ChunkPos:
    """The position of a chunk column in chunk coordinates."""

    x: int
    z: int


def _vec3(v: Sequence[float]) -> Vec3:
    x, y, z = v
    return (float(x), float(y), float(z))


@dataclass(frozen=True, slots=True)
class Aabb:
    """An axis-aligned bounding box given by its minimum and maximum corners."""

    min: Vec3
    max: Vec3

    def __post_init__(self) -> None:
        object.__setattr__(self, "min", _vec3(self.min))
        object.__setattr__(self, "max", _vec3(self.max))

    def is_valid(self) -> bool:
        """True if every component of ``min`` is at most that of ``max``."""
        return all(lo <= hi for lo, hi in zip(self.min, self.max))


def valid_username(s: str) -> bool:
    """True if ``s`` matches ``^[a-zA-Z0-9_]{3,16}$``."""
    return 3 <= len(s) <= 16 and all(c in _USERNAME_CHARS for c in s)


def _check_distance(distance: int) -> None:
    if not 0 <= distance <= 255:
        raise ValueError(f"view distance must fit in a byte: {distance}")


def is_chunk_in_view_distance(p0: ChunkPos, p1: ChunkPos, distance: int) -> bool:
    """True if a client in chunk ``p0`` can see chunk ``p1`` at ``distance``."""
    _check_distance(distance)
    dx = float(p0.x) - float(p1.x)
    dz = float(p0.z) - float(p1.z)
    return dx * dx + dz * dz <= (float(distance) + EXTRA_RADIUS) ** 2


def chunks_in_view_distance(center: ChunkPos, distance: int) -> Iterator[ChunkPos]:
    """Yield every chunk position within ``distance`` of ``center``, row by row."""
    _check_distance(distance)
    reach = distance + EXTRA_RADIUS
    for z in range(center.z - reach, center.z + reach + 1):
        for x in range(center.x - reach, center.x + reach + 1):
            pos = ChunkPos(x, z)
            if is_chunk_in_view_distance(center, pos, distance):
                yield pos


def aabb_from_bottom_and_size(bottom: Sequence[float], size: Sequence[float]) -> Aabb:
    """Build a box whose bottom face is centred on ``bottom``."""
    bx, by, bz = _vec3(bottom)
    sx, sy, sz = _vec3(size)
    aabb = Aabb(
        (bx - sx / 2.0, by, bz - sz / 2.0),
        (bx + sx / 2.0, by + sy, bz + sz / 2.0),
    )
    if not aabb.is_valid():
        raise ValueError(f"size must not be negative: {size!r}")
    return aabb


def to_yaw_and_pitch(d: Sequence[float]) -> Tuple[float, float]:
    """Turn a normalized direction into ``(yaw, pitch)`` in degrees."""
    x, y, z = _vec3(d)
    yaw = math.degrees(math.atan2(z, x)) - 90.0
    pitch = -math.degrees(math.asin(y))
    return yaw, pitch


def from_yaw_and_pitch(yaw: float, pitch: float) -> Vec3:
    """Turn yaw and pitch in degrees into a normalized direction."""
    yaw_rad = math.radians(yaw + 90.0)
    pitch_rad = math.radians(-pitch)
    xz_len = math.cos(pitch_rad)
    return (math.cos(yaw_rad) * xz_len, math.sin(pitch_rad), math.sin(yaw_rad) * xz_len)


def _div(a: float, b: float) -> float:
    if b == 0.0:
        if a == 0.0 or math.isnan(a):
            return math.nan
        return math.copysign(math.inf, a) * math.copysign(1.0, b)
    return a / b


def _fmin(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    return a if a < b else b


def _fmax(a: float, b: float) -> float:
    if math.isnan(a):
        return b
    if math.isnan(b):
        return a
    return a if a > b else b


def ray_box_intersect(
    origin: Sequence[float], direction: Sequence[float], bb: Aabb
) -> Optional[Tuple[float, float]]:
    """Return ``(near, far)`` distances where the ray meets ``bb``, or None.

    ``near`` is zero when the origin lies inside the box.
    """
    near = -math.inf
    far = math.inf
    for lo, hi, o, d in zip(bb.min, bb.max, _vec3(origin), _vec3(direction)):
        t0 = _div(lo - o, d)
        t1 = _div(hi - o, d)
        near = _fmax(near, _fmin(t0, t1))
        far = _fmin(far, _fmax(t0, t1))
    if near <= far and far >= 0.0:
        return max(near, 0.0), far
    return None