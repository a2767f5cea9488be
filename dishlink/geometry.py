"""Pointing geometry between two dishes (local Cartesian frame, metres).

Conventions:
- Azimuth is measured from the +x axis towards +y (clockwise in a y-down plan
  view, which is how the host draws its sites). Bearings use the same origin
  and sense, in [0, 360).
- Mechanical tilt of 90 deg is the horizon; elevation = tilt - 90.
- Signed angle errors are wrapped to (-180, 180].

Two ways to get a pointing error:
- True line of sight, when both dishes carry a 3-D position.
- A reciprocal-facing approximation otherwise: the target dish is assumed to
  sit where it would be if it were aimed straight back at the source. This is
  an approximation, not geometry; `PointingError.true_los` tells the paths
  apart.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional, Tuple

Vec3 = Tuple[float, float, float]

_EPS = 1e-12


@dataclass(frozen=True)
class Position:
    x: float
    y: float
    z: float

    def as_tuple(self) -> Vec3:
        return (self.x, self.y, self.z)


@dataclass(frozen=True)
class MechanicalState:
    """Mechanical pointing of one dish, owned by the host."""

    azimuth_deg: float
    tilt_deg: float
    position: Optional[Position] = None
    ideal_azimuth_deg: Optional[float] = None
    ideal_tilt_deg: Optional[float] = None


@dataclass(frozen=True)
class LineOfSight:
    bearing_deg: float
    elevation_deg: float
    los: Vec3
    distance_m: float


@dataclass(frozen=True)
class PointingError:
    az_deg: float
    tilt_deg: float
    true_los: bool


@dataclass(frozen=True)
class Ray:
    origin: Position
    direction: Vec3


@dataclass(frozen=True)
class ClosestApproach:
    distance_m: float
    point_a: Position
    point_b: Position
    t_a: float
    t_b: float


def wrap180(angle_deg: float) -> float:
    """Wrap an angle to (-180, 180]."""
    w = ((angle_deg + 180.0) % 360.0) - 180.0
    return 180.0 if w == -180.0 else w


def dot(a: Vec3, b: Vec3) -> float:
    return a[0] * b[0] + a[1] * b[1] + a[2] * b[2]


def norm(a: Vec3) -> float:
    return math.sqrt(dot(a, a))


def normalize(a: Vec3) -> Vec3:
    n = max(norm(a), _EPS)
    return (a[0] / n, a[1] / n, a[2] / n)


def _sub(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] - b[0], a[1] - b[1], a[2] - b[2])


def _add(a: Vec3, b: Vec3) -> Vec3:
    return (a[0] + b[0], a[1] + b[1], a[2] + b[2])


def _scale(a: Vec3, s: float) -> Vec3:
    return (a[0] * s, a[1] * s, a[2] * s)


def angle_between_deg(a: Vec3, b: Vec3) -> float:
    cosv = dot(normalize(a), normalize(b))
    return math.degrees(math.acos(min(1.0, max(-1.0, cosv))))


def boresight_vector(azimuth_deg: float, tilt_deg: float) -> Vec3:
    """Unit boresight vector for a mechanical azimuth/tilt."""
    az = math.radians(azimuth_deg)
    el = math.radians(tilt_deg - 90.0)
    return normalize((math.cos(el) * math.cos(az), math.cos(el) * math.sin(az), math.sin(el)))


def line_of_sight(from_pos: Position, to_pos: Position) -> LineOfSight:
    """Bearing, elevation, unit vector and distance from one site to another."""
    dx = to_pos.x - from_pos.x
    dy = to_pos.y - from_pos.y
    dz = to_pos.z - from_pos.z
    horiz = math.hypot(dx, dy)
    bearing = math.degrees(math.atan2(dy, dx)) % 360.0
    elevation = math.degrees(math.atan2(dz, horiz))
    return LineOfSight(
        bearing_deg=bearing,
        elevation_deg=elevation,
        los=normalize((dx, dy, dz)),
        distance_m=math.sqrt(dx * dx + dy * dy + dz * dz),
    )


def pointing_error(source: MechanicalState, target: MechanicalState) -> PointingError:
    """Signed azimuth/elevation error of `source` relative to `target`.

    With both positions: error between the true LOS (source -> target) and
    the source's own pointing. Without them: reciprocal-facing approximation
    using only the two dishes' azimuth/tilt fields.
    """
    if source.position is not None and target.position is not None:
        be = line_of_sight(source.position, target.position)
        return PointingError(
            az_deg=wrap180(be.bearing_deg - source.azimuth_deg),
            tilt_deg=be.elevation_deg - (source.tilt_deg - 90.0),
            true_los=True,
        )
    return PointingError(
        az_deg=wrap180((target.azimuth_deg - 180.0) - source.azimuth_deg),
        tilt_deg=target.tilt_deg - source.tilt_deg,
        true_los=False,
    )


def off_axis_angle_deg(source: MechanicalState, target: MechanicalState) -> float:
    """Angle between the source boresight and the true LOS to the target.

    Requires both positions; without them the reciprocal approximation is
    used and the angle is the hypot of the two approximate errors.
    """
    if source.position is not None and target.position is not None:
        be = line_of_sight(source.position, target.position)
        return angle_between_deg(boresight_vector(source.azimuth_deg, source.tilt_deg), be.los)
    err = pointing_error(source, target)
    return math.hypot(err.az_deg, err.tilt_deg)


def closest_approach(ray_a: Ray, ray_b: Ray) -> ClosestApproach:
    """Nearest points between two rays (parameters clamped to >= 0).

    Near-parallel rays fall back to projecting ray A's origin onto ray B.
    """
    p0 = ray_a.origin.as_tuple()
    p1 = ray_b.origin.as_tuple()
    u = ray_a.direction
    v = ray_b.direction
    w0 = _sub(p0, p1)
    a = dot(u, u)
    b = dot(u, v)
    c = dot(v, v)
    d = dot(u, w0)
    e = dot(v, w0)
    denom = a * c - b * b
    if abs(denom) < _EPS:
        sc = 0.0
        tc = e / max(c, _EPS)
    else:
        sc = (b * e - c * d) / denom
        tc = (a * e - b * d) / denom
    sc = max(0.0, sc)
    tc = max(0.0, tc)
    pa = _add(p0, _scale(u, sc))
    pb = _add(p1, _scale(v, tc))
    return ClosestApproach(
        distance_m=norm(_sub(pa, pb)),
        point_a=Position(*pa),
        point_b=Position(*pb),
        t_a=sc,
        t_b=tc,
    )


def boresight_ray(state: MechanicalState, default_origin: Position = Position(0.0, 0.0, 30.0)) -> Ray:
    origin = state.position if state.position is not None else default_origin
    return Ray(origin=origin, direction=boresight_vector(state.azimuth_deg, state.tilt_deg))


def mechanical_to_boresight_offset(state: MechanicalState) -> Tuple[float, float]:
    """(azimuth in [0, 360), elevation) of a mechanical state."""
    return state.azimuth_deg % 360.0, state.tilt_deg - 90.0
