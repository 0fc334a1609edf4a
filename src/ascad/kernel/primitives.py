"""Primitive solids and sketches.

Solids are ``trimesh.Trimesh`` instances, sketches are shapely geometries in
the XY plane. A zero dimension produces an empty geometry instead of a
degenerate mesh so later boolean operations never see zero-volume input.
"""

from __future__ import annotations

import math

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.geometry import box as _box


def empty_solid() -> trimesh.Trimesh:
    """Return a solid with no faces."""
    return trimesh.Trimesh(vertices=np.zeros((0, 3)), faces=np.zeros((0, 3), dtype=np.int64), process=False)


def empty_sketch() -> Polygon:
    """Return a sketch with no area."""
    return Polygon()


def is_empty(geometry) -> bool:
    """Check if a solid or sketch has no content."""
    return bool(geometry.is_empty)


def _segments(count: float) -> int:
    return max(3, int(count))


def cuboid(size, center: bool = False) -> trimesh.Trimesh:
    """Box of ``size`` (x, y, z); with ``center`` false one corner sits at the origin."""
    size = [float(s) for s in size]
    if min(size) <= 0:
        return empty_solid()
    mesh = trimesh.creation.box(extents=size)
    if not center:
        mesh.apply_translation([s / 2.0 for s in size])
    return mesh


def sphere(radius: float, segments: float) -> trimesh.Trimesh:
    """UV sphere centered at the origin."""
    if radius <= 0:
        return empty_solid()
    count = _segments(segments)
    return trimesh.creation.uv_sphere(radius=float(radius), count=[max(2, count // 2), count])


def cylinder(radius: float, height: float, segments: float) -> trimesh.Trimesh:
    """Cylinder along Z, centered at the origin."""
    if radius <= 0 or height <= 0:
        return empty_solid()
    return trimesh.creation.cylinder(radius=float(radius), height=float(height),
                                     sections=_segments(segments))


def circle(radius: float, segments: float) -> Polygon:
    """Regular polygon approximating a circle around the origin."""
    if radius <= 0:
        return empty_sketch()
    count = _segments(segments)
    angles = np.linspace(0.0, 2.0 * math.pi, count, endpoint=False)
    return Polygon(np.column_stack([radius * np.cos(angles), radius * np.sin(angles)]))


def rectangle(width: float, height: float) -> Polygon:
    """Rectangle centered at the origin."""
    if width <= 0 or height <= 0:
        return empty_sketch()
    return _box(-width / 2.0, -height / 2.0, width / 2.0, height / 2.0)


def triangle(a: float, b: float, c: float) -> Polygon:
    """Triangle from three side lengths.

    Side ``a`` runs along the X axis from the origin; ``b`` joins its end to
    the apex and ``c`` closes back to the origin. Side lengths that violate
    the triangle inequality give an empty sketch.
    """
    if a <= 0 or b <= 0 or c <= 0:
        return empty_sketch()
    x = (a * a + c * c - b * b) / (2.0 * a)
    y_squared = c * c - x * x
    if y_squared <= 0:
        return empty_sketch()
    return Polygon([(0.0, 0.0), (a, 0.0), (x, math.sqrt(y_squared))])
