"""Lift 2D sketches into solids.

Linear extrusion goes straight up the Z axis. Helical extrusion treats the
sketch as lying in the XZ plane (sketch Y becomes height) and sweeps it
around the Z axis, rising ``pitch`` per full turn.
"""

from __future__ import annotations

import math
from typing import List

import numpy as np
import trimesh
from shapely.geometry import Polygon
from shapely.geometry.polygon import orient
from shapely.ops import unary_union

from .primitives import empty_solid, is_empty


def polygons_of(sketch) -> List[Polygon]:
    """Split a sketch into its non-empty polygons."""
    if is_empty(sketch):
        return []
    if isinstance(sketch, Polygon):
        return [orient(sketch)]
    parts = []
    for geom in getattr(sketch, 'geoms', []):
        parts.extend(polygons_of(geom))
    return parts


def _combine(meshes: List[trimesh.Trimesh]) -> trimesh.Trimesh:
    meshes = [m for m in meshes if not is_empty(m)]
    if not meshes:
        return empty_solid()
    if len(meshes) == 1:
        return meshes[0]
    return trimesh.util.concatenate(meshes)


def extrude_linear(height: float, sketches) -> trimesh.Trimesh:
    """Extrude the union of ``sketches`` by ``height`` along Z."""
    if height <= 0:
        return empty_solid()
    profile = unary_union([s for s in sketches if not is_empty(s)])
    return _combine([
        trimesh.creation.extrude_polygon(polygon, float(height))
        for polygon in polygons_of(profile)
    ])


def _helix_points(points: np.ndarray, theta: float, pitch: float) -> np.ndarray:
    """Place XZ-plane profile points at rotation ``theta`` about Z."""
    x = points[:, 0]
    z = points[:, 1] + pitch * theta / (2.0 * math.pi)
    return np.column_stack([x * math.cos(theta), x * math.sin(theta), z])


def _helical_polygon(polygon: Polygon, angle: float, pitch: float,
                     segments: float) -> trimesh.Trimesh:
    steps = max(1, int(math.ceil(max(3, int(segments)) * angle / (2.0 * math.pi))))
    thetas = np.linspace(0.0, angle, steps + 1)

    vertices = []
    faces = []
    count = 0
    rings = [polygon.exterior, *polygon.interiors]
    for ring in rings:
        points = np.asarray(ring.coords)[:-1, :2]
        n = len(points)
        base = count
        for theta in thetas:
            vertices.append(_helix_points(points, theta, pitch))
        count += n * len(thetas)
        for k in range(steps):
            for j in range(n):
                a = base + k * n + j
                b = base + k * n + (j + 1) % n
                c = b + n
                d = a + n
                faces.append([a, b, c])
                faces.append([a, c, d])

    cap_points, cap_faces = trimesh.creation.triangulate_polygon(polygon)
    cap_points = np.asarray(cap_points)[:, :2]
    cap_faces = np.asarray(cap_faces, dtype=np.int64)
    vertices.append(_helix_points(cap_points, thetas[0], pitch))
    faces.extend((cap_faces[:, ::-1] + count).tolist())
    count += len(cap_points)
    vertices.append(_helix_points(cap_points, thetas[-1], pitch))
    faces.extend((cap_faces + count).tolist())

    mesh = trimesh.Trimesh(vertices=np.vstack(vertices), faces=np.asarray(faces, dtype=np.int64))
    mesh.merge_vertices()
    mesh.fix_normals()
    return mesh


def extrude_helical(angle: float, pitch: float, segments: float, sketch) -> trimesh.Trimesh:
    """Sweep ``sketch`` by ``angle`` radians around Z, rising ``pitch`` per turn."""
    if angle <= 0:
        return empty_solid()
    return _combine([
        _helical_polygon(polygon, float(angle), float(pitch), segments)
        for polygon in polygons_of(sketch)
    ])
