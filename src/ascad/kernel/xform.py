"""Affine transforms for solids and sketches.

Every transform is built as a 4x4 homogeneous matrix. Solids apply it as is;
sketches apply its XY part, so a sketch rotated about X is flattened the way
a 2D profile viewed from above would be.
"""

from __future__ import annotations

import numpy as np
import trimesh
from shapely import affinity

from .primitives import is_empty


def translation_matrix(x: float, y: float, z: float) -> np.ndarray:
    return trimesh.transformations.translation_matrix([x, y, z])


def rotation_matrix(ax: float, ay: float, az: float) -> np.ndarray:
    """Rotation about X, then Y, then Z (static axes, radians)."""
    return trimesh.transformations.euler_matrix(ax, ay, az, axes='sxyz')


def scale_matrix(sx: float, sy: float, sz: float) -> np.ndarray:
    return np.diag([sx, sy, sz, 1.0])


def transform_solid(matrix: np.ndarray, solid: trimesh.Trimesh) -> trimesh.Trimesh:
    if is_empty(solid):
        return solid.copy()
    result = solid.copy()
    result.apply_transform(matrix)
    return result


def transform_sketch(matrix: np.ndarray, sketch):
    if is_empty(sketch):
        return sketch
    return affinity.affine_transform(sketch, [
        matrix[0, 0], matrix[0, 1],
        matrix[1, 0], matrix[1, 1],
        matrix[0, 3], matrix[1, 3],
    ])


def translate(vector, geometry, sketch: bool = False):
    matrix = translation_matrix(*vector)
    return transform_sketch(matrix, geometry) if sketch else transform_solid(matrix, geometry)


def rotate(angles, geometry, sketch: bool = False):
    matrix = rotation_matrix(*angles)
    return transform_sketch(matrix, geometry) if sketch else transform_solid(matrix, geometry)


def scale(factors, geometry, sketch: bool = False):
    matrix = scale_matrix(*factors)
    return transform_sketch(matrix, geometry) if sketch else transform_solid(matrix, geometry)
