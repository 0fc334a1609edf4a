"""
Geometry kernel adapter for ascad.

The interpreter treats these functions as opaque and deterministic: they
build primitive meshes and profiles, combine them with boolean operations,
apply affine transforms and extrude sketches. Solids are
``trimesh.Trimesh`` meshes and sketches are shapely geometries.
"""

from .primitives import (
    empty_solid,
    empty_sketch,
    is_empty,
    cuboid,
    sphere,
    cylinder,
    circle,
    rectangle,
    triangle,
)

from .boolean import (
    union,
    subtract,
    intersect,
)

from .xform import (
    translate,
    rotate,
    scale,
)

from .extrude import (
    extrude_linear,
    extrude_helical,
)

__all__ = [
    'empty_solid',
    'empty_sketch',
    'is_empty',
    'cuboid',
    'sphere',
    'cylinder',
    'circle',
    'rectangle',
    'triangle',
    'union',
    'subtract',
    'intersect',
    'translate',
    'rotate',
    'scale',
    'extrude_linear',
    'extrude_helical',
]
