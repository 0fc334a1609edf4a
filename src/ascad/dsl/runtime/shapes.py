"""
Shape tree produced by the interpreter.

A :class:`ShapeNode` records a builtin shape name, its numeric arguments and
its child nodes. Nothing is computed when a node is built; geometry comes
from :meth:`ShapeNode.as_solid` and :meth:`ShapeNode.as_sketch`, which walk
the tree and call into :mod:`ascad.kernel`.
"""

from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Tuple

from ... import kernel
from ..source import Offset
from ..errors import error_missing_argument, error_negative_argument


SHAPE_NAMES = (
    "cube",
    "sphere",
    "cylinder",
    "union",
    "subtract",
    "intersect",
    "translate",
    "assemble",
    "rotate",
    "scale",
    "circle",
    "rect",
    "triangle",
    "extrude",
    "extrude_helical",
)


def is_builtin(name: str) -> bool:
    return name in SHAPE_NAMES


@dataclass(frozen=True)
class ShapeNode:
    """An evaluated builtin shape invocation."""
    offset: Offset
    name: str
    params: Tuple[float, ...] = ()
    children: Tuple["ShapeNode", ...] = ()

    DEFAULT_SEGMENTS = 32

    def __post_init__(self):
        if self.name not in SHAPE_NAMES:
            raise ValueError(f"unexpected shape name {self.name!r}")
        object.__setattr__(self, "params", tuple(float(p) for p in self.params))
        object.__setattr__(self, "children", tuple(self.children))

    # =========================================================================
    # Parameter access
    # =========================================================================

    def param(self, index: int) -> float:
        """Required argument."""
        if len(self.params) <= index:
            raise error_missing_argument(index, self.offset)
        return self.params[index]

    def uparam(self, index: int) -> float:
        """Required, non-negative argument."""
        value = self.param(index)
        if value < 0:
            raise error_negative_argument(index, self.offset)
        return value

    def optional_param(self, index: int, default: float) -> float:
        """Optional argument."""
        if len(self.params) <= index:
            return default
        return self.params[index]

    def optional_uparam(self, index: int, default: float) -> float:
        """Optional argument that must be non-negative when given."""
        if len(self.params) <= index:
            return default
        return self.uparam(index)

    # =========================================================================
    # Traversal
    # =========================================================================

    def as_solid(self) -> List:
        """Evaluate this node as 3D solids.

        Names without a solid form yield a single empty solid.
        """
        method = _SOLID_BUILDERS.get(self.name)
        if method is None:
            return [kernel.empty_solid()]
        return method(self)

    def as_sketch(self) -> List:
        """Evaluate this node as 2D sketches.

        Names without a sketch form yield a single empty sketch.
        """
        method = _SKETCH_BUILDERS.get(self.name)
        if method is None:
            return [kernel.empty_sketch()]
        return method(self)

    def child_solids(self) -> List:
        solids = []
        for child in self.children:
            solids.extend(child.as_solid())
        return solids

    def child_sketches(self) -> List:
        sketches = []
        for child in self.children:
            sketches.extend(child.as_sketch())
        return sketches

    # --- Solids ---

    def _cube_solid(self) -> List:
        width = self.uparam(0)
        height = self.optional_uparam(1, width)
        depth = self.optional_uparam(2, height)
        center = self.optional_param(3, 0) != 0
        return [kernel.cuboid((width, height, depth), center=center)]

    def _sphere_solid(self) -> List:
        radius = self.uparam(0)
        segments = self.optional_uparam(1, self.DEFAULT_SEGMENTS)
        return [kernel.sphere(radius, segments)]

    def _cylinder_solid(self) -> List:
        radius = self.uparam(0)
        height = self.uparam(1)
        segments = self.optional_uparam(2, self.DEFAULT_SEGMENTS)
        return [kernel.cylinder(radius, height, segments)]

    def _boolean_solid(self, operation: Callable) -> List:
        if not self.children:
            return [kernel.empty_solid()]
        others = []
        for child in self.children[1:]:
            others.extend(child.as_solid())
        return [operation(solid, others) for solid in self.children[0].as_solid()]

    def _union_solid(self) -> List:
        return self._boolean_solid(kernel.union)

    def _subtract_solid(self) -> List:
        return self._boolean_solid(kernel.subtract)

    def _intersect_solid(self) -> List:
        return self._boolean_solid(kernel.intersect)

    def _translate_vector(self) -> Tuple[float, float, float]:
        return (self.param(0), self.param(1), self.param(2))

    def _rotate_angles(self) -> Tuple[float, float, float]:
        return (self.param(0), self.param(1), self.param(2))

    def _scale_factors(self) -> Tuple[float, float, float]:
        scale_x = self.uparam(0)
        scale_y = self.optional_uparam(1, scale_x)
        scale_z = self.optional_uparam(2, scale_y)
        return (scale_x, scale_y, scale_z)

    def _translate_solid(self) -> List:
        vector = self._translate_vector()
        return [kernel.translate(vector, solid) for solid in self.child_solids()]

    def _rotate_solid(self) -> List:
        angles = self._rotate_angles()
        return [kernel.rotate(angles, solid) for solid in self.child_solids()]

    def _scale_solid(self) -> List:
        factors = self._scale_factors()
        return [kernel.scale(factors, solid) for solid in self.child_solids()]

    def _assemble_solid(self) -> List:
        return self.child_solids()

    def _extrude_solid(self) -> List:
        height = self.uparam(0)
        return [kernel.extrude_linear(height, child.as_sketch()) for child in self.children]

    def _extrude_helical_solid(self) -> List:
        angle = self.uparam(0)
        pitch = self.uparam(1)
        segments = self.optional_uparam(2, self.DEFAULT_SEGMENTS)
        solids = []
        for child in self.children:
            for sketch in child.as_sketch():
                solids.append(kernel.extrude_helical(angle, pitch, segments, sketch))
        return solids

    # --- Sketches ---

    def _circle_sketch(self) -> List:
        radius = self.uparam(0)
        segments = self.optional_uparam(1, self.DEFAULT_SEGMENTS)
        return [kernel.circle(radius, segments)]

    def _rect_sketch(self) -> List:
        width = self.uparam(0)
        height = self.optional_uparam(1, width)
        return [kernel.rectangle(width, height)]

    def _triangle_sketch(self) -> List:
        len1 = self.uparam(0)
        len2 = self.optional_uparam(1, len1)
        len3 = self.optional_uparam(2, len2)
        return [kernel.triangle(len1, len2, len3)]

    def _translate_sketch(self) -> List:
        vector = self._translate_vector()
        return [kernel.translate(vector, sketch, sketch=True) for sketch in self.child_sketches()]

    def _rotate_sketch(self) -> List:
        angles = self._rotate_angles()
        return [kernel.rotate(angles, sketch, sketch=True) for sketch in self.child_sketches()]

    def _scale_sketch(self) -> List:
        factors = self._scale_factors()
        return [kernel.scale(factors, sketch, sketch=True) for sketch in self.child_sketches()]

    def _assemble_sketch(self) -> List:
        return self.child_sketches()


_SOLID_BUILDERS: Dict[str, Callable[[ShapeNode], List]] = {
    "cube": ShapeNode._cube_solid,
    "sphere": ShapeNode._sphere_solid,
    "cylinder": ShapeNode._cylinder_solid,
    "union": ShapeNode._union_solid,
    "subtract": ShapeNode._subtract_solid,
    "intersect": ShapeNode._intersect_solid,
    "translate": ShapeNode._translate_solid,
    "rotate": ShapeNode._rotate_solid,
    "scale": ShapeNode._scale_solid,
    "assemble": ShapeNode._assemble_solid,
    "extrude": ShapeNode._extrude_solid,
    "extrude_helical": ShapeNode._extrude_helical_solid,
}

_SKETCH_BUILDERS: Dict[str, Callable[[ShapeNode], List]] = {
    "circle": ShapeNode._circle_sketch,
    "rect": ShapeNode._rect_sketch,
    "triangle": ShapeNode._triangle_sketch,
    "translate": ShapeNode._translate_sketch,
    "rotate": ShapeNode._rotate_sketch,
    "scale": ShapeNode._scale_sketch,
    "assemble": ShapeNode._assemble_sketch,
}


def solids_of(shapes: Iterable[ShapeNode]) -> List:
    """Flatten shape nodes into their solids, in order."""
    solids = []
    for shape in shapes:
        solids.extend(shape.as_solid())
    return solids
