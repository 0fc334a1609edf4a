"""Boolean operations on solids, dispatched to :mod:`trimesh.boolean`.

The ``manifold`` engine (the ``manifold3d`` package) does the work. Empty
operands are handled here rather than passed on: they are dropped from
unions and differences and make an intersection empty.
"""

from __future__ import annotations

from typing import Sequence

import trimesh

from .primitives import empty_solid, is_empty

ENGINE_NAME = "manifold"


def union(first: trimesh.Trimesh, others: Sequence[trimesh.Trimesh]) -> trimesh.Trimesh:
    """Union of ``first`` with every solid in ``others``."""
    meshes = [m for m in [first, *others] if not is_empty(m)]
    if not meshes:
        return empty_solid()
    if len(meshes) == 1:
        return meshes[0].copy()
    return trimesh.boolean.union(meshes, engine=ENGINE_NAME, check_volume=False)


def subtract(first: trimesh.Trimesh, others: Sequence[trimesh.Trimesh]) -> trimesh.Trimesh:
    """``first`` minus every solid in ``others``."""
    if is_empty(first):
        return empty_solid()
    tools = [m for m in others if not is_empty(m)]
    if not tools:
        return first.copy()
    return trimesh.boolean.difference([first, *tools], engine=ENGINE_NAME, check_volume=False)


def intersect(first: trimesh.Trimesh, others: Sequence[trimesh.Trimesh]) -> trimesh.Trimesh:
    """Common volume of ``first`` and every solid in ``others``."""
    meshes = [first, *others]
    if any(is_empty(m) for m in meshes):
        return empty_solid()
    if len(meshes) == 1:
        return first.copy()
    return trimesh.boolean.intersection(meshes, engine=ENGINE_NAME, check_volume=False)
