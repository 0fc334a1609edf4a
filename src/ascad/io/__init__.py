"""Mesh import/export helpers for ascad."""

from .stl import serialize_to_mesh, stl_chunks, write_stl

__all__ = ['serialize_to_mesh', 'stl_chunks', 'write_stl']
