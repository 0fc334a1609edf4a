"""Binary STL export for ascad solids."""

from __future__ import annotations

import struct
from typing import Iterable, List, Sequence

import numpy as np
import trimesh

_HEADER_SIZE = 80
_STRUCT_TRIANGLE = struct.Struct('<12fH')


def _header(name: str) -> bytes:
    header = (name[:_HEADER_SIZE]).encode('ascii', errors='replace')
    return header.ljust(_HEADER_SIZE, b' ')


def _triangle_records(solid: trimesh.Trimesh) -> bytes:
    if solid.is_empty:
        return b''
    triangles = np.asarray(solid.triangles, dtype=float)
    normals = np.asarray(solid.face_normals, dtype=float)
    records = []
    for normal, tri in zip(normals, triangles):
        records.append(_STRUCT_TRIANGLE.pack(*normal, *tri[0], *tri[1], *tri[2], 0))
    return b''.join(records)


def stl_chunks(solids: Sequence[trimesh.Trimesh], name: str = 'ascad') -> List[bytes]:
    """Serialize ``solids`` as one binary STL, returned as ordered chunks.

    The first chunk is the 80 byte header, the second the little-endian
    triangle count, then one chunk of 50 byte records per solid.
    """
    bodies = [_triangle_records(solid) for solid in solids]
    count = sum(len(body) for body in bodies) // _STRUCT_TRIANGLE.size
    return [_header(name), struct.pack('<I', count), *bodies]


def serialize_to_mesh(solids: Iterable[trimesh.Trimesh], name: str = 'ascad') -> bytes:
    """Serialize ``solids`` into a single binary STL buffer."""
    return b''.join(stl_chunks(list(solids), name))


def write_stl(solids: Iterable[trimesh.Trimesh], path_or_file, *, name: str = 'ascad') -> None:
    """Write ``solids`` as binary STL.

    ``path_or_file`` can be a filesystem path or an open binary stream.
    """
    data = serialize_to_mesh(solids, name)
    if hasattr(path_or_file, 'write'):
        path_or_file.write(data)
    else:
        with open(path_or_file, 'wb') as stream:
            stream.write(data)
