"""Triangle meshes read from Wavefront OBJ files.

Each vertex carries eight floats: position (3), normal (3) and texture
coordinates (2). Indices are 16-bit. Polygons are fan-triangulated, the V
texture coordinate is flipped, identical vertices are joined and smooth
normals are generated when the file has none. Only the first object with
faces is kept.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

VERTEX_FLOATS = 8
VERTEX_DTYPE = np.dtype("<f4")
INDEX_DTYPE = np.dtype("<u2")
MAX_INDEX = np.iinfo(np.uint16).max

_Corner = tuple[int, "int | None", "int | None"]


@dataclass
class Mesh:
    """Interleaved vertex data and triangle indices ready for upload."""

    vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, VERTEX_FLOATS), VERTEX_DTYPE))
    indices: np.ndarray = field(default_factory=lambda: np.zeros(0, INDEX_DTYPE))

    def __post_init__(self) -> None:
        self.vertices = np.asarray(self.vertices, dtype=VERTEX_DTYPE).reshape(-1, VERTEX_FLOATS)
        indices = np.asarray(self.indices)
        if indices.size and (indices.min() < 0 or indices.max() > MAX_INDEX):
            raise ValueError("mesh indices must fit in 16 bits")
        self.indices = indices.astype(INDEX_DTYPE).reshape(-1)

    @property
    def vert_count(self) -> int:
        return len(self.vertices)

    @property
    def ind_count(self) -> int:
        return len(self.indices)

    def vertex_bytes(self) -> bytes:
        """Vertex buffer contents: 32 bytes per vertex, little-endian floats."""
        return self.vertices.tobytes()

    def index_bytes(self) -> bytes:
        """Index buffer contents: 2 bytes per index, little-endian."""
        return self.indices.tobytes()


def _floats(fields: list[str], count: int, lineno: int, minimum: int | None = None) -> list[float]:
    needed = count if minimum is None else minimum
    if len(fields) < needed:
        raise ValueError(f"line {lineno}: expected {needed} numbers, got {len(fields)}")
    try:
        values = [float(v) for v in fields[:count]]
    except ValueError as exc:
        raise ValueError(f"line {lineno}: {exc}") from exc
    return values + [0.0] * (count - len(values))


def _resolve(token: str, size: int, lineno: int) -> int:
    try:
        index = int(token)
    except ValueError as exc:
        raise ValueError(f"line {lineno}: bad index {token!r}") from exc
    resolved = size + index if index < 0 else index - 1
    if index == 0 or not 0 <= resolved < size:
        raise ValueError(f"line {lineno}: index {index} out of range")
    return resolved


def _parse_corner(token: str, sizes: tuple[int, int, int], lineno: int) -> _Corner:
    parts = token.split("/")
    position = _resolve(parts[0], sizes[0], lineno)
    texcoord = _resolve(parts[1], sizes[1], lineno) if len(parts) > 1 and parts[1] else None
    normal = _resolve(parts[2], sizes[2], lineno) if len(parts) > 2 and parts[2] else None
    return position, texcoord, normal


def _smooth_normals(positions: list[list[float]], triangles: list[tuple[_Corner, ...]]) -> dict[int, np.ndarray]:
    sums: dict[int, np.ndarray] = {}
    for triangle in triangles:
        a, b, c = (np.array(positions[corner[0]]) for corner in triangle)
        normal = np.cross(b - a, c - a)
        length = float(np.linalg.norm(normal))
        if length > 0.0:
            normal = normal / length
        for corner in triangle:
            sums[corner[0]] = sums.get(corner[0], np.zeros(3)) + normal
    result = {}
    for index, total in sums.items():
        length = float(np.linalg.norm(total))
        result[index] = total / length if length > 0.0 else np.zeros(3)
    return result


def parse_obj(text: str) -> Mesh:
    """Build a mesh from the text of an OBJ file."""
    positions: list[list[float]] = []
    texcoords: list[list[float]] = []
    normals: list[list[float]] = []
    faces: list[list[_Corner]] = []
    collecting = True

    for lineno, raw in enumerate(text.splitlines(), start=1):
        line = raw.split("#", 1)[0].strip()
        if not line:
            continue
        keyword, *fields = line.split()
        if keyword == "v":
            positions.append(_floats(fields, 3, lineno))
        elif keyword == "vt":
            texcoords.append(_floats(fields, 2, lineno, minimum=1))
        elif keyword == "vn":
            normals.append(_floats(fields, 3, lineno))
        elif keyword == "o":
            if faces:
                collecting = False
        elif keyword == "f" and collecting:
            if len(fields) < 3:
                raise ValueError(f"line {lineno}: a face needs at least three vertices")
            sizes = (len(positions), len(texcoords), len(normals))
            faces.append([_parse_corner(token, sizes, lineno) for token in fields])

    if not faces:
        raise ValueError("OBJ data holds no faces")

    triangles = [
        (face[0], face[i], face[i + 1])
        for face in faces
        for i in range(1, len(face) - 1)
    ]

    has_normals = all(corner[2] is not None for triangle in triangles for corner in triangle)
    generated = {} if has_normals else _smooth_normals(positions, triangles)

    lookup: dict[tuple[float, ...], int] = {}
    vertices: list[tuple[float, ...]] = []
    indices: list[int] = []
    for triangle in triangles:
        for position, texcoord, normal in triangle:
            if has_normals:
                n = normals[normal]
            else:
                n = generated[position].tolist()
            u, v = texcoords[texcoord][:2] if texcoord is not None else (0.0, 0.0)
            key = tuple(float(x) for x in (*positions[position], *n, u, 1.0 - v))
            index = lookup.get(key)
            if index is None:
                index = len(vertices)
                if index > MAX_INDEX:
                    raise ValueError("mesh has too many vertices for 16-bit indices")
                lookup[key] = index
                vertices.append(key)
            indices.append(index)

    return Mesh(vertices=np.array(vertices, dtype=VERTEX_DTYPE), indices=np.array(indices))


def load_mesh(path) -> Mesh:
    """Read and parse the OBJ file at ``path``."""
    try:
        text = Path(path).read_text(encoding="utf-8")
    except OSError as exc:
        raise OSError(f"failed to load model from {path}: {exc}") from exc
    try:
        return parse_obj(text)
    except ValueError as exc:
        raise ValueError(f"failed to load model from {path}: {exc}") from exc