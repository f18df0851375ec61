"""Scene entities and the affine transform helpers that place them."""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from enum import IntEnum

import numpy as np


class MeshType(IntEnum):
    """Index of a loaded mesh."""

    ICO = 0x0
    QUAD = 0x1
    SPHERE = 0x2
    PADDLE = 0x3
    BLOCK = 0x4


class TextureType(IntEnum):
    """Index of a loaded texture; 0 and 1 are reserved for depth and skybox."""

    GEM10 = 0x2
    GEM03 = 0x3
    METAL07 = 0x4
    PADDLE01 = 0x5
    GEM13 = 0x6
    METAL21 = 0x7
    BLOCK1 = 0x8
    BLOCK2 = 0x9
    BLOCK3 = 0xA
    BLOCK4 = 0xB
    BLOCK5 = 0xC


def _vec3(values) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {vector.shape}")
    return vector


def translate(matrix, offset) -> np.ndarray:
    """Return ``matrix`` followed by a translation by ``offset``."""
    translation = np.identity(4)
    translation[:3, 3] = _vec3(offset)
    return np.asarray(matrix, dtype=np.float64) @ translation


def rotate(matrix, angle, axis) -> np.ndarray:
    """Return ``matrix`` followed by a rotation of ``angle`` radians about ``axis``."""
    axis = _vec3(axis)
    length = float(np.linalg.norm(axis))
    if length == 0.0:
        raise ValueError("rotation axis must be non-zero")
    x, y, z = axis / length
    c = math.cos(angle)
    s = math.sin(angle)
    t = 1.0 - c
    rotation = np.identity(4)
    rotation[:3, :3] = [
        [c + t * x * x, t * x * y - s * z, t * x * z + s * y],
        [t * x * y + s * z, c + t * y * y, t * y * z - s * x],
        [t * x * z - s * y, t * y * z + s * x, c + t * z * z],
    ]
    return np.asarray(matrix, dtype=np.float64) @ rotation


def scale(matrix, factors) -> np.ndarray:
    """Return ``matrix`` followed by a per-axis scale by ``factors``."""
    scaling = np.identity(4)
    scaling[:3, :3] = np.diag(_vec3(factors))
    return np.asarray(matrix, dtype=np.float64) @ scaling


@dataclass
class Entity:
    """A drawable object; ``rotation`` is in degrees around x, y and z."""

    mesh_type: MeshType
    texture_type: TextureType
    position: np.ndarray = field(default_factory=lambda: np.zeros(3))
    rotation: np.ndarray = field(default_factory=lambda: np.zeros(3))
    scale: np.ndarray = field(default_factory=lambda: np.ones(3))
    velocity: np.ndarray = field(default_factory=lambda: np.zeros(3))
    is_shaded: bool = False
    is_active: bool = True
    transform: np.ndarray = field(default_factory=lambda: np.identity(4))

    def __post_init__(self) -> None:
        self.mesh_type = MeshType(self.mesh_type)
        self.texture_type = TextureType(self.texture_type)
        self.position = _vec3(self.position)
        self.rotation = _vec3(self.rotation)
        self.scale = _vec3(self.scale)
        self.velocity = _vec3(self.velocity)
        self.transform = np.asarray(self.transform, dtype=np.float64)

    def update_transform(self) -> np.ndarray:
        """Rebuild ``transform`` as translate * rotX * rotY * rotZ * scale and return it."""
        matrix = translate(np.identity(4), self.position)
        matrix = rotate(matrix, math.radians(self.rotation[0]), (1.0, 0.0, 0.0))
        matrix = rotate(matrix, math.radians(self.rotation[1]), (0.0, 1.0, 0.0))
        matrix = rotate(matrix, math.radians(self.rotation[2]), (0.0, 0.0, 1.0))
        self.transform = scale(matrix, self.scale)
        return self.transform