"""Camera state and the projection/view matrix helpers used by the renderer."""

from __future__ import annotations

import math
from dataclasses import dataclass, field

import numpy as np


def _vec3(values) -> np.ndarray:
    vector = np.asarray(values, dtype=np.float64)
    if vector.shape != (3,):
        raise ValueError(f"expected a 3-component vector, got shape {vector.shape}")
    return vector


def _normalize(vector: np.ndarray) -> np.ndarray:
    length = float(np.linalg.norm(vector))
    if length == 0.0:
        raise ValueError("cannot normalize a zero-length vector")
    return vector / length


def look_at(eye, center, up) -> np.ndarray:
    """Right-handed view matrix looking from ``eye`` towards ``center``."""
    eye = _vec3(eye)
    f = _normalize(_vec3(center) - eye)
    s = _normalize(np.cross(f, _vec3(up)))
    u = np.cross(s, f)

    view = np.identity(4)
    view[0, :3] = s
    view[1, :3] = u
    view[2, :3] = -f
    view[0, 3] = -np.dot(s, eye)
    view[1, 3] = -np.dot(u, eye)
    view[2, 3] = np.dot(f, eye)
    return view


def perspective(fovy, aspect, near, far) -> np.ndarray:
    """Right-handed perspective projection with clip depth in [-1, 1]; ``fovy`` is in radians."""
    if aspect == 0:
        raise ValueError("aspect ratio must be non-zero")
    if near == far:
        raise ValueError("near and far planes must differ")
    tan_half = math.tan(fovy / 2.0)
    if tan_half == 0:
        raise ValueError("field of view must be non-zero")

    proj = np.zeros((4, 4))
    proj[0, 0] = 1.0 / (aspect * tan_half)
    proj[1, 1] = 1.0 / tan_half
    proj[2, 2] = -(far + near) / (far - near)
    proj[2, 3] = -(2.0 * far * near) / (far - near)
    proj[3, 2] = -1.0
    return proj


def ortho(left, right, bottom, top, near, far) -> np.ndarray:
    """Right-handed orthographic projection with clip depth in [-1, 1]."""
    if left == right or bottom == top or near == far:
        raise ValueError("orthographic volume must have non-zero extent on every axis")
    proj = np.identity(4)
    proj[0, 0] = 2.0 / (right - left)
    proj[1, 1] = 2.0 / (top - bottom)
    proj[2, 2] = -2.0 / (far - near)
    proj[0, 3] = -(right + left) / (right - left)
    proj[1, 3] = -(top + bottom) / (top - bottom)
    proj[2, 3] = -(far + near) / (far - near)
    return proj


@dataclass
class Camera:
    """A free camera described by position, facing direction and up vector."""

    pos: np.ndarray = field(default_factory=lambda: np.zeros(3))
    front: np.ndarray = field(default_factory=lambda: np.array([0.0, 0.0, -1.0]))
    up: np.ndarray = field(default_factory=lambda: np.array([0.0, 1.0, 0.0]))
    yaw: float = -90.0
    pitch: float = 0.0

    def __post_init__(self) -> None:
        self.pos = _vec3(self.pos)
        self.front = _vec3(self.front)
        self.up = _vec3(self.up)

    def view_matrix(self) -> np.ndarray:
        """View matrix looking from ``pos`` along ``front``."""
        return look_at(self.pos, self.pos + self.front, self.up)