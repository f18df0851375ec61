"""UI layer: text and rectangles turned into screen-space quads in one vertex buffer.

Every UI vertex holds eight floats: x, y, u, v, r, g, b, a. Each quad is two
triangles (six vertices) wound top-right, bottom-right, top-left,
bottom-right, bottom-left, top-left.
"""

from __future__ import annotations

import math

import numpy as np

from blockbreaker3d.fonts import FIRST_CHAR, GLYPHS_PER_ROW, FontAtlas
from blockbreaker3d.scenes import TextField, UIElement

VERTEX_FLOATS = 8
VERTEX_DTYPE = np.dtype("<f4")
VERTEX_BYTES = VERTEX_FLOATS * VERTEX_DTYPE.itemsize
VERTICES_PER_QUAD = 6
QUAD_LIMIT = 300
UI_BUFFER_SIZE = QUAD_LIMIT * VERTICES_PER_QUAD * VERTEX_BYTES

GLYPH_CELL = 64.0
CELL_UV = 1.0 / GLYPHS_PER_ROW


def _quad(x: float, y: float, w: float, h: float,
          u0: float, v0: float, u1: float, v1: float, color) -> list[list[float]]:
    r, g, b, a = (float(c) for c in color)
    top_right = [x + w, y, u1, v0, r, g, b, a]
    bottom_right = [x + w, y + h, u1, v1, r, g, b, a]
    top_left = [x, y, u0, v0, r, g, b, a]
    bottom_left = [x, y + h, u0, v1, r, g, b, a]
    return [top_right, bottom_right, top_left, bottom_right, bottom_left, top_left]


def text_vertices(text_field: TextField, atlas: FontAtlas) -> np.ndarray:
    """Quads for every character of ``text_field``, as an (n, 8) float32 array."""
    rows: list[list[float]] = []
    origin_x, baseline = (float(v) for v in text_field.pos)
    advance = 0
    for char in text_field.text:
        glyph = atlas.glyph(char)
        x = origin_x + advance
        y = baseline - glyph.bearing[1]

        offset = ord(char) - FIRST_CHAR
        v = math.floor(offset / GLYPHS_PER_ROW) * CELL_UV
        u = int(math.fmod(offset, GLYPHS_PER_ROW)) * CELL_UV

        rows.extend(_quad(x, y, GLYPH_CELL, GLYPH_CELL, u, v, u + CELL_UV, v + CELL_UV, text_field.color))
        advance += glyph.advance
    return np.array(rows, dtype=VERTEX_DTYPE).reshape(-1, VERTEX_FLOATS)


def element_vertices(element: UIElement) -> np.ndarray:
    """One quad covering ``element`` with the full texture, as a (6, 8) float32 array."""
    x, y = (float(v) for v in element.pos)
    rows = _quad(x, y, float(element.width), float(element.height), 0.0, 0.0, 1.0, 1.0, element.color)
    return np.array(rows, dtype=VERTEX_DTYPE)


class UILayer:
    """Accumulates UI vertices for one frame in a fixed-size buffer."""

    def __init__(self, capacity: int = UI_BUFFER_SIZE) -> None:
        if capacity < 0:
            raise ValueError("buffer capacity must not be negative")
        self.capacity = capacity
        self.buffer = bytearray(capacity)
        self.frame_offset = 0

    @property
    def vertex_count(self) -> int:
        """Vertices written so far this frame."""
        return self.frame_offset // VERTEX_BYTES

    def contents(self) -> bytes:
        """Bytes written so far this frame."""
        return bytes(self.buffer[: self.frame_offset])

    def _write(self, vertices: np.ndarray) -> np.ndarray:
        data = vertices.astype(VERTEX_DTYPE).tobytes()
        end = self.frame_offset + len(data)
        if end > self.capacity:
            raise OverflowError(
                f"UI buffer full: {end} bytes needed, {self.capacity} available"
            )
        self.buffer[self.frame_offset:end] = data
        self.frame_offset = end
        return vertices

    def push_text(self, text_field: TextField, atlas: FontAtlas) -> np.ndarray:
        """Append the quads for ``text_field`` and return them."""
        return self._write(text_vertices(text_field, atlas))

    def push_element(self, element: UIElement) -> np.ndarray:
        """Append the quad for ``element`` and return it."""
        return self._write(element_vertices(element))

    def flush(self) -> None:
        """Start a new frame; later pushes overwrite the buffer from the start."""
        self.frame_offset = 0