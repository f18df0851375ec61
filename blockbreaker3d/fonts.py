"""Glyph atlas built from a TrueType font.

Characters 32 to 122 are rendered into a 16 x 16 grid of 64-pixel cells on a
1024 x 1024 atlas of 32-bit pixels; glyph metrics are indexed by character code.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import numpy as np
from PIL import Image as PILImage
from PIL import ImageDraw, ImageFont

FONT_CELL_SIZE = 64
GLYPHS_PER_ROW = 16
ATLAS_RESOLUTION = FONT_CELL_SIZE * GLYPHS_PER_ROW
FIRST_CHAR = 32
LAST_CHAR = 122
GLYPH_TABLE_SIZE = 126
DEFAULT_PIXEL_SIZE = 48

_MASK32 = 0xFFFFFFFF


class FontLoadError(OSError):
    """A font file could not be opened."""


@dataclass(frozen=True)
class Glyph:
    """Bitmap size and bearing in pixels, and horizontal advance in whole pixels."""

    size: tuple[int, int] = (0, 0)
    bearing: tuple[int, int] = (0, 0)
    advance: int = 0


@dataclass
class FontAtlas:
    """Atlas pixels plus per-character glyph metrics."""

    glyphs: list[Glyph] = field(default_factory=lambda: [Glyph()] * GLYPH_TABLE_SIZE)
    pixels: np.ndarray = field(
        default_factory=lambda: np.zeros((ATLAS_RESOLUTION, ATLAS_RESOLUTION), dtype=np.uint32)
    )
    texture: Any = None

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    def glyph(self, char: str) -> Glyph:
        """Metrics for ``char``; characters outside the table have empty metrics."""
        code = ord(char)
        return self.glyphs[code] if 0 <= code < len(self.glyphs) else Glyph()


def gray_to_pixel(value: int) -> int:
    """Spread an 8-bit coverage value over all four bytes of a 32-bit pixel."""
    if not 0 <= value <= 0xFF:
        raise ValueError(f"gray value must be in 0..255, got {value}")
    pixel = value
    pixel |= (pixel << 24) & _MASK32
    pixel |= (pixel << 16) & _MASK32
    pixel |= (pixel << 8) & _MASK32
    return pixel


def _gray_to_pixels(gray: np.ndarray) -> np.ndarray:
    pixels = gray.astype(np.uint32)
    pixels |= pixels << np.uint32(24)
    pixels |= pixels << np.uint32(16)
    pixels |= pixels << np.uint32(8)
    return pixels


def _render_glyph(font: ImageFont.FreeTypeFont, char: str) -> tuple[Glyph, np.ndarray]:
    left, top, right, bottom = font.getbbox(char, anchor="ls")
    width, rows = max(0, right - left), max(0, bottom - top)
    bitmap = np.zeros((rows, width), dtype=np.uint8)
    if width and rows:
        canvas = PILImage.new("L", (width, rows), 0)
        ImageDraw.Draw(canvas).text((-left, -top), char, font=font, fill=255, anchor="ls")
        bitmap = np.asarray(canvas, dtype=np.uint8)
    glyph = Glyph(size=(width, rows), bearing=(left, -top), advance=int(font.getlength(char)))
    return glyph, bitmap


def build_font_atlas(path, pixel_size=DEFAULT_PIXEL_SIZE) -> FontAtlas:
    """Render the font at ``path`` into a new atlas."""
    try:
        font = ImageFont.truetype(str(Path(path)), pixel_size, layout_engine=ImageFont.Layout.BASIC)
    except OSError as exc:
        raise FontLoadError(f"failed to load font file {path}: {exc}") from exc

    atlas = FontAtlas()
    glyphs = list(atlas.glyphs)
    for slot, code in enumerate(range(FIRST_CHAR, LAST_CHAR + 1)):
        glyph, bitmap = _render_glyph(font, chr(code))
        glyphs[code] = glyph

        row, col = divmod(slot, GLYPHS_PER_ROW)
        y0, x0 = row * FONT_CELL_SIZE, col * FONT_CELL_SIZE
        region = bitmap[: ATLAS_RESOLUTION - y0, : ATLAS_RESOLUTION - x0]
        h, w = region.shape
        atlas.pixels[y0:y0 + h, x0:x0 + w] = _gray_to_pixels(region)

    atlas.glyphs = glyphs
    return atlas