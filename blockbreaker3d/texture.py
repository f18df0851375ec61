"""Image loading for 2D textures and cube maps, always expanded to RGBA8."""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from PIL import Image as PILImage

CUBE_FACES = 6
BYTES_PER_PIXEL = 4


class TextureLoadError(OSError):
    """An image file could not be read or decoded."""


@dataclass(frozen=True)
class Image:
    """Decoded image: ``pixels`` holds ``width * height`` RGBA8 texels row by row.

    ``channels`` is the number of channels the file itself stores.
    """

    width: int
    height: int
    channels: int
    pixels: bytes

    def __post_init__(self) -> None:
        expected = BYTES_PER_PIXEL * self.width * self.height
        if len(self.pixels) != expected:
            raise ValueError(f"expected {expected} bytes of RGBA data, got {len(self.pixels)}")

    @property
    def size_bytes(self) -> int:
        return len(self.pixels)


def _file_channels(image: PILImage.Image) -> int:
    if image.mode == "P":
        return 4 if "transparency" in image.info else 3
    return len(image.getbands())


def load_texture(path, flip=True) -> Image:
    """Load an image file as RGBA; with ``flip`` the rows are stored bottom-up."""
    try:
        with PILImage.open(Path(path)) as source:
            channels = _file_channels(source)
            rgba = source.convert("RGBA")
    except OSError as exc:
        raise TextureLoadError(f"failed to load texture file from {path}: {exc}") from exc
    if flip:
        rgba = rgba.transpose(PILImage.Transpose.FLIP_TOP_BOTTOM)
    return Image(width=rgba.width, height=rgba.height, channels=channels, pixels=rgba.tobytes())


def load_cube_map(paths) -> tuple[Image, ...]:
    """Load six cube faces (+X, -X, +Y, -Y, +Z, -Z) without flipping."""
    paths = list(paths)
    if len(paths) != CUBE_FACES:
        raise ValueError(f"a cube map needs {CUBE_FACES} faces, got {len(paths)}")
    faces = []
    for index, path in enumerate(paths):
        try:
            faces.append(load_texture(path, flip=False))
        except TextureLoadError as exc:
            raise TextureLoadError(f"failed to load cube map face {index} from {path}: {exc}") from exc
    sizes = {(face.width, face.height) for face in faces}
    if len(sizes) != 1:
        raise ValueError(f"cube map faces differ in size: {sorted(sizes)}")
    return tuple(faces)