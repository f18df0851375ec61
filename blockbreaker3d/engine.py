"""Game engine: owns the scene stack, input, timing, assets and the per-frame render data."""

from __future__ import annotations

import argparse
import math
import os
from dataclasses import dataclass, field
from pathlib import Path

import numpy as np

os.environ.setdefault("PYGAME_HIDE_SUPPORT_PROMPT", "1")

import pygame  # noqa: E402

from blockbreaker3d.camera import ortho, perspective  # noqa: E402
from blockbreaker3d.entity import Entity, MeshType, TextureType  # noqa: E402
from blockbreaker3d.fonts import ATLAS_RESOLUTION, FontAtlas, build_font_atlas  # noqa: E402
from blockbreaker3d.input import FrameTimer, InputState, Scancode  # noqa: E402
from blockbreaker3d.mesh import Mesh, load_mesh  # noqa: E402
from blockbreaker3d.scenes import GameScene, MenuScene, Scene, SceneType  # noqa: E402
from blockbreaker3d.texture import Image, load_cube_map, load_texture  # noqa: E402
from blockbreaker3d.ui import VERTEX_DTYPE, VERTEX_FLOATS, VERTICES_PER_QUAD, UILayer  # noqa: E402

WINDOW_TITLE = "Block Breaker 3D"
WINDOW_WIDTH = 1280
WINDOW_HEIGHT = 720
MOUSE_SENSITIVITY = 0.3
MAX_LIGHTS = 32
OBJECT_COLOR = (0.97, 0.64, 0.12)
LIGHT_COLOR = (1.0, 1.0, 1.0)
FRAGMENT_UNIFORM_FLOATS = 16 + 4 * MAX_LIGHTS

DEPTH_TEXTURE_INDEX = 0
SKYBOX_TEXTURE_INDEX = 1

MAIN_MENU_SCENE = "assets/scenes/mainmenu.json"
GAMEPLAY_SCENE = "assets/scenes/gameplay.json"
FONT_FILE = "assets/fonts/DejaVuSansMono.ttf"

SKYBOX_FACES = tuple(
    f"assets/skyboxes/space/space_{face}.png"
    for face in ("right", "left", "up", "down", "front", "back")
)

TEXTURE_FILES = {
    TextureType.GEM10: "assets/textures/gem_10.png",
    TextureType.GEM03: "assets/textures/gem_03.png",
    TextureType.METAL07: "assets/textures/metal_07.png",
    TextureType.PADDLE01: "assets/textures/paddle.png",
    TextureType.GEM13: "assets/textures/gem_13.png",
    TextureType.METAL21: "assets/textures/metal_21.png",
    TextureType.BLOCK1: "assets/textures/block_1.png",
    TextureType.BLOCK2: "assets/textures/block_2.png",
    TextureType.BLOCK3: "assets/textures/block_3.png",
    TextureType.BLOCK4: "assets/textures/block_4.png",
    TextureType.BLOCK5: "assets/textures/block_5.png",
}

MESH_FILES = {
    MeshType.ICO: "assets/meshes/ico.obj",
    MeshType.QUAD: "assets/meshes/quad.obj",
    MeshType.SPHERE: "assets/meshes/sphere.obj",
    MeshType.PADDLE: "assets/meshes/paddle.obj",
    MeshType.BLOCK: "assets/meshes/block.obj",
}

_ORIGIN = np.array([0.0, 0.0, 0.0, 1.0])


@dataclass
class FrameData:
    """Everything the renderer needs for one frame.

    ``unshaded`` and ``shaded`` hold ``(entity, mvp)`` pairs in draw order.
    ``fragment_uniforms`` is the 144-float lighting block: object colour,
    light colour, camera position, light count, then 32 light positions.
    """

    skybox_view_projection: np.ndarray
    unshaded: list[tuple[Entity, np.ndarray]] = field(default_factory=list)
    shaded: list[tuple[Entity, np.ndarray]] = field(default_factory=list)
    light_positions: np.ndarray = field(default_factory=lambda: np.zeros((0, 4)))
    fragment_uniforms: np.ndarray = field(default_factory=lambda: np.zeros(FRAGMENT_UNIFORM_FLOATS))
    ui_projection: np.ndarray = field(default_factory=lambda: np.identity(4))
    ui_vertices: np.ndarray = field(default_factory=lambda: np.zeros((0, VERTEX_FLOATS), VERTEX_DTYPE))


class Engine:
    """Runs the scene stack and turns each frame into render data."""

    def __init__(self, asset_root=".", load_assets: bool = True,
                 width: int = WINDOW_WIDTH, height: int = WINDOW_HEIGHT) -> None:
        self.asset_root = Path(asset_root)
        self.load_assets = load_assets
        self.width = width
        self.height = height

        self.running = True
        self.idle = False
        self.mouse_captured = False
        self.input_state = InputState()
        self.timer = FrameTimer()
        self.scene_stack: list[Scene] = []
        self.ui_layer = UILayer()

        self.projection = np.identity(4)
        self.ui_projection = np.identity(4)
        self.meshes: dict[MeshType, Mesh] = {}
        self.textures: dict[int, object] = {}
        self.font_atlas = FontAtlas()

    def _path(self, relative: str) -> Path:
        return self.asset_root / relative

    @property
    def scene(self) -> Scene:
        """The scene on top of the stack."""
        if not self.scene_stack:
            raise RuntimeError("no scene is loaded; call setup() first")
        return self.scene_stack[-1]

    def setup(self) -> None:
        """Reset input, load assets, push the main menu and build the projections."""
        self.input_state.reset()

        if self.load_assets:
            self.textures = {DEPTH_TEXTURE_INDEX: None,
                             SKYBOX_TEXTURE_INDEX: load_cube_map(self._path(p) for p in SKYBOX_FACES)}
            for texture_type, relative in TEXTURE_FILES.items():
                self.textures[int(texture_type)] = load_texture(self._path(relative), flip=True)
            self.font_atlas = build_font_atlas(self._path(FONT_FILE))
            self.meshes = {mesh_type: load_mesh(self._path(relative))
                           for mesh_type, relative in MESH_FILES.items()}

        self.scene_stack.append(MenuScene(self._path(MAIN_MENU_SCENE), self.transition_to))

        self.projection = perspective(math.radians(60.0), self.width / self.height, 0.0001, 1000.0)
        self.ui_projection = ortho(0.0, float(self.width), float(self.height), 0.0, -1.0, 1.0)

    def transition_to(self, scene_type) -> None:
        """Switch to ``scene_type`` by pushing a freshly loaded scene."""
        scene_type = SceneType(scene_type)
        if scene_type is SceneType.MAIN_MENU:
            self.mouse_captured = False
            self.scene_stack.append(MenuScene(self._path(MAIN_MENU_SCENE), self.transition_to))
        else:
            self.mouse_captured = True
            self.scene_stack.append(GameScene(self._path(GAMEPLAY_SCENE), self.transition_to))
        self._apply_mouse_mode()

    def _apply_mouse_mode(self) -> None:
        if pygame.display.get_init() and pygame.display.get_surface() is not None:
            pygame.mouse.set_visible(not self.mouse_captured)
            pygame.event.set_grab(self.mouse_captured)

    def handle_event(self, event) -> None:
        """Apply one window event to the engine state."""
        if event.type == pygame.QUIT:
            self.running = False
        elif event.type == pygame.MOUSEMOTION:
            xrel, yrel = event.rel
            self.input_state.relx = xrel * MOUSE_SENSITIVITY
            self.input_state.rely = yrel * MOUSE_SENSITIVITY
        elif event.type in (pygame.KEYDOWN, pygame.KEYUP):
            self.input_state.record_key(event.scancode, event.type == pygame.KEYDOWN)

        if self.input_state.is_down(Scancode.ESCAPE):
            self.running = False

    def _poll_events(self) -> None:
        self.input_state.relx = 0.0
        self.input_state.rely = 0.0
        for event in pygame.event.get():
            self.handle_event(event)

    def update(self) -> None:
        """Advance the top scene by the last frame's elapsed time."""
        self.scene.update(self.input_state, self.timer.elapsed_time)

    def frame_data(self) -> FrameData:
        """Build the render data for the current frame and reset the UI layer."""
        scene = self.scene
        camera = scene.camera
        view = camera.view_matrix()

        rotation_only = np.identity(4)
        rotation_only[:3, :3] = view[:3, :3]
        frame = FrameData(skybox_view_projection=self.projection @ rotation_only,
                          ui_projection=self.ui_projection)

        lights: list[np.ndarray] = []
        for entity in scene.entities:
            if entity.is_shaded and not entity.is_active:
                continue
            frame.unshaded.append((entity, self.projection @ view @ entity.transform))
            if len(lights) < MAX_LIGHTS:
                lights.append(entity.transform @ _ORIGIN)
        frame.light_positions = np.array(lights).reshape(-1, 4)

        uniforms = np.zeros(FRAGMENT_UNIFORM_FLOATS)
        uniforms[0:3] = OBJECT_COLOR
        uniforms[4:7] = LIGHT_COLOR
        uniforms[8:11] = camera.pos
        uniforms[12] = float(len(lights))
        uniforms[16:16 + 4 * len(lights)] = frame.light_positions.reshape(-1)
        frame.fragment_uniforms = uniforms

        for entity in scene.entities:
            if not entity.is_shaded and not entity.is_active:
                continue
            frame.shaded.append((entity, self.projection @ view @ entity.transform))

        for text_field in scene.text_fields:
            if text_field.is_visible:
                self.ui_layer.push_text(text_field, self.font_atlas)
        frame.ui_vertices = np.frombuffer(self.ui_layer.contents(), dtype=VERTEX_DTYPE).reshape(-1, VERTEX_FLOATS)
        self.ui_layer.flush()
        return frame

    def end_frame(self, now_ms: int) -> int:
        """Close the frame at ``now_ms``; return the milliseconds to wait before the next one."""
        delay = self.timer.tick(now_ms)
        self.input_state.copy_prev_keys()
        return delay

    def run(self) -> None:
        """Open the window and run the game loop until quit."""
        os.environ.setdefault("SDL_VIDEO_CENTERED", "1")
        pygame.init()
        try:
            surface = pygame.display.set_mode((self.width, self.height))
            pygame.display.set_caption(WINDOW_TITLE)
            self.timer.current_frame = pygame.time.get_ticks()
            self.timer.last_frame = self.timer.current_frame
            self.timer.elapsed_time = 0.0

            self.setup()
            renderer = _SoftwareRenderer(self, surface)
            while self.running:
                if self.idle:
                    continue
                self._poll_events()
                self.update()
                renderer.draw(self.frame_data())
                pygame.display.flip()
                delay = self.end_frame(pygame.time.get_ticks())
                if delay > 0:
                    pygame.time.delay(delay)
        finally:
            pygame.quit()


class _SoftwareRenderer:
    """Draws frame data onto a pygame surface with flat-coloured triangles and atlas text."""

    def __init__(self, engine: Engine, surface) -> None:
        self.engine = engine
        self.surface = surface
        self.colors = {index: self._mean_color(texture)
                       for index, texture in engine.textures.items() if isinstance(texture, Image)}
        self.sky_color = self._sky_color(engine.textures.get(SKYBOX_TEXTURE_INDEX))
        self.atlas_surface = self._atlas_surface(engine.font_atlas)

    @staticmethod
    def _mean_color(image: Image) -> tuple[int, int, int]:
        texels = np.frombuffer(image.pixels, dtype=np.uint8).reshape(-1, 4)
        if not len(texels):
            return (255, 255, 255)
        r, g, b = texels[:, :3].mean(axis=0)
        return int(r), int(g), int(b)

    def _sky_color(self, faces) -> tuple[int, int, int]:
        if not faces:
            return (0, 0, 0)
        colors = np.array([self._mean_color(face) for face in faces])
        r, g, b = colors.mean(axis=0)
        return int(r), int(g), int(b)

    @staticmethod
    def _atlas_surface(atlas: FontAtlas):
        gray = (atlas.pixels & 0xFF).astype(np.uint8)
        rgba = np.full((atlas.height, atlas.width, 4), 255, dtype=np.uint8)
        rgba[..., 3] = gray
        return pygame.image.frombuffer(rgba.tobytes(), (atlas.width, atlas.height), "RGBA").convert_alpha()

    def _project(self, mvp: np.ndarray, positions: np.ndarray) -> tuple[np.ndarray, np.ndarray]:
        homogeneous = np.hstack([positions, np.ones((len(positions), 1))])
        clip = homogeneous @ mvp.T
        w = clip[:, 3]
        safe_w = np.where(np.abs(w) < 1e-9, 1e-9, w)
        ndc = clip[:, :3] / safe_w[:, None]
        screen = np.empty((len(positions), 2))
        screen[:, 0] = (ndc[:, 0] + 1.0) * 0.5 * self.engine.width
        screen[:, 1] = (1.0 - ndc[:, 1]) * 0.5 * self.engine.height
        return screen, np.where(w > 0.0, ndc[:, 2], np.inf)

    def draw(self, frame: FrameData) -> None:
        self.surface.fill(self.sky_color)

        triangles = []
        for entity, mvp in frame.unshaded + frame.shaded:
            mesh = self.engine.meshes.get(entity.mesh_type)
            if mesh is None or not mesh.ind_count:
                continue
            screen, depth = self._project(mvp, mesh.vertices[:, :3].astype(np.float64))
            color = self.colors.get(int(entity.texture_type), (200, 200, 200))
            for tri in mesh.indices.reshape(-1, 3):
                tri_depth = depth[tri]
                if not np.all(np.isfinite(tri_depth)) or np.any(np.abs(tri_depth) > 1.0):
                    continue
                triangles.append((float(tri_depth.mean()), screen[tri].tolist(), color))

        for _, points, color in sorted(triangles, key=lambda item: item[0], reverse=True):
            pygame.draw.polygon(self.surface, color, points)

        for quad in frame.ui_vertices.reshape(-1, VERTICES_PER_QUAD, VERTEX_FLOATS):
            x, y, u, v, r, g, b, a = (float(value) for value in quad[2])
            right, bottom = float(quad[1][0]), float(quad[1][1])
            size = (int(round(right - x)), int(round(bottom - y)))
            source = pygame.Rect(int(u * ATLAS_RESOLUTION), int(v * ATLAS_RESOLUTION), *size)
            source = source.clip(self.atlas_surface.get_rect())
            if source.width <= 0 or source.height <= 0:
                continue
            glyph = self.atlas_surface.subsurface(source).copy()
            tint = tuple(int(max(0.0, min(1.0, c)) * 255) for c in (r, g, b, a))
            glyph.fill(tint, special_flags=pygame.BLEND_RGBA_MULT)
            self.surface.blit(glyph, (int(x), int(y)))


def main(argv=None) -> int:
    """Start the game."""
    parser = argparse.ArgumentParser(prog="blockbreaker3d", description=WINDOW_TITLE)
    parser.add_argument("--assets", default=".", help="directory that holds the assets/ folder")
    args = parser.parse_args(argv)
    Engine(asset_root=args.assets).run()
    return 0