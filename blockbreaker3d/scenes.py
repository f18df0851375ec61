"""Scenes loaded from JSON: the main menu and the block-breaking gameplay."""

from __future__ import annotations

import json
import logging
import math
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass, field
from enum import IntEnum
from pathlib import Path
from typing import Any

import numpy as np

from blockbreaker3d.camera import Camera
from blockbreaker3d.entity import Entity, MeshType, TextureType
from blockbreaker3d.input import InputState, Scancode

logger = logging.getLogger(__name__)

PADDLE_INDEX = 0
BALL_INDEX = 2
DEBUG_TEXT_INDEX = 1

PADDLE_SPEED = 4.0
CAMERA_SPEED = 2.0
ARENA_LIMIT = 7.0
BALL_RADIUS = 1.0
COLLIDER_HALF_WIDTH = 3.0
COLLIDER_HALF_DEPTH = 0.5

MENU_SPIN = np.array([8.0, 4.5, 6.0])

BLOCK_MAP = (
    (0x8, 0x9, 0x0, 0x0, 0x8, 0x9),
    (0xB, 0xA, 0xB, 0xA, 0xB, 0xA),
    (0x9, 0x8, 0x9, 0x8, 0x9, 0x8),
    (0xA, 0xB, 0xA, 0xB, 0xA, 0xB),
    (0xB, 0xC, 0x0, 0x0, 0xB, 0xC),
    (0xC, 0xB, 0x0, 0x0, 0xC, 0xB),
)


class SceneType(IntEnum):
    """Scenes the engine can switch to."""

    MAIN_MENU = 0
    GAMEPLAY = 1


@dataclass
class TextField:
    """A line of text drawn on the UI layer at a screen position."""

    text: str
    pos: np.ndarray = field(default_factory=lambda: np.zeros(2))
    color: np.ndarray = field(default_factory=lambda: np.ones(4))
    is_visible: bool = True

    def __post_init__(self) -> None:
        self.pos = np.asarray(self.pos, dtype=np.float64)
        self.color = np.asarray(self.color, dtype=np.float64)
        if self.pos.shape != (2,):
            raise ValueError(f"text position needs 2 components, got shape {self.pos.shape}")
        if self.color.shape != (4,):
            raise ValueError(f"text color needs 4 components, got shape {self.color.shape}")


@dataclass
class UIElement:
    """A textured rectangle on the UI layer."""

    pos: np.ndarray = field(default_factory=lambda: np.zeros(2))
    color: np.ndarray = field(default_factory=lambda: np.ones(4))
    width: int = 0
    height: int = 0
    texture: Any = None

    def __post_init__(self) -> None:
        self.pos = np.asarray(self.pos, dtype=np.float64)
        self.color = np.asarray(self.color, dtype=np.float64)


TransitionCallback = Callable[[SceneType], None]


def load_scene_data(path) -> dict:
    """Read a scene description; raise ``ValueError`` unless it is a JSON object."""
    text = Path(path).read_text(encoding="utf-8")
    data = json.loads(text)
    if not isinstance(data, dict):
        raise ValueError(f"scene file {path} does not hold a JSON object")
    return data


def _entity_from_json(item: dict) -> Entity:
    return Entity(
        mesh_type=MeshType(item["mesh"]),
        texture_type=TextureType(item["texture"]),
        position=[float(v) for v in item["position"][:3]],
        rotation=[float(v) for v in item["rotation"][:3]],
        scale=[float(v) for v in item["scale"][:3]],
        is_shaded=bool(item["is_shaded"]),
        is_active=bool(item["is_active"]),
    )


def _text_field_from_json(item: dict) -> TextField:
    return TextField(
        text=str(item["text"]),
        pos=[float(v) for v in item["position"][:2]],
        color=[float(v) for v in item["color"][:4]],
        is_visible=bool(item["is_visible"]),
    )


def is_ball_colliding(ball_pos, collider_pos) -> bool:
    """True when the ball sphere touches the collider's box (6 wide, flat, 1 deep)."""
    ball = np.asarray(ball_pos, dtype=np.float64)
    box = np.asarray(collider_pos, dtype=np.float64)
    half = np.array([COLLIDER_HALF_WIDTH, 0.0, COLLIDER_HALF_DEPTH])
    closest = np.clip(ball, box - half, box + half)
    return float(np.linalg.norm(closest - ball)) <= BALL_RADIUS


class Scene(ABC):
    """Entities, UI and a camera loaded from a scene file."""

    def __init__(self, path, on_transition: TransitionCallback) -> None:
        self.on_transition = on_transition
        self.camera = Camera()
        self.entities: list[Entity] = []
        self.elements: list[UIElement] = []
        self.text_fields: list[TextField] = []

        data = load_scene_data(path)
        try:
            self.entities = [_entity_from_json(item) for item in data.get("entities") or []]
            self.text_fields = [_text_field_from_json(item) for item in data.get("textfields") or []]
        except (KeyError, TypeError, IndexError) as exc:
            raise ValueError(f"malformed scene file {path}: {exc!r}") from exc

    @abstractmethod
    def update(self, input_state: InputState, delta_time: float) -> None:
        """Advance the scene by ``delta_time`` seconds."""


class MenuScene(Scene):
    """Main menu: a spinning model; S starts the game."""

    def __init__(self, path, on_transition: TransitionCallback) -> None:
        super().__init__(path, on_transition)
        self.camera = Camera(pos=(0.0, 1.0, 4.0), front=(0.0, 0.0, -1.0), up=(0.0, 1.0, 0.0),
                             yaw=-90.0, pitch=-30.0)

    def update(self, input_state: InputState, delta_time: float) -> None:
        if input_state.just_pressed(Scancode.S):
            self.on_transition(SceneType.GAMEPLAY)

        if self.entities:
            self.entities[0].rotation = self.entities[0].rotation + MENU_SPIN * delta_time

        for entity in self.entities:
            entity.update_transform()


class GameScene(Scene):
    """Gameplay: paddle at index 0, ball at index 2, and a grid of blocks."""

    def __init__(self, path, on_transition: TransitionCallback) -> None:
        super().__init__(path, on_transition)
        if len(self.entities) <= BALL_INDEX:
            raise ValueError("a gameplay scene needs a paddle and a ball among its first three entities")
        self.camera = Camera(pos=(0.0, 9.0, 10.0), front=(0.0, 0.0, -1.0), up=(0.0, 1.0, 0.0),
                             yaw=-90.0, pitch=-50.0)
        self.debug_mode = False

        ball = self.entities[BALL_INDEX]
        ball.velocity = np.array([1.5, ball.velocity[1], -1.4])

        for z, row in enumerate(BLOCK_MAP):
            for x, texture in enumerate(row):
                if texture == 0:
                    continue
                self.entities.append(Entity(
                    mesh_type=MeshType.BLOCK,
                    texture_type=TextureType(texture),
                    position=(-5.0 + x * 2.0, 0.0, -5.0 + z * 1.0),
                    rotation=(0.0, 0.0, 0.0),
                    scale=(0.5, 0.5, 0.5),
                    is_shaded=True,
                    is_active=False,
                ))

    @property
    def paddle(self) -> Entity:
        return self.entities[PADDLE_INDEX]

    @property
    def ball(self) -> Entity:
        return self.entities[BALL_INDEX]

    def update(self, input_state: InputState, delta_time: float) -> None:
        paddle = self.paddle
        if input_state.is_down(Scancode.LEFT):
            paddle.position[0] -= PADDLE_SPEED * delta_time
        if input_state.is_down(Scancode.RIGHT):
            paddle.position[0] += PADDLE_SPEED * delta_time

        if input_state.just_pressed(Scancode.EQUALS):
            self.debug_mode = True
            self.text_fields[DEBUG_TEXT_INDEX].is_visible = True
        if input_state.just_pressed(Scancode.MINUS):
            self.debug_mode = False
            self.text_fields[DEBUG_TEXT_INDEX].is_visible = False

        ball = self.ball
        ball.position = ball.position + ball.velocity * delta_time

        if input_state.just_pressed(Scancode.B):
            bx, by, bz = ball.position
            cx, cy, cz = self.camera.pos
            print(f"Ball Pos: ({bx:.2f}, {by:.2f}, {bz:.2f})")
            print(f"Camera Pos: ({cx:.2f}, {cy:.2f}, {cz:.2f})")

        if abs(ball.position[0]) > ARENA_LIMIT:
            ball.velocity[0] *= -1
        if abs(ball.position[2]) > ARENA_LIMIT:
            ball.velocity[2] *= -1

        for entity in self.entities:
            if entity.mesh_type != MeshType.BLOCK and not entity.is_active:
                continue
            if is_ball_colliding(ball.position, entity.position):
                logger.debug("HIT")
                entity.is_active = False

        for entity in self.entities:
            entity.update_transform()

        self._update_camera(input_state, delta_time)

    def _update_camera(self, input_state: InputState, delta_time: float) -> None:
        camera = self.camera
        if self.debug_mode:
            camera.yaw += input_state.relx
            camera.pitch -= input_state.rely
        camera.pitch = min(89.0, max(-89.0, camera.pitch))

        yaw = math.radians(camera.yaw)
        pitch = math.radians(camera.pitch)
        direction = np.array([
            math.cos(yaw) * math.cos(pitch),
            math.sin(pitch),
            math.sin(yaw) * math.cos(pitch),
        ])
        camera.front = direction / np.linalg.norm(direction)

        if not self.debug_mode:
            return
        speed = CAMERA_SPEED * delta_time
        right = np.cross(camera.front, camera.up)
        right = right / np.linalg.norm(right)
        if input_state.is_down(Scancode.W):
            camera.pos = camera.pos + speed * camera.front
        if input_state.is_down(Scancode.A):
            camera.pos = camera.pos - right * speed
        if input_state.is_down(Scancode.S):
            camera.pos = camera.pos - speed * camera.front
        if input_state.is_down(Scancode.D):
            camera.pos = camera.pos + right * speed