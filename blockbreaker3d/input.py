"""Keyboard/mouse input state and the frame timer."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import IntEnum

KEY_COUNT = 128
FRAME_TARGET_TIME = 1.0 / 60.0


class Scancode(IntEnum):
    """Physical key codes used by the game."""

    A = 4
    B = 5
    D = 7
    S = 22
    W = 26
    ESCAPE = 41
    MINUS = 45
    EQUALS = 46
    RIGHT = 79
    LEFT = 80
    DOWN = 81
    UP = 82


def _in_range(scancode: int) -> bool:
    return 0 <= scancode < KEY_COUNT


@dataclass
class InputState:
    """Current and previous key states plus relative mouse motion for one frame."""

    current_keys: list[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    prev_keys: list[bool] = field(default_factory=lambda: [False] * KEY_COUNT)
    relx: float = 0.0
    rely: float = 0.0

    def reset(self) -> None:
        """Release every key and clear mouse motion."""
        self.current_keys = [False] * KEY_COUNT
        self.prev_keys = [False] * KEY_COUNT
        self.relx = 0.0
        self.rely = 0.0

    def record_key(self, scancode: int, is_down: bool) -> None:
        """Record a key transition; codes outside the tracked range are ignored."""
        if _in_range(scancode):
            self.current_keys[scancode] = bool(is_down)

    def copy_prev_keys(self) -> None:
        """Remember this frame's keys as the previous frame's."""
        self.prev_keys = list(self.current_keys)

    def is_down(self, scancode: int) -> bool:
        return _in_range(scancode) and self.current_keys[scancode]

    def just_pressed(self, scancode: int) -> bool:
        """True when the key is down now but was up in the previous frame."""
        return _in_range(scancode) and self.current_keys[scancode] and not self.prev_keys[scancode]


@dataclass
class FrameTimer:
    """Tracks frame timestamps in milliseconds and the elapsed time in seconds."""

    current_frame: int = 0
    last_frame: int = 0
    elapsed_time: float = 0.0

    def tick(self, now_ms: int) -> int:
        """Advance to ``now_ms``; return the milliseconds to wait to hold 60 frames per second."""
        self.last_frame = self.current_frame
        self.current_frame = now_ms
        self.elapsed_time = (self.current_frame - self.last_frame) / 1000.0
        if self.elapsed_time < FRAME_TARGET_TIME:
            return int((FRAME_TARGET_TIME - self.elapsed_time) * 1000.0)
        return 0