import json
import math

import numpy as np
import pygame
import pytest

from blockbreaker3d.camera import ortho, perspective
from blockbreaker3d.engine import MAX_LIGHTS, Engine, FrameData
from blockbreaker3d.input import Scancode
from blockbreaker3d.scenes import GameScene, MenuScene, SceneType


def _entity(mesh, texture, position, shaded=False, active=True):
    return {
        "mesh": mesh,
        "texture": texture,
        "position": list(position),
        "rotation": [0.0, 0.0, 0.0],
        "scale": [1.0, 1.0, 1.0],
        "is_shaded": shaded,
        "is_active": active,
    }


def _text(text, visible=True):
    return {"text": text, "position": [10.0, 20.0], "color": [1.0, 1.0, 1.0, 1.0], "is_visible": visible}


@pytest.fixture
def asset_root(tmp_path):
    scenes = tmp_path / "assets" / "scenes"
    scenes.mkdir(parents=True)
    menu = {
        "entities": [_entity(0, 2, (1.0, 2.0, 3.0))],
        "textfields": [_text("Hi"), _text("hidden", visible=False)],
    }
    game = {
        "entities": [
            _entity(3, 5, (0.0, 0.0, 6.0)),
            _entity(0, 2, (0.0, 5.0, -20.0)),
            _entity(2, 3, (0.0, 0.0, 3.0)),
        ],
        "textfields": [_text("Score"), _text("Debug", visible=False)],
    }
    (scenes / "mainmenu.json").write_text(json.dumps(menu), encoding="utf-8")
    (scenes / "gameplay.json").write_text(json.dumps(game), encoding="utf-8")
    return tmp_path


@pytest.fixture
def engine(asset_root):
    eng = Engine(asset_root=asset_root, load_assets=False)
    eng.setup()
    return eng


def _key(scancode, down=True):
    return pygame.event.Event(pygame.KEYDOWN if down else pygame.KEYUP, scancode=int(scancode))


def test_setup_pushes_menu_and_builds_projections(engine):
    assert len(engine.scene_stack) == 1
    assert isinstance(engine.scene, MenuScene)
    expected = perspective(math.radians(60.0), 1280 / 720, 0.0001, 1000.0)
    assert np.allclose(engine.projection, expected)
    assert np.allclose(engine.ui_projection, ortho(0.0, 1280.0, 720.0, 0.0, -1.0, 1.0))


def test_setup_without_scene_file_raises(tmp_path):
    eng = Engine(asset_root=tmp_path, load_assets=False)
    with pytest.raises(FileNotFoundError):
        eng.setup()


def test_scene_before_setup_raises(asset_root):
    with pytest.raises(RuntimeError):
        Engine(asset_root=asset_root, load_assets=False).scene


def test_transition_to_gameplay_pushes_game_scene(engine):
    engine.transition_to(SceneType.GAMEPLAY)
    assert isinstance(engine.scene, GameScene)
    assert len(engine.scene_stack) == 2
    assert engine.mouse_captured is True


def test_transition_to_menu_releases_mouse(engine):
    engine.transition_to(SceneType.GAMEPLAY)
    engine.transition_to(SceneType.MAIN_MENU)
    assert isinstance(engine.scene, MenuScene)
    assert engine.mouse_captured is False


def test_quit_event_stops_engine(engine):
    engine.handle_event(pygame.event.Event(pygame.QUIT))
    assert engine.running is False


def test_escape_key_stops_engine(engine):
    engine.handle_event(_key(Scancode.ESCAPE))
    assert engine.running is False


def test_key_events_record_state(engine):
    engine.handle_event(_key(Scancode.LEFT))
    assert engine.input_state.is_down(Scancode.LEFT)
    engine.handle_event(_key(Scancode.LEFT, down=False))
    assert not engine.input_state.is_down(Scancode.LEFT)
    assert engine.running is True


def test_out_of_range_scancode_is_ignored(engine):
    engine.handle_event(_key(Scancode.LEFT))
    engine.handle_event(_key(200))
    keys = [bool(k) for k in engine.input_state.current_keys]
    assert len(keys) == 128
    assert sum(keys) == 1
    assert keys[int(Scancode.LEFT)] is True
    assert engine.running is True


def test_pressing_s_in_menu_starts_game(engine):
    engine.handle_event(_key(Scancode.S))
    engine.update()
    assert len(engine.scene_stack) == 2
    assert engine.mouse_captured is True
    assert isinstance(engine.scene, GameScene)


def test_end_frame_copies_previous_keys(engine):
    engine.handle_event(_key(Scancode.B))
    assert engine.input_state.just_pressed(Scancode.B)
    engine.end_frame(100)
    assert not engine.input_state.just_pressed(Scancode.B)
    assert engine.input_state.is_down(Scancode.B)


def test_end_frame_updates_timer_and_delay(engine):
    engine.end_frame(1000)
    delay = engine.end_frame(1005)
    assert engine.timer.elapsed_time == pytest.approx(0.005)
    assert 0 < delay <= 17
    assert engine.end_frame(1100) == 0


def test_update_moves_ball_by_elapsed_time(engine):
    engine.transition_to(SceneType.GAMEPLAY)
    engine.end_frame(0)
    engine.end_frame(500)
    before = engine.scene.ball.position.copy()
    velocity = engine.scene.ball.velocity.copy()
    engine.update()
    assert np.allclose(engine.scene.ball.position, before + velocity * 0.5)


def test_frame_data_lights_and_uniforms(engine):
    engine.update()
    frame = engine.frame_data()
    assert isinstance(frame, FrameData)
    entity = engine.scene.entities[0]
    assert [e for e, _ in frame.unshaded] == [entity]
    assert [e for e, _ in frame.shaded] == [entity]
    assert frame.light_positions.shape == (1, 4)
    assert np.allclose(frame.light_positions[0], [1.0, 2.0, 3.0, 1.0])
    assert frame.fragment_uniforms.shape == (16 + 4 * MAX_LIGHTS,)
    assert np.allclose(frame.fragment_uniforms[:8], [0.97, 0.64, 0.12, 0.0, 1.0, 1.0, 1.0, 0.0])
    assert np.allclose(frame.fragment_uniforms[8:11], engine.scene.camera.pos)
    assert frame.fragment_uniforms[12] == 1.0
    assert np.allclose(frame.fragment_uniforms[16:20], [1.0, 2.0, 3.0, 1.0])


def test_frame_data_mvp_combines_projection_view_model(engine):
    engine.update()
    frame = engine.frame_data()
    entity, mvp = frame.unshaded[0]
    expected = engine.projection @ engine.scene.camera.view_matrix() @ entity.transform
    assert np.allclose(mvp, expected)


def test_inactive_shaded_blocks_skip_lighting_pass(engine):
    engine.transition_to(SceneType.GAMEPLAY)
    engine.update()
    frame = engine.frame_data()
    blocks = [e for e in engine.scene.entities if e.is_shaded and not e.is_active]
    assert blocks
    unshaded_ids = {id(e) for e, _ in frame.unshaded}
    shaded_ids = {id(e) for e, _ in frame.shaded}
    assert all(id(b) not in unshaded_ids for b in blocks)
    assert all(id(b) in shaded_ids for b in blocks)
    assert frame.fragment_uniforms[12] == len(frame.light_positions)


def test_frame_data_ui_only_visible_text_and_flushes(engine):
    frame = engine.frame_data()
    assert frame.ui_vertices.shape == (12, 8)
    assert engine.ui_layer.vertex_count == 0
    again = engine.frame_data()
    assert np.array_equal(again.ui_vertices, frame.ui_vertices)


def test_skybox_ignores_camera_position(engine):
    first = engine.frame_data().skybox_view_projection
    engine.scene.camera.pos = np.array([50.0, -3.0, 7.0])
    second = engine.frame_data().skybox_view_projection
    assert np.allclose(first, second)
    assert np.allclose(first[:, 3], engine.projection[:, 3])