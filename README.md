# blockbreaker3d

A small 3D block breaker. A paddle sits at the front of the field, a ball
travels across it and bounces back off the field's edges, and a grid of
blocks is laid out in front of the paddle. Scenes (the main menu and the
gameplay field) are described in JSON files, meshes come from Wavefront OBJ
files, textures from any image file Pillow can read, and text is drawn from a
glyph atlas rendered from a TrueType font.

## Installation

```
pip install .
```

To run the test suite as well:

```
pip install ".[test]"
pytest
```

## Playing

```
blockbreaker3d
```

Options:

| Option | Meaning |
| --- | --- |
| `--assets DIR` | Directory that holds the `assets/` folder (default: the working directory) |

The game opens a 1280 × 720 window on the main menu.

| Key | Action |
| --- | --- |
| `S` | Start the game from the menu |
| Left / Right arrows | Move the paddle |
| `=` | Turn on the debug fly camera (mouse to look, `W` `A` `S` `D` to move) and show the second text field |
| `-` | Turn the debug fly camera off again and hide that text field |
| `B` | Print the ball and camera positions |
| `Esc` | Quit |

## Assets

The game reads everything from `assets/` under the `--assets` directory:

- `assets/scenes/mainmenu.json` and `assets/scenes/gameplay.json`
- `assets/meshes/ico.obj`, `quad.obj`, `sphere.obj`, `paddle.obj`, `block.obj`
- `assets/textures/gem_10.png`, `gem_03.png`, `metal_07.png`, `paddle.png`,
  `gem_13.png`, `metal_21.png`, `block_1.png` … `block_5.png`
- `assets/skyboxes/space/space_right.png`, `_left`, `_up`, `_down`,
  `_front`, `_back`
- `assets/fonts/DejaVuSansMono.ttf`

No assets are shipped with the package.

A scene file is a JSON object with an `entities` list and a `textfields` list.
Each entity gives `mesh` and `texture` (the numeric values of `MeshType` and
`TextureType`), `position`, `rotation` (degrees), `scale`, `is_shaded` and
`is_active`. Each text field gives `text`, `position`, `color` (RGBA) and
`is_visible`. A gameplay scene needs the paddle at entity index 0 and the ball
at index 2; `GameScene` adds the block grid itself and gives the ball its
starting velocity.

## Using the pieces

- `blockbreaker3d.camera`: `Camera` with `view_matrix()`, and the `look_at`,
  `perspective` and `ortho` matrix helpers.
- `blockbreaker3d.entity`: `Entity` with `update_transform()`, `MeshType`,
  `TextureType`, and the `translate`, `rotate` and `scale` helpers.
- `blockbreaker3d.input`: `Scancode`, `InputState` (`record_key`, `is_down`,
  `just_pressed`, `copy_prev_keys`, `reset`) and `FrameTimer`, whose `tick`
  returns the milliseconds to wait to hold 60 frames per second.
- `blockbreaker3d.scenes`: `load_scene_data`, `Scene`, `MenuScene`,
  `GameScene`, `TextField`, `UIElement`, `SceneType` and `is_ball_colliding`.
- `blockbreaker3d.mesh`: `Mesh`, `parse_obj` and `load_mesh`. Polygons are
  fan-triangulated, identical vertices are joined, smooth normals are
  generated when the file has none, and only the first object is kept.
- `blockbreaker3d.texture`: `Image`, `load_texture` and `load_cube_map`
  (images are always expanded to RGBA8).
- `blockbreaker3d.fonts`: `build_font_atlas`, which renders characters 32 to
  122 into a 16 × 16 grid of 64-pixel cells, plus `FontAtlas`, `Glyph` and
  `gray_to_pixel`.
- `blockbreaker3d.ui`: `UILayer` (`push_text`, `push_element`, `flush`),
  `text_vertices` and `element_vertices`, which build screen-space quads.
- `blockbreaker3d.engine`: `Engine`, which owns the scene stack, input and
  timing, and whose `frame_data()` returns a `FrameData` with the matrices,
  lighting block and UI vertices for one frame; and `main`, the command above.

Checking whether a ball touches a block:

```python
from blockbreaker3d.scenes import is_ball_colliding

print(is_ball_colliding((0.0, 0.0, 0.0), (2.0, 0.0, 0.0)))  # True
```

The collider is a flat box 6 units wide and 1 unit deep around the entity's
position; the ball has a radius of 1.

## What it does not do

- The built-in renderer draws with pygame in software: each model is drawn as
  flat-coloured triangles (the mean colour of its texture) sorted by depth,
  the sky is filled with the mean colour of the cube map faces, and text is
  blitted from the glyph atlas. Textures are not mapped onto models and the
  lighting values in `FrameData.fragment_uniforms` are computed but not used
  for shading.
- The ball does not bounce off the paddle or the blocks. A block the ball
  touches only has its `is_active` flag cleared; it is not removed from the
  scene or from the picture.
- There is no score, no lives and no end of game.