"""A small 3D block breaker: scenes, entities, meshes, textures, font atlas, UI quads and a pygame game loop."""

__version__ = "0.1.0"