[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "blockbreaker3d"
version = "0.1.0"
description = "A small 3D block breaker game with a scene-driven engine and a software renderer"
requires-python = ">=3.10"
keywords = ["game", "breakout", "arcade", "3d", "pygame"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Arcade",
]
dependencies = [
    "numpy",
    "pillow",
    "pygame",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
blockbreaker3d = "blockbreaker3d.engine:main"

[tool.hatch.build.targets.wheel]
packages = ["blockbreaker3d"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
