[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "strongholdsim"
version = "0.1.0"
description = "A turn-based kingdom management and strategy game for the terminal"
requires-python = ">=3.10"
dependencies = []
keywords = ["game", "strategy", "turn-based", "kingdom", "simulation", "hotseat"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Games/Entertainment :: Turn Based Strategy",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
strongholdsim = "strongholdsim.game:main"

[tool.hatch.build.targets.wheel]
packages = ["strongholdsim"]

[tool.pytest.ini_options]
addopts = "-ra"
