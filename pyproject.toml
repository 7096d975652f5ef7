[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "rhubarb"
version = "0.1.0"
description = "A small WebSocket handshake server and client that exchange raw text after the handshake"
requires-python = ">=3.10"
dependencies = []
keywords = ["websocket", "handshake", "rfc6455", "echo", "server", "client"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
rhubarb = "rhubarb.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["rhubarb"]

[tool.pytest.ini_options]
addopts = "-ra"
