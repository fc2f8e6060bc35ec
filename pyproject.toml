[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tupgate"
version = "0.1.0"
description = "Gateway building blocks: WebSocket framing and handshake, backend proxy routing, response callbacks and service message models"
requires-python = ">=3.10"
dependencies = []
keywords = ["gateway", "proxy", "websocket", "rpc", "routing"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Internet :: WWW/HTTP",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["tupgate"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
