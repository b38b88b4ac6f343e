[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "boostmqtt"
version = "0.1.0"
description = "An MQTT 3.1/3.1.1 packet codec: serializers, deserializers, stream readers and packet descriptions"
requires-python = ">=3.10"
keywords = ["mqtt", "iot", "packet", "codec", "protocol"]
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
    "Topic :: Communications",
    "Topic :: Internet",
]
dependencies = []

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["boostmqtt"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
