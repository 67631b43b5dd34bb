[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "toriidx"
version = "0.1.0"
description = "World indexer for a Starknet game world, with SQLite storage and a JSON query service"
requires-python = ">=3.10"
keywords = ["indexer", "starknet", "sqlite", "json-rpc", "graphql"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Database :: Front-Ends",
]
dependencies = [
    "httpx",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
toriidx = "toriidx.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["toriidx"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
