[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hlpseudopeer"
version = "0.1.0"
description = "Block sources that read EVM blocks from local archives, hl-node hourly files and in-memory caches"
requires-python = ">=3.10"
keywords = ["blocks", "evm", "msgpack", "lz4", "ingest", "cache", "asyncio"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "lz4",
    "msgpack",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["hlpseudopeer"]

[tool.hatch.build.targets.sdist]
include = ["hlpseudopeer", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
