[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "dalink"
version = "0.1.0"
description = "Data availability layer client interfaces for rollup batches, with a Celestia client, gas and fee estimation, and in-process health events."
requires-python = ">=3.10"
dependencies = []
keywords = ["data-availability", "rollup", "celestia", "blob", "gas-estimation", "pubsub"]
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
    "Topic :: System :: Distributed Computing",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["dalink"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
