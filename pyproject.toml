[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "minidb"
version = "0.1.0"
description = "A small file-backed relational database with a simple SQL dialect and an interactive shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["database", "sql", "storage", "repl", "index"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Database :: Database Engines/Servers",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
minidb = "minidb.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["minidb"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
