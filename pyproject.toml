[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "sqlweave"
version = "0.1.0"
description = "SQL dialect definitions, ordered callback registries, error aggregation and query log formatting"
requires-python = ">=3.10"
dependencies = []
keywords = ["sql", "orm", "dialect", "callbacks", "database"]
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
    "Topic :: Database :: Front-Ends",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["sqlweave"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
