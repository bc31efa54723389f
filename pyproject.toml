[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "starkstack"
version = "0.1.0"
description = "A byte-level bidirectional task stack, step-by-step arithmetic tasks and a STARK proof JSON parser"
requires-python = ">=3.10"
dependencies = []
keywords = ["stark", "proof", "parser", "scheduler", "stack", "pedersen", "fri"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security :: Cryptography",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
starkstack-parse = "starkstack.json_parser:main"

[tool.hatch.build.targets.wheel]
packages = ["starkstack"]

[tool.hatch.build.targets.sdist]
include = ["starkstack", "tests", "README.md", "pyproject.toml"]

[tool.pytest.ini_options]
addopts = "-ra"
