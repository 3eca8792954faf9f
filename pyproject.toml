[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "lilycc"
version = "0.1.0"
description = "Compiler building blocks: source files, positions, tokens, diagnostics, instruction prototypes and instruction selection trees"
requires-python = ">=3.10"
dependencies = []
keywords = ["compiler", "riscv", "instruction-selection", "ast", "diagnostics"]
classifiers = [
    "Development Status :: 2 - Pre-Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Compilers",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["lilycc"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
