[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "fatsim"
version = "0.1.0"
description = "A small FAT-style file system kept inside a simulated block disk image, with an interactive shell"
requires-python = ">=3.10"
dependencies = []
keywords = ["fat", "filesystem", "file-allocation-table", "disk-image", "simulation", "education"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Education",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Education",
    "Topic :: System :: Filesystems",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
fatsim = "fatsim.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["fatsim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
