[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "longtailstore"
version = "0.2.0"
description = "Blob stores for block storage (in-memory, filesystem and S3 backends) plus regex path filters"
requires-python = ">=3.10"
dependencies = [
    "portalocker",
]
keywords = ["blob", "storage", "s3", "filesystem", "block-store", "path-filter"]
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
    "Topic :: System :: Software Distribution",
    "Topic :: System :: Archiving",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["longtailstore"]

[tool.hatch.build.targets.sdist]
include = ["longtailstore", "tests"]

[tool.pytest.ini_options]
addopts = "-ra"
testpaths = ["tests"]

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
