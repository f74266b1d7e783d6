[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "edgefleet"
version = "0.1.0"
description = "Models, request validation and HTTP clients for managing fleets of edge devices and their OSTree images"
requires-python = ">=3.10"
keywords = ["edge", "ostree", "image-builder", "inventory", "fdo", "fleet-management"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: System Administrators",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Systems Administration",
]
dependencies = [
    "requests>=2.25",
]

[project.optional-dependencies]
test = [
    "pytest>=7",
    "responses>=0.20",
]

[tool.hatch.build.targets.wheel]
packages = ["edgefleet"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
