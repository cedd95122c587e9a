[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "roadmapctl"
version = "0.1.0"
description = "Configuration loading, diagnostics reporting and lint checks for markdown roadmap trees"
requires-python = ">=3.11"
dependencies = [
    "markdown-it-py",
]
keywords = ["roadmap", "lint", "markdown", "diagnostics", "tasks", "configuration"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Quality Assurance",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["roadmapctl"]

[tool.pytest.ini_options]
addopts = "-ra"
