[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "wlscanner"
version = "1.0.0"
description = "Parse and check Wayland protocol XML descriptions into a Python object model, with observable signals"
requires-python = ">=3.10"
dependencies = []
keywords = ["wayland", "protocol", "xml", "parser"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Code Generators",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["wlscanner"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
