[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "hyperdesk"
version = "0.1.0"
description = "Virtual multi-monitor desktop core: curved monitor wall layout, field-of-view culling, display control negotiation and graphics surface routing."
requires-python = ">=3.10"
dependencies = []
keywords = ["rdp", "virtual-desktop", "multi-monitor", "vr", "remote-desktop", "layout"]
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
    "Topic :: Desktop Environment",
    "Typing :: Typed",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["hyperdesk"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
