[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "tcpblock"
version = "0.1.0"
description = "Cut off TCP connections whose payload contains a pattern by injecting RST and redirect segments"
requires-python = ">=3.10"
dependencies = []
keywords = ["tcp", "firewall", "packet", "rst", "block", "http", "mac"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Networking :: Firewalls",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
tcp-block = "tcpblock.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["tcpblock"]

[tool.pytest.ini_options]
addopts = "-ra"
