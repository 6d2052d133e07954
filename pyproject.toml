[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "corenet"
version = "0.1.0"
description = "Networking building blocks: sockets, byte streams, a threaded TCP server, timers, named threads, URIs and utilities"
requires-python = ">=3.10"
dependencies = []
keywords = ["networking", "tcp", "udp", "socket", "stream", "timer", "uri", "server"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Operating System :: POSIX",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["corenet"]

[tool.pytest.ini_options]
addopts = "-ra"
