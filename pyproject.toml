[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "acid"
version = "0.1.0"
description = "Building blocks for RPC and Raft services: binary serializer, wire frame, routing strategies, thread sync primitives and Raft messages"
requires-python = ">=3.10"
dependencies = []
keywords = ["rpc", "raft", "serialization", "protocol", "channel", "load-balancing"]
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
    "Topic :: System :: Distributed Computing",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["acid"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
