[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "relaykit"
version = "0.1.0"
description = "Building blocks for a relay proxy server: lenient JSON parsing, TLS SNI extraction, hostname validation, rule matching and DNS resolution"
requires-python = ">=3.10"
dependencies = [
    "dnspython",
]
keywords = ["proxy", "relay", "sni", "tls", "dns", "json", "networking"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: System :: Networking",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[tool.hatch.build.targets.wheel]
packages = ["relaykit"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"
