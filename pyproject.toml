[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "slimlocal"
version = "0.1.0"
description = "Building blocks for serving local development apps on HTTPS .local domains: routing, hosts file and port forwarding management, daemon IPC, health checks and diagnostics."
requires-python = ">=3.10"
keywords = [
    "reverse-proxy",
    "local-development",
    "https",
    "hosts-file",
    "port-forwarding",
    "iptables",
    "pf",
    "tunnel",
]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: Developers",
    "Operating System :: MacOS",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: Proxy Servers",
    "Topic :: Software Development",
]
dependencies = [
    "cryptography",
]

[project.optional-dependencies]
test = [
    "pytest",
    "cryptography",
]

[tool.hatch.build.targets.wheel]
packages = ["slimlocal"]

[tool.hatch.build.targets.sdist]
include = [
    "slimlocal",
    "tests",
]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
warn_redundant_casts = true
