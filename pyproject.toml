[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "authwatch"
version = "0.1.0"
description = "Watch an SSH auth log for brute-force attempts, record alerts, block offending addresses and serve them over a small HTTP API."
requires-python = ">=3.10"
keywords = ["ids", "intrusion-detection", "ssh", "auth.log", "brute-force", "iptables", "alerts"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Console",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Security",
    "Topic :: System :: Monitoring",
    "Topic :: System :: Networking :: Firewalls",
]
dependencies = [
    "flask",
    "watchdog",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
authwatch = "authwatch.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["authwatch"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
