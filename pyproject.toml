[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nagplug"
version = "0.1.0"
description = "Linux system checks and helpers for Nagios-compatible monitoring plugins"
requires-python = ">=3.10"
dependencies = []
keywords = ["nagios", "monitoring", "plugins", "linux", "procfs", "sysfs", "thresholds", "netlink"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Monitoring",
]

[project.optional-dependencies]
test = ["pytest"]

[project.scripts]
check_clock = "nagplug.check_clock:main"

[tool.hatch.build.targets.wheel]
packages = ["nagplug"]

[tool.pytest.ini_options]
addopts = "-ra"
