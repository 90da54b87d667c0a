[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "bluetool"
version = "0.1.0"
description = "Linux Bluetooth tooling: wrappers for rfkill, btmgmt, hciconfig and hcitool, and an in-process GATT application object model"
requires-python = ">=3.10"
dependencies = []
keywords = ["bluetooth", "bluez", "gatt", "ble", "btmgmt", "hciconfig", "hcitool", "rfkill"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: System Administrators",
    "Operating System :: POSIX :: Linux",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Hardware",
    "Topic :: Communications",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["bluetool"]

[tool.pytest.ini_options]
addopts = "-ra"
