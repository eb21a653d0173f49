[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "vehiclesim"
version = "0.1.0"
description = "Physics and sensor models for simulated air and underwater vehicles, with a socket link to an autopilot"
requires-python = ">=3.10"
dependencies = ["numpy"]
keywords = ["simulation", "uav", "uuv", "aerodynamics", "hydrodynamics", "wind", "odometry", "quaternion"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Physics",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["vehiclesim"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
