[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "nisetools"
version = "3.1.0"
description = "Input-file parsing and Hamiltonian trajectory format translation for nonlinear exciton spectroscopy simulations"
requires-python = ">=3.10"
dependencies = []
keywords = ["spectroscopy", "exciton", "hamiltonian", "trajectory", "infrared", "simulation"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Science/Research",
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

[project.scripts]
nise-translate = "nisetools.translate:main"
nise-readinput = "nisetools.config:main"

[tool.hatch.build.targets.wheel]
packages = ["nisetools"]

[tool.pytest.ini_options]
addopts = "-ra"
