[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "accelstream"
version = "0.1.10"
description = "ADXL345 accelerometer register model and driver, sample ring buffer, and host streaming protocol"
requires-python = ">=3.10"
dependencies = []
keywords = ["adxl345", "accelerometer", "sampling", "protocol", "ringbuffer", "spi"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Intended Audience :: Developers",
    "Intended Audience :: Science/Research",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Scientific/Engineering :: Interface Engine/Protocol Translator",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["accelstream"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 88
target-version = "py310"

[tool.mypy]
python_version = "3.10"
