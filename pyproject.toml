[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "kafkaclient"
version = "0.4.0"
description = "Asyncio building blocks for a Kafka client: backoff, producer batching, metadata caching and stream consumption"
requires-python = ">=3.10"
dependencies = []
keywords = ["kafka", "asyncio", "producer", "consumer", "backoff", "batching"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Framework :: AsyncIO",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Software Development :: Libraries :: Python Modules",
]

[project.optional-dependencies]
test = ["pytest", "pytest-asyncio"]

[tool.hatch.build.targets.wheel]
packages = ["kafkaclient"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
