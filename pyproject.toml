[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "microshop"
version = "0.1.0"
description = "Small order, user and stock services for a shop, served as JSON over HTTP, with Redis-backed stock locking"
requires-python = ">=3.10"
keywords = ["orders", "inventory", "stock", "microservices", "redis", "sqlite", "point-of-sale"]
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
    "Topic :: Office/Business :: Financial :: Point-Of-Sale",
]
dependencies = [
    "pyyaml>=6.0",
    "redis>=4.5",
]

[project.optional-dependencies]
test = [
    "pytest>=7.0",
]

[project.scripts]
microshop = "microshop.cli:main"

[tool.hatch.build.targets.wheel]
packages = ["microshop"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
