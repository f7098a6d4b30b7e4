[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "distlab"
version = "0.1.0"
description = "In-process distributed-systems components: load balancing, MapReduce, two-phase-commit payments and Byzantine generals"
requires-python = ">=3.10"
keywords = [
    "distributed-systems",
    "load-balancer",
    "mapreduce",
    "two-phase-commit",
    "idempotency",
    "byzantine-generals",
]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Education",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: System :: Distributed Computing",
]
dependencies = [
    "bcrypt",
    "psutil",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
distlab-mapreduce = "distlab.mapreduce.master:main"
distlab-generals = "distlab.generals.launcher:main"

[tool.hatch.build.targets.wheel]
packages = ["distlab"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
