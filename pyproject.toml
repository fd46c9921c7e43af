[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "stablerouter"
version = "0.1.0"
description = "StableSwap curve math, a multi-hop swap router and a stable liquidity pool, modelled in pure Python"
requires-python = ">=3.10"
dependencies = []
keywords = ["stableswap", "amm", "curve", "swap", "router", "liquidity", "defi"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Intended Audience :: Financial and Insurance Industry",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Office/Business :: Financial",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["stablerouter"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
