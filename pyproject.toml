[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "pinocchio"
version = "0.1.0"
description = "Zero-copy program model for Solana-style accounts, borrows, instructions, entrypoints and program derived addresses"
requires-python = ">=3.10"
dependencies = []
keywords = ["solana", "program", "account", "entrypoint", "instruction", "pda", "base58"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Operating System :: OS Independent",
    "Topic :: Software Development :: Libraries",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["pinocchio"]

[tool.pytest.ini_options]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.mypy]
python_version = "3.10"
warn_unused_ignores = true
