[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "chirpy"
version = "0.1.0"
description = "A small microblogging HTTP server with users, short posts, JWT authentication and refresh tokens"
requires-python = ">=3.10"
keywords = ["http", "server", "microblog", "flask", "jwt", "rest", "sqlite"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Environment :: Web Environment",
    "Framework :: Flask",
    "Intended Audience :: Developers",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
]
dependencies = [
    "flask",
    "pyjwt",
    "bcrypt",
    "python-dotenv",
]

[project.optional-dependencies]
test = [
    "pytest",
]

[project.scripts]
chirpy = "chirpy.app:main"

[tool.hatch.build.targets.wheel]
packages = ["chirpy"]

[tool.hatch.build.targets.sdist]
include = ["chirpy", "tests", "pyproject.toml", "README.md"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"

[tool.ruff]
line-length = 100
target-version = "py310"

[tool.ruff.lint]
select = ["E", "F", "W", "I", "B", "UP"]
