[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "surf"
version = "0.1.0"
description = "A small HTTP routing toolkit: radix-tree router, middleware, JSON rendering, WebSockets, SPA serving and colour settings for terminal logging."
requires-python = ">=3.10"
dependencies = []
keywords = ["http", "router", "radix", "middleware", "websocket", "spa", "json"]
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
    "Topic :: Internet :: WWW/HTTP :: HTTP Servers",
    "Topic :: Software Development :: Libraries :: Application Frameworks",
]

[project.optional-dependencies]
test = ["pytest"]

[tool.hatch.build.targets.wheel]
packages = ["surf"]

[tool.pytest.ini_options]
addopts = "-ra"
