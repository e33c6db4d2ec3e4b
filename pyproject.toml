[build-system]
requires = ["hatchling"]
build-backend = "hatchling.build"

[project]
name = "llmnode"
version = "0.1.0"
description = "Request and response models, client interface, stream collection and load balancing for local LLM nodes"
requires-python = ">=3.10"
dependencies = []
keywords = ["llm", "load-balancer", "chat-completion", "embeddings", "streaming"]
classifiers = [
    "Development Status :: 3 - Alpha",
    "Intended Audience :: Developers",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Framework :: AsyncIO",
    "Topic :: Scientific/Engineering :: Artificial Intelligence",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pytest-asyncio",
]

[tool.hatch.build.targets.wheel]
packages = ["llmnode"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
