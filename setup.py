from __future__ import annotations

from setuptools import find_packages, setup

setup(
    name="mem0-bridge",
    version="0.1.0",
    # Repo convention: backend code lives under `backend/` and is imported as
    # top-level `domain` / `application` / `infrastructure` packages.
    package_dir={"": "backend"},
    packages=find_packages(
        where="backend",
        include=["domain", "domain.*", "application", "application.*", "infrastructure", "infrastructure.*"],
    ),
    python_requires=">=3.10",
    install_requires=[
        # Keep core deps minimal: HTTP client, request validation, .env config, compose rendering.
        "aiohttp>=3.9",
        "pydantic==2.10.6",
        "python-dotenv>=1.0",
        "pyyaml>=6.0",
    ],
    extras_require={
        # Optional: pgvector extension check against the shared Postgres.
        "postgres": ["asyncpg>=0.29"],
        # Optional: Bolt connectivity check against the graph store.
        "neo4j": ["neo4j>=5.0"],
        "test": ["pytest>=8.0"],
        # Convenience: all optional deps.
        "full": [
            "asyncpg>=0.29",
            "neo4j>=5.0",
        ],
    },
    entry_points={
        "console_scripts": [
            "mem0-stack=infrastructure.integrations.mem0_stack.main:main",
            "mem0-memories=infrastructure.integrations.mem0_memories.main:main",
        ],
    },
)
