"""Neo4j connection settings for the optional graph backend."""

from __future__ import annotations

from dataclasses import dataclass

from .env import env_str, require_env_vars

DEFAULT_NEO4J_URI = "bolt://localhost:7687"
DEFAULT_NEO4J_USER = "neo4j"


@dataclass(frozen=True, slots=True)
class Neo4jConfig:
    uri: str
    user: str
    password: str
    database: str | None = None


def get_neo4j_config() -> Neo4jConfig:
    values = require_env_vars(("NEO4J_PASSWORD",))
    database = env_str("NEO4J_DATABASE", "")
    return Neo4jConfig(
        uri=env_str("NEO4J_URI", DEFAULT_NEO4J_URI),
        user=env_str("NEO4J_USER", DEFAULT_NEO4J_USER),
        password=values["NEO4J_PASSWORD"],
        database=database or None,
    )
