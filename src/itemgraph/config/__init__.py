"""Application configuration helpers."""

from __future__ import annotations

from .env import require_env_vars
from .errors import ConfigurationError, InvalidConfigurationError, MissingConfigurationError
from .http_resilience import CacheConfig, RateLimit, ResilienceConfig, RetryPolicy
from .ingest import IngestConfig, get_ingest_config
from .logging import configure_logging
from .market import MarketDataConfig, default_market_resilience, get_market_data_config
from .neo4j import Neo4jConfig, get_neo4j_config
from .storage import StorageConfig, get_graph_database_uri, get_storage_config

__all__ = [
    "CacheConfig",
    "ConfigurationError",
    "IngestConfig",
    "InvalidConfigurationError",
    "MarketDataConfig",
    "MissingConfigurationError",
    "Neo4jConfig",
    "RateLimit",
    "ResilienceConfig",
    "RetryPolicy",
    "StorageConfig",
    "configure_logging",
    "default_market_resilience",
    "get_graph_database_uri",
    "get_ingest_config",
    "get_market_data_config",
    "get_neo4j_config",
    "get_storage_config",
    "require_env_vars",
]
