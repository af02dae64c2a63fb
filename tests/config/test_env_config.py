from __future__ import annotations

from pathlib import Path

import pytest

from itemgraph.config import (
    ConfigurationError,
    IngestConfig,
    InvalidConfigurationError,
    MissingConfigurationError,
    get_ingest_config,
    get_market_data_config,
    get_neo4j_config,
    get_storage_config,
    require_env_vars,
)
from itemgraph.config.env import env_bool, env_int, env_list
from itemgraph.config.market import DEFAULT_MARKET_BASE_URL, DEFAULT_REGIONS
from itemgraph.config.storage import get_graph_database_uri


def test_require_env_vars_returns_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("EXAMPLE_VAR", "value")

    assert require_env_vars(["EXAMPLE_VAR"]) == {"EXAMPLE_VAR": "value"}


def test_require_env_vars_reports_every_missing_name(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.delenv("MISSING_A", raising=False)
    monkeypatch.setenv("MISSING_B", "   ")

    with pytest.raises(MissingConfigurationError) as exc:
        require_env_vars(["MISSING_B", "MISSING_A"])

    assert "MISSING_A, MISSING_B" in str(exc.value)


def test_env_int_enforces_bounds(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ITEMGRAPH_EXAMPLE", "900")

    with pytest.raises(InvalidConfigurationError) as exc:
        env_int("ITEMGRAPH_EXAMPLE", 1, minimum=1, maximum=500)

    assert exc.value.name == "ITEMGRAPH_EXAMPLE"
    assert env_int("ITEMGRAPH_UNSET", 7) == 7


def test_env_int_rejects_non_integers(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ITEMGRAPH_EXAMPLE", "ten")

    with pytest.raises(InvalidConfigurationError):
        env_int("ITEMGRAPH_EXAMPLE", 1)


@pytest.mark.parametrize(
    ("raw", "expected"),
    [("true", True), ("YES", True), ("1", True), ("off", False), ("0", False)],
)
def test_env_bool_accepts_common_spellings(
    monkeypatch: pytest.MonkeyPatch, raw: str, *, expected: bool
) -> None:
    monkeypatch.setenv("ITEMGRAPH_FLAG", raw)

    assert env_bool("ITEMGRAPH_FLAG") is expected


def test_env_bool_rejects_unknown_values(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ITEMGRAPH_FLAG", "maybe")

    with pytest.raises(InvalidConfigurationError):
        env_bool("ITEMGRAPH_FLAG")


def test_env_list_splits_and_strips(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ITEMGRAPH_LIST", " Caerleon , ,Fort Sterling")

    assert env_list("ITEMGRAPH_LIST", ()) == ("Caerleon", "Fort Sterling")


def test_ingest_config_defaults() -> None:
    config = get_ingest_config()

    assert config.batch_size == 200
    assert config.graph_batch_size == 25
    assert config.base_delay_seconds == 3.0
    assert config.max_delay_seconds == 15.0
    assert config.batch_retries == 3
    assert config.checkpoint_interval == 1000
    assert config.progress_interval == 500
    assert config.locale == "EN-US"
    assert config.dry_run is False


def test_ingest_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ITEMGRAPH_BATCH_SIZE", "50")
    monkeypatch.setenv("ITEMGRAPH_GRAPH_BATCH_SIZE", "10")
    monkeypatch.setenv("ITEMGRAPH_LOCALE", "DE-DE")

    config = get_ingest_config()

    assert config.batch_size == 50
    assert config.graph_batch_size == 10
    assert config.locale == "DE-DE"


@pytest.mark.parametrize(
    "kwargs",
    [
        {"batch_size": 0},
        {"batch_size": 501},
        {"graph_batch_size": 51},
        {"checkpoint_interval": 0},
        {"base_delay_seconds": 20.0, "max_delay_seconds": 15.0},
    ],
)
def test_ingest_config_rejects_out_of_range_values(kwargs: dict[str, float]) -> None:
    with pytest.raises(ConfigurationError):
        IngestConfig(**kwargs)  # type: ignore[arg-type]


def test_ingest_config_overrides_keep_unset_fields() -> None:
    config = IngestConfig(batch_size=100, graph_batch_size=20)

    updated = config.with_overrides(batch_size=300, dry_run=True)

    assert updated.batch_size == 300
    assert updated.graph_batch_size == 20
    assert updated.dry_run is True
    assert config.batch_size == 100


def test_market_config_defaults() -> None:
    config = get_market_data_config()

    assert config.base_url == DEFAULT_MARKET_BASE_URL
    assert config.regions == DEFAULT_REGIONS
    assert config.max_url_length == 8000
    assert config.max_attempts == 5
    assert config.resilience.timeout_seconds == 45.0
    assert config.resilience.cache is None
    assert config.resilience.retry is not None
    assert 429 not in config.resilience.retry.status_forcelist
    assert 503 not in config.resilience.retry.status_forcelist


def test_market_config_reads_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("ITEMGRAPH_MARKET_BASE_URL", "https://prices.example/api")
    monkeypatch.setenv("ITEMGRAPH_MARKET_REGIONS", "Caerleon,Thetford")
    monkeypatch.setenv("ITEMGRAPH_HTTP_CACHE", "true")

    config = get_market_data_config()

    assert config.base_url == "https://prices.example/api"
    assert config.regions == ("Caerleon", "Thetford")
    assert config.resilience.cache is not None
    assert config.resilience.cache.enabled is True


def test_storage_config_uses_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("ITEMGRAPH_DATA_DIR", str(tmp_path / "data"))
    monkeypatch.setenv("ITEMGRAPH_CATALOG_DIR", str(tmp_path / "catalogs"))

    storage = get_storage_config()

    assert storage.resolve_data_dir() == (tmp_path / "data").resolve()
    assert storage.resolve_output_dir() == (tmp_path / "data" / "outputs").resolve()
    assert storage.resolve_catalog_dir() == (tmp_path / "catalogs").resolve()
    assert storage.checkpoint_path().name == "processing-progress.json"


def test_storage_output_dir_argument_wins(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    monkeypatch.setenv("ITEMGRAPH_OUTPUT_DIR", str(tmp_path / "env-out"))

    storage = get_storage_config(output_dir=tmp_path / "cli-out")

    assert storage.resolve_output_dir() == (tmp_path / "cli-out").resolve()


def test_graph_database_uri_prefers_environment(
    monkeypatch: pytest.MonkeyPatch, tmp_path: Path
) -> None:
    monkeypatch.setenv("ITEMGRAPH_DATA_DIR", str(tmp_path))
    assert get_graph_database_uri().endswith("item-graph.db")

    monkeypatch.setenv("ITEMGRAPH_GRAPH_DATABASE_URI", "sqlite+pysqlite:///:memory:")
    assert get_graph_database_uri() == "sqlite+pysqlite:///:memory:"


def test_neo4j_config_requires_password(monkeypatch: pytest.MonkeyPatch) -> None:
    with pytest.raises(MissingConfigurationError):
        get_neo4j_config()

    monkeypatch.setenv("NEO4J_PASSWORD", "secret")
    config = get_neo4j_config()

    assert config.uri == "bolt://localhost:7687"
    assert config.user == "neo4j"
    assert config.password == "secret"
    assert config.database is None
