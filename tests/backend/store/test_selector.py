import asyncio

import pytest

from backend.store import EmbeddedStore, NetworkedStore, create_store


def test_connection_string_selects_networked_store(tmp_path):
    store = create_store("postgresql://u:p@localhost/db", tmp_path / "unused.db", pool_max_size=3)

    assert isinstance(store, NetworkedStore)
    assert store.backend == "postgres"
    assert not (tmp_path / "unused.db").exists()


@pytest.mark.parametrize("database_url", [None, "", "   "])
def test_missing_connection_string_selects_embedded_store(tmp_path, database_url):
    store = create_store(database_url, tmp_path / "analytics.db", pool_max_size=3)
    try:
        assert isinstance(store, EmbeddedStore)
        assert store.backend == "sqlite"
        assert (tmp_path / "analytics.db").exists()
    finally:
        asyncio.run(store.close())
