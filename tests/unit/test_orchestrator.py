"""Unit tests for RetrievalOrchestrator."""

import pytest

from semantix.config.loader import ConfigHolder
from semantix.config.schema import ProviderKind, ProviderProfile
from semantix.entities import InvalidDocumentError, WorldBook
from semantix.providers.base import UnknownProviderError
from semantix.service.orchestrator import InvalidRequestError, RetrievalOrchestrator
from semantix.storage.base import VectorStoreError
from semantix.storage.memory import InMemoryVectorStore


@pytest.mark.asyncio
class TestRetrievalOrchestrator:
    """Test RetrievalOrchestrator operations."""

    @pytest.fixture
    def orchestrator(self, app_config, http_client):
        return RetrievalOrchestrator(ConfigHolder(app_config), InMemoryVectorStore(), client=http_client)

    async def test_vectorize_from_dict(self, orchestrator, world_book_data):
        """Test a raw document is validated and stored."""
        result = await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")

        assert result.points_stored == 6
        assert await orchestrator.vector_store.collection_exists("lore")

    async def test_vectorize_from_model(self, orchestrator, world_book_data):
        """Test an already validated world book is accepted."""
        result = await orchestrator.vectorize_and_store(
            WorldBook.from_dict(world_book_data), collection_name="lore"
        )
        assert result.chunks_processed == 6

    async def test_vectorize_invalid_document(self, orchestrator):
        """Test a document without entries is rejected."""
        with pytest.raises(InvalidDocumentError):
            await orchestrator.vectorize_and_store({"name": "no entries"})

    async def test_search_returns_serializable_results(self, orchestrator, world_book_data):
        """Test search results are plain dictionaries, best match first."""
        await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")

        results = await orchestrator.search("dragon", "lore", limit=2)

        assert len(results) == 2
        assert results[0]["payload"]["uid"] == 0
        assert isinstance(results[0]["id"], str)
        assert "rerank_score" not in results[0]

    async def test_search_with_rerank(self, orchestrator, world_book_data):
        """Test reranked search attaches rerank scores."""
        await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")

        results = await orchestrator.search("king aldric", "lore", limit=3, rerank=True)

        assert results[0]["payload"]["uid"] == 1
        assert results[0]["rerank_score"] == 1.0
        scores = [r["rerank_score"] for r in results]
        assert scores == sorted(scores, reverse=True)

    async def test_search_with_unknown_rerank_provider(self, app_config, http_client, world_book_data):
        """Test a rerank provider missing from the registry is reported."""
        config = app_config.model_copy(update={"rerank_provider": "missing"})
        orchestrator = RetrievalOrchestrator(ConfigHolder(config), InMemoryVectorStore(), client=http_client)
        await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")

        with pytest.raises(UnknownProviderError):
            await orchestrator.search("dragon", "lore", rerank=True)

    @pytest.mark.parametrize("query,collection", [("", "lore"), ("dragon", "")])
    async def test_search_missing_fields(self, orchestrator, query, collection):
        """Test searches without query or collection are rejected."""
        with pytest.raises(InvalidRequestError):
            await orchestrator.search(query, collection)

    async def test_search_missing_collection(self, orchestrator):
        """Test searching a collection that does not exist fails."""
        with pytest.raises(VectorStoreError):
            await orchestrator.search("dragon", "absent")

    async def test_delete_records(self, orchestrator, world_book_data):
        """Test deleting the ids of one entry removes it from results."""
        await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")
        results = await orchestrator.search("dragon", "lore", limit=10)
        dragon_ids = [r["id"] for r in results if r["payload"]["uid"] == 0]

        await orchestrator.delete_records("lore", dragon_ids)

        remaining = await orchestrator.search("dragon", "lore", limit=10)
        assert {r["payload"]["uid"] for r in remaining} == {1, 2}

    @pytest.mark.parametrize("collection,ids", [("", ["a"]), ("lore", None), ("lore", "a")])
    async def test_delete_records_missing_fields(self, orchestrator, collection, ids):
        """Test deletes without a collection or an id list are rejected."""
        with pytest.raises(InvalidRequestError):
            await orchestrator.delete_records(collection, ids)

    async def test_delete_collection(self, orchestrator, world_book_data):
        """Test a deleted collection can no longer be searched."""
        await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")

        await orchestrator.delete_collection("lore")

        with pytest.raises(VectorStoreError):
            await orchestrator.search("dragon", "lore")

    async def test_delete_collection_missing_name(self, orchestrator):
        """Test a delete without a name is rejected."""
        with pytest.raises(InvalidRequestError):
            await orchestrator.delete_collection("")

    async def test_requests_use_current_snapshot(self, orchestrator, app_config, world_book_data):
        """Test a replaced configuration applies to the next request."""
        smaller = app_config.model_copy(update={"default_chunk_size": 10, "default_overlap_size": 0})
        orchestrator.config_holder.replace(smaller)

        result = await orchestrator.vectorize_and_store(world_book_data, collection_name="lore")

        assert result.chunks_processed > 6

    async def test_reload_config(self, orchestrator, tmp_path):
        """Test configuration reloaded from disk becomes the snapshot."""
        path = tmp_path / "semantix.toml"
        path.write_text('default_provider = "ollama"\n', encoding="utf-8")

        orchestrator.reload_config(path)

        assert orchestrator.config_holder.snapshot().default_provider == "ollama"

    async def test_provider_override(self, app_config, http_client, world_book_data):
        """Test a named provider other than the default can be used."""
        other = ProviderProfile(
            base_url="http://embed.test",
            model_name="other-embed",
            kind=ProviderKind.LLAMACPP,
            dimension=3,
        )
        config = app_config.model_copy(
            update={"providers": {**app_config.providers, "other": other}}
        )
        orchestrator = RetrievalOrchestrator(ConfigHolder(config), InMemoryVectorStore(), client=http_client)

        result = await orchestrator.vectorize_and_store(
            world_book_data, collection_name="lore", provider="other"
        )

        assert result.points_stored == 6

    async def test_close_keeps_shared_client(self, orchestrator, http_client):
        """Test a client passed in stays open after close."""
        await orchestrator.close()
        assert not http_client.is_closed
