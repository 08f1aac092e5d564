"""
Tests for the embedding boundary and its zero-vector fallback
"""
from unittest.mock import MagicMock, patch

import pytest

from supportiq.services.embedding import EmbeddingService
from supportiq.services.embedding_cache import EmbeddingModelCache


class TestEmbeddingService:
    def test_embed(self):
        encoder = MagicMock(return_value=[[0.1, 0.2, 0.3]])
        service = EmbeddingService(encoder=encoder, dimension=3)

        assert service.embed("How do I reset my password?") == [0.1, 0.2, 0.3]
        encoder.assert_called_once_with(["How do I reset my password?"])

    @pytest.mark.parametrize("text", ["", "   "])
    def test_empty_text(self, text):
        encoder = MagicMock()
        service = EmbeddingService(encoder=encoder, dimension=4)

        assert service.embed(text) == [0.0] * 4
        encoder.assert_not_called()

    def test_encoder_failure(self):
        service = EmbeddingService(encoder=MagicMock(side_effect=RuntimeError("CUDA OOM")), dimension=3)
        assert service.embed("hello there") == [0.0, 0.0, 0.0]

    def test_dimension_mismatch(self):
        service = EmbeddingService(encoder=MagicMock(return_value=[[0.1, 0.2]]), dimension=3)
        assert service.embed("hello there") == [0.0, 0.0, 0.0]

    @pytest.mark.asyncio
    async def test_embed_async(self):
        service = EmbeddingService(encoder=MagicMock(return_value=[[1.0, 0.0]]), dimension=2)
        assert await service.embed_async("hello there") == [1.0, 0.0]

    @pytest.mark.asyncio
    async def test_fill_missing(self, make_ticket):
        encoder = MagicMock(return_value=[[0.5, 0.5]])
        service = EmbeddingService(encoder=encoder, dimension=2)
        has_vector = make_ticket(embedding=[1.0, 0.0])
        missing = make_ticket(subject="Login", content="Cannot log in")

        filled = await service.fill_missing([has_vector, missing])

        assert filled[0] is has_vector
        assert filled[1].embedding == [0.5, 0.5]
        assert missing.embedding is None
        encoder.assert_called_once_with(["Login Cannot log in"])


class TestEmbeddingModelCache:
    def test_singleton(self):
        assert EmbeddingModelCache() is EmbeddingModelCache()

    def test_model_loaded_once(self):
        cache = EmbeddingModelCache()
        cache.clear_cache()

        with patch("sentence_transformers.SentenceTransformer") as mock_model:
            first = cache.get_model("test-model")
            second = cache.get_model("test-model")

        assert first is second
        mock_model.assert_called_once_with("test-model")
        cache.clear_cache()
