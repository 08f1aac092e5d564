"""
Embedding boundary

embed(text) -> fixed-length vector. When embedding fails (or the text
is empty) a zero vector of the configured dimension is returned, which
has similarity 0 against everything, so the ticket still takes part in
clustering as its own singleton.
"""
import asyncio
from typing import Callable, List, Optional, Sequence

from supportiq.config import get_settings
from supportiq.models.schemas import Ticket
from supportiq.utils.logger import get_logger

settings = get_settings()
logger = get_logger(__name__)


class EmbeddingService:
    """
    Sentence-transformer embeddings with zero-vector fallback

    Args:
        encoder: Callable mapping a list of texts to vectors
            (default: cached SentenceTransformer.encode)
        dimension: Expected vector dimension
    """

    def __init__(
        self,
        encoder: Optional[Callable[[List[str]], Sequence[Sequence[float]]]] = None,
        dimension: Optional[int] = None
    ):
        self._encoder = encoder
        self.dimension = dimension or settings.embedding_dim

    def _encode(self, texts: List[str]) -> Sequence[Sequence[float]]:
        if self._encoder is None:
            from supportiq.services.embedding_cache import get_embedding_model

            model = get_embedding_model(settings.embedding_model)
            self._encoder = lambda batch: model.encode(batch, normalize_embeddings=True)
        return self._encoder(texts)

    def zero_vector(self) -> List[float]:
        return [0.0] * self.dimension

    def embed(self, text: str) -> List[float]:
        """
        Embed one text

        Returns:
            Vector of `dimension` floats, or a zero vector on failure
        """
        if not text or not text.strip():
            logger.warning("Empty text provided for embedding generation")
            return self.zero_vector()

        try:
            vector = [float(v) for v in self._encode([text])[0]]
        except Exception as e:
            logger.error(f"Failed to generate embedding, using zero vector: {e}")
            return self.zero_vector()

        if len(vector) != self.dimension:
            logger.error(
                f"Embedding dimension {len(vector)} != {self.dimension}, using zero vector"
            )
            return self.zero_vector()
        return vector

    async def embed_async(self, text: str) -> List[float]:
        return await asyncio.to_thread(self.embed, text)

    async def fill_missing(self, tickets: Sequence[Ticket]) -> List[Ticket]:
        """Return tickets with an embedding, computing the missing ones"""
        filled = []
        for ticket in tickets:
            if ticket.embedding:
                filled.append(ticket)
                continue
            text = f"{ticket.subject or ''} {ticket.content}".strip()
            embedding = await self.embed_async(text)
            filled.append(ticket.model_copy(update={"embedding": embedding}))
        return filled
