"""
Process-wide embedding model cache

Embedding runs in worker threads (asyncio.to_thread), so loading is
guarded by a lock and each model name is loaded at most once.
"""
import threading
from typing import Dict, Optional, TYPE_CHECKING

from supportiq.config import get_settings
from supportiq.utils.logger import get_logger

if TYPE_CHECKING:
    from sentence_transformers import SentenceTransformer

settings = get_settings()
logger = get_logger(__name__)


class EmbeddingModelCache:
    """Singleton holding loaded SentenceTransformer models by name"""

    _instance: Optional['EmbeddingModelCache'] = None

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
            cls._instance._models = {}
            cls._instance._lock = threading.Lock()
        return cls._instance

    def get_model(self, model_name: Optional[str] = None) -> 'SentenceTransformer':
        """
        Return the named model, loading it on first use

        Args:
            model_name: Model to load (default: settings.embedding_model)
        """
        model_name = model_name or settings.embedding_model
        models: Dict[str, 'SentenceTransformer'] = self._models

        with self._lock:
            if model_name not in models:
                from sentence_transformers import SentenceTransformer  # Lazy import, loads torch

                logger.info(f"Loading embedding model: {model_name}")
                models[model_name] = SentenceTransformer(model_name)
            return models[model_name]

    def clear_cache(self) -> None:
        with self._lock:
            if self._models:
                logger.info(f"Clearing cached embedding models: {', '.join(self._models)}")
            self._models.clear()


_embedding_cache = EmbeddingModelCache()


def get_embedding_model(model_name: Optional[str] = None) -> 'SentenceTransformer':
    return _embedding_cache.get_model(model_name)
