# backend/app/core/vector_index.py

import hashlib
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from qdrant_client import AsyncQdrantClient, models

from backend.app.config import settings, Settings
from backend.app.core.errors import EvaluationServiceError, ExternalCallTimeout, IndexWriteError, RetrievalError
from backend.app.core.llm import LLMClient
from backend.app.core.timeouts import bounded

logger = logging.getLogger(__name__)

# Fixed namespace so chunk ids are stable across processes
CHUNK_NAMESPACE = uuid.UUID("6f1c3a52-98b4-4c55-9d0e-2f7a1b3c4d5e")


@dataclass
class Chunk:
    text: str
    metadata: Dict[str, Any] = field(default_factory=dict)
    score: Optional[float] = None


def chunk_id(document_type: str, filename: str, chunk_index: int, text: str) -> str:
    """Deterministic point id keyed on where the chunk sits in its file.

    Re-ingesting the same file overwrites its points; identical text in another
    file, or repeated on a later page of the same file, gets its own point.
    """
    digest = hashlib.sha256(text.encode("utf-8")).hexdigest()
    return str(uuid.uuid5(CHUNK_NAMESPACE, f"{document_type}:{filename}:{chunk_index}:{digest}"))


class VectorIndex:
    """A single Qdrant collection holding reference-document chunks."""

    def __init__(self, client: AsyncQdrantClient, collection_name: str, embedder: LLMClient, dimensions: int):
        self.client = client
        self.collection_name = collection_name
        self.embedder = embedder
        self.dimensions = dimensions
        self._ready = False

    @classmethod
    def from_settings(cls, embedder: LLMClient, cfg: Settings = settings) -> "VectorIndex":
        client = AsyncQdrantClient(url=cfg.QDRANT_URL, api_key=cfg.QDRANT_API_KEY)
        return cls(client, cfg.QDRANT_COLLECTION, embedder, cfg.EMBEDDING_DIMENSIONS)

    async def close(self) -> None:
        await self.client.close()

    async def ensure_collection(self) -> None:
        """Create the collection if it doesn't exist yet."""
        if self._ready:
            return
        exists = await bounded(self.client.collection_exists(self.collection_name), what="index collection_exists")
        if not exists:
            await bounded(
                self.client.create_collection(
                    collection_name=self.collection_name,
                    vectors_config=models.VectorParams(size=self.dimensions, distance=models.Distance.COSINE),
                ),
                what="index create_collection",
            )
            logger.info("Collection created name=%s size=%d", self.collection_name, self.dimensions)
        self._ready = True

    async def add_documents(self, chunks: List[Chunk]) -> int:
        if not chunks:
            return 0
        try:
            await self.ensure_collection()
            vectors = await self.embedder.embed([c.text for c in chunks])
            points = [
                models.PointStruct(
                    id=chunk_id(
                        str(c.metadata.get("document_type", "")),
                        str(c.metadata.get("filename", "")),
                        int(c.metadata.get("chunk_index", 0)),
                        c.text,
                    ),
                    vector=vector,
                    payload={**c.metadata, "page_content": c.text},
                )
                for c, vector in zip(chunks, vectors)
            ]
            await bounded(
                self.client.upsert(collection_name=self.collection_name, points=points),
                what="index upsert",
            )
        except (IndexWriteError, ExternalCallTimeout):
            raise
        except EvaluationServiceError as e:
            raise IndexWriteError(f"Failed to index chunks: {e}") from e
        except Exception as e:
            logger.error("Index upsert failed collection=%s error=%s", self.collection_name, e)
            raise IndexWriteError(f"Failed to index chunks: {e}") from e
        return len(points)

    async def similarity_search(self, query_text: str, k: int) -> List[Chunk]:
        try:
            await self.ensure_collection()
            [vector] = await self.embedder.embed([query_text])
            response = await bounded(
                self.client.query_points(
                    collection_name=self.collection_name,
                    query=vector,
                    limit=k,
                    with_payload=True,
                    with_vectors=False,
                ),
                what="index query_points",
            )
        except (RetrievalError, ExternalCallTimeout):
            raise
        except EvaluationServiceError as e:
            raise RetrievalError(f"Similarity search failed: {e}") from e
        except Exception as e:
            logger.error("Similarity search failed collection=%s error=%s", self.collection_name, e)
            raise RetrievalError(f"Similarity search failed: {e}") from e

        chunks = []
        for point in response.points:
            payload = dict(point.payload or {})
            text = payload.pop("page_content", "")
            chunks.append(Chunk(text=text, metadata=payload, score=point.score))
        return chunks
