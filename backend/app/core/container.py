# backend/app/core/container.py

from functools import lru_cache
from typing import Optional

from backend.app.config import settings, Settings
from backend.app.core.database import Database
from backend.app.core.document_store import DocumentStore
from backend.app.core.extraction import ExtractionEngine
from backend.app.core.jobs import JobEnqueuer, JobService
from backend.app.core.knowledge_retriever import KnowledgeRetriever
from backend.app.core.llm import LLMClient
from backend.app.core.pipeline import EvaluationPipeline
from backend.app.core.scoring import ScoringEngine
from backend.app.core.storage import BlobStorage
from backend.app.core.vector_index import VectorIndex


class Container:
    """Builds the service graph once per process.

    LLM client, database engine and blob client are shared. The vector index
    wraps an async HTTP client bound to one event loop, so worker tasks (one
    asyncio.run each) get their own through `new_index()`.
    """

    def __init__(
        self,
        cfg: Settings = settings,
        llm: Optional[LLMClient] = None,
        storage: Optional[BlobStorage] = None,
        db: Optional[Database] = None,
        queue: Optional[JobEnqueuer] = None,
        index: Optional[VectorIndex] = None,
    ):
        self.cfg = cfg
        self.llm = llm or LLMClient.from_settings(cfg)
        self.storage = storage or BlobStorage.from_settings(cfg)
        self.db = db or Database(cfg.DATABASE_URL)
        self.documents = DocumentStore(self.storage, self.db)
        self._queue = queue
        self._index = index
        self._jobs: Optional[JobService] = None

    @property
    def queue(self) -> JobEnqueuer:
        if self._queue is None:
            # imported late: pulls in the Celery app
            from backend.app.core.async_queue import queue
            self._queue = queue
        return self._queue

    @property
    def jobs(self) -> JobService:
        if self._jobs is None:
            self._jobs = JobService(self.db, self.queue)
        return self._jobs

    @property
    def index(self) -> VectorIndex:
        if self._index is None:
            self._index = self.new_index()
        return self._index

    def new_index(self) -> VectorIndex:
        return VectorIndex.from_settings(self.llm, self.cfg)

    def retriever(self, index: Optional[VectorIndex] = None) -> KnowledgeRetriever:
        return KnowledgeRetriever(index or self.index, self.llm)

    def scoring(self, index: Optional[VectorIndex] = None, with_sink: bool = True) -> ScoringEngine:
        return ScoringEngine(
            ExtractionEngine(self.documents, self.llm),
            self.retriever(index),
            self.llm,
            sink=self.jobs if with_sink else None,
        )

    def pipeline(self, index: Optional[VectorIndex] = None) -> EvaluationPipeline:
        return EvaluationPipeline(self.jobs, self.scoring(index))


@lru_cache(maxsize=1)
def get_services() -> Container:
    return Container()
