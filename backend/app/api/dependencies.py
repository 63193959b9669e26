#backend/app/api/dependencies.py

from fastapi import Depends

from backend.app.core.container import Container, get_services
from backend.app.core.document_store import DocumentStore
from backend.app.core.jobs import JobService
from backend.app.core.knowledge_retriever import KnowledgeRetriever
from backend.app.core.scoring import ScoringEngine


def get_container() -> Container:
    return get_services()


def get_document_store(container: Container = Depends(get_container)) -> DocumentStore:
    return container.documents


def get_job_service(container: Container = Depends(get_container)) -> JobService:
    return container.jobs


def get_retriever(container: Container = Depends(get_container)) -> KnowledgeRetriever:
    return container.retriever()


def get_standalone_scoring(container: Container = Depends(get_container)) -> ScoringEngine:
    """Scoring without an evaluation-record sink, for the /test endpoints."""
    return container.scoring(with_sink=False)
