"""
Pytest configuration and shared fixtures for all tests.

Environment is pinned before any backend module is imported, so `settings`
picks up an in-memory database, a test bucket and no warmup.
"""

import hashlib
import math
import os
from io import BytesIO

os.environ["APP_ENV"] = "test"
os.environ["DATABASE_URL"] = "sqlite://"
os.environ["STORAGE_BUCKET"] = "test-evaluation-documents"
os.environ["STORAGE_ENDPOINT_URL"] = ""
os.environ["AWS_REGION"] = "us-east-1"
os.environ["AWS_DEFAULT_REGION"] = "us-east-1"
os.environ["AWS_ACCESS_KEY_ID"] = "testing"
os.environ["AWS_SECRET_ACCESS_KEY"] = "testing"
os.environ["AWS_SECURITY_TOKEN"] = "testing"
os.environ["AWS_SESSION_TOKEN"] = "testing"
os.environ["WARMUP_ENABLED"] = "false"
os.environ["EXTERNAL_CALL_TIMEOUT"] = "30"
os.environ["LITELLM_LOCAL_MODEL_COST_MAP"] = "True"

import boto3
import pytest
from moto import mock_aws
from qdrant_client import AsyncQdrantClient
from reportlab.lib.pagesizes import A4
from reportlab.pdfgen import canvas

from backend.app.core.database import Database
from backend.app.core.document_store import DocumentStore
from backend.app.core.errors import QueueError, SchemaViolation
from backend.app.core.jobs import JobService
from backend.app.core.storage import BlobStorage
from backend.app.core.temp_files import TempFileManager
from backend.app.core.vector_index import VectorIndex
from backend.app.models.evaluation_schemas import (
    Candidate,
    CriteriaEvaluation,
    CriteriaScore,
    CurriculumVitae,
    OverallEvaluation,
    Profile,
    ProjectReport,
)

EMBEDDING_DIM = 16
BUCKET = "test-evaluation-documents"


# ============================================================================
# FAKES - stand-ins for the model endpoint and the broker
# ============================================================================

def embed_text(text: str, dim: int = EMBEDDING_DIM) -> list:
    """Bag-of-words hashed into `dim` buckets; one constant bucket keeps it non-zero."""
    vector = [0.0] * dim
    vector[0] = 1.0
    for word in text.lower().split():
        bucket = 1 + int(hashlib.md5(word.encode("utf-8")).hexdigest(), 16) % (dim - 1)
        vector[bucket] += 1.0
    norm = math.sqrt(sum(x * x for x in vector))
    return [x / norm for x in vector]


class FakeLLM:
    """Answers generate() from a schema -> response table and records every prompt."""

    model_id = "fake/model"
    summary_model_id = "fake/summary"

    def __init__(self):
        self.responses = {}
        self.generated = []
        self.completions = []
        self.summary = "Summarized reference context."

    async def complete(self, prompt, model=None):
        self.completions.append((prompt, model))
        if isinstance(self.summary, Exception):
            raise self.summary
        return self.summary

    async def generate(self, prompt, schema):
        self.generated.append((schema, prompt))
        value = self.responses.get(schema)
        if callable(value):
            value = value(prompt)
        if isinstance(value, Exception):
            raise value
        if value is None:
            raise SchemaViolation(f"No canned response for {schema.__name__}")
        return value.model_copy(deep=True)

    async def embed(self, texts):
        return [embed_text(t) for t in texts]


class FakeQueue:
    def __init__(self, error=None):
        self.payloads = []
        self.error = error

    def enqueue_evaluation(self, payload):
        if self.error is not None:
            raise self.error
        self.payloads.append(dict(payload))
        return f"task-{len(self.payloads)}"


def sample_cv() -> CurriculumVitae:
    return CurriculumVitae(
        profile=Profile(name="Jane Doe", email="jane@example.com"),
        skills=["Python", "FastAPI", "PostgreSQL"],
        languages=["English"],
    )


def sample_project() -> ProjectReport:
    return ProjectReport(
        project_title="Async CV screener",
        candidate=Candidate(name="Jane Doe"),
        real_responses=["I used a queue to decouple scoring from the API."],
    )


def sample_criteria(weighted_score: float = 0.0) -> CriteriaEvaluation:
    return CriteriaEvaluation(criterias=[
        CriteriaScore(criteria="Technical skills", reason="Strong backend stack", weight=0.6, score=4, weighted_score=weighted_score),
        CriteriaScore(criteria="Experience", reason="Three years in similar roles", weight=0.4, score=3, weighted_score=1.2),
    ])


def sample_overall() -> OverallEvaluation:
    return OverallEvaluation(
        cv_match_rate=0.82,
        cv_feedback="Solid backend experience.",
        cv_calculation_detail="- Technical skills: 0.6 * 4 = 2.4\n- Experience: 0.4 * 3 = 1.2",
        project_score=4.1,
        project_feedback="Clean design with **good** error handling.",
        project_calculation_detail="Weighted average of rubric criteria.",
        overall_summary="Strong candidate. Good fit for the backend role. Minor gaps in testing.",
    )


# ============================================================================
# FIXTURES
# ============================================================================

@pytest.fixture
def make_pdf():
    """Factory building a real PDF, one page per string in `pages`."""
    def _make(pages) -> bytes:
        buffer = BytesIO()
        pdf = canvas.Canvas(buffer, pagesize=A4)
        for page in pages:
            y = 800
            for line in page.splitlines():
                pdf.drawString(72, y, line)
                y -= 16
            pdf.showPage()
        pdf.save()
        return buffer.getvalue()

    return _make


@pytest.fixture
def fake_llm():
    llm = FakeLLM()
    llm.responses = {
        CurriculumVitae: sample_cv(),
        ProjectReport: sample_project(),
        CriteriaEvaluation: sample_criteria(),
        OverallEvaluation: sample_overall(),
    }
    return llm


@pytest.fixture
def fake_queue():
    return FakeQueue()


@pytest.fixture
def failing_queue():
    return FakeQueue(error=QueueError("Failed to enqueue evaluation job: broker down"))


@pytest.fixture
def db(tmp_path):
    # file-backed: concurrent stage writes need separate connections
    database = Database(f"sqlite:///{tmp_path / 'evaluations.db'}")
    database.init_db()
    return database


@pytest.fixture
def s3_client():
    with mock_aws():
        client = boto3.client("s3", region_name="us-east-1")
        client.create_bucket(Bucket=BUCKET)
        yield client


@pytest.fixture
def storage(s3_client):
    return BlobStorage(BUCKET, client=s3_client)


@pytest.fixture
def documents(storage, db, tmp_path):
    return DocumentStore(storage, db, TempFileManager(str(tmp_path)))


@pytest.fixture
def index(fake_llm):
    return VectorIndex(AsyncQdrantClient(":memory:"), "test-internal-documents", fake_llm, EMBEDDING_DIM)


@pytest.fixture
def jobs(db, fake_queue):
    return JobService(db, fake_queue)


@pytest.fixture
def overall_result():
    return sample_overall().model_dump()


@pytest.fixture
def criteria_evaluation():
    return sample_criteria()
