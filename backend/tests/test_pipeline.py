"""
End-to-end tests for the evaluation pipeline the worker runs: real document
store (moto S3 + SQLite), in-memory Qdrant, fake LLM.

Run tests with: pytest backend/tests/test_pipeline.py -v
"""

import asyncio

import pytest

from backend.app.core.concurrency import gather_or_cancel
from backend.app.core.errors import ExtractionError, LLMError
from backend.app.core.extraction import ExtractionEngine
from backend.app.core.knowledge_retriever import KnowledgeRetriever
from backend.app.core.pipeline import EvaluationPipeline
from backend.app.core.scoring import ScoringEngine
from backend.app.models.evaluation_schemas import ProjectReport
from backend.app.models.job_models import RESULT_FIELDS


@pytest.fixture
def retriever(index, fake_llm):
    return KnowledgeRetriever(index, fake_llm)


@pytest.fixture
def pipeline(jobs, documents, retriever, fake_llm):
    scoring = ScoringEngine(ExtractionEngine(documents, fake_llm), retriever, fake_llm, sink=jobs)
    return EvaluationPipeline(jobs, scoring)


@pytest.fixture
def payload(jobs, documents, retriever, make_pdf, fake_queue):
    async def setup():
        await retriever.ingest("scoring_rubric", make_pdf(["CV rubric: skills 40%, experience 60%"]), "rubric.pdf")
        await retriever.ingest("job_description", make_pdf(["Backend engineer, Python, queues"]), "jd.pdf")
        await retriever.ingest("case_study_brief", make_pdf(["Build an async CV screener"]), "brief.pdf")
        cv_id = await documents.upload(make_pdf(["Jane Doe CV"]), "cv.pdf", "cv")
        project_id = await documents.upload(make_pdf(["Jane Doe project report"]), "report.pdf", "project")
        await jobs.create_and_queue_job(cv_id, project_id, "Backend Engineer")

    asyncio.run(setup())
    return fake_queue.payloads[0]


def test_pipeline_completes_job_with_result(pipeline, jobs, payload, overall_result):
    outcome = asyncio.run(pipeline.run(payload))

    assert outcome == {"job_id": payload["job_id"], "status": "completed"}
    status = asyncio.run(jobs.get_job_status(payload["job_id"]))
    assert status["status"] == "completed"
    assert status["result"] == {name: overall_result[name] for name in RESULT_FIELDS}


def test_pipeline_writes_one_record_per_stage(pipeline, jobs, payload):
    asyncio.run(pipeline.run(payload))

    records = asyncio.run(jobs.list_evaluations(payload["job_id"]))
    by_type = {r.type: r for r in records}
    assert sorted(by_type) == ["cv", "overall", "project"]
    assert by_type["cv"].document_id == payload["cv_document_id"]
    assert by_type["project"].document_id == payload["project_document_id"]
    assert by_type["overall"].document_id is None


def test_project_failure_marks_job_failed(pipeline, jobs, payload, fake_llm):
    fake_llm.responses[ProjectReport] = LLMError("Completion call failed: upstream 500")

    with pytest.raises(ExtractionError):
        asyncio.run(pipeline.run(payload))

    status = asyncio.run(jobs.get_job_status(payload["job_id"]))
    assert status == {"id": payload["job_id"], "status": "failed"}
    records = asyncio.run(jobs.list_evaluations(payload["job_id"]))
    assert "overall" not in {r.type for r in records}
    assert "project" not in {r.type for r in records}


def test_finished_job_is_skipped(pipeline, jobs, payload, fake_llm):
    asyncio.run(pipeline.run(payload))
    calls = len(fake_llm.generated)

    outcome = asyncio.run(pipeline.run(payload))

    assert outcome["status"] == "skipped"
    assert len(fake_llm.generated) == calls
    assert asyncio.run(jobs.get_job(payload["job_id"])).status == "completed"


def test_gather_or_cancel_cancels_sibling():
    cancelled = []

    async def slow():
        try:
            await asyncio.sleep(10)
        except asyncio.CancelledError:
            cancelled.append(True)
            raise

    async def fail():
        await asyncio.sleep(0)
        raise RuntimeError("stage failed")

    async def run():
        with pytest.raises(RuntimeError):
            await gather_or_cancel(slow(), fail())
        return cancelled == [True]

    assert asyncio.run(run()) is True


def test_gather_or_cancel_returns_results_in_order():
    async def value(v, delay):
        await asyncio.sleep(delay)
        return v

    assert asyncio.run(gather_or_cancel(value("cv", 0.02), value("project", 0))) == ["cv", "project"]
