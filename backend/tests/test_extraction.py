"""
Tests for structured extraction from stored PDFs.

Run tests with: pytest backend/tests/test_extraction.py -v
"""

import asyncio
import os

import pytest

from backend.app.core.errors import ExtractionError, LLMError, NotFound
from backend.app.core.extraction import ExtractionEngine
from backend.app.models.evaluation_schemas import CurriculumVitae, ProjectReport


@pytest.fixture
def engine(documents, fake_llm):
    return ExtractionEngine(documents, fake_llm)


def test_extract_cv_sends_document_text(engine, documents, fake_llm, make_pdf):
    document_id = asyncio.run(documents.upload(make_pdf(["Jane Doe\nSenior Python Engineer"]), "cv.pdf", "cv"))

    cv = asyncio.run(engine.extract_cv(document_id))

    assert isinstance(cv, CurriculumVitae)
    assert cv.profile.name == "Jane Doe"
    [(schema, prompt)] = fake_llm.generated
    assert schema is CurriculumVitae
    assert "curriculum vitae" in prompt
    assert "Senior Python Engineer" in prompt


def test_extract_project_uses_project_schema(engine, documents, fake_llm, make_pdf):
    document_id = asyncio.run(documents.upload(make_pdf(["Project report"]), "report.pdf", "project"))

    report = asyncio.run(engine.extract_project(document_id))

    assert isinstance(report, ProjectReport)
    assert fake_llm.generated[0][0] is ProjectReport


def test_extract_leaves_no_temp_files(engine, documents, make_pdf, tmp_path):
    document_id = asyncio.run(documents.upload(make_pdf(["Some CV"]), "cv.pdf", "cv"))

    asyncio.run(engine.extract_cv(document_id))

    assert [n for n in os.listdir(tmp_path) if n.startswith("eval-")] == []


def test_extract_document_without_text_fails(engine, documents, fake_llm, make_pdf):
    document_id = asyncio.run(documents.upload(make_pdf([""]), "blank.pdf", "cv"))

    with pytest.raises(ExtractionError):
        asyncio.run(engine.extract_cv(document_id))
    assert fake_llm.generated == []


def test_extract_model_failure_becomes_extraction_error(engine, documents, fake_llm, make_pdf):
    fake_llm.responses[CurriculumVitae] = LLMError("Completion call failed: rate limited")
    document_id = asyncio.run(documents.upload(make_pdf(["Some CV"]), "cv.pdf", "cv"))

    with pytest.raises(ExtractionError):
        asyncio.run(engine.extract_cv(document_id))


def test_extract_unknown_document(engine):
    with pytest.raises(NotFound):
        asyncio.run(engine.extract_cv("11111111-1111-1111-1111-111111111111"))
