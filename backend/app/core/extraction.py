# backend/app/core/extraction.py

import asyncio
import logging
from typing import Optional, Type, TypeVar

from pydantic import BaseModel

from backend.app.core.document_store import DocumentStore
from backend.app.core.errors import ExternalCallTimeout, ExtractionError, LLMError
from backend.app.core.llm import LLMClient
from backend.app.core.pdf_parser import PDFParser
from backend.app.core.prompts import EXTRACT_PROMPT
from backend.app.models.evaluation_schemas import CurriculumVitae, ProjectReport

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

KIND_LABELS = {
    CurriculumVitae: "curriculum vitae",
    ProjectReport: "project report",
}


class ExtractionEngine:
    """Turns a stored PDF into one of the structured document schemas."""

    def __init__(self, documents: DocumentStore, llm: LLMClient, parser: Optional[PDFParser] = None):
        self.documents = documents
        self.llm = llm
        self.parser = parser or PDFParser()

    async def extract(self, document_id: str, schema: Type[M]) -> M:
        storage_path = await self.documents.resolve(document_id)
        async with self.documents.materialize(storage_path) as local_path:
            try:
                text = await asyncio.to_thread(self.parser.extract_text, local_path)
            except ValueError as e:
                raise ExtractionError(f"Document {document_id} could not be read: {e}") from e
        if not text:
            raise ExtractionError(f"Document {document_id} contains no extractable text")

        kind = KIND_LABELS.get(schema, schema.__name__)
        prompt = EXTRACT_PROMPT.format(kind=kind, document=text)
        try:
            result = await self.llm.generate(prompt, schema)
        except ExternalCallTimeout:
            raise
        except LLMError as e:
            logger.error("Extraction failed document_id=%s schema=%s error=%s", document_id, schema.__name__, e)
            raise ExtractionError(f"Failed to extract {kind} from {document_id}: {e}") from e

        logger.info("Extracted document_id=%s schema=%s", document_id, schema.__name__)
        return result

    async def extract_cv(self, document_id: str) -> CurriculumVitae:
        return await self.extract(document_id, CurriculumVitae)

    async def extract_project(self, document_id: str) -> ProjectReport:
        return await self.extract(document_id, ProjectReport)
