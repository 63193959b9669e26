# backend/app/core/knowledge_retriever.py

import logging
from typing import List, Optional

from langchain_text_splitters import RecursiveCharacterTextSplitter

from backend.app.core.errors import ExternalCallTimeout, LLMError, SummarizationError, ValidationError
from backend.app.core.llm import LLMClient
from backend.app.core.pdf_parser import PDFParser
from backend.app.core.prompts import SUMMARIZE_PROMPT
from backend.app.core.vector_index import Chunk, VectorIndex

logger = logging.getLogger(__name__)

CHUNK_SIZE = 800
CHUNK_OVERLAP = 200
TOP_K = 10
SEPARATOR = "\n---\n"


class KnowledgeRetriever:
    """Reference documents (rubrics, job descriptions, case briefs) in the
    similarity index, and query-scoped summaries of them."""

    def __init__(self, index: VectorIndex, llm: LLMClient, parser: Optional[PDFParser] = None):
        self.index = index
        self.llm = llm
        self.parser = parser or PDFParser()
        self.splitter = RecursiveCharacterTextSplitter(chunk_size=CHUNK_SIZE, chunk_overlap=CHUNK_OVERLAP)

    def split(self, pages: List[str], document_type: str, filename: str) -> List[Chunk]:
        chunks: List[Chunk] = []
        for page_number, page_text in enumerate(pages, start=1):
            for piece in self.splitter.split_text(page_text):
                chunks.append(Chunk(
                    text=piece,
                    metadata={
                        "document_type": document_type,
                        "filename": filename,
                        "chunk_index": len(chunks),
                        "page": page_number,
                    },
                ))
        return chunks

    async def ingest(self, document_type: str, content: bytes, filename: str) -> int:
        logger.info("Storing reference document name=%s type=%s", filename, document_type)
        try:
            pages = self.parser.extract_pages(content)
        except ValueError as e:
            raise ValidationError(f"Cannot read {filename}: {e}") from e

        chunks = self.split(pages, document_type, filename)
        stored = await self.index.add_documents(chunks)
        logger.info("Stored reference document name=%s chunks=%d", filename, stored)
        return stored

    async def query(self, query_text: str, type_filter: Optional[str] = None) -> str:
        logger.info('Searching reference documents query="%s" filter=%s', query_text, type_filter or "none")
        results = await self.index.similarity_search(query_text, TOP_K)

        kept = [c for c in results if not type_filter or c.metadata.get("document_type") == type_filter]
        # similarity order means nothing once concatenated; restore document order
        kept.sort(key=lambda c: c.metadata.get("chunk_index", 0))
        if not kept:
            logger.warning('No reference chunks matched query="%s" filter=%s', query_text, type_filter)
            return ""

        documents = SEPARATOR.join(c.text for c in kept)
        prompt = SUMMARIZE_PROMPT.format(query=query_text, documents=documents)
        try:
            summary = await self.llm.complete(prompt, model=self.llm.summary_model_id)
        except ExternalCallTimeout:
            raise
        except LLMError as e:
            logger.error('Summarization failed query="%s" error=%s', query_text, e)
            raise SummarizationError(f"Failed to summarize reference documents: {e}") from e

        logger.info('Summarized reference documents query="%s" chunks=%d', query_text, len(kept))
        return summary.strip()
