# backend/app/core/scoring.py

import logging
from typing import Any, Dict, Optional, Protocol

from backend.app.core.concurrency import gather_or_cancel
from backend.app.core.errors import ExternalCallTimeout, LLMError, ScoringError
from backend.app.core.extraction import ExtractionEngine
from backend.app.core.knowledge_retriever import KnowledgeRetriever
from backend.app.core.llm import LLMClient
from backend.app.core.prompts import CV_SCORING_PROMPT, OVERALL_PROMPT, PROJECT_SCORING_PROMPT
from backend.app.models.evaluation_schemas import (
    CriteriaEvaluation,
    EvaluationType,
    OverallEvaluation,
    ReferenceDocumentType,
)

logger = logging.getLogger(__name__)

WEIGHT_TOLERANCE = 0.01


class EvaluationSink(Protocol):
    async def record_evaluation(
        self,
        job_id: str,
        evaluation_type: str,
        payload: Dict[str, Any],
        document_id: Optional[str] = None,
    ) -> None: ...


def normalize_criteria(evaluation: CriteriaEvaluation, stage: str) -> CriteriaEvaluation:
    """Recompute weighted scores locally and flag rubric weights that don't sum to 1."""
    for item in evaluation.criterias:
        expected = round(item.weight * item.score, 4)
        if abs(item.weighted_score - expected) > WEIGHT_TOLERANCE:
            logger.warning(
                "Corrected weighted_score stage=%s criteria=%s model=%s expected=%s",
                stage, item.criteria, item.weighted_score, expected,
            )
        item.weighted_score = expected
    total = evaluation.weight_total()
    if evaluation.criterias and abs(total - 1.0) > WEIGHT_TOLERANCE:
        logger.warning("Criteria weights do not sum to 1 stage=%s total=%.3f", stage, total)
    return evaluation


class ScoringEngine:
    def __init__(
        self,
        extraction: ExtractionEngine,
        retriever: KnowledgeRetriever,
        llm: LLMClient,
        sink: Optional[EvaluationSink] = None,
    ):
        self.extraction = extraction
        self.retriever = retriever
        self.llm = llm
        self.sink = sink

    async def score_cv(self, document_id: str, job_title: str, job_id: Optional[str] = None) -> CriteriaEvaluation:
        cv, rubric, job_description = await gather_or_cancel(
            self.extraction.extract_cv(document_id),
            self.retriever.query(
                f"Scoring rubric for CV evaluation of a {job_title} candidate",
                ReferenceDocumentType.SCORING_RUBRIC.value,
            ),
            self.retriever.query(
                f"Job description and requirements for {job_title}",
                ReferenceDocumentType.JOB_DESCRIPTION.value,
            ),
        )
        prompt = CV_SCORING_PROMPT.format(
            job_title=job_title,
            rubric=rubric,
            context=job_description,
            document=cv.model_dump_json(indent=2),
        )
        result = normalize_criteria(await self._score(prompt, CriteriaEvaluation, "cv"), "cv")
        await self._record(job_id, EvaluationType.CV, result.model_dump(), document_id)
        return result

    async def score_project(self, document_id: str, job_title: str, job_id: Optional[str] = None) -> CriteriaEvaluation:
        report, rubric, brief = await gather_or_cancel(
            self.extraction.extract_project(document_id),
            self.retriever.query(
                f"Scoring rubric for project report evaluation of a {job_title} candidate",
                ReferenceDocumentType.SCORING_RUBRIC.value,
            ),
            self.retriever.query(
                f"Case study brief for {job_title}",
                ReferenceDocumentType.CASE_STUDY_BRIEF.value,
            ),
        )
        prompt = PROJECT_SCORING_PROMPT.format(
            job_title=job_title,
            rubric=rubric,
            context=brief,
            document=report.model_dump_json(indent=2),
        )
        result = normalize_criteria(await self._score(prompt, CriteriaEvaluation, "project"), "project")
        await self._record(job_id, EvaluationType.PROJECT, result.model_dump(), document_id)
        return result

    async def score_overall(
        self,
        cv_result: CriteriaEvaluation,
        project_result: CriteriaEvaluation,
        job_title: str,
        job_id: Optional[str] = None,
    ) -> OverallEvaluation:
        rubric = await self.retriever.query(
            "Overall scoring rubric for candidate evaluation",
            ReferenceDocumentType.SCORING_RUBRIC.value,
        )
        prompt = OVERALL_PROMPT.format(
            job_title=job_title,
            rubric=rubric,
            cv_result=cv_result.model_dump_json(indent=2),
            project_result=project_result.model_dump_json(indent=2),
        )
        result = await self._score(prompt, OverallEvaluation, "overall")
        await self._record(job_id, EvaluationType.OVERALL, result.model_dump(), None)
        return result

    async def _score(self, prompt: str, schema, stage: str):
        try:
            return await self.llm.generate(prompt, schema)
        except ExternalCallTimeout:
            raise
        except LLMError as e:
            logger.error("Scoring failed stage=%s error=%s", stage, e)
            raise ScoringError(f"Failed to score {stage}: {e}") from e

    async def _record(self, job_id: Optional[str], evaluation_type: EvaluationType, payload, document_id) -> None:
        # standalone / test-mode calls carry no job id
        if job_id is None or self.sink is None:
            return
        await self.sink.record_evaluation(job_id, evaluation_type.value, payload, document_id)
