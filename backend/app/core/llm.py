# backend/app/core/llm.py

import json
import logging
import re
from typing import Any, Dict, List, Optional, Type, TypeVar

import litellm
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from backend.app.config import settings, Settings
from backend.app.core.errors import LLMError, SchemaViolation, EvaluationServiceError
from backend.app.core.timeouts import bounded

logger = logging.getLogger(__name__)

M = TypeVar("M", bound=BaseModel)

_FENCE_RE = re.compile(r"^```(?:json)?\s*(.*?)\s*```$", re.DOTALL)


class LLMClient:
    """Shared model capability: free-text completion, schema-constrained
    generation and embeddings, all routed through LiteLLM.

    Built once per process and injected into the engines that need it.
    """

    def __init__(
        self,
        model_id: str,
        summary_model_id: str,
        embedding_model_id: str,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        temperature: float = 0.0,
        request_timeout: int = 300,
    ):
        self.model_id = model_id
        self.summary_model_id = summary_model_id
        self.embedding_model_id = embedding_model_id
        self.api_key = api_key or None
        self.base_url = base_url or None
        self.temperature = temperature
        self.request_timeout = request_timeout

    @classmethod
    def from_settings(cls, cfg: Settings = settings) -> "LLMClient":
        return cls(
            model_id=cfg.full_model_id(),
            summary_model_id=cfg.full_model_id(cfg.LLM_SUMMARY_MODEL_NAME),
            embedding_model_id=cfg.EMBEDDING_MODEL_NAME,
            api_key=cfg.LLM_API_KEY,
            base_url=cfg.LLM_BASE_URL,
            temperature=cfg.LLM_TEMPERATURE,
            request_timeout=cfg.LLM_REQUEST_TIMEOUT,
        )

    # -------- Completion --------
    async def complete(self, prompt: str, model: Optional[str] = None) -> str:
        """Plain completion; returns the message text."""
        model_id = model or self.model_id
        resp = await self._acompletion(model_id, [{"role": "user", "content": prompt}])
        return self._content(resp)

    async def generate(self, prompt: str, schema: Type[M]) -> M:
        """Ask for output matching `schema` and validate it locally.

        Raises SchemaViolation when the answer cannot be coerced.
        """
        instructions = (
            "Respond with a single JSON object that validates against this JSON schema. "
            "Output JSON only, no prose.\n"
            f"{json.dumps(schema.model_json_schema())}"
        )
        messages = [
            {"role": "system", "content": instructions},
            {"role": "user", "content": prompt},
        ]
        resp = await self._acompletion(self.model_id, messages, response_format=schema)
        raw = self._content(resp)
        return self.parse(raw, schema)

    @staticmethod
    def parse(raw: str, schema: Type[M]) -> M:
        text = (raw or "").strip()
        m = _FENCE_RE.match(text)
        if m:
            text = m.group(1)
        try:
            return schema.model_validate_json(text)
        except PydanticValidationError as e:
            raise SchemaViolation(f"Model output does not match {schema.__name__}: {e.error_count()} error(s)") from e

    # -------- Embeddings --------
    async def embed(self, texts: List[str]) -> List[List[float]]:
        if not texts:
            return []
        try:
            resp = await bounded(
                litellm.aembedding(
                    model=self.embedding_model_id,
                    input=texts,
                    api_key=self.api_key,
                    api_base=self.base_url,
                    timeout=self.request_timeout,
                ),
                what=f"embedding model={self.embedding_model_id}",
            )
        except EvaluationServiceError:
            raise
        except Exception as e:
            logger.error("Embedding call failed model=%s error=%s", self.embedding_model_id, e)
            raise LLMError(f"Embedding call failed: {e}") from e
        return [self._vector(item) for item in resp.data]

    # -------- Internals --------
    async def _acompletion(self, model_id: str, messages: List[Dict[str, str]], **kwargs: Any):
        try:
            return await bounded(
                litellm.acompletion(
                    model=model_id,
                    messages=messages,
                    temperature=self.temperature,
                    api_key=self.api_key,
                    api_base=self.base_url,
                    timeout=self.request_timeout,
                    **kwargs,
                ),
                what=f"completion model={model_id}",
            )
        except EvaluationServiceError:
            raise
        except Exception as e:
            logger.error("Completion call failed model=%s error=%s", model_id, e)
            raise LLMError(f"Completion call failed: {e}") from e

    @staticmethod
    def _content(resp: Any) -> str:
        try:
            content = resp.choices[0].message.content
        except (AttributeError, IndexError, TypeError) as e:
            raise LLMError("Model returned no choices") from e
        if not content:
            raise LLMError("Model returned an empty message")
        return content

    @staticmethod
    def _vector(item: Any) -> List[float]:
        if isinstance(item, dict):
            return list(item["embedding"])
        return list(item.embedding)
