# backend/app/core/errors.py

from typing import Dict


class EvaluationServiceError(Exception):
    """Base class for every error the evaluation service raises on purpose."""

    status_code: int = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class NotFound(EvaluationServiceError):
    status_code = 404


class ValidationError(EvaluationServiceError):
    status_code = 400


class JobNotReady(EvaluationServiceError):
    status_code = 409


# -------- Blob storage --------
class StorageWriteError(EvaluationServiceError):
    status_code = 502


class StorageReadError(EvaluationServiceError):
    status_code = 502


class StorageDeleteError(EvaluationServiceError):
    status_code = 502


# -------- Relational persistence --------
class PersistenceError(EvaluationServiceError):
    status_code = 500


class InvalidJobTransition(PersistenceError):
    status_code = 409


# -------- Similarity index --------
class IndexWriteError(EvaluationServiceError):
    status_code = 502


class RetrievalError(EvaluationServiceError):
    status_code = 502


# -------- LLM stages --------
class LLMError(EvaluationServiceError):
    """The model endpoint failed or returned nothing."""

    status_code = 502


class SchemaViolation(LLMError):
    """The model answered, but not in the requested shape."""


class ExtractionError(EvaluationServiceError):
    status_code = 502


class SummarizationError(EvaluationServiceError):
    status_code = 502


class ScoringError(EvaluationServiceError):
    status_code = 502


# -------- Queue / time bounds --------
class QueueError(EvaluationServiceError):
    status_code = 503


class ExternalCallTimeout(EvaluationServiceError):
    status_code = 504


# Which error kinds are swallowed (logged only) and which abort the caller.
# Blob deletion is advisory cleanup; everything else propagates.
SWALLOW = "swallow"
PROPAGATE = "propagate"

ERROR_POLICY: Dict[type, str] = {
    StorageDeleteError: SWALLOW,
    NotFound: PROPAGATE,
    ValidationError: PROPAGATE,
    JobNotReady: PROPAGATE,
    StorageWriteError: PROPAGATE,
    StorageReadError: PROPAGATE,
    PersistenceError: PROPAGATE,
    InvalidJobTransition: PROPAGATE,
    IndexWriteError: PROPAGATE,
    RetrievalError: PROPAGATE,
    LLMError: PROPAGATE,
    SchemaViolation: PROPAGATE,
    ExtractionError: PROPAGATE,
    SummarizationError: PROPAGATE,
    ScoringError: PROPAGATE,
    QueueError: PROPAGATE,
    ExternalCallTimeout: PROPAGATE,
}


def is_swallowed(error: BaseException) -> bool:
    """Look up the policy for an error, walking its class hierarchy."""
    for klass in type(error).__mro__:
        if klass in ERROR_POLICY:
            return ERROR_POLICY[klass] == SWALLOW
    return False
