"""
Tests for the error taxonomy, the swallow/propagate policy and time bounds.

Run tests with: pytest backend/tests/test_errors.py -v
"""

import asyncio

import pytest
from fastapi.testclient import TestClient

from backend.app.config import settings
from backend.app.core import errors
from backend.app.core.errors import ERROR_POLICY, ExternalCallTimeout, is_swallowed
from backend.app.core.timeouts import bounded
from backend.app.main import app


def test_only_blob_deletion_is_swallowed():
    swallowed = [klass for klass, policy in ERROR_POLICY.items() if policy == errors.SWALLOW]

    assert swallowed == [errors.StorageDeleteError]


@pytest.mark.parametrize("error", [
    errors.StorageWriteError("x"),
    errors.StorageReadError("x"),
    errors.PersistenceError("x"),
    errors.InvalidJobTransition("x"),
    errors.SchemaViolation("x"),
    errors.QueueError("x"),
    errors.ExternalCallTimeout("x"),
    RuntimeError("x"),
])
def test_everything_else_propagates(error):
    assert is_swallowed(error) is False


def test_swallow_policy_follows_subclasses():
    class CleanupDeleteError(errors.StorageDeleteError):
        pass

    assert is_swallowed(CleanupDeleteError("x")) is True


@pytest.mark.parametrize("klass,status_code", [
    (errors.NotFound, 404),
    (errors.ValidationError, 400),
    (errors.JobNotReady, 409),
    (errors.InvalidJobTransition, 409),
    (errors.PersistenceError, 500),
    (errors.SchemaViolation, 502),
    (errors.QueueError, 503),
    (errors.ExternalCallTimeout, 504),
])
def test_status_codes(klass, status_code):
    assert klass("x").status_code == status_code


def test_bounded_returns_value():
    async def answer():
        return 42

    assert asyncio.run(bounded(answer(), what="answer", timeout=1)) == 42


def test_bounded_times_out():
    with pytest.raises(ExternalCallTimeout, match="slow call timed out"):
        asyncio.run(bounded(asyncio.sleep(5), what="slow call", timeout=0.01))


def test_error_envelope_hides_stack_in_production(monkeypatch):
    monkeypatch.setattr(settings, "APP_ENV", "production")

    body = TestClient(app).get("/no-such-route").json()

    assert body["data"]["status_code"] == 404
    assert "stack" not in body["data"]
