"""Shared pytest fixtures for SQI engine tests."""

from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from api.routes_prompt import PromptStore, get_prompt_store
from main import app


FIXED_NOW = datetime(2024, 5, 1, 9, 30, 15, tzinfo=timezone.utc)


def _attempt(**overrides) -> dict:
    """A correct, on-time, A/M/Theory attempt worth 2 marks unless overridden."""
    attempt = {
        "topic": "Borrowing Costs",
        "concept": "Definitions",
        "importance": "A",
        "difficulty": "M",
        "type": "Theory",
        "case_based": False,
        "correct": True,
        "marks": 2,
        "neg_marks": 0.5,
        "expected_time_sec": 60,
        "time_spent_sec": 60,
        "marked_review": False,
        "revisits": 0,
    }
    attempt.update(overrides)
    return attempt


@pytest.fixture
def make_attempt():
    return _attempt


@pytest.fixture
def sample_data() -> dict:
    """Two attempts on one concept: one revisited-correct, one reviewed-wrong."""
    return {
        "student_id": "S123",
        "attempts": [
            _attempt(
                importance="A",
                difficulty="M",
                type="Practical",
                correct=True,
                marks=2,
                neg_marks=0.5,
                expected_time_sec=90,
                time_spent_sec=110,
                revisits=1,
            ),
            _attempt(
                importance="B",
                difficulty="H",
                type="Theory",
                correct=False,
                marks=3,
                neg_marks=1.0,
                expected_time_sec=120,
                time_spent_sec=150,
                marked_review=True,
            ),
        ],
    }


@pytest.fixture
def fixed_now() -> datetime:
    return FIXED_NOW


@pytest.fixture
def prompt_store() -> PromptStore:
    return PromptStore()


@pytest.fixture
def client(prompt_store: PromptStore):
    """FastAPI test client with a fresh in-memory prompt store per test."""
    app.dependency_overrides[get_prompt_store] = lambda: prompt_store
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
