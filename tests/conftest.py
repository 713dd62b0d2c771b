"""Pytest configuration and fixtures."""

import json
import re

import pytest

from src.models.dialogue import DialogueTurn, ProfileFeedback
from src.search.context import TurnContext

_COUNT_SELECT = re.compile(r"^\s*SELECT\s+count\s*\(", re.IGNORECASE)


def draft_reply(
    data_query: str,
    count_query: str | None = None,
    assistant_message: str = "Here are some candidates.",
    explanation: str = "Filters the people table.",
    search_criteria_summary: str = "",
) -> str:
    """Render a backend reply in the drafting JSON format."""
    payload = {
        "dataQuery": data_query,
        "explanation": explanation,
        "assistantMessage": assistant_message,
        "searchCriteriaSummary": search_criteria_summary,
    }
    if count_query is not None:
        payload["countQuery"] = count_query
    return json.dumps(payload, ensure_ascii=False)


class FakeTextGenerator:
    """Scripted text generator that records every call.

    Replies are consumed in order; an Exception instance is raised instead
    of returned.
    """

    def __init__(self, replies: list):
        self.replies = list(replies)
        self.calls: list[tuple[str, list[DialogueTurn]]] = []

    def generate_text(self, system_prompt: str, messages: list[DialogueTurn]) -> str:
        self.calls.append((system_prompt, list(messages)))
        if not self.replies:
            raise AssertionError("FakeTextGenerator ran out of scripted replies")
        reply = self.replies.pop(0)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeQueryExecutor:
    """Scripted query executor that separates data and count queries.

    ``data_results`` are consumed in order for row-returning queries;
    ``count_result`` answers every count query.
    """

    def __init__(self, data_results: list | None = None, count_result=None):
        self.data_results = list(data_results or [])
        self.count_result = count_result
        self.data_queries: list[str] = []
        self.count_queries: list[str] = []

    def execute(self, query: str) -> list[dict]:
        if _COUNT_SELECT.match(query):
            self.count_queries.append(query)
            result = self.count_result if self.count_result is not None else [{"total": 0}]
        else:
            self.data_queries.append(query)
            if not self.data_results:
                raise AssertionError("FakeQueryExecutor ran out of scripted results")
            result = self.data_results.pop(0)
        if isinstance(result, Exception):
            raise result
        return result


@pytest.fixture
def turn_context():
    """Fresh per-turn context."""
    return TurnContext(turn_id="test0001")


@pytest.fixture
def sample_message():
    """Sample recruiter message."""
    return "Find backend developers in São Paulo"


@pytest.fixture
def sample_history():
    """Short recruiter dialogue."""
    return [
        DialogueTurn(role="user", content="I need data engineers"),
        DialogueTurn(role="assistant", content="Found 7 data engineers."),
    ]


@pytest.fixture
def too_senior_feedback():
    """Two rejections complaining about seniority."""
    return [
        ProfileFeedback(
            profile_id="p1",
            profile_name="Ana Souza",
            interesting=False,
            reason="muito senior para a vaga",
        ),
        ProfileFeedback(
            profile_id="p2",
            profile_name="Bruno Lima",
            interesting=False,
            reason="Muito sênior, queremos alguém no início de carreira",
        ),
    ]


@pytest.fixture
def sample_rows():
    """Rows as returned by the data store."""
    return [
        {
            "profile_id": "p10",
            "full_name": "Carla Mendes",
            "headline": "Backend Developer | Python",
            "current_job_title": "Backend Developer",
            "current_company": "Nubank",
            "profile_url": "https://www.linkedin.com/in/carla",
        },
        {
            "profile_id": "p11",
            "full_name": "Diego Rocha",
            "headline": "",
            "current_job_title": "Desenvolvedor Backend",
            "current_company": "iFood",
            "profile_url": "https://www.linkedin.com/in/diego",
        },
    ]


BACKEND_QUERY = (
    "SELECT profile_id, full_name, headline, current_job_title, current_company, profile_url "
    "FROM linkedin.people "
    "WHERE (current_job_title ILIKE '%backend%' OR headline ILIKE '%backend%') "
    "AND city = 'SAO PAULO' "
    "ORDER BY seniority_order DESC LIMIT 7"
)

BACKEND_COUNT_QUERY = (
    "SELECT count(*) AS total FROM linkedin.people "
    "WHERE (current_job_title ILIKE '%backend%' OR headline ILIKE '%backend%') "
    "AND city = 'SAO PAULO'"
)
