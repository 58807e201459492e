import shutil
from pathlib import Path

import pytest

from backend import storage

TEST_DATA_DIR = Path("data-tests")


@pytest.fixture(autouse=True)
def clean_test_data(monkeypatch):
    """Wipe and re-init data-tests/ before every test; never use a real API key."""
    monkeypatch.delenv("ANTHROPIC_API_KEY", raising=False)
    if TEST_DATA_DIR.exists():
        shutil.rmtree(TEST_DATA_DIR)
    storage.init_storage(TEST_DATA_DIR)
    yield
    # leave data-tests around after tests for inspection; CI can ignore it


class StubLLM:
    """Scripted LLM: returns (or raises) the queued responses in order.

    Every call is recorded in `calls` with its keyword arguments.
    """

    def __init__(self, *responses: str | Exception) -> None:
        self.responses = list(responses)
        self.calls: list[dict] = []

    async def __call__(self, *, model, system, turns, max_tokens, api_key) -> str:
        self.calls.append({
            "model": model,
            "system": system,
            "turns": turns,
            "max_tokens": max_tokens,
            "api_key": api_key,
        })
        if not self.responses:
            raise AssertionError("Unexpected LLM call")
        response = self.responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response


@pytest.fixture
def stub_llm():
    """The StubLLM class, so tests can script their own responses."""
    return StubLLM
