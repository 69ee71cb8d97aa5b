import pytest
from fastapi.testclient import TestClient

import main
from chatspend.storage import MemStorage


class FakeModel:
    """Stands in for the LLM: records prompts and returns a canned reply."""

    def __init__(self, reply=""):
        self.reply = reply
        self.prompts = []

    async def __call__(self, prompt):
        self.prompts.append(prompt)
        if isinstance(self.reply, Exception):
            raise self.reply
        return self.reply


@pytest.fixture
def store():
    return MemStorage()


@pytest.fixture
def model():
    return FakeModel()


@pytest.fixture
def client(store, model):
    main.app.dependency_overrides[main.get_storage] = lambda: store
    main.app.dependency_overrides[main.get_extraction_generator] = lambda: model
    main.app.dependency_overrides[main.get_insights_generator] = lambda: model
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()
