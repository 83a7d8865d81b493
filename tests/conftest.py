import dataclasses
import json
from types import SimpleNamespace
from typing import List

import pytest
from fastapi.testclient import TestClient

import crud
from api import create_app
from config import load_settings
from database import create_db_engine, create_session_factory, init_db
from models import ExtractedItem


class FakeCompletions:
    def __init__(self, owner: "FakeLLMClient"):
        self.owner = owner

    def create(self, **kwargs):
        self.owner.calls.append(kwargs)
        if kwargs.get("max_tokens") == 1:
            if self.owner.ping_error is not None:
                raise self.owner.ping_error
            return _completion("ok")
        if self.owner.error is not None:
            raise self.owner.error
        if not self.owner.replies:
            raise AssertionError("FakeLLMClient has no reply queued")
        return _completion(self.owner.replies.pop(0))


class FakeLLMClient:
    """Stands in for openai.OpenAI; only chat.completions.create is used."""

    def __init__(self):
        self.calls: List[dict] = []
        self.replies: List[str] = []
        self.error = None
        self.ping_error = None
        self.chat = SimpleNamespace(completions=FakeCompletions(self))

    def queue(self, reply) -> None:
        self.replies.append(reply if isinstance(reply, str) else json.dumps(reply))


def _completion(content: str):
    return SimpleNamespace(choices=[SimpleNamespace(message=SimpleNamespace(content=content))])


def seed_transcript(db, raw_text: str, items=()):
    return crud.create_transcript_with_items(
        db,
        raw_text,
        [ExtractedItem(taskDescription=task, owner=owner, dueDate=due) for task, owner, due in items],
    )


@pytest.fixture
def settings():
    return dataclasses.replace(
        load_settings(),
        API_PREFIX="/api",
        HISTORY_LIMIT=5,
        EXTRACTION_MODEL="extract-model",
        HEALTH_MODEL="health-model",
        CORS_ORIGINS=["*"],
    )


@pytest.fixture
def engine():
    engine = create_db_engine("sqlite://")
    init_db(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db(engine):
    session = create_session_factory(engine)()
    yield session
    session.close()


@pytest.fixture
def llm():
    return FakeLLMClient()


@pytest.fixture
def app(settings, llm, engine):
    return create_app(settings, llm_client=llm, engine=engine)


@pytest.fixture
def client(app):
    return TestClient(app)


@pytest.fixture
def seed(db):
    def _seed(raw_text: str, items=()):
        return seed_transcript(db, raw_text, items)

    return _seed
