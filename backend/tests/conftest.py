import os

os.environ.setdefault("DATABASE_URL", "sqlite://")
os.environ.setdefault("JWT_SECRET_KEY", "test-secret")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from activity_embed.db import Base, get_db
from activity_embed.main import app
from activity_embed.models import Activity, User
from activity_embed.routers.auth import create_access_token
from activity_embed.schemas import ActivityDefinition


def quiz_payload(count=5, *, allow_retry=True, show_explanations=True, explanation="Because."):
    questions = []
    for i in range(count):
        questions.append(
            {
                "question": f"Question {i + 1}?",
                "options": ["A", "B", "C", "D"],
                "correct": i % 4,
                "explanation": explanation,
            }
        )
    return {
        "questions": questions,
        "settings": {
            "showExplanations": show_explanations,
            "allowRetry": allow_retry,
            "shuffleQuestions": False,
        },
    }


def make_definition(content_type="quiz", content_data=None, **overrides):
    data = {
        "id": 1,
        "title": "Capitals",
        "description": "A short quiz",
        "slug": "capitals",
        "contentType": content_type,
        "contentData": quiz_payload() if content_data is None else content_data,
        "author": "alice",
    }
    data.update(overrides)
    return ActivityDefinition.model_validate(data)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)


@pytest.fixture
def db(engine):
    session = sessionmaker(autocommit=False, autoflush=False, bind=engine)()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def client(engine):
    factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def override_get_db():
        session = factory()
        try:
            yield session
        finally:
            session.close()

    app.dependency_overrides[get_db] = override_get_db
    try:
        yield TestClient(app)
    finally:
        app.dependency_overrides.clear()


@pytest.fixture
def alice(db):
    user = User(username="alice", email="alice@example.com")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


@pytest.fixture
def bob(db):
    user = User(username="bob", email="bob@example.com")
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def auth_headers(user):
    return {"Authorization": f"Bearer {create_access_token({'sub': str(user.id)})}"}


def add_activity(db, owner, *, slug="capitals", content_type="quiz", content_data=None, is_public=True, title="Capitals"):
    row = Activity(
        user_id=owner.id,
        title=title,
        description="A short quiz",
        content_type=content_type,
        content_data=quiz_payload() if content_data is None else content_data,
        slug=slug,
        is_public=is_public,
    )
    db.add(row)
    db.commit()
    db.refresh(row)
    return row
