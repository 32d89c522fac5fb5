"""
Shared fixtures: in-memory SQLite database, actors, classrooms and an API
client wired to the same database.
"""

import os
import sys
from itertools import count
from typing import Dict

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.pool import StaticPool
from sqlmodel import Session, SQLModel, create_engine

# Add backend and the core library to path for imports
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "backend"))
sys.path.append(os.path.join(os.path.dirname(__file__), "..", "libs", "membership_core"))

from academy.core.database import get_db
from academy.core.deps import get_notifier
from academy.core.security import create_access_token
from academy.models import (
    Actor,
    ActorRole,
    Classroom,
    Membership,
    MembershipRole,
    MembershipStatus,
)
from academy.services.workflow import WorkflowEngine

MASTER_REASON = "I have taught this subject for many years and want to run classrooms."
MASTER_EXPERIENCE = "Eight years of tutoring and lab supervision."
MASTER_PLANS = "An intro course and an advanced seminar next term."

_ids = count(1)


class RecordingNotifier:
    """Collects decision events instead of enqueueing them."""

    def __init__(self):
        self.events = []

    def request_decided(self, event) -> None:
        self.events.append(event)


@pytest.fixture
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    SQLModel.metadata.create_all(engine)
    yield engine
    SQLModel.metadata.drop_all(engine)
    engine.dispose()


@pytest.fixture
def db(engine):
    with Session(engine) as session:
        yield session


@pytest.fixture
def notifier():
    return RecordingNotifier()


@pytest.fixture
def workflow(db, notifier):
    return WorkflowEngine(db, notifier)


@pytest.fixture
def make_actor(db):
    def _make_actor(role: str = "mentor", is_master: bool = False, **fields) -> Actor:
        n = next(_ids)
        actor = Actor(
            username=fields.pop("username", f"user{n}"),
            email=fields.pop("email", f"user{n}@example.com"),
            role=ActorRole(role),
            is_master=is_master,
            **fields,
        )
        db.add(actor)
        db.commit()
        db.refresh(actor)
        return actor

    return _make_actor


@pytest.fixture
def admin(make_actor):
    return make_actor("admin", first_name="Ada", last_name="Admin")


@pytest.fixture
def master(make_actor):
    return make_actor("mentor", is_master=True, first_name="Mary", last_name="Master")


@pytest.fixture
def mentor(make_actor):
    return make_actor("mentor", first_name="Tom", last_name="Tutor")


@pytest.fixture
def student(make_actor):
    return make_actor("student", first_name="Sam", last_name="Student")


@pytest.fixture
def make_classroom(db):
    def _make_classroom(owner: Actor, **fields) -> Classroom:
        classroom = Classroom(
            title=fields.pop("title", f"Classroom {next(_ids)}"),
            owner_id=owner.id,
            **fields,
        )
        db.add(classroom)
        db.commit()
        db.refresh(classroom)
        return classroom

    return _make_classroom


@pytest.fixture
def classroom(make_classroom, master):
    return make_classroom(master, title="Physics 101")


@pytest.fixture
def add_staff(db):
    """Put an actor directly on a classroom's staff."""

    def _add_staff(actor: Actor, classroom: Classroom) -> Membership:
        membership = Membership(
            actor_id=actor.id,
            classroom_id=classroom.id,
            membership_role=MembershipRole.STAFF,
            status=MembershipStatus.ACTIVE,
        )
        db.add(membership)
        db.commit()
        db.refresh(membership)
        return membership

    return _add_staff


def auth(actor: Actor) -> Dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(actor.id)}"}


@pytest.fixture
def client(engine, notifier):
    from main import app

    def override_get_db():
        with Session(engine) as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_notifier] = lambda: notifier
    yield TestClient(app)
    app.dependency_overrides.clear()
