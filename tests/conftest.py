"""
Shared fixtures.

- app / client: TestingConfig app on its own in-memory SQLite database,
  console mailer with an outbox, jobs run inline through InlineQueue
- storage / service: AuthService wired to real stores and a FakeClock,
  without Flask
"""
import sys
from datetime import datetime, timedelta
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from werkzeug.utils import import_string

from api import create_app
from models import DBStorage, UserStore, RefreshTokenStore, User, UserStatus
from services.auth_service import AuthService, AuthSettings
from services.tasks import SEND_VERIFY_EMAIL_JOB, TaskQueue
from utils.security import hash_password

PASSWORD = "Secur3Pass!"


class FakeClock:
    def __init__(self, now=None):
        self.now = now or datetime(2026, 1, 1, 12, 0, 0)

    def __call__(self):
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


class InlineQueue:
    """
    Stands in for rq.Queue(is_async=False) without Redis: each job runs
    inside enqueue(), a failure goes to on_failure and is not raised.
    handlers maps job paths to callables; other paths are imported.
    """

    name = "inline"

    def __init__(self, handlers=None):
        self.handlers = handlers if handlers is not None else {}
        self.jobs = []

    def enqueue(self, f, args=(), kwargs=None, on_failure=None, **options):
        job = SimpleNamespace(id=f"job-{len(self.jobs) + 1}", func_name=f, args=args, options=options)
        self.jobs.append(job)
        func = self.handlers.get(f) or import_string(f)
        try:
            func(*args, **(kwargs or {}))
        except Exception:
            if on_failure is None:
                raise
            on_failure(job, None, *sys.exc_info())
        return job


def inline_tasks(handlers=None):
    return TaskQueue(InlineQueue(handlers))


@pytest.fixture
def app():
    app = create_app("testing", tasks=inline_tasks())
    yield app
    storage = app.extensions["storage"]
    storage.close()
    storage.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def storage():
    storage = DBStorage("sqlite://")
    storage.reload()
    yield storage
    storage.close()
    storage.drop_all()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def mailer():
    return Mock()


@pytest.fixture
def settings():
    return AuthSettings(
        jwt_secret="test-secret",
        access_token_expires=timedelta(minutes=15),
        refresh_token_expires=timedelta(days=7),
    )


@pytest.fixture
def user_store(storage):
    return UserStore(storage)


@pytest.fixture
def token_store(storage):
    return RefreshTokenStore(storage)


@pytest.fixture
def service(user_store, token_store, mailer, settings, clock):
    handlers = {}
    service = AuthService(
        users=user_store,
        tokens=token_store,
        mailer=mailer,
        tasks=inline_tasks(handlers),
        settings=settings,
        clock=clock,
    )
    handlers[SEND_VERIFY_EMAIL_JOB] = service.send_verify_email_code
    return service


@pytest.fixture
def make_user(user_store):
    def _make_user(email="bob@example.com", password=PASSWORD, **kwargs):
        kwargs.setdefault("status", UserStatus.ACTIVE)
        user = User(email=email, password_hash=hash_password(password), **kwargs)
        return user_store.create(user)

    return _make_user
