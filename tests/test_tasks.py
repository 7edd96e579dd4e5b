import sys
from types import SimpleNamespace
from unittest.mock import Mock

import pytest
from redis.exceptions import ConnectionError as RedisConnectionError
from rq import Retry

from services import jobs
from services.tasks import (
    SEND_VERIFY_EMAIL_JOB,
    TaskEnqueueError,
    TaskQueue,
    build_task_queue,
    log_job_failure,
)
from tests.conftest import InlineQueue


def test_enqueue_passes_job_path_and_options():
    rq_queue = Mock()
    rq_queue.enqueue.return_value = SimpleNamespace(id="job-42")
    tasks = TaskQueue(rq_queue, retry_max_attempts=2, job_timeout=30)

    job_id = tasks.enqueue(SEND_VERIFY_EMAIL_JOB, "user-1", description="send:user-1")

    assert job_id == "job-42"
    args, kwargs = rq_queue.enqueue.call_args
    assert args == (SEND_VERIFY_EMAIL_JOB,)
    assert kwargs["args"] == ("user-1",)
    assert isinstance(kwargs["retry"], Retry)
    assert kwargs["retry"].max == 2
    assert kwargs["job_timeout"] == 30
    assert kwargs["description"] == "send:user-1"
    assert kwargs["on_failure"] is log_job_failure


def test_no_retry_when_disabled():
    assert TaskQueue(Mock(), retry_max_attempts=0).retry is None


def test_redis_failure_becomes_enqueue_error(caplog):
    rq_queue = Mock()
    rq_queue.enqueue.side_effect = RedisConnectionError("redis down")

    with pytest.raises(TaskEnqueueError):
        TaskQueue(rq_queue).enqueue(SEND_VERIFY_EMAIL_JOB, "user-1")
    assert f"Failed to enqueue {SEND_VERIFY_EMAIL_JOB}" in caplog.text


def test_failed_job_is_logged_not_raised(caplog):
    def boom(user_id):
        raise RuntimeError("boom")

    tasks = TaskQueue(InlineQueue({"jobs.boom": boom}))

    assert tasks.enqueue("jobs.boom", "user-1") == "job-1"
    assert "Background job jobs.boom failed: job_id=job-1" in caplog.text
    assert "RuntimeError: boom" in caplog.text


def test_log_job_failure_keeps_traceback(caplog):
    try:
        raise ValueError("bad")
    except ValueError:
        log_job_failure(SimpleNamespace(func_name="x.y", id="j1"), None, *sys.exc_info())

    record = caplog.records[-1]
    assert record.levelname == "ERROR"
    assert record.exc_info[0] is ValueError


def test_build_task_queue_from_config():
    config = {
        "REDIS_URL": "redis://localhost:6379/3",
        "TASK_QUEUE_NAME": "auth-test",
        "TASKS_ASYNC": False,
        "TASK_RETRY_MAX_ATTEMPTS": 1,
        "TASK_JOB_TIMEOUT": 15,
    }

    tasks = build_task_queue(config)

    assert tasks.queue.name == "auth-test"
    assert tasks.queue.is_async is False
    assert tasks.retry.max == 1
    assert tasks.job_timeout == 15


def test_job_uses_current_app_service(app):
    service = Mock()
    app.extensions["auth_service"] = service

    with app.app_context():
        jobs.send_verify_email_job("user-1")

    service.send_verify_email_code.assert_called_once_with("user-1")


def test_job_outside_app_context_uses_worker_app(app, monkeypatch):
    service = Mock()
    app.extensions["auth_service"] = service
    monkeypatch.setattr(jobs, "worker_app", lambda: app)

    jobs.send_verify_email_job("user-1")

    service.send_verify_email_code.assert_called_once_with("user-1")
