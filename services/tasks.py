"""
Background job queue for fire-and-forget side work (verification mail).

Jobs are enqueued on Redis with rq by dotted path and executed by the
worker process (`python -m services.worker`), so a request finishing does
not cancel them. A failed job is logged through the on_failure callback
and kept in rq's failed registry; it never reaches the code that queued it.
"""
from __future__ import annotations

import logging

from redis import Redis
from redis.exceptions import RedisError
from rq import Queue, Retry

logger = logging.getLogger(__name__)

# Job entrypoints; the worker imports them by path
SEND_VERIFY_EMAIL_JOB = "services.jobs.send_verify_email_job"


class TaskEnqueueError(Exception):
    """The job could not be handed to the queue."""


def log_job_failure(job, connection, exc_type, exc_value, traceback):
    """rq on_failure callback."""
    logger.error(
        "Background job %s failed: job_id=%s",
        job.func_name,
        job.id,
        exc_info=(exc_type, exc_value, traceback),
    )


class TaskQueue:
    def __init__(self, queue, retry_max_attempts: int = 3, job_timeout: int = 60, result_ttl: int = 0):
        if retry_max_attempts < 0:
            raise ValueError("retry_max_attempts must not be negative")
        self.queue = queue
        self.retry = Retry(max=retry_max_attempts) if retry_max_attempts > 0 else None
        self.job_timeout = job_timeout
        self.result_ttl = result_ttl

    def enqueue(self, job_path: str, *args, description: str | None = None) -> str:
        """
        Queue job_path(*args). Arguments must be plain values (ids, strings):
        the worker rebuilds everything else itself.
        Raises TaskEnqueueError when Redis cannot take the job.
        """
        try:
            job = self.queue.enqueue(
                job_path,
                args=args,
                retry=self.retry,
                job_timeout=self.job_timeout,
                result_ttl=self.result_ttl,
                description=description or job_path,
                on_failure=log_job_failure,
            )
        except RedisError as exc:
            logger.exception("Failed to enqueue %s", job_path)
            raise TaskEnqueueError(f"Could not enqueue {job_path}") from exc

        logger.debug("Job enqueued: %s job_id=%s queue=%s", job_path, job.id, self.queue.name)
        return job.id


def build_redis(config) -> Redis:
    return Redis.from_url(
        config["REDIS_URL"],
        socket_connect_timeout=2,
        socket_timeout=5,
    )


def build_task_queue(config) -> TaskQueue:
    """
    rq queue from config. With TASKS_ASYNC false rq runs each job inside
    enqueue() instead of leaving it for a worker (Redis is still used).
    """
    queue = Queue(
        config["TASK_QUEUE_NAME"],
        connection=build_redis(config),
        is_async=config["TASKS_ASYNC"],
    )
    return TaskQueue(
        queue,
        retry_max_attempts=config["TASK_RETRY_MAX_ATTEMPTS"],
        job_timeout=config["TASK_JOB_TIMEOUT"],
    )
