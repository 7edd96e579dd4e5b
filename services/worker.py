"""
rq worker process: `python -m services.worker`.

Consumes TASK_QUEUE_NAME from REDIS_URL. Uses SimpleWorker, so jobs run
in this process and share the app (engine, mailer) built at startup.
"""
from __future__ import annotations

import logging

from redis.exceptions import RedisError
from rq import Queue, SimpleWorker

from services.jobs import worker_app
from services.tasks import build_redis

logger = logging.getLogger(__name__)


def main() -> None:
    app = worker_app()
    config = app.config

    connection = build_redis(config)
    try:
        connection.ping()
    except RedisError as exc:
        logger.error("Redis is not reachable at %s: %s", config["REDIS_URL"], exc)
        raise SystemExit(1)

    queue = Queue(config["TASK_QUEUE_NAME"], connection=connection)
    worker = SimpleWorker([queue], connection=connection)
    logger.info("Worker starting: queue=%s", config["TASK_QUEUE_NAME"])
    try:
        worker.work(with_scheduler=False)
    except KeyboardInterrupt:
        logger.info("Worker stopped")


if __name__ == "__main__":
    main()
