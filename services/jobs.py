"""
rq job entrypoints.

Each job receives plain ids and resolves the AuthService from the Flask
app: the current one when rq runs the job inline during a request, or
the worker's own app otherwise. Leaving the app context closes the
job's DB session.
"""
from __future__ import annotations

import logging
from functools import lru_cache

from flask import current_app, has_app_context

logger = logging.getLogger(__name__)


@lru_cache(maxsize=1)
def worker_app():
    # imported here: api imports services at module level
    from api import create_app

    return create_app()


def send_verify_email_job(user_id: str) -> None:
    if has_app_context():
        current_app.extensions["auth_service"].send_verify_email_code(user_id)
        return

    app = worker_app()
    with app.app_context():
        logger.info("Sending verification email: user_id=%s", user_id)
        app.extensions["auth_service"].send_verify_email_code(user_id)
