"""
Development server: `python -m api`.
Production runs create_app() under a WSGI server (gunicorn/uwsgi) instead.
"""
import logging
import os

from . import create_app

logger = logging.getLogger("api")


def main():
    # APP_ENV picks the config class (see get_config())
    app = create_app()
    host = os.getenv("FLASK_RUN_HOST", "0.0.0.0")
    port = int(os.getenv("FLASK_RUN_PORT", "8000"))
    logger.info("Starting %s (%s) on %s:%d", app.config["APP_NAME"], app.config["APP_ENV"], host, port)
    app.run(host=host, port=port, debug=app.config["DEBUG"], use_reloader=False)


if __name__ == "__main__":
    main()
