"""Celery entry point: ``celery -A make_celery worker -B --loglevel INFO``."""

from app import create_app

flask_app = create_app()
celery_app = flask_app.extensions["celery"]

# Register task modules with the worker.
import tasks.cleanup  # noqa: E402,F401
import tasks.notifications  # noqa: E402,F401
