from celery import Celery
from core.config import settings

celery_app = Celery(
    "catalog",
    broker=settings.REDIS_URL,
    backend=settings.REDIS_URL,
    include=["tasks.image_tasks"]
)

celery_app.conf.update(
    task_serializer="json",
    accept_content=["json"],
    result_serializer="json",
    timezone="UTC",
    enable_utc=True,
    task_track_started=True,
    # A full drain walks every inline image in the catalogue
    task_time_limit=60 * 60,
    task_soft_time_limit=55 * 60,
    task_routes={"tasks.image_tasks.*": {"queue": "images"}},
    worker_prefetch_multiplier=1,
    worker_max_tasks_per_child=100,
    # Tests run tasks inline, no broker needed
    task_always_eager=settings.TESTING,
    task_eager_propagates=settings.TESTING,
)
