import logging

from core.celery import celery_app
from core.db import db_session
from services.image_migration import drain_pending
from services.storage import image_storage

logger = logging.getLogger(__name__)


@celery_app.task(bind=True, max_retries=3)
def migrate_product_images_task(self, batch_size: int):
    """
    Drain every product image still stored as a data URI.
    Retries up to 3 times on failure.
    """
    try:
        with db_session() as db:
            report = drain_pending(db, image_storage, batch_size)
    except Exception as exc:
        logger.exception("Image migration task failed")
        # Retry with exponential backoff
        countdown = min(2 ** self.request.retries, 60)  # Max 60 seconds
        raise self.retry(exc=exc, countdown=countdown)

    return {
        "migrated": report.migrated,
        "processed": report.processed,
        "remaining": report.remaining,
        "errors": report.errors,
    }
