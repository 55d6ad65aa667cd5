from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from core.config import settings
from core.db import get_db
from core.errors import ValidationError
from routes.auth import get_current_principal
from schemas.common import Envelope
from schemas.migration import MigrationBatchOut, MigrationQueuedOut, MigrationStatusOut
from security.jwt import Principal
from services.image_migration import migrate_batch, migration_status
from services.storage import ImageStorage, get_image_storage
from tasks.image_tasks import migrate_product_images_task

router = APIRouter(prefix="/migrate", tags=["migrate"])


@router.post("/product-images", response_model=None)
def migrate_product_images(
    batch: int = Query(settings.MIGRATION_BATCH_SIZE, ge=1),
    background: bool = Query(False),
    after_id: int = Query(0, alias="afterId", ge=0),
    db: Session = Depends(get_db),
    storage: ImageStorage = Depends(get_image_storage),
    principal: Principal = Depends(get_current_principal),
):
    """Migrate one batch of inline product images, or queue a worker to drain them all."""
    if background:
        if not storage.configured:
            raise ValidationError("Object storage is not configured")
        result = migrate_product_images_task.delay(batch)
        queued = MigrationQueuedOut(message="Image migration queued", task_id=str(result.id))
        return queued.model_dump(by_alias=True)

    report = migrate_batch(db, storage, batch, after_id=after_id)
    if report.processed == 0:
        message = "No base64 images left to migrate" if report.remaining == 0 else "No base64 images left after this cursor"
        out = MigrationBatchOut(message=message, remaining=report.remaining)
    else:
        out = MigrationBatchOut(
            message="Migration batch completed",
            migrated=report.migrated,
            processed=report.processed,
            remaining=report.remaining,
            last_id=report.last_id,
            errors=report.errors or None,
        )
    return out.model_dump(by_alias=True, exclude_none=True)


@router.get("/product-images/status", response_model=Envelope[MigrationStatusOut])
def product_images_status(
    db: Session = Depends(get_db),
    principal: Principal = Depends(get_current_principal),
):
    return {"success": True, "data": migration_status(db)}
